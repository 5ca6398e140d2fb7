"""Data models for the air quality sensor library."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Tuple

from aq_sensor_lib import protocol


class WarmUpState(Enum):
    """Whether a reading was taken after the sensor's warm-up period."""

    NOT_WARMED_UP = "not_warmed_up"
    WARMED_UP = "warmed_up"


class MetricName(str, Enum):
    """Metric names published for each sensor."""

    CO_CONCENTRATION_PPB = "COConcentrationPPB"
    TEMPERATURE_C = "TemperatureC"
    RELATIVE_HUMIDITY = "RelativeHumidity"
    UPTIME = "Uptime"


class StandardUnit(str, Enum):
    """Subset of CloudWatch standard units used by this library."""

    NONE = "None"
    SECONDS = "Seconds"


# Dimension name carrying the sensor serial number
SERIAL_NUMBER_DIMENSION = "SensorSerialNumber"

# One-second storage resolution (CloudWatch high-resolution metric)
HIGH_RESOLUTION = 1


@dataclass(frozen=True)
class RawFrame:
    """One terminated response line and when it was requested.

    Attributes:
        data: Raw bytes received, ending in the line terminator.
        requested_at: UTC timestamp taken right after the stimulus was written.
    """

    data: bytes
    requested_at: datetime


@dataclass(frozen=True)
class Measurement:
    """A single fully parsed sensor reading.

    Attributes:
        sensor_serial_number: Device-assigned serial number.
        co_concentration_ppb: CO concentration in ppb as reported (may be negative).
        temperature_c: Temperature in degrees Celsius.
        relative_humidity: Relative humidity in percent.
        uptime: Time since the device powered on.
        measurement_time: UTC timestamp when the reading was requested.
    """

    sensor_serial_number: str
    co_concentration_ppb: int
    temperature_c: int
    relative_humidity: int
    uptime: timedelta
    measurement_time: datetime


@dataclass(frozen=True)
class Classification:
    """Warm-up state of a measurement. Derived per reading, never stored."""

    state: WarmUpState
    measurement: Measurement

    @property
    def warmed_up(self) -> bool:
        return self.state is WarmUpState.WARMED_UP


@dataclass(frozen=True)
class MetricDatum:
    """A single named, dimensioned data point ready for submission."""

    name: MetricName
    value: float
    dimensions: Tuple[Tuple[str, str], ...]
    unit: StandardUnit = StandardUnit.NONE
    storage_resolution: int = HIGH_RESOLUTION

    def to_cloudwatch(self) -> Dict[str, object]:
        """Render as a CloudWatch ``MetricData`` entry."""
        dimensions: List[Dict[str, str]] = [
            {"Name": name, "Value": value} for name, value in self.dimensions
        ]
        return {
            "MetricName": self.name.value,
            "Value": self.value,
            "Dimensions": dimensions,
            "Unit": self.unit.value,
            "StorageResolution": self.storage_resolution,
        }


@dataclass
class MonitorConfig:
    """Runtime configuration for the monitor process.

    Attributes:
        serial_device_path: Serial device the sensor is attached to (e.g. "/dev/ttyUSB0").
        metric_namespace: CloudWatch namespace metrics are submitted under.
        poll_interval_ms: Time between the start of consecutive polls.
        baud: Serial baud rate.
        warm_up_period: Uptime below which CO readings are not published.
    """

    serial_device_path: str
    metric_namespace: str
    poll_interval_ms: int = protocol.DEFAULT_POLL_INTERVAL_MS
    baud: int = protocol.DEFAULT_BAUD
    warm_up_period: timedelta = field(default=protocol.WARM_UP_PERIOD)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.serial_device_path:
            raise ValueError("serial_device_path must not be empty")

        if not self.metric_namespace:
            raise ValueError("metric_namespace must not be empty")

        if self.poll_interval_ms <= 0:
            raise ValueError(
                f"poll_interval_ms must be positive, got {self.poll_interval_ms}"
            )

        if self.baud <= 0:
            raise ValueError(f"baud must be positive, got {self.baud}")

        if self.warm_up_period < timedelta(0):
            raise ValueError(
                f"warm_up_period must not be negative, got {self.warm_up_period}"
            )

    @property
    def poll_interval_s(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000.0

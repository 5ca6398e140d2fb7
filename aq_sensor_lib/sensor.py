"""Device-level access to an IOT-CO-1000 carbon monoxide sensor module."""

import logging
from typing import Optional

from aq_sensor_lib import parsing, protocol
from aq_sensor_lib.models import Measurement
from aq_sensor_lib.transport import SerialLike, Transport

logger = logging.getLogger(__name__)


class AirQualitySensor:
    """Requests and parses measurements from one sensor module.

    Owns its Transport exclusively; only one thread may use an instance.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._last_serial_number: Optional[str] = None

    @classmethod
    def open(
        cls, serial_device_path: str, baud: int = protocol.DEFAULT_BAUD
    ) -> "AirQualitySensor":
        """Open the serial device the sensor is attached to.

        Raises:
            DeviceIOError: If the port cannot be opened
        """
        return cls(Transport.open(serial_device_path, baud))

    @classmethod
    def from_serial(cls, serial_port: SerialLike, **transport_kwargs) -> "AirQualitySensor":
        """Wrap an already open serial port (e.g. FakeSerial for testing)."""
        return cls(Transport(serial_port, **transport_kwargs))

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "AirQualitySensor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def transport(self) -> Transport:
        return self._transport

    def analyze_air_quality(self) -> Measurement:
        """Take one reading from the sensor.

        Returns:
            Parsed Measurement timestamped at the moment it was requested

        Raises:
            DeviceIOError: If the serial port fails
            FrameError: If the response could not be framed
            FieldParseError: If the response could not be parsed
        """
        frame = self._transport.request_frame()
        measurement = parsing.parse_measurement(frame.data, frame.requested_at)

        if measurement.sensor_serial_number != self._last_serial_number:
            logger.info(f"Reading from sensor {measurement.sensor_serial_number}")
            self._last_serial_number = measurement.sensor_serial_number

        return measurement

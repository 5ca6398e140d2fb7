"""Mapping of classified measurements onto metric data points."""

import logging
from typing import List, Protocol, Sequence, Tuple

from aq_sensor_lib.models import (
    SERIAL_NUMBER_DIMENSION,
    Classification,
    Measurement,
    MetricDatum,
    MetricName,
    StandardUnit,
)

logger = logging.getLogger(__name__)


class MetricsClient(Protocol):
    """Protocol for a metrics backend (allows test doubles)."""

    def submit(self, namespace: str, data: Sequence[MetricDatum]) -> None:
        """Submit one batch of data points.

        Raises:
            SubmissionError: If the backend rejects or fails the submission
        """
        ...


def dimensions_for(measurement: Measurement) -> Tuple[Tuple[str, str], ...]:
    """Dimensions identifying the sensor a measurement came from."""
    return ((SERIAL_NUMBER_DIMENSION, measurement.sensor_serial_number),)


def build_metric_data(classification: Classification) -> List[MetricDatum]:
    """Build the batch of data points for a classified measurement.

    Warmed up readings publish CO concentration (floored at zero),
    temperature, humidity and uptime. Readings taken during warm-up publish
    uptime only so the sensor still shows as alive.

    Args:
        classification: Measurement with its warm-up state

    Returns:
        List of MetricDatum, uptime always last
    """
    measurement = classification.measurement
    dimensions = dimensions_for(measurement)

    data: List[MetricDatum] = []
    if classification.warmed_up:
        data.extend(
            [
                MetricDatum(
                    name=MetricName.CO_CONCENTRATION_PPB,
                    value=float(max(0, measurement.co_concentration_ppb)),
                    dimensions=dimensions,
                ),
                MetricDatum(
                    name=MetricName.TEMPERATURE_C,
                    value=float(measurement.temperature_c),
                    dimensions=dimensions,
                ),
                MetricDatum(
                    name=MetricName.RELATIVE_HUMIDITY,
                    value=float(measurement.relative_humidity),
                    dimensions=dimensions,
                ),
            ]
        )

    data.append(
        MetricDatum(
            name=MetricName.UPTIME,
            value=measurement.uptime.total_seconds(),
            dimensions=dimensions,
            unit=StandardUnit.SECONDS,
        )
    )
    return data

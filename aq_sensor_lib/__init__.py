"""
aq_sensor_lib - Poll IOT-CO-1000 carbon monoxide sensors and publish their readings.

Reads the module's single-line ASCII response over serial, gates CO data on
the sensor's warm-up period and submits metrics to Amazon CloudWatch.
"""

from aq_sensor_lib.errors import (
    DeviceIOError,
    FieldParseError,
    FrameTimeout,
    FrameTooLong,
    SubmissionError,
)
from aq_sensor_lib.models import Classification, Measurement, MetricDatum, MonitorConfig
from aq_sensor_lib.pipeline import MonitorPipeline
from aq_sensor_lib.sensor import AirQualitySensor

__version__ = "0.1.0"

__all__ = [
    "AirQualitySensor",
    "MonitorPipeline",
    "MonitorConfig",
    "Measurement",
    "Classification",
    "MetricDatum",
    "DeviceIOError",
    "FrameTimeout",
    "FrameTooLong",
    "FieldParseError",
    "SubmissionError",
]

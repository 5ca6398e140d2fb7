"""Command-line entry point: poll a sensor and submit its readings to CloudWatch.

Flags fall back to environment variables so the monitor can run from a
systemd unit or container without a wrapper script:

    SERIAL_DEVICE_PATH, METRIC_NAMESPACE, POLL_INTERVAL_MS, LOG_LEVEL
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from aq_sensor_lib import protocol
from aq_sensor_lib.cloudwatch import CloudWatchMetricsClient
from aq_sensor_lib.errors import DeviceIOError, SubmissionError
from aq_sensor_lib.models import MonitorConfig
from aq_sensor_lib.pipeline import MonitorPipeline
from aq_sensor_lib.sensor import AirQualitySensor

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aq-sensor-monitor",
        description="Poll an IOT-CO-1000 sensor and submit readings to CloudWatch",
    )
    parser.add_argument(
        "--poll-interval",
        type=int,
        default=None,
        help="how frequently to poll for and submit readings, in milliseconds "
        f"(default: $POLL_INTERVAL_MS or {protocol.DEFAULT_POLL_INTERVAL_MS})",
    )
    parser.add_argument(
        "--serial-device-path",
        default=os.getenv("SERIAL_DEVICE_PATH", ""),
        help="the location of the serial device to poll for readings",
    )
    parser.add_argument(
        "--metric-namespace",
        default=os.getenv("METRIC_NAMESPACE", ""),
        help="the CloudWatch metric namespace for which to submit readings",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="logging level (default: $LOG_LEVEL or INFO)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> MonitorConfig:
    """Validate parsed arguments into a MonitorConfig.

    Raises:
        ValueError: Listing every missing required argument at once,
                    or describing the first invalid value
    """
    missing: List[str] = []
    if not args.serial_device_path:
        missing.append("serial-device-path")
    if not args.metric_namespace:
        missing.append("metric-namespace")
    if missing:
        raise ValueError(f"missing required argument(s): {', '.join(missing)}")

    poll_interval_ms = args.poll_interval
    if poll_interval_ms is None:
        env_value = os.getenv("POLL_INTERVAL_MS")
        try:
            poll_interval_ms = (
                int(env_value) if env_value else protocol.DEFAULT_POLL_INTERVAL_MS
            )
        except ValueError as e:
            raise ValueError(f"POLL_INTERVAL_MS must be an integer, got {env_value!r}") from e

    return MonitorConfig(
        serial_device_path=args.serial_device_path,
        metric_namespace=args.metric_namespace,
        poll_interval_ms=poll_interval_ms,
    )


def configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Run the monitor until killed or the serial device fails.

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = config_from_args(args)
    except ValueError as e:
        logger.error(str(e))
        return 1

    try:
        metrics_client = CloudWatchMetricsClient()
    except SubmissionError as e:
        logger.error(str(e))
        return 1

    try:
        sensor = AirQualitySensor.open(config.serial_device_path, config.baud)
    except DeviceIOError as e:
        logger.error(str(e))
        return 1

    pipeline = MonitorPipeline(
        sensor,
        metrics_client,
        config.metric_namespace,
        poll_interval_s=config.poll_interval_s,
        warm_up_threshold=config.warm_up_period,
    )

    with sensor:
        try:
            pipeline.run()
        except DeviceIOError:
            return 1
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Polling and metric submission pipeline.

Acquisition (serial polling) and submission (metrics backend) run on
separate threads joined by an unbounded FIFO queue of Measurements, so a
slow backend never delays the poll cadence.
"""

import logging
import queue
import threading
import time
from datetime import timedelta
from typing import Optional, Union

from aq_sensor_lib import protocol
from aq_sensor_lib.errors import DeviceIOError, FieldParseError, FrameError, SubmissionError
from aq_sensor_lib.metrics import MetricsClient, build_metric_data
from aq_sensor_lib.models import Classification, Measurement, WarmUpState
from aq_sensor_lib.sensor import AirQualitySensor
from aq_sensor_lib.warmup import WarmUpMonitor

logger = logging.getLogger(__name__)

# Queued after the last measurement to end the submission loop
_STOP = object()


class MonitorPipeline:
    """Polls a sensor at a fixed cadence and submits its metrics.

    The calling thread runs acquisition and exclusively owns the sensor.
    A daemon thread runs submission and exclusively owns the metrics client.
    """

    def __init__(
        self,
        sensor: AirQualitySensor,
        metrics_client: MetricsClient,
        namespace: str,
        poll_interval_s: float = protocol.DEFAULT_POLL_INTERVAL_MS / 1000.0,
        warm_up_threshold: timedelta = protocol.WARM_UP_PERIOD,
    ) -> None:
        """Initialize pipeline.

        Args:
            sensor: Sensor to poll
            metrics_client: Backend to submit batches to
            namespace: Metric namespace for every batch
            poll_interval_s: Seconds between the start of consecutive polls
            warm_up_threshold: Uptime below which only uptime is published
        """
        if poll_interval_s <= 0:
            raise ValueError(f"poll_interval_s must be positive, got {poll_interval_s}")

        self._sensor = sensor
        self._metrics_client = metrics_client
        self._namespace = namespace
        self._poll_interval_s = poll_interval_s
        self._warm_up = WarmUpMonitor(warm_up_threshold)

        self._queue: "queue.Queue[Union[Measurement, object]]" = queue.Queue()
        self._stop_event = threading.Event()
        self._submission_thread: Optional[threading.Thread] = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def run(self) -> None:
        """Run until stop() is called or the serial device fails.

        Raises:
            DeviceIOError: If the serial device fails (fatal)
        """
        self._start_submission_thread()
        try:
            self._acquisition_loop()
        except DeviceIOError as e:
            logger.error(f"Serial device failed, stopping: {e}")
            raise
        finally:
            self._stop_submission_thread()

    def stop(self) -> None:
        """Ask both loops to exit. Safe to call from any thread."""
        self._stop_event.set()

    @property
    def warm_up_state(self) -> WarmUpState:
        return self._warm_up.state

    @property
    def pending(self) -> int:
        """Approximate number of measurements waiting for submission."""
        return self._queue.qsize()

    # ========================================================================
    # Single Steps
    # ========================================================================

    def poll_once(self) -> Optional[Measurement]:
        """Take one reading and hand it to the submission queue.

        Unreadable or unparseable responses are logged and dropped.

        Returns:
            The queued Measurement, or None if the reading was dropped

        Raises:
            DeviceIOError: If the serial device fails
        """
        try:
            measurement = self._sensor.analyze_air_quality()
        except FrameError as e:
            logger.warning(f"Failed to read sensor response: {e}")
            self._sensor.transport.flush_input()
            return None
        except FieldParseError as e:
            logger.warning(f"Failed to parse sensor response: {e}")
            return None

        self._queue.put(measurement)
        return measurement

    def submit_once(self, measurement: Measurement) -> Classification:
        """Classify, build and submit the batch for one measurement.

        Submission errors are logged and not retried.
        """
        classification = self._warm_up.observe(measurement)
        data = build_metric_data(classification)

        try:
            self._metrics_client.submit(self._namespace, data)
        except SubmissionError as e:
            logger.error(str(e))

        return classification

    # ========================================================================
    # Internal Helpers: Threads
    # ========================================================================

    def _acquisition_loop(self) -> None:
        """Poll at a fixed cadence measured from the start of each iteration."""
        logger.info(
            f"Acquisition loop started (thread {threading.get_ident()}) "
            f"every {self._poll_interval_s:.3f}s"
        )

        while not self._stop_event.is_set():
            cycle_start = time.monotonic()

            self.poll_once()

            elapsed = time.monotonic() - cycle_start
            sleep_time = max(0, self._poll_interval_s - elapsed)
            if self._stop_event.wait(timeout=sleep_time):
                break

        logger.info("Acquisition loop stopped")

    def _start_submission_thread(self) -> None:
        self._submission_thread = threading.Thread(
            target=self._submission_loop,
            name="MetricSubmitter",
            daemon=True,
        )
        self._submission_thread.start()
        logger.debug("Started metric submission thread")

    def _stop_submission_thread(self) -> None:
        """Let the submission thread drain the queue, then join it.

        No timeout: every measurement queued before the sentinel is submitted.
        """
        if self._submission_thread and self._submission_thread.is_alive():
            logger.debug("Stopping metric submission thread...")
            self._queue.put(_STOP)
            self._submission_thread.join()
            logger.debug("Metric submission thread stopped")

        self._submission_thread = None

    def _submission_loop(self) -> None:
        """Submit queued measurements one at a time in arrival order."""
        logger.info(f"Submission loop started (thread {threading.get_ident()})")

        while True:
            item = self._queue.get()
            if item is _STOP:
                break

            try:
                self.submit_once(item)  # type: ignore[arg-type]
            except Exception as e:
                logger.error(f"Error in submission loop: {e}", exc_info=True)

        logger.info("Submission loop stopped")

"""Warm-up gating for sensor readings.

The sensor's CO readings are unreliable for a period after power-on.
Temperature, humidity and uptime are trusted regardless.
"""

import logging
from datetime import timedelta

from aq_sensor_lib import protocol
from aq_sensor_lib.models import Classification, Measurement, WarmUpState

logger = logging.getLogger(__name__)


def classify(
    measurement: Measurement, warm_up_threshold: timedelta = protocol.WARM_UP_PERIOD
) -> Classification:
    """Classify a measurement by the sensor's uptime.

    An uptime equal to the threshold counts as warmed up.
    """
    if measurement.uptime < warm_up_threshold:
        state = WarmUpState.NOT_WARMED_UP
    else:
        state = WarmUpState.WARMED_UP
    return Classification(state=state, measurement=measurement)


class WarmUpMonitor:
    """Tracks the run-level warm-up state and logs each transition once.

    The run state only moves from NOT_WARMED_UP to WARMED_UP. A later
    reading with low uptime (device reset) is still classified on its own
    but neither reverts the state nor logs again.
    """

    def __init__(self, warm_up_threshold: timedelta = protocol.WARM_UP_PERIOD) -> None:
        self._warm_up_threshold = warm_up_threshold
        self._state = WarmUpState.NOT_WARMED_UP
        self._logged_not_warmed_up = False
        self._logged_active = False

    @property
    def state(self) -> WarmUpState:
        return self._state

    @property
    def warm_up_threshold(self) -> timedelta:
        return self._warm_up_threshold

    def observe(self, measurement: Measurement) -> Classification:
        """Classify a measurement and log the first entry into each state."""
        classification = classify(measurement, self._warm_up_threshold)

        if classification.warmed_up:
            if not self._logged_active:
                logger.info("sensor has been active for warm up duration; will submit metrics")
                self._logged_active = True
            self._state = WarmUpState.WARMED_UP
        elif not self._logged_not_warmed_up:
            logger.info(
                "sensor has not been active for warm up duration "
                f"{self._warm_up_threshold}; submitting uptime only"
            )
            self._logged_not_warmed_up = True

        return classification

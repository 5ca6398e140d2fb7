"""Wire protocol constants for the IOT-CO-1000 digital CO sensor module.

The module answers a bare line terminator with a single comma-separated
ASCII line:

    <serial>, <ppb>, <temp>, <rh>, <raw>, <raw>, <raw>, <dd>, <hh>, <mm>, <ss>\\r\\n

See https://www.spec-sensors.com/product/iot-co-1000-digital-co-sensor-module/
"""

from datetime import timedelta
from typing import Final, Tuple

# ============================================================================
# Line Termination
# ============================================================================

# Any line terminator triggers a single measurement
STIMULUS: Final[bytes] = b"\r\n"

# Responses end in CRLF; only the LF is checked when framing
LINE_TERMINATOR: Final[int] = ord("\n")

# Trailing artifacts stripped from the last field
SECONDS_TRIM_CHARS: Final[str] = " \r\n\x00"

# ============================================================================
# Response Fields
# ============================================================================

FIELD_DELIMITER: Final[str] = ", "

FIELD_SERIAL_NUMBER: Final[int] = 0
FIELD_CO_PPB: Final[int] = 1
FIELD_TEMPERATURE: Final[int] = 2
FIELD_HUMIDITY: Final[int] = 3
# Fields 4-6 are raw ADC counts, not used
FIELD_DAYS_UP: Final[int] = 7
FIELD_HOURS_UP: Final[int] = 8
FIELD_MINUTES_UP: Final[int] = 9
FIELD_SECONDS_UP: Final[int] = 10

FIELD_COUNT: Final[int] = 11

# (index, name) in the order they are checked for presence
REQUIRED_FIELDS: Final[Tuple[Tuple[int, str], ...]] = (
    (FIELD_SERIAL_NUMBER, "sensor_serial_number"),
    (FIELD_CO_PPB, "co_concentration_ppb"),
    (FIELD_TEMPERATURE, "temperature_c"),
    (FIELD_HUMIDITY, "relative_humidity"),
    (FIELD_DAYS_UP, "days_up"),
    (FIELD_HOURS_UP, "hours_up"),
    (FIELD_MINUTES_UP, "minutes_up"),
    (FIELD_SECONDS_UP, "seconds_up"),
)

# Signed bit widths the firmware reports each integer field in
CO_PPB_BITS: Final[int] = 32
TEMPERATURE_BITS: Final[int] = 8
HUMIDITY_BITS: Final[int] = 8
DAYS_UP_BITS: Final[int] = 16
HOURS_UP_BITS: Final[int] = 8

# ============================================================================
# Serial Port Settings
# ============================================================================

DEFAULT_BAUD: Final[int] = 9600
SERIAL_READ_TIMEOUT: Final[float] = 0.25

# ============================================================================
# Timing Constants (seconds)
# ============================================================================

# Time the module needs to produce a response after the stimulus
SETTLE_DELAY: Final[float] = 1.0

# Pause between reads while a response is incomplete
READ_BACKOFF: Final[float] = 0.05

# Give up on a response that never terminates (measured after settle delay)
FRAME_TIMEOUT: Final[float] = 10.0

# ============================================================================
# Buffering
# ============================================================================

READ_CHUNK_SIZE: Final[int] = 256

# A normal response is well under 100 bytes
MAX_FRAME_BYTES: Final[int] = 1024

# ============================================================================
# Warm-Up
# ============================================================================

# CO readings are unreliable for this long after power-on
WARM_UP_PERIOD: Final[timedelta] = timedelta(hours=2)

# ============================================================================
# Polling
# ============================================================================

DEFAULT_POLL_INTERVAL_MS: Final[int] = 5000

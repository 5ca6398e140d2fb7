"""Pure functions for parsing sensor response lines."""

import logging
import re
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, List

from aq_sensor_lib import protocol
from aq_sensor_lib.errors import FieldParseError
from aq_sensor_lib.models import Measurement

logger = logging.getLogger(__name__)

RE_DECIMAL_INT = re.compile(r"[+-]?[0-9]+")

# One "<number><unit>" component of a duration string, e.g. "30m" or "1.5h"
RE_DURATION_COMPONENT = re.compile(r"([0-9]*(?:\.[0-9]*)?)([^0-9.]+)")

_DURATION_UNITS: Dict[str, Decimal] = {
    "ns": Decimal("0.000000001"),
    "us": Decimal("0.000001"),
    "µs": Decimal("0.000001"),  # micro sign
    "μs": Decimal("0.000001"),  # greek mu
    "ms": Decimal("0.001"),
    "s": Decimal(1),
    "m": Decimal(60),
    "h": Decimal(3600),
}

# Largest duration representable as signed 64-bit nanoseconds
_MAX_DURATION_NS = 2**63 - 1


def parse_int(text: str, bits: int) -> int:
    """Parse a base-10 signed integer that must fit in ``bits`` bits.

    Args:
        text: Digits with an optional leading sign; no whitespace.
        bits: Signed bit width, e.g. 8 for -128..127

    Returns:
        Parsed integer

    Raises:
        ValueError: If text is not an integer or is out of range
    """
    if not RE_DECIMAL_INT.fullmatch(text):
        raise ValueError("invalid syntax")

    value = int(text, 10)
    limit = 1 << (bits - 1)
    if not (-limit <= value < limit):
        raise ValueError(f"value out of range for int{bits}")
    return value


def parse_duration(text: str) -> timedelta:
    """Parse a duration string such as "1h30m15s" or "-1.5h".

    A possibly signed sequence of decimal numbers, each with an optional
    fraction and a unit suffix. Valid units are "ns", "us" (or "µs"), "ms",
    "s", "m" and "h".

    Args:
        text: Duration string

    Returns:
        timedelta (sub-microsecond precision is truncated)

    Raises:
        ValueError: If the string is malformed, uses an unknown unit or overflows
    """
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]

    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    total_s = Decimal(0)
    pos = 0
    while pos < len(rest):
        match = RE_DURATION_COMPONENT.match(rest, pos)
        if not match:
            raise ValueError(f"invalid duration {text!r}")

        number, unit = match.group(1), match.group(2)
        if not any(c.isdigit() for c in number):
            raise ValueError(f"invalid duration {text!r}")
        if unit not in _DURATION_UNITS:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")

        try:
            total_s += Decimal(number) * _DURATION_UNITS[unit]
        except InvalidOperation as e:
            raise ValueError(f"invalid duration {text!r}") from e
        pos = match.end()

    if total_s * 1_000_000_000 > _MAX_DURATION_NS:
        raise ValueError(f"invalid duration {text!r}: overflow")

    micros = int(total_s * 1_000_000)
    return timedelta(microseconds=-micros if negative else micros)


def compose_uptime(days: int, hours: int, minutes: str, seconds: str) -> str:
    """Build the uptime duration string from the four uptime fields.

    Minutes and seconds are passed through as text; seconds is trimmed of
    trailing padding left over by the device.
    """
    return f"{days * 24 + hours}h{minutes}m{seconds.strip(protocol.SECONDS_TRIM_CHARS)}s"


def split_fields(text: str) -> List[str]:
    """Split a response line into fields, checking all required fields are present.

    Raises:
        FieldParseError: Naming the first required field that is missing
    """
    fields = text.split(protocol.FIELD_DELIMITER)
    for index, name in protocol.REQUIRED_FIELDS:
        if index >= len(fields):
            raise FieldParseError(
                name,
                text,
                "field",
                reason=f"response has {len(fields)} fields, expected {protocol.FIELD_COUNT}",
            )
    return fields


def _int_field(fields: List[str], index: int, name: str, bits: int) -> int:
    raw = fields[index]
    try:
        return parse_int(raw, bits)
    except ValueError as e:
        raise FieldParseError(name, raw, f"int{bits}", reason=str(e)) from e


def parse_measurement(raw: bytes, captured_at: datetime) -> Measurement:
    """Parse a sensor response line into a Measurement.

    Expected format (fields 4-6 are ignored and need not be numeric):
        "ABC123, -5, 21, 40, 12345, 26000, 30000, 0, 1, 30, 15\\r\\n"

    Args:
        raw: Raw response bytes including the line terminator
        captured_at: Timestamp the reading was requested at

    Returns:
        Fully populated Measurement

    Raises:
        FieldParseError: If a required field is missing or malformed
    """
    text = raw.decode("ascii", errors="replace")
    fields = split_fields(text)

    serial_number = fields[protocol.FIELD_SERIAL_NUMBER]
    co_ppb = _int_field(
        fields, protocol.FIELD_CO_PPB, "co_concentration_ppb", protocol.CO_PPB_BITS
    )
    temperature_c = _int_field(
        fields, protocol.FIELD_TEMPERATURE, "temperature_c", protocol.TEMPERATURE_BITS
    )
    relative_humidity = _int_field(
        fields, protocol.FIELD_HUMIDITY, "relative_humidity", protocol.HUMIDITY_BITS
    )
    days_up = _int_field(fields, protocol.FIELD_DAYS_UP, "days_up", protocol.DAYS_UP_BITS)
    hours_up = _int_field(
        fields, protocol.FIELD_HOURS_UP, "hours_up", protocol.HOURS_UP_BITS
    )

    uptime_str = compose_uptime(
        days_up,
        hours_up,
        fields[protocol.FIELD_MINUTES_UP],
        fields[protocol.FIELD_SECONDS_UP],
    )
    try:
        uptime = parse_duration(uptime_str)
    except ValueError as e:
        raise FieldParseError("uptime", uptime_str, "duration", reason=str(e)) from e

    measurement = Measurement(
        sensor_serial_number=serial_number,
        co_concentration_ppb=co_ppb,
        temperature_c=temperature_c,
        relative_humidity=relative_humidity,
        uptime=uptime,
        measurement_time=captured_at,
    )
    logger.debug(f"Parsed measurement: {measurement}")
    return measurement

"""Tests for response line parsing."""

import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from aq_sensor_lib.errors import FieldParseError
from aq_sensor_lib.parsing import compose_uptime, parse_duration, parse_int, parse_measurement

CAPTURED_AT = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

EXAMPLE_LINE = b"ABC123, -5, 21, 40, x, x, x, 0, 1, 30, 15\n"


def test_parse_example_line() -> None:
    """Test that a well-formed line yields every required field."""
    m = parse_measurement(EXAMPLE_LINE, CAPTURED_AT)

    assert m.sensor_serial_number == "ABC123"
    assert m.co_concentration_ppb == -5
    assert m.temperature_c == 21
    assert m.relative_humidity == 40
    assert m.uptime == timedelta(hours=1, minutes=30, seconds=15)
    assert m.measurement_time == CAPTURED_AT


def test_parse_days_fold_into_hours() -> None:
    """Test that days up are added to the uptime as 24 hours each."""
    m = parse_measurement(b"ABC123, -5, 21, 40, x, x, x, 1, 0, 30, 15\n", CAPTURED_AT)

    assert m.uptime == timedelta(days=1, minutes=30, seconds=15)
    assert m.uptime.total_seconds() == 88215


def test_parse_device_format_with_crlf() -> None:
    """Test a line in the module's own zero-padded CRLF format."""
    line = b"110619020342, 3, 22, 41, 26150, 25890, 31022, 02, 04, 07, 09\r\n"
    m = parse_measurement(line, CAPTURED_AT)

    assert m.sensor_serial_number == "110619020342"
    assert m.co_concentration_ppb == 3
    assert m.uptime == timedelta(days=2, hours=4, minutes=7, seconds=9)


@pytest.mark.parametrize(
    "unused",
    [
        "x, x, x",
        "26150, 25890, 31022",
        "-1, , ???",
        "a b c, 1.5e3, \x00",
    ],
)
def test_unused_fields_are_ignored(unused: str) -> None:
    """Test that fields 4-6 never affect the result."""
    line = f"ABC123, -5, 21, 40, {unused}, 0, 1, 30, 15\n".encode("ascii")
    m = parse_measurement(line, CAPTURED_AT)

    assert m.co_concentration_ppb == -5
    assert m.temperature_c == 21
    assert m.relative_humidity == 40
    assert m.uptime == timedelta(hours=1, minutes=30, seconds=15)


def test_extra_trailing_fields_are_ignored() -> None:
    """Test that fields beyond the eleventh are not inspected."""
    m = parse_measurement(b"ABC123, 4, 21, 40, x, x, x, 0, 1, 30, 15, junk\n", CAPTURED_AT)
    assert m.co_concentration_ppb == 4


def test_seconds_trailing_padding_is_trimmed() -> None:
    """Test that CR, LF, spaces and NUL padding after seconds are stripped."""
    m = parse_measurement(b"ABC123, 4, 21, 40, x, x, x, 0, 1, 30, 15 \r\n\x00\x00\x00", CAPTURED_AT)
    assert m.uptime == timedelta(hours=1, minutes=30, seconds=15)


@pytest.mark.parametrize(
    "line, missing_field",
    [
        (b"", "co_concentration_ppb"),
        (b"ABC123\n", "co_concentration_ppb"),
        (b"ABC123, -5, 21\n", "relative_humidity"),
        (b"ABC123, -5, 21, 40, x\n", "days_up"),
        (b"ABC123, -5, 21, 40, x, x, x, 0, 1, 30\n", "seconds_up"),
    ],
)
def test_short_line_raises_field_error(line: bytes, missing_field: str) -> None:
    """Test that fewer than 11 fields is a typed error, never IndexError."""
    with pytest.raises(FieldParseError) as exc_info:
        parse_measurement(line, CAPTURED_AT)

    assert exc_info.value.field == missing_field
    assert exc_info.value.target == "field"


def test_wrong_delimiter_is_short_line() -> None:
    """Test that a comma-only line splits into a single field."""
    with pytest.raises(FieldParseError):
        parse_measurement(b"ABC123,-5,21,40,x,x,x,0,1,30,15\n", CAPTURED_AT)


@pytest.mark.parametrize(
    "line, field, raw, target",
    [
        (b"ABC123, abc, 21, 40, x, x, x, 0, 1, 30, 15\n", "co_concentration_ppb", "abc", "int32"),
        (b"ABC123, 2147483648, 21, 40, x, x, x, 0, 1, 30, 15\n", "co_concentration_ppb", "2147483648", "int32"),
        (b"ABC123, 5, 128, 40, x, x, x, 0, 1, 30, 15\n", "temperature_c", "128", "int8"),
        (b"ABC123, 5, 21, 40.5, x, x, x, 0, 1, 30, 15\n", "relative_humidity", "40.5", "int8"),
        (b"ABC123, 5, 21, 40, x, x, x, 40000, 1, 30, 15\n", "days_up", "40000", "int16"),
        (b"ABC123, 5, 21, 40, x, x, x, 0, , 30, 15\n", "hours_up", "", "int8"),
    ],
)
def test_bad_integer_field_names_the_field(
    line: bytes, field: str, raw: str, target: str
) -> None:
    """Test that each integer field reports its own name, text and type."""
    with pytest.raises(FieldParseError) as exc_info:
        parse_measurement(line, CAPTURED_AT)

    err = exc_info.value
    assert err.field == field
    assert err.raw == raw
    assert err.target == target
    assert field in str(err)


def test_bad_minutes_reported_as_uptime() -> None:
    """Test that minutes/seconds errors surface through the composed duration."""
    with pytest.raises(FieldParseError) as exc_info:
        parse_measurement(b"ABC123, 5, 21, 40, x, x, x, 0, 1, xx, 15\n", CAPTURED_AT)

    assert exc_info.value.field == "uptime"
    assert exc_info.value.raw == "1hxxm15s"
    assert exc_info.value.target == "duration"


def test_measurement_is_immutable() -> None:
    """Test that parsed measurements cannot be modified."""
    m = parse_measurement(EXAMPLE_LINE, CAPTURED_AT)
    with pytest.raises(dataclasses.FrozenInstanceError):
        m.co_concentration_ppb = 0  # type: ignore[misc]


def test_parse_int_bounds() -> None:
    """Test signed bit-width range checks."""
    assert parse_int("127", 8) == 127
    assert parse_int("-128", 8) == -128
    assert parse_int("+5", 8) == 5
    assert parse_int("007", 16) == 7

    for text in ["128", "-129", "1_0", " 1", "", "-", "0x10"]:
        with pytest.raises(ValueError):
            parse_int(text, 8)


def test_compose_uptime() -> None:
    """Test duration string composition from uptime fields."""
    assert compose_uptime(0, 1, "30", "15\n") == "1h30m15s"
    assert compose_uptime(1, 0, "30", "15\r\n\x00") == "24h30m15s"
    assert compose_uptime(2, 3, "04", "05") == "51h04m05s"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1h30m15s", timedelta(hours=1, minutes=30, seconds=15)),
        ("0", timedelta(0)),
        ("-0", timedelta(0)),
        ("1.5h", timedelta(hours=1, minutes=30)),
        ("-1.5h", -timedelta(hours=1, minutes=30)),
        ("+2m", timedelta(minutes=2)),
        ("300ms", timedelta(milliseconds=300)),
        ("1us", timedelta(microseconds=1)),
        ("1500ns", timedelta(microseconds=1)),
        (".5s", timedelta(milliseconds=500)),
        ("24h04m05s", timedelta(days=1, minutes=4, seconds=5)),
    ],
)
def test_parse_duration(text: str, expected: timedelta) -> None:
    """Test duration strings in the accepted syntax."""
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "-", "h", "1", "1x", "1h 2m", "1h30m15s\r", ".s", "1h-2m"])
def test_parse_duration_rejects(text: str) -> None:
    """Test malformed duration strings."""
    with pytest.raises(ValueError):
        parse_duration(text)

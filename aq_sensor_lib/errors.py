"""Custom exceptions for the air quality sensor library."""

from typing import Optional


class AirQualitySensorError(Exception):
    """Base exception for all air quality sensor library errors."""

    pass


class DeviceIOError(AirQualitySensorError):
    """Raised when serial communication fails (open, write or read).

    The pipeline cannot run without the serial channel, so this is fatal.
    """

    pass


class FrameError(AirQualitySensorError):
    """Raised when a response line cannot be framed. Recoverable."""

    pass


class FrameTimeout(FrameError):
    """Raised when no line terminator arrives within the frame timeout."""

    def __init__(self, timeout_s: float, received: bytes) -> None:
        self.timeout_s = timeout_s
        self.received = received
        super().__init__(
            f"No line terminator after {timeout_s:.2f}s "
            f"({len(received)} bytes received: {received[:64]!r})"
        )


class FrameTooLong(FrameError):
    """Raised when a response exceeds the maximum frame size."""

    def __init__(self, max_bytes: int, received: bytes) -> None:
        self.max_bytes = max_bytes
        self.received = received
        super().__init__(
            f"Response exceeded {max_bytes} bytes without a line terminator "
            f"({len(received)} bytes received)"
        )


class FieldParseError(AirQualitySensorError):
    """Raised when a response field is missing or cannot be converted.

    Attributes:
        field: Name of the offending field (e.g. "temperature_c").
        raw: Raw text that failed to convert (the whole line for missing fields).
        target: What the text was being converted to (e.g. "int8", "duration").
    """

    def __init__(
        self, field: str, raw: str, target: str, reason: Optional[str] = None
    ) -> None:
        self.field = field
        self.raw = raw
        self.target = target
        message = f"failed converting {field} ({raw!r}) to {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SubmissionError(AirQualitySensorError):
    """Raised when the metrics backend rejects or fails a submission."""

    pass

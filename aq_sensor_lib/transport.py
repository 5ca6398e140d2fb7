"""Serial transport layer for IOT-CO-1000 sensor communication."""

import logging
import time
from datetime import datetime, timezone
from typing import Protocol

from aq_sensor_lib import protocol
from aq_sensor_lib.errors import DeviceIOError, FrameTimeout, FrameTooLong
from aq_sensor_lib.models import RawFrame

logger = logging.getLogger(__name__)


class SerialLike(Protocol):
    """Protocol for serial port interface (allows test doubles)."""

    def write(self, data: bytes) -> int:
        """Write bytes to serial port."""
        ...

    def read(self, size: int = 1) -> bytes:
        """Read up to size bytes, returning early on the port's read timeout."""
        ...

    def flush(self) -> None:
        """Flush output buffer (force transmission)."""
        ...

    def reset_input_buffer(self) -> None:
        """Flush input buffer."""
        ...

    def close(self) -> None:
        """Close serial port."""
        ...

    @property
    def is_open(self) -> bool:
        """Check if port is open."""
        ...


class Transport:
    """Wrapper around pyserial implementing the sensor's request/response framing.

    A request is a bare line terminator; the response is one LF-terminated
    line that may arrive across several reads.
    """

    def __init__(
        self,
        serial_port: SerialLike,
        settle_delay: float = protocol.SETTLE_DELAY,
        read_backoff: float = protocol.READ_BACKOFF,
        frame_timeout: float = protocol.FRAME_TIMEOUT,
        max_frame_bytes: int = protocol.MAX_FRAME_BYTES,
    ) -> None:
        """Initialize transport with a serial port instance.

        Args:
            serial_port: Object implementing SerialLike protocol
                        (e.g., serial.Serial or FakeSerial for testing)
            settle_delay: Seconds to wait after the stimulus before reading.
            read_backoff: Seconds to wait between reads of an incomplete line.
            frame_timeout: Seconds (after settle delay) before giving up on a line.
            max_frame_bytes: Largest response accepted before FrameTooLong.
        """
        self._port = serial_port
        self._settle_delay = settle_delay
        self._read_backoff = read_backoff
        self._frame_timeout = frame_timeout
        self._max_frame_bytes = max_frame_bytes

    @classmethod
    def open(
        cls,
        port: str,
        baud: int = protocol.DEFAULT_BAUD,
        timeout_s: float = protocol.SERIAL_READ_TIMEOUT,
    ) -> "Transport":
        """Open a real serial port (requires pyserial).

        Args:
            port: Serial port device name (e.g., "/dev/ttyUSB0")
            baud: Baud rate. Default 9600 matches the module's fixed rate.
            timeout_s: Per-call read timeout in seconds.

        Returns:
            Transport instance wrapping opened serial port

        Raises:
            DeviceIOError: If port cannot be opened
        """
        try:
            import serial  # type: ignore
        except ImportError as e:
            raise DeviceIOError("pyserial not installed. Run: pip install pyserial") from e

        try:
            ser = serial.Serial(
                port=port,
                baudrate=baud,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=timeout_s,
                rtscts=False,
                dsrdtr=False,
                xonxoff=False,
            )
            logger.info(f"Opened serial port {port} at {baud} baud, timeout={timeout_s}s")
            return cls(ser)
        except Exception as e:
            raise DeviceIOError(f"Failed to open {port} at {baud} baud: {e}") from e

    def close(self) -> None:
        """Close the serial port."""
        if self._port.is_open:
            self._port.close()
            logger.info("Closed serial port")

    @property
    def is_open(self) -> bool:
        """Check if port is currently open."""
        return self._port.is_open

    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes to port.

        Args:
            data: Raw bytes to send

        Raises:
            DeviceIOError: If the write fails or nothing was written
        """
        if not self._port.is_open:
            raise DeviceIOError("Serial port is not open")

        try:
            sent = self._port.write(data)
            self._port.flush()
        except Exception as e:
            raise DeviceIOError(f"Failed to write to port: {e}") from e

        if sent == 0:
            raise DeviceIOError("failed to write to sensor serial device")
        logger.debug(f"Sent {sent} bytes: {data!r}")

    def request_frame(self) -> RawFrame:
        """Trigger a measurement and read back the response line.

        Sends the stimulus, timestamps the request, waits for the module to
        settle and then reads until a line terminator is received.

        Returns:
            RawFrame holding the terminated line and the request timestamp

        Raises:
            DeviceIOError: If the port fails
            FrameTimeout: If the line never terminates
            FrameTooLong: If the line exceeds the maximum frame size
        """
        self.write_bytes(protocol.STIMULUS)
        requested_at = datetime.now(timezone.utc)

        time.sleep(self._settle_delay)

        return RawFrame(data=self.read_frame(), requested_at=requested_at)

    def read_frame(self) -> bytes:
        """Read chunks until the last byte received is the line terminator.

        Empty reads are retried after a short backoff. The first read error
        is raised immediately.

        Returns:
            Accumulated bytes including the terminator

        Raises:
            DeviceIOError: If port is closed or read fails
            FrameTimeout: If no terminator arrives within the frame timeout
            FrameTooLong: If more than max_frame_bytes arrive unterminated
        """
        if not self._port.is_open:
            raise DeviceIOError("Serial port is not open")

        buffer = bytearray()
        deadline = time.monotonic() + self._frame_timeout

        while True:
            try:
                chunk = self._port.read(protocol.READ_CHUNK_SIZE)
            except Exception as e:
                raise DeviceIOError(f"Failed to read from port: {e}") from e

            if chunk:
                buffer.extend(chunk)
                if len(buffer) > self._max_frame_bytes:
                    raise FrameTooLong(self._max_frame_bytes, bytes(buffer))
                if buffer[-1] == protocol.LINE_TERMINATOR:
                    logger.debug(f"Received line: {bytes(buffer)!r}")
                    return bytes(buffer)

            if time.monotonic() >= deadline:
                raise FrameTimeout(self._frame_timeout, bytes(buffer))

            time.sleep(self._read_backoff)

    def flush_input(self) -> None:
        """Discard all pending input from device.

        Used after a framing error so the next response starts clean.

        Raises:
            DeviceIOError: If port is closed
        """
        if not self._port.is_open:
            raise DeviceIOError("Serial port is not open")

        try:
            self._port.reset_input_buffer()
            logger.debug("Flushed input buffer")
        except Exception as e:
            raise DeviceIOError(f"Failed to flush input: {e}") from e

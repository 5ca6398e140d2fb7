"""Fake serial port that simulates an IOT-CO-1000 sensor module.

The module answers every line terminator it receives with one measurement
line. This simulator reproduces that exchange and can inject the faults the
transport has to cope with: responses split across reads, stalled or
oversized responses and port failures.
"""

import logging
import threading
from collections import deque
from datetime import timedelta
from typing import Deque, Optional

logger = logging.getLogger(__name__)


class FakeSerial:
    """Deterministic simulator of the sensor's serial behavior.

    Attributes can be changed between polls to alter the next response.
    """

    def __init__(
        self,
        serial_number: str = "110619020342",
        co_ppb: int = 3,
        temperature_c: int = 22,
        relative_humidity: int = 41,
        uptime: timedelta = timedelta(hours=3, minutes=12, seconds=5),
        uptime_step: timedelta = timedelta(0),
        chunk_size: Optional[int] = None,
    ) -> None:
        """Initialize fake sensor.

        Args:
            serial_number: Device serial number
            co_ppb: CO concentration reported (may be negative)
            temperature_c: Temperature reported
            relative_humidity: Relative humidity reported
            uptime: Uptime reported in the next response
            uptime_step: Added to uptime after every response
            chunk_size: Max bytes returned per read (None = whole response)
        """
        self.serial_number = serial_number
        self.co_ppb = co_ppb
        self.temperature_c = temperature_c
        self.relative_humidity = relative_humidity
        self.uptime = uptime
        self.uptime_step = uptime_step
        self.chunk_size = chunk_size

        # Fault injection
        self.stall_after: Optional[int] = None  # Stop output after this many bytes
        self.fail_read = False
        self.fail_write = False
        self.write_returns_zero = False
        self.fail_read_after_requests: Optional[int] = None

        # Explicit responses, used before generated ones
        self._scripted: Deque[bytes] = deque()

        self._output = bytearray()
        self._lock = threading.Lock()
        self.requests = 0
        self.reads = 0
        self.written = bytearray()

        self.is_open = True
        self.timeout = 0.25

    def close(self) -> None:
        """Close the fake serial port."""
        self.is_open = False
        logger.debug("FakeSerial closed")

    def queue_response(self, line: bytes) -> None:
        """Send ``line`` verbatim in answer to the next request."""
        self._scripted.append(line)

    def write(self, data: bytes) -> int:
        """Write data to device (from host perspective).

        Every LF received triggers one response.
        """
        if not self.is_open:
            raise RuntimeError("Port is closed")
        if self.fail_write:
            raise OSError("write failed: Input/output error")
        if self.write_returns_zero:
            return 0

        self.written.extend(data)
        logger.debug(f"FakeSerial received: {data!r}")

        for _ in range(data.count(b"\n")):
            self._respond()

        return len(data)

    def read(self, size: int = 1) -> bytes:
        """Read up to size bytes of pending output.

        Returns b"" when nothing is pending (a real port would after its timeout).
        """
        if not self.is_open:
            raise RuntimeError("Port is closed")

        self.reads += 1
        if self.fail_read or (
            self.fail_read_after_requests is not None
            and self.requests > self.fail_read_after_requests
        ):
            raise OSError("device reports readiness to read but returned no data")

        with self._lock:
            limit = size if self.chunk_size is None else min(size, self.chunk_size)
            chunk = bytes(self._output[:limit])
            del self._output[:limit]

        if chunk:
            logger.debug(f"FakeSerial sending: {chunk!r}")
        return chunk

    def flush(self) -> None:
        """Flush output buffer (no-op for fake serial)."""
        pass

    def reset_input_buffer(self) -> None:
        """Discard pending output not yet read by the host."""
        with self._lock:
            self._output.clear()
        logger.debug("FakeSerial input buffer flushed")

    def format_response(self) -> bytes:
        """Build the measurement line for the current readings."""
        total = int(self.uptime.total_seconds())
        days, rest = divmod(total, 86400)
        hours, rest = divmod(rest, 3600)
        minutes, seconds = divmod(rest, 60)
        line = (
            f"{self.serial_number}, {self.co_ppb}, {self.temperature_c}, "
            f"{self.relative_humidity}, 26150, 25890, 31022, "
            f"{days:02d}, {hours:02d}, {minutes:02d}, {seconds:02d}\r\n"
        )
        return line.encode("ascii")

    # ========================================================================
    # Internal
    # ========================================================================

    def _respond(self) -> None:
        self.requests += 1

        if self._scripted:
            response = self._scripted.popleft()
        else:
            response = self.format_response()
            self.uptime += self.uptime_step

        if self.stall_after is not None:
            response = response[: self.stall_after]

        with self._lock:
            self._output.extend(response)

"""Non-blocking transport over a serial-style byte stream."""

from __future__ import annotations

import enum
from typing import Optional, Protocol

from .transport import TransportError


class SendStatus(enum.IntEnum):
    """Outcome of one step of a non-blocking send."""

    DONE = 1
    AGAIN = 0
    ERROR = -1


class SerialIO(Protocol):
    """Raw byte I/O for a serial link."""

    def send(self, data: bytes) -> int:
        """Send what can be sent now; return the count sent, negative on error."""

    def recv(self, maxbytes: int) -> Optional[bytes]:
        """Return up to ``maxbytes`` ready bytes, empty if none, None on error."""


class SerialTransport:
    """Pumps packets to and from a serial link without busy waiting on the caller."""

    def __init__(self, io: SerialIO) -> None:
        if io is None:
            raise ValueError("an I/O object is required")
        self.io = io
        self._pending: Optional[memoryview] = None

    def start_send(self, data: bytes) -> None:
        """Begin sending ``data``; call ``send_step`` until it is no longer AGAIN."""
        self._pending = memoryview(bytes(data))

    def send_step(self) -> SendStatus:
        """Send as much as the link takes now."""
        if self._pending is None:
            raise RuntimeError("start_send must be called before send_step")
        if not len(self._pending):
            self._pending = None
            return SendStatus.DONE
        try:
            sent = self.io.send(bytes(self._pending))
        except OSError:
            return SendStatus.ERROR
        if sent > 0:
            self._pending = self._pending[sent:]
            if not len(self._pending):
                self._pending = None
                return SendStatus.DONE
        elif sent < 0:
            return SendStatus.ERROR
        return SendStatus.AGAIN

    def send(self, data: bytes) -> int:
        """Send all of ``data``, stepping until done; return its length."""
        self.start_send(data)
        status = self.send_step()
        while status is SendStatus.AGAIN:
            status = self.send_step()
        if status is SendStatus.DONE:
            return len(data)
        raise TransportError("serial send failed")

    def getdata_nb(self, count: int) -> bytes:
        """Return whatever bytes are ready, up to ``count``; empty when none."""
        try:
            data = self.io.recv(count)
        except OSError as exc:
            raise TransportError("serial receive failed") from exc
        if data is None:
            raise TransportError("serial receive failed")
        return bytes(data[:count])

    def close(self) -> None:
        """Drop any send in progress; the link itself is managed outside."""
        self._pending = None
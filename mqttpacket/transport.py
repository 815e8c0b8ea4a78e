"""Blocking TCP transport for carrying MQTT packets over a socket."""

from __future__ import annotations

import socket
from typing import Optional


class TransportError(OSError):
    """Raised when the transport cannot open, send or receive."""


class SocketTransport:
    """A single TCP connection to an MQTT server.

    Receives time out after ``timeout`` seconds, so ``getdata_nb`` can be
    polled without blocking forever.
    """

    def __init__(self, host: str, port: int, timeout: float = 1.0) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._sock: Optional[socket.socket] = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def _require(self) -> socket.socket:
        if self._sock is None:
            raise TransportError("transport is not open")
        return self._sock

    def open(self) -> "SocketTransport":
        """Resolve the host, preferring IPv4, and connect."""
        host = self.host.strip("[]")
        try:
            infos = socket.getaddrinfo(
                host, self.port, socket.AF_UNSPEC, socket.SOCK_STREAM, socket.IPPROTO_TCP
            )
        except socket.gaierror as exc:
            raise TransportError("cannot resolve %r" % self.host) from exc

        candidates = [info for info in infos if info[0] in (socket.AF_INET, socket.AF_INET6)]
        if not candidates:
            raise TransportError("no IPv4 or IPv6 address for %r" % self.host)
        family, socktype, proto, _, address = next(
            (info for info in candidates if info[0] == socket.AF_INET), candidates[0]
        )

        sock = socket.socket(family, socktype, proto)
        try:
            sock.connect(address)
        except OSError as exc:
            sock.close()
            raise TransportError("cannot connect to %s:%d" % (self.host, self.port)) from exc
        sock.settimeout(self.timeout)
        self._sock = sock
        return self

    def send(self, data: bytes) -> int:
        """Send a whole packet and return the number of bytes sent."""
        sock = self._require()
        try:
            sock.sendall(data)
        except OSError as exc:
            raise TransportError("send failed") from exc
        return len(data)

    def getdata(self, count: int) -> bytes:
        """Read up to ``count`` bytes, waiting until all arrive, the peer closes or a timeout."""
        sock = self._require()
        received = bytearray()
        while len(received) < count:
            try:
                chunk = sock.recv(count - len(received))
            except socket.timeout:
                break
            except OSError as exc:
                raise TransportError("receive failed") from exc
            if not chunk:
                break
            received.extend(chunk)
        return bytes(received)

    def getdata_nb(self, count: int) -> bytes:
        """Read whatever is ready, up to ``count`` bytes; empty when nothing arrived."""
        sock = self._require()
        try:
            return sock.recv(count)
        except OSError:
            return b""

    def close(self) -> None:
        """Shut down the sending side and close the socket."""
        sock = self._sock
        if sock is None:
            return
        self._sock = None
        try:
            sock.shutdown(socket.SHUT_WR)
            sock.recv(0)
        except OSError:
            pass
        finally:
            sock.close()

    def __enter__(self) -> "SocketTransport":
        if self._sock is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
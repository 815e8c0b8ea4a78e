"""Low-level MQTT wire encoding: fixed header, remaining length, strings and packet reading."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

StringLike = Union[str, bytes, bytearray, memoryview, None]

MAX_REMAINING_LENGTH_BYTES = 4


class PacketType(enum.IntEnum):
    """MQTT control packet types."""

    CONNECT = 1
    CONNACK = 2
    PUBLISH = 3
    PUBACK = 4
    PUBREC = 5
    PUBREL = 6
    PUBCOMP = 7
    SUBSCRIBE = 8
    SUBACK = 9
    UNSUBSCRIBE = 10
    UNSUBACK = 11
    PINGREQ = 12
    PINGRESP = 13
    DISCONNECT = 14


class MQTTPacketError(Exception):
    """Base class for packet encoding and decoding errors."""


class ReadError(MQTTPacketError):
    """Raised when packet data is missing, truncated or malformed."""


class PacketTooLargeError(MQTTPacketError):
    """Raised when a packet does not fit in the allowed size."""


@dataclass(frozen=True)
class Header:
    """The first byte of an MQTT packet."""

    packet_type: int
    dup: bool = False
    qos: int = 0
    retain: bool = False

    @classmethod
    def from_byte(cls, value: int) -> "Header":
        value &= 0xFF
        return cls(
            packet_type=value >> 4,
            dup=bool(value & 0x08),
            qos=(value >> 1) & 0x03,
            retain=bool(value & 0x01),
        )

    def to_byte(self) -> int:
        return (
            ((self.packet_type & 0x0F) << 4)
            | (0x08 if self.dup else 0)
            | ((self.qos & 0x03) << 1)
            | (0x01 if self.retain else 0)
        )


def encode_length(length: int) -> bytes:
    """Encode a remaining length with the MQTT variable-length scheme."""
    if length < 0:
        raise ValueError("remaining length must not be negative")
    out = bytearray()
    while True:
        digit = length % 128
        length //= 128
        if length > 0:
            digit |= 0x80
        out.append(digit)
        if length == 0:
            return bytes(out)


def decode_length(getbyte: Callable[[], Optional[int]]) -> Tuple[int, int]:
    """Decode a remaining length, pulling bytes from ``getbyte``.

    ``getbyte`` returns the next byte value, or None when no data is available.
    Returns ``(value, number_of_bytes_read)``.
    """
    value = 0
    multiplier = 1
    count = 0
    while True:
        if count >= MAX_REMAINING_LENGTH_BYTES:
            raise ReadError("remaining length uses more than four bytes")
        byte = getbyte()
        if byte is None:
            raise ReadError("data ended inside the remaining length")
        count += 1
        value += (byte & 0x7F) * multiplier
        multiplier *= 128
        if not byte & 0x80:
            return value, count


def decode_length_from(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a remaining length stored in ``data`` starting at ``offset``."""
    position = offset

    def getbyte() -> Optional[int]:
        nonlocal position
        if position >= len(data):
            return None
        byte = data[position]
        position += 1
        return byte

    return decode_length(getbyte)


def packet_length(remaining_length: int) -> int:
    """Total packet size for a given remaining length, header byte included."""
    total = remaining_length + 1
    if total < 128:
        total += 1
    elif total < 16384:
        total += 2
    elif total < 2097151:
        total += 3
    else:
        total += 4
    return total


def _as_bytes(value: StringLike) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def mqtt_strlen(value: StringLike) -> int:
    """Length in bytes of a string as it is written on the wire."""
    return len(_as_bytes(value))


def string_equals(a: StringLike, b: StringLike) -> bool:
    """Compare two MQTT strings byte for byte."""
    return _as_bytes(a) == _as_bytes(b)


class Reader:
    """Sequential reader over a slice of packet data."""

    def __init__(self, data: bytes, offset: int = 0, end: Optional[int] = None) -> None:
        self.data = bytes(data)
        self.position = offset
        self.end = len(self.data) if end is None else min(end, len(self.data))

    def remaining(self) -> int:
        return self.end - self.position

    def read_byte(self) -> int:
        if self.remaining() < 1:
            raise ReadError("no byte left to read")
        byte = self.data[self.position]
        self.position += 1
        return byte

    def read_int(self) -> int:
        if self.remaining() < 2:
            raise ReadError("not enough data for a two-byte integer")
        value = (self.data[self.position] << 8) | self.data[self.position + 1]
        self.position += 2
        return value

    def read_string(self) -> bytes:
        """Read a length-prefixed string and return its raw bytes."""
        if self.remaining() < 2:
            raise ReadError("not enough data for a string length")
        length = self.read_int()
        if self.position + length > self.end:
            raise ReadError("string runs past the end of the data")
        value = self.data[self.position:self.position + length]
        self.position += length
        return value


class Writer:
    """Accumulates packet bytes."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write_byte(self, value: int) -> None:
        self._buffer.append(value & 0xFF)

    def write_int(self, value: int) -> None:
        self._buffer.append((value >> 8) & 0xFF)
        self._buffer.append(value & 0xFF)

    def write_bytes(self, value: bytes) -> None:
        self._buffer.extend(value)

    def write_string(self, value: StringLike) -> None:
        raw = _as_bytes(value)
        self.write_int(len(raw))
        self._buffer.extend(raw)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


def read_packet(read: Callable[[int], bytes], max_size: Optional[int] = None) -> Tuple[int, bytes]:
    """Read one whole packet using a blocking ``read(count)`` callable.

    Returns ``(packet_type, packet_bytes)``.
    """
    header = read(1)
    if len(header) != 1:
        raise ReadError("no header byte")

    def getbyte() -> Optional[int]:
        chunk = read(1)
        return chunk[0] if chunk else None

    remaining, _ = decode_length(getbyte)
    prefix = bytes(header) + encode_length(remaining)
    if max_size is not None and len(prefix) + remaining > max_size:
        raise PacketTooLargeError("packet does not fit in %d bytes" % max_size)
    body = read(remaining) if remaining else b""
    if len(body) != remaining:
        raise ReadError("packet body is truncated")
    packet = prefix + bytes(body)
    return Header.from_byte(packet[0]).packet_type, packet


class _State(enum.Enum):
    HEADER = 0
    LENGTH = 1
    BODY = 2


class NonBlockingReader:
    """Assembles packets from a source that may have no data ready.

    ``getfn(count)`` returns up to ``count`` bytes, an empty result when nothing
    is available yet, and raises on error.
    """

    def __init__(self, getfn: Callable[[int], bytes], max_size: Optional[int] = None) -> None:
        self._getfn = getfn
        self.max_size = max_size
        self.reset()

    def reset(self) -> None:
        """Discard any partly read packet."""
        self._state = _State.HEADER
        self._buffer = bytearray()
        self._multiplier = 1
        self._remaining = 0
        self._length_bytes = 0

    def poll(self) -> Optional[Tuple[int, bytes]]:
        """Advance reading; return ``(packet_type, packet)`` when complete, else None."""
        try:
            return self._advance()
        except Exception:
            self.reset()
            raise

    def _advance(self) -> Optional[Tuple[int, bytes]]:
        if self._state is _State.HEADER:
            chunk = self._getfn(1)
            if not chunk:
                return None
            self._buffer = bytearray(chunk[:1])
            self._multiplier = 1
            self._remaining = 0
            self._length_bytes = 0
            self._state = _State.LENGTH

        if self._state is _State.LENGTH:
            while True:
                if self._length_bytes >= MAX_REMAINING_LENGTH_BYTES:
                    raise ReadError("remaining length uses more than four bytes")
                chunk = self._getfn(1)
                if not chunk:
                    return None
                byte = chunk[0]
                self._length_bytes += 1
                self._remaining += (byte & 0x7F) * self._multiplier
                self._multiplier *= 128
                if not byte & 0x80:
                    break
            self._buffer.extend(encode_length(self._remaining))
            if self.max_size is not None and len(self._buffer) + self._remaining > self.max_size:
                raise PacketTooLargeError("packet does not fit in %d bytes" % self.max_size)
            self._state = _State.BODY

        if self._remaining:
            chunk = self._getfn(self._remaining)
            if not chunk:
                return None
            chunk = chunk[:self._remaining]
            self._buffer.extend(chunk)
            self._remaining -= len(chunk)
            if self._remaining:
                return None

        packet = bytes(self._buffer)
        self.reset()
        return Header.from_byte(packet[0]).packet_type, packet
"""CONNECT, CONNACK and the zero-length packets (DISCONNECT, PINGREQ)."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union

from .codec import (
    Header,
    PacketType,
    ReadError,
    Reader,
    StringLike,
    Writer,
    decode_length_from,
    encode_length,
    mqtt_strlen,
)

_CLEAN_SESSION = 0x02
_WILL = 0x04
_WILL_QOS_SHIFT = 3
_WILL_RETAIN = 0x20
_PASSWORD = 0x40
_USERNAME = 0x80

_PROTOCOLS = {3: b"MQIsdp", 4: b"MQTT"}
_FIXED_LENGTHS = {3: 12, 4: 10}


class ConnackReturnCode(enum.IntEnum):
    """Return codes carried in a CONNACK packet."""

    CONNECTION_ACCEPTED = 0
    UNACCEPTABLE_PROTOCOL = 1
    CLIENTID_REJECTED = 2
    SERVER_UNAVAILABLE = 3
    BAD_USERNAME_OR_PASSWORD = 4
    NOT_AUTHORIZED = 5


@dataclass
class Will:
    """Last Will and Testament settings for a CONNECT packet."""

    topic: StringLike = b""
    message: StringLike = b""
    retained: bool = False
    qos: int = 0


@dataclass
class ConnectOptions:
    """Contents of a CONNECT packet.

    String fields accept ``str`` or bytes; ``username`` and ``password`` are
    omitted from the packet when they are None.  Deserialized values are bytes.
    """

    client_id: StringLike = b""
    mqtt_version: int = 4
    keep_alive: int = 60
    clean_session: bool = True
    will: Optional[Will] = None
    username: StringLike = None
    password: StringLike = None


@dataclass(frozen=True)
class Connack:
    """Contents of a CONNACK packet."""

    session_present: bool
    return_code: Union[ConnackReturnCode, int]


def connect_length(options: ConnectOptions) -> int:
    """Remaining length of the CONNECT packet built from ``options``."""
    length = _FIXED_LENGTHS.get(options.mqtt_version, 0)
    length += mqtt_strlen(options.client_id) + 2
    if options.will is not None:
        length += mqtt_strlen(options.will.topic) + 2
        length += mqtt_strlen(options.will.message) + 2
    if options.username is not None:
        length += mqtt_strlen(options.username) + 2
    if options.password is not None:
        length += mqtt_strlen(options.password) + 2
    return length


def serialize_connect(options: ConnectOptions) -> bytes:
    """Build a CONNECT packet."""
    if options.mqtt_version not in _PROTOCOLS:
        raise ValueError("unsupported MQTT version %r" % options.mqtt_version)

    writer = Writer()
    writer.write_byte(Header(PacketType.CONNECT).to_byte())
    writer.write_bytes(encode_length(connect_length(options)))
    writer.write_string(_PROTOCOLS[options.mqtt_version])
    writer.write_byte(options.mqtt_version)

    flags = _CLEAN_SESSION if options.clean_session else 0
    will = options.will
    if will is not None:
        flags |= _WILL
        flags |= (will.qos & 0x03) << _WILL_QOS_SHIFT
        if will.retained:
            flags |= _WILL_RETAIN
    if options.username is not None:
        flags |= _USERNAME
    if options.password is not None:
        flags |= _PASSWORD

    writer.write_byte(flags)
    writer.write_int(options.keep_alive)
    writer.write_string(options.client_id)
    if will is not None:
        writer.write_string(will.topic)
        writer.write_string(will.message)
    if options.username is not None:
        writer.write_string(options.username)
    if options.password is not None:
        writer.write_string(options.password)
    return writer.getvalue()


def check_version(protocol: StringLike, version: int) -> bool:
    """Whether a protocol name and version number belong together.

    As on the wire, only as many bytes as the shorter of the two names are compared.
    """
    expected = _PROTOCOLS.get(version)
    if expected is None:
        return False
    raw = protocol.encode("utf-8") if isinstance(protocol, str) else bytes(protocol or b"")
    count = min(len(expected), len(raw))
    return raw[:count] == expected[:count]


def _packet_reader(data: bytes, packet_type: PacketType) -> tuple[Reader, int, int]:
    if not data:
        raise ReadError("empty packet")
    header = Header.from_byte(data[0])
    if header.packet_type != packet_type:
        raise ReadError("expected %s, got packet type %d" % (packet_type.name, header.packet_type))
    remaining, used = decode_length_from(data, 1)
    return Reader(data, 1 + used), 1 + used, remaining


def deserialize_connect(data: bytes) -> ConnectOptions:
    """Parse a CONNECT packet into ``ConnectOptions``."""
    data = bytes(data)
    reader, _, _ = _packet_reader(data, PacketType.CONNECT)

    protocol = reader.read_string()
    version = reader.read_byte()
    if not check_version(protocol, version):
        raise ReadError("unrecognised protocol %r version %d" % (protocol, version))

    flags = reader.read_byte()
    options = ConnectOptions(
        mqtt_version=version,
        clean_session=bool(flags & _CLEAN_SESSION),
        keep_alive=reader.read_int(),
    )
    options.client_id = reader.read_string()

    if flags & _WILL:
        options.will = Will(
            qos=(flags >> _WILL_QOS_SHIFT) & 0x03,
            retained=bool(flags & _WILL_RETAIN),
            topic=reader.read_string(),
            message=reader.read_string(),
        )

    if flags & _USERNAME:
        if reader.remaining() < 3:
            raise ReadError("username flag set but no username supplied")
        options.username = reader.read_string()
        if flags & _PASSWORD:
            if reader.remaining() < 3:
                raise ReadError("password flag set but no password supplied")
            options.password = reader.read_string()
    elif flags & _PASSWORD:
        raise ReadError("password flag set without a username")

    return options


def serialize_connack(
    return_code: Union[ConnackReturnCode, int], session_present: bool = False
) -> bytes:
    """Build a CONNACK packet."""
    writer = Writer()
    writer.write_byte(Header(PacketType.CONNACK).to_byte())
    writer.write_bytes(encode_length(2))
    writer.write_byte(0x01 if session_present else 0x00)
    writer.write_byte(int(return_code))
    return writer.getvalue()


def deserialize_connack(data: bytes) -> Connack:
    """Parse a CONNACK packet."""
    data = bytes(data)
    _, offset, remaining = _packet_reader(data, PacketType.CONNACK)
    if remaining < 2:
        raise ReadError("CONNACK is too short")
    reader = Reader(data, offset, offset + remaining)
    flags = reader.read_byte()
    code = reader.read_byte()
    try:
        return_code: Union[ConnackReturnCode, int] = ConnackReturnCode(code)
    except ValueError:
        return_code = code
    return Connack(session_present=bool(flags & 0x01), return_code=return_code)


def serialize_zero(packet_type: Union[PacketType, int]) -> bytes:
    """Build a packet that has a header and no body."""
    return bytes([Header(int(packet_type)).to_byte()]) + encode_length(0)


def serialize_disconnect() -> bytes:
    """Build a DISCONNECT packet."""
    return serialize_zero(PacketType.DISCONNECT)


def serialize_pingreq() -> bytes:
    """Build a PINGREQ packet."""
    return serialize_zero(PacketType.PINGREQ)
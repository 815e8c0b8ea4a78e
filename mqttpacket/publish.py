"""PUBLISH packets and the two-byte acknowledgements (PUBACK, PUBREC, PUBREL, PUBCOMP)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

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


@dataclass(frozen=True)
class Publish:
    """Contents of a PUBLISH packet. ``packet_id`` is 0 for QoS 0."""

    topic: bytes
    payload: bytes
    qos: int = 0
    packet_id: int = 0
    dup: bool = False
    retained: bool = False


@dataclass(frozen=True)
class Ack:
    """Contents of an acknowledgement packet carrying only a packet id."""

    packet_type: Union[PacketType, int]
    dup: bool
    packet_id: int


def _open(data: bytes, packet_type: Optional[PacketType] = None) -> Tuple[Header, Reader]:
    if not data:
        raise ReadError("empty packet")
    header = Header.from_byte(data[0])
    if packet_type is not None and header.packet_type != packet_type:
        raise ReadError("expected %s, got packet type %d" % (packet_type.name, header.packet_type))
    remaining, used = decode_length_from(data, 1)
    start = 1 + used
    if start + remaining > len(data):
        raise ReadError("packet is truncated")
    return header, Reader(data, start, start + remaining)


def publish_length(qos: int, topic: StringLike, payload_length: int) -> int:
    """Remaining length of a PUBLISH packet."""
    length = 2 + mqtt_strlen(topic) + payload_length
    if qos > 0:
        length += 2
    return length


def serialize_publish(
    topic: StringLike,
    payload: bytes = b"",
    qos: int = 0,
    packet_id: int = 0,
    dup: bool = False,
    retained: bool = False,
) -> bytes:
    """Build a PUBLISH packet."""
    payload = bytes(payload)
    writer = Writer()
    header = Header(PacketType.PUBLISH, dup=bool(dup), qos=qos, retain=bool(retained))
    writer.write_byte(header.to_byte())
    writer.write_bytes(encode_length(publish_length(qos, topic, len(payload))))
    writer.write_string(topic)
    if qos > 0:
        writer.write_int(packet_id)
    writer.write_bytes(payload)
    return writer.getvalue()


def deserialize_publish(data: bytes) -> Publish:
    """Parse a PUBLISH packet."""
    data = bytes(data)
    header, reader = _open(data, PacketType.PUBLISH)
    topic = reader.read_string()
    packet_id = reader.read_int() if header.qos > 0 else 0
    payload = data[reader.position:reader.end]
    return Publish(
        topic=topic,
        payload=payload,
        qos=header.qos,
        packet_id=packet_id,
        dup=header.dup,
        retained=header.retain,
    )


def serialize_ack(packet_type: Union[PacketType, int], dup: bool = False, packet_id: int = 0) -> bytes:
    """Build an acknowledgement packet; PUBREL carries QoS 1 in its header."""
    qos = 1 if packet_type == PacketType.PUBREL else 0
    writer = Writer()
    writer.write_byte(Header(int(packet_type), dup=bool(dup), qos=qos).to_byte())
    writer.write_bytes(encode_length(2))
    writer.write_int(packet_id)
    return writer.getvalue()


def deserialize_ack(data: bytes) -> Ack:
    """Parse any acknowledgement packet that carries a packet id."""
    data = bytes(data)
    header, reader = _open(data)
    if reader.remaining() < 2:
        raise ReadError("acknowledgement is too short")
    packet_id = reader.read_int()
    try:
        packet_type: Union[PacketType, int] = PacketType(header.packet_type)
    except ValueError:
        packet_type = header.packet_type
    return Ack(packet_type=packet_type, dup=header.dup, packet_id=packet_id)


def serialize_puback(packet_id: int) -> bytes:
    """Build a PUBACK packet."""
    return serialize_ack(PacketType.PUBACK, False, packet_id)


def serialize_pubrel(dup: bool, packet_id: int) -> bytes:
    """Build a PUBREL packet."""
    return serialize_ack(PacketType.PUBREL, dup, packet_id)


def serialize_pubcomp(packet_id: int) -> bytes:
    """Build a PUBCOMP packet."""
    return serialize_ack(PacketType.PUBCOMP, False, packet_id)
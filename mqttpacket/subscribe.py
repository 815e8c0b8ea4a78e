"""SUBSCRIBE and SUBACK packets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

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


@dataclass
class Subscribe:
    """Contents of a SUBSCRIBE packet."""

    packet_id: int
    topic_filters: List[bytes] = field(default_factory=list)
    requested_qos: List[int] = field(default_factory=list)
    dup: bool = False


@dataclass
class Suback:
    """Contents of a SUBACK packet."""

    packet_id: int
    granted_qos: List[int] = field(default_factory=list)


def _open(data: bytes, packet_type: PacketType) -> Tuple[Header, Reader]:
    if not data:
        raise ReadError("empty packet")
    header = Header.from_byte(data[0])
    if header.packet_type != packet_type:
        raise ReadError("expected %s, got packet type %d" % (packet_type.name, header.packet_type))
    remaining, used = decode_length_from(data, 1)
    start = 1 + used
    if start + remaining > len(data):
        raise ReadError("packet is truncated")
    return header, Reader(data, start, start + remaining)


def subscribe_length(topic_filters: Sequence[StringLike]) -> int:
    """Remaining length of a SUBSCRIBE packet for these filters."""
    return 2 + sum(2 + mqtt_strlen(topic) + 1 for topic in topic_filters)


def serialize_subscribe(
    packet_id: int,
    topic_filters: Sequence[StringLike],
    requested_qos: Sequence[int],
    dup: bool = False,
) -> bytes:
    """Build a SUBSCRIBE packet."""
    if len(topic_filters) != len(requested_qos):
        raise ValueError("each topic filter needs exactly one requested QoS")
    writer = Writer()
    writer.write_byte(Header(PacketType.SUBSCRIBE, dup=bool(dup), qos=1).to_byte())
    writer.write_bytes(encode_length(subscribe_length(topic_filters)))
    writer.write_int(packet_id)
    for topic, qos in zip(topic_filters, requested_qos):
        writer.write_string(topic)
        writer.write_byte(qos)
    return writer.getvalue()


def deserialize_subscribe(data: bytes, max_count: Optional[int] = None) -> Subscribe:
    """Parse a SUBSCRIBE packet, allowing at most ``max_count`` filters when given."""
    data = bytes(data)
    header, reader = _open(data, PacketType.SUBSCRIBE)
    subscribe = Subscribe(packet_id=reader.read_int(), dup=header.dup)
    while reader.remaining() > 0:
        if max_count is not None and len(subscribe.topic_filters) >= max_count:
            raise ReadError("more than %d topic filters" % max_count)
        topic = reader.read_string()
        if reader.remaining() < 1:
            raise ReadError("topic filter has no requested QoS")
        subscribe.topic_filters.append(topic)
        subscribe.requested_qos.append(reader.read_byte())
    return subscribe


def serialize_suback(packet_id: int, granted_qos: Sequence[int]) -> bytes:
    """Build a SUBACK packet."""
    writer = Writer()
    writer.write_byte(Header(PacketType.SUBACK).to_byte())
    writer.write_bytes(encode_length(2 + len(granted_qos)))
    writer.write_int(packet_id)
    for qos in granted_qos:
        writer.write_byte(qos)
    return writer.getvalue()


def deserialize_suback(data: bytes, max_count: Optional[int] = None) -> Suback:
    """Parse a SUBACK packet, allowing at most ``max_count`` return codes when given."""
    data = bytes(data)
    _, reader = _open(data, PacketType.SUBACK)
    if reader.remaining() < 2:
        raise ReadError("SUBACK is too short")
    suback = Suback(packet_id=reader.read_int())
    while reader.remaining() > 0:
        if max_count is not None and len(suback.granted_qos) >= max_count:
            raise ReadError("more than %d granted QoS values" % max_count)
        suback.granted_qos.append(reader.read_byte())
    return suback
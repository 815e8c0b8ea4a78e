"""UNSUBSCRIBE and UNSUBACK packets."""

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
from .publish import deserialize_ack


@dataclass
class Unsubscribe:
    """Contents of an UNSUBSCRIBE packet."""

    packet_id: int
    topic_filters: List[bytes] = field(default_factory=list)
    dup: bool = False


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


def unsubscribe_length(topic_filters: Sequence[StringLike]) -> int:
    """Remaining length of an UNSUBSCRIBE packet for these filters."""
    return 2 + sum(2 + mqtt_strlen(topic) for topic in topic_filters)


def serialize_unsubscribe(
    packet_id: int, topic_filters: Sequence[StringLike], dup: bool = False
) -> bytes:
    """Build an UNSUBSCRIBE packet."""
    writer = Writer()
    writer.write_byte(Header(PacketType.UNSUBSCRIBE, dup=bool(dup), qos=1).to_byte())
    writer.write_bytes(encode_length(unsubscribe_length(topic_filters)))
    writer.write_int(packet_id)
    for topic in topic_filters:
        writer.write_string(topic)
    return writer.getvalue()


def deserialize_unsubscribe(data: bytes, max_count: Optional[int] = None) -> Unsubscribe:
    """Parse an UNSUBSCRIBE packet, allowing at most ``max_count`` filters when given."""
    data = bytes(data)
    header, reader = _open(data, PacketType.UNSUBSCRIBE)
    unsubscribe = Unsubscribe(packet_id=reader.read_int(), dup=header.dup)
    while reader.remaining() > 0:
        if max_count is not None and len(unsubscribe.topic_filters) >= max_count:
            raise ReadError("more than %d topic filters" % max_count)
        unsubscribe.topic_filters.append(reader.read_string())
    return unsubscribe


def serialize_unsuback(packet_id: int) -> bytes:
    """Build an UNSUBACK packet."""
    writer = Writer()
    writer.write_byte(Header(PacketType.UNSUBACK).to_byte())
    writer.write_bytes(encode_length(2))
    writer.write_int(packet_id)
    return writer.getvalue()


def deserialize_unsuback(data: bytes) -> int:
    """Parse an UNSUBACK packet and return its packet id."""
    ack = deserialize_ack(data)
    if ack.packet_type != PacketType.UNSUBACK:
        raise ReadError("expected UNSUBACK, got packet type %d" % int(ack.packet_type))
    return ack.packet_id
"""Human-readable one-line descriptions of MQTT packets."""

from __future__ import annotations

from typing import Optional, Sequence, Union

from .codec import Header, MQTTPacketError, PacketType, StringLike
from .connect import ConnackReturnCode, ConnectOptions, deserialize_connack, deserialize_connect
from .publish import Publish, deserialize_ack, deserialize_publish
from .subscribe import Suback, Subscribe, deserialize_suback, deserialize_subscribe
from .unsubscribe import Unsubscribe, deserialize_unsuback, deserialize_unsubscribe

_NAMES = (
    "RESERVED", "CONNECT", "CONNACK", "PUBLISH", "PUBACK", "PUBREC", "PUBREL",
    "PUBCOMP", "SUBSCRIBE", "SUBACK", "UNSUBSCRIBE", "UNSUBACK",
    "PINGREQ", "PINGRESP", "DISCONNECT",
)

_SHOWN_BYTES = 20

_ACK_TYPES = (PacketType.PUBACK, PacketType.PUBREC, PacketType.PUBREL, PacketType.PUBCOMP)
_BARE_TYPES = (PacketType.PINGREQ, PacketType.PINGRESP, PacketType.DISCONNECT)


def _text(value: StringLike, limit: Optional[int] = None) -> str:
    if value is None:
        raw = b""
    elif isinstance(value, str):
        raw = value.encode("utf-8")
    else:
        raw = bytes(value)
    if limit is not None:
        raw = raw[:limit]
    return raw.decode("utf-8", errors="replace")


def _first(items: Sequence, default):
    return items[0] if items else default


def packet_name(packet_type: Union[PacketType, int]) -> str:
    """Name of a packet type number."""
    index = int(packet_type)
    if not 0 <= index < len(_NAMES):
        raise ValueError("unknown packet type %d" % index)
    return _NAMES[index]


def format_connect(options: ConnectOptions) -> str:
    """Describe a CONNECT packet."""
    parts = [
        "CONNECT MQTT version %d, client id %s, clean session %d, keep alive %d"
        % (
            options.mqtt_version,
            _text(options.client_id),
            int(bool(options.clean_session)),
            options.keep_alive,
        )
    ]
    will = options.will
    if will is not None:
        parts.append(
            ", will QoS %d, will retain %d, will topic %s, will message %s"
            % (will.qos, int(bool(will.retained)), _text(will.topic), _text(will.message))
        )
    if options.username:
        parts.append(", user name %s" % _text(options.username))
    if options.password:
        parts.append(", password %s" % _text(options.password))
    return "".join(parts)


def format_connack(return_code: Union[ConnackReturnCode, int], session_present: bool) -> str:
    """Describe a CONNACK packet."""
    return "CONNACK session present %d, rc %d" % (int(bool(session_present)), int(return_code))


def format_publish(publish: Publish) -> str:
    """Describe a PUBLISH packet; topic and payload are cut to 20 bytes."""
    return (
        "PUBLISH dup %d, QoS %d, retained %d, packet id %d, topic %s, payload length %d, payload %s"
        % (
            int(bool(publish.dup)),
            publish.qos,
            int(bool(publish.retained)),
            publish.packet_id,
            _text(publish.topic, _SHOWN_BYTES),
            len(publish.payload),
            _text(publish.payload, _SHOWN_BYTES),
        )
    )


def format_ack(packet_type: Union[PacketType, int], dup: bool, packet_id: int) -> str:
    """Describe an acknowledgement packet."""
    text = "%s, packet id %d" % (packet_name(packet_type), packet_id)
    if dup:
        text += ", dup %d" % int(bool(dup))
    return text


def format_subscribe(subscribe: Subscribe) -> str:
    """Describe a SUBSCRIBE packet by its first topic filter."""
    return "SUBSCRIBE dup %d, packet id %d count %d topic %s qos %d" % (
        int(bool(subscribe.dup)),
        subscribe.packet_id,
        len(subscribe.topic_filters),
        _text(_first(subscribe.topic_filters, b"")),
        _first(subscribe.requested_qos, 0),
    )


def format_suback(suback: Suback) -> str:
    """Describe a SUBACK packet by its first granted QoS."""
    return "SUBACK packet id %d count %d granted qos %d" % (
        suback.packet_id,
        len(suback.granted_qos),
        _first(suback.granted_qos, 0),
    )


def format_unsubscribe(unsubscribe: Unsubscribe) -> str:
    """Describe an UNSUBSCRIBE packet by its first topic filter."""
    return "UNSUBSCRIBE dup %d, packet id %d count %d topic %s" % (
        int(bool(unsubscribe.dup)),
        unsubscribe.packet_id,
        len(unsubscribe.topic_filters),
        _text(_first(unsubscribe.topic_filters, b"")),
    )


def _format_ack_packet(data: bytes) -> str:
    ack = deserialize_ack(data)
    return format_ack(ack.packet_type, ack.dup, ack.packet_id)


def to_client_string(data: bytes) -> str:
    """Describe a packet a client receives; empty when it cannot be described."""
    data = bytes(data)
    if not data:
        return ""
    packet_type = Header.from_byte(data[0]).packet_type
    try:
        if packet_type == PacketType.CONNACK:
            connack = deserialize_connack(data)
            return format_connack(connack.return_code, connack.session_present)
        if packet_type == PacketType.PUBLISH:
            return format_publish(deserialize_publish(data))
        if packet_type in _ACK_TYPES:
            return _format_ack_packet(data)
        if packet_type == PacketType.SUBACK:
            return format_suback(deserialize_suback(data))
        if packet_type == PacketType.UNSUBACK:
            return format_ack(PacketType.UNSUBACK, False, deserialize_unsuback(data))
        if packet_type in _BARE_TYPES:
            return packet_name(packet_type)
    except MQTTPacketError:
        return ""
    return ""


def to_server_string(data: bytes) -> str:
    """Describe a packet a server receives; empty when it cannot be described."""
    data = bytes(data)
    if not data:
        return ""
    packet_type = Header.from_byte(data[0]).packet_type
    try:
        if packet_type == PacketType.CONNECT:
            return format_connect(deserialize_connect(data))
        if packet_type == PacketType.PUBLISH:
            return format_publish(deserialize_publish(data))
        if packet_type in _ACK_TYPES:
            return _format_ack_packet(data)
        if packet_type == PacketType.SUBSCRIBE:
            return format_subscribe(deserialize_subscribe(data))
        if packet_type == PacketType.UNSUBSCRIBE:
            return format_unsubscribe(deserialize_unsubscribe(data))
        if packet_type in _BARE_TYPES:
            return packet_name(packet_type)
    except MQTTPacketError:
        return ""
    return ""
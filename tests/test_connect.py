import pytest

from mqttpacket.codec import PacketType, ReadError, decode_length_from, packet_length
from mqttpacket.connect import (
    Connack,
    ConnackReturnCode,
    ConnectOptions,
    Will,
    check_version,
    connect_length,
    deserialize_connack,
    deserialize_connect,
    serialize_connack,
    serialize_connect,
    serialize_disconnect,
    serialize_pingreq,
    serialize_zero,
)


def test_disconnect_and_pingreq_bytes():
    assert serialize_disconnect() == bytes([0xE0, 0x00])
    assert serialize_pingreq() == bytes([0xC0, 0x00])


def test_serialize_zero_uses_packet_type():
    packet = serialize_zero(PacketType.PINGRESP)
    assert packet[0] >> 4 == PacketType.PINGRESP
    assert packet[1] == 0
    assert len(packet) == 2


def test_connack_wire_bytes():
    packet = serialize_connack(ConnackReturnCode.CONNECTION_ACCEPTED, False)
    assert packet == bytes([0x20, 0x02, 0x00, 0x00])


def test_connack_round_trip():
    packet = serialize_connack(ConnackReturnCode.NOT_AUTHORIZED, True)
    result = deserialize_connack(packet)
    assert result == Connack(session_present=True, return_code=ConnackReturnCode.NOT_AUTHORIZED)


def test_connack_unknown_code_kept_as_int():
    result = deserialize_connack(serialize_connack(77))
    assert result.return_code == 77
    assert result.session_present is False


def test_deserialize_connack_wrong_type():
    with pytest.raises(ReadError):
        deserialize_connack(serialize_disconnect())


def test_deserialize_connack_too_short():
    with pytest.raises(ReadError):
        deserialize_connack(bytes([0x20, 0x01, 0x00]))


def test_minimal_connect_header():
    packet = serialize_connect(ConnectOptions(client_id="id"))
    assert packet[0] == 0x10
    assert packet[2:9] == b"\x00\x04MQTT\x04"


def test_connect_length_matches_packet():
    options = ConnectOptions(
        client_id="client",
        will=Will(topic="will/topic", message=b"bye", qos=1, retained=True),
        username="user",
    )
    packet = serialize_connect(options)
    remaining, used = decode_length_from(packet, 1)
    assert remaining == connect_length(options)
    assert len(packet) == packet_length(remaining)
    assert len(packet) == 1 + used + remaining


def test_version_3_uses_mqisdp():
    options = ConnectOptions(client_id="c", mqtt_version=3)
    packet = serialize_connect(options)
    assert b"MQIsdp" in packet
    remaining, _ = decode_length_from(packet, 1)
    assert remaining == connect_length(options)
    assert deserialize_connect(packet).mqtt_version == 3


def test_unsupported_version_rejected():
    with pytest.raises(ValueError):
        serialize_connect(ConnectOptions(mqtt_version=5))


def test_connect_round_trip_full():
    password = "password"
    options = ConnectOptions(
        client_id="client-1",
        keep_alive=30,
        clean_session=False,
        will=Will(topic="status", message=b"offline", retained=True, qos=2),
        username="user",
        password=password,
    )
    result = deserialize_connect(serialize_connect(options))
    assert result.client_id == b"client-1"
    assert result.keep_alive == 30
    assert result.clean_session is False
    assert result.will == Will(topic=b"status", message=b"offline", retained=True, qos=2)
    assert result.username == b"user"
    assert result.password == b"password"
    assert result.mqtt_version == 4


def test_connect_round_trip_without_optional_fields():
    result = deserialize_connect(serialize_connect(ConnectOptions(client_id=b"abc")))
    assert result.client_id == b"abc"
    assert result.will is None
    assert result.username is None
    assert result.password is None
    assert result.clean_session is True


def test_reserialize_is_identical():
    options = ConnectOptions(client_id="x", username="u", will=Will(topic="t", message="m"))
    packet = serialize_connect(options)
    assert serialize_connect(deserialize_connect(packet)) == packet


def test_password_without_username_rejected():
    password = "password"
    packet = serialize_connect(ConnectOptions(client_id="c", password=password))
    with pytest.raises(ReadError):
        deserialize_connect(packet)


def test_empty_username_at_end_rejected():
    # The username needs at least three bytes left in the packet.
    packet = serialize_connect(ConnectOptions(client_id="c", username=""))
    with pytest.raises(ReadError):
        deserialize_connect(packet)


def test_truncated_connect_rejected():
    packet = serialize_connect(ConnectOptions(client_id="client", username="user"))
    with pytest.raises(ReadError):
        deserialize_connect(packet[:-3])


def test_deserialize_connect_wrong_type():
    with pytest.raises(ReadError):
        deserialize_connect(serialize_pingreq())


def test_deserialize_connect_bad_protocol():
    packet = bytearray(serialize_connect(ConnectOptions(client_id="c")))
    packet[8] = 3  # version byte no longer matches "MQTT"
    with pytest.raises(ReadError):
        deserialize_connect(bytes(packet))


@pytest.mark.parametrize(
    "protocol, version, expected",
    [
        (b"MQTT", 4, True),
        (b"MQIsdp", 3, True),
        (b"MQTT", 3, False),
        (b"MQIsdp", 4, False),
        (b"MQ", 3, True),
        (b"MQTT", 5, False),
    ],
)
def test_check_version(protocol, version, expected):
    assert check_version(protocol, version) is expected


def test_will_qos_flags_bits():
    packet = serialize_connect(
        ConnectOptions(client_id="c", clean_session=False, will=Will(topic="t", message="m", qos=1))
    )
    flags = packet[9]
    assert flags & 0x04
    assert (flags >> 3) & 0x03 == 1
    assert not flags & 0x02
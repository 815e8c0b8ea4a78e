import contextlib
import socket

import pytest

from mqttpacket.codec import NonBlockingReader, PacketType, read_packet
from mqttpacket.connect import deserialize_connack, serialize_connack, serialize_pingreq
from mqttpacket.publish import deserialize_publish, serialize_publish
from mqttpacket.transport import SocketTransport, TransportError


@pytest.fixture
def server():
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(1)
    srv.settimeout(5)
    yield srv
    srv.close()


def _port(srv):
    return srv.getsockname()[1]


@contextlib.contextmanager
def _accepted(srv):
    conn, _ = srv.accept()
    conn.settimeout(5)
    try:
        yield conn
    finally:
        conn.close()


def test_send_delivers_packet(server):
    transport = SocketTransport("127.0.0.1", _port(server), timeout=0.5).open()
    try:
        with _accepted(server) as conn:
            packet = serialize_pingreq()
            assert transport.send(packet) == len(packet)
            assert conn.recv(16) == packet
    finally:
        transport.close()


def test_getdata_reads_whole_packet(server):
    transport = SocketTransport("127.0.0.1", _port(server), timeout=0.5).open()
    try:
        with _accepted(server) as conn:
            conn.sendall(serialize_connack(0, True))
            packet_type, packet = read_packet(transport.getdata)
            assert packet_type == PacketType.CONNACK
            connack = deserialize_connack(packet)
            assert connack.session_present is True
            assert connack.return_code == 0
    finally:
        transport.close()


def test_getdata_nb_returns_empty_when_nothing_ready(server):
    transport = SocketTransport("127.0.0.1", _port(server), timeout=0.1).open()
    try:
        with _accepted(server):
            assert transport.getdata_nb(10) == b""
    finally:
        transport.close()


def test_non_blocking_reader_over_socket(server):
    transport = SocketTransport("127.0.0.1", _port(server), timeout=0.2).open()
    try:
        with _accepted(server) as conn:
            packet = serialize_publish("a/b", b"hello", qos=1, packet_id=7)
            conn.sendall(packet)
            reader = NonBlockingReader(transport.getdata_nb)
            result = None
            for _ in range(20):
                result = reader.poll()
                if result is not None:
                    break
            assert result is not None
            packet_type, received = result
            assert packet_type == PacketType.PUBLISH
            assert received == packet
            assert deserialize_publish(received).payload == b"hello"
    finally:
        transport.close()


def test_close_shuts_down_sending_side(server):
    transport = SocketTransport("127.0.0.1", _port(server), timeout=0.5).open()
    with _accepted(server) as conn:
        transport.close()
        assert transport.connected is False
        assert conn.recv(16) == b""


def test_context_manager_opens_and_closes(server):
    with SocketTransport("127.0.0.1", _port(server), timeout=0.5) as transport:
        assert transport.connected is True
        with _accepted(server) as conn:
            packet = serialize_pingreq()
            transport.send(packet)
            assert conn.recv(16) == packet
    assert transport.connected is False


def test_open_refused_raises():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    transport = SocketTransport("127.0.0.1", port)
    with pytest.raises(TransportError):
        transport.open()
    assert transport.connected is False


def test_use_before_open_raises():
    transport = SocketTransport("127.0.0.1", 1883)
    with pytest.raises(TransportError):
        transport.send(serialize_pingreq())
    with pytest.raises(TransportError):
        transport.getdata(1)
    with pytest.raises(TransportError):
        transport.getdata_nb(1)
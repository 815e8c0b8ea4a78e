import pytest

from mqttpacket.codec import NonBlockingReader, PacketType
from mqttpacket.connect import serialize_connack
from mqttpacket.publish import deserialize_publish, serialize_publish
from mqttpacket.serial_transport import SendStatus, SerialTransport
from mqttpacket.transport import TransportError


class ChunkedIO:
    def __init__(self, chunk=3, incoming=b""):
        self.chunk = chunk
        self.sent = bytearray()
        self.incoming = bytearray(incoming)

    def send(self, data):
        n = min(self.chunk, len(data))
        self.sent.extend(data[:n])
        return n

    def recv(self, maxbytes):
        n = min(self.chunk, maxbytes, len(self.incoming))
        out = bytes(self.incoming[:n])
        del self.incoming[:n]
        return out


class FailingIO:
    def send(self, data):
        return -1

    def recv(self, maxbytes):
        return None


def test_send_step_status_values():
    io = ChunkedIO(chunk=1)
    transport = SerialTransport(io)
    transport.start_send(b"ab")
    assert transport.send_step() == 0
    assert transport.send_step() == 1
    failing = SerialTransport(FailingIO())
    failing.start_send(b"ab")
    assert failing.send_step() == -1


def test_send_steps_until_done():
    io = ChunkedIO(chunk=3)
    transport = SerialTransport(io)
    packet = serialize_connack(0, False)
    transport.start_send(packet)
    assert transport.send_step() is SendStatus.AGAIN
    assert transport.send_step() is SendStatus.DONE
    assert bytes(io.sent) == packet


def test_send_blocks_until_all_sent():
    io = ChunkedIO(chunk=2)
    transport = SerialTransport(io)
    packet = serialize_publish("topic", b"payload", qos=1, packet_id=3)
    assert transport.send(packet) == len(packet)
    assert bytes(io.sent) == packet


def test_send_error_is_reported():
    transport = SerialTransport(FailingIO())
    transport.start_send(b"\x01\x02")
    assert transport.send_step() is SendStatus.ERROR
    with pytest.raises(TransportError):
        transport.send(b"\x01\x02")


def test_send_step_before_start_raises():
    transport = SerialTransport(ChunkedIO())
    with pytest.raises(RuntimeError):
        transport.send_step()


def test_close_drops_pending_send():
    transport = SerialTransport(ChunkedIO(chunk=1))
    transport.start_send(b"abc")
    assert transport.send_step() is SendStatus.AGAIN
    transport.close()
    with pytest.raises(RuntimeError):
        transport.send_step()


def test_getdata_nb_respects_count():
    transport = SerialTransport(ChunkedIO(chunk=10, incoming=b"abcdef"))
    assert transport.getdata_nb(4) == b"abcd"
    assert transport.getdata_nb(4) == b"ef"
    assert transport.getdata_nb(4) == b""


def test_getdata_nb_error_raises():
    transport = SerialTransport(FailingIO())
    with pytest.raises(TransportError):
        transport.getdata_nb(1)


def test_reader_assembles_packet_from_chunks():
    packet = serialize_publish("x/y", b"data bytes", qos=0)
    transport = SerialTransport(ChunkedIO(chunk=3, incoming=packet))
    reader = NonBlockingReader(transport.getdata_nb)
    result = None
    for _ in range(50):
        result = reader.poll()
        if result is not None:
            break
    assert result is not None
    packet_type, received = result
    assert packet_type == PacketType.PUBLISH
    assert received == packet
    assert deserialize_publish(received).payload == b"data bytes"


def test_requires_io():
    with pytest.raises(ValueError):
        SerialTransport(None)
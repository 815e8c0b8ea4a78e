# mqttpacket

A small library with no dependencies. It builds and parses MQTT 3.1 and
3.1.1 control packets. It turns packets into bytes and bytes back into
packets. Your code decides how and when those bytes travel.

## Modules

- `mqttpacket.codec` holds the wire primitives:
  - the fixed header (`Header`, `PacketType`);
  - the variable-length remaining-length field (`encode_length`,
    `decode_length`, `decode_length_from`, `packet_length`);
  - length-prefixed strings (`Reader`, `Writer`, `mqtt_strlen`,
    `string_equals`);
  - whole-packet readers. `read_packet` reads from a blocking `read(count)`
    callable. `NonBlockingReader` works with a source that may have no data
    ready yet: call its `poll()` method until it returns a packet.
- `mqttpacket.connect` covers CONNECT, CONNACK, DISCONNECT and PINGREQ
  (`ConnectOptions`, `Will`, `Connack`, `ConnackReturnCode`,
  `check_version`, `serialize_zero`).
- `mqttpacket.publish` covers PUBLISH and the acknowledgements PUBACK,
  PUBREC, PUBREL and PUBCOMP (`Publish`, `Ack`).
- `mqttpacket.subscribe` covers SUBSCRIBE and SUBACK (`Subscribe`, `Suback`).
- `mqttpacket.unsubscribe` covers UNSUBSCRIBE and UNSUBACK (`Unsubscribe`).
  `deserialize_unsuback` returns the packet id.
- `mqttpacket.format` gives one-line descriptions of packets for logging.
  These are `to_client_string`, `to_server_string`, `packet_name` and the
  `format_*` helpers. The two `to_*_string` functions return an empty
  string for a packet they cannot describe.
- `mqttpacket.transport` provides `SocketTransport`, a TCP connection that
  prefers IPv4 and uses a receive timeout. It has `open`, `send`, `getdata`,
  `getdata_nb` and `close`, and it works as a context manager.
- `mqttpacket.serial_transport` provides `SerialTransport`. It sends and
  receives without blocking through any object that has `send(data)` and
  `recv(maxbytes)` methods (the `SerialIO` protocol). Call `start_send`,
  then call `send_step` until it returns a `SendStatus` other than `AGAIN`.
  The `send` method does this loop for you.

## Errors

Errors are raised as exceptions, not returned as status codes:

- Malformed or truncated packets raise `ReadError`, a subclass of
  `MQTTPacketError`.
- A packet larger than the `max_size` you allow raises `PacketTooLargeError`.
- `serialize_connect` raises `ValueError` when `mqtt_version` is neither 3
  nor 4.
- The transports raise `TransportError`, a subclass of `OSError`.

## Examples

Encode a remaining-length field:

```python
from mqttpacket.codec import encode_length

encode_length(321)   # b"\xc1\x02"
```

Build a CONNECT packet and read the CONNACK that answers it:

```python
from mqttpacket.connect import ConnectOptions, serialize_connect, deserialize_connack

password = "password"
packet = serialize_connect(ConnectOptions(client_id="sensor-1", username="user", password=password))

connack = deserialize_connack(b"\x20\x02\x00\x00")
connack.return_code   # ConnackReturnCode.CONNECTION_ACCEPTED
```

Build a QoS 1 publish and an acknowledgement for it:

```python
from mqttpacket.publish import serialize_publish, serialize_puback, deserialize_ack

packet = serialize_publish("sensors/temperature", b"21.5", qos=1, packet_id=10)
ack = deserialize_ack(serialize_puback(10))
ack.packet_id   # 10
```

Describe a packet for a log line:

```python
from mqttpacket.format import to_client_string
from mqttpacket.publish import serialize_puback

to_client_string(serialize_puback(10))   # "PUBACK, packet id 10"
```

Subscribe over TCP. This assumes a CONNECT has already been sent and
answered:

```python
from mqttpacket.codec import read_packet
from mqttpacket.subscribe import serialize_subscribe, deserialize_suback
from mqttpacket.transport import SocketTransport

with SocketTransport("localhost", 1883, 1.0) as transport:
    transport.send(serialize_subscribe(1, ["sensors/#"], [0]))
    packet_type, packet = read_packet(transport.getdata, 1024)
    suback = deserialize_suback(packet)
```

## What it does not do

This is a packet library, not an MQTT client or broker. It does not do any
of the following:

- keep sessions;
- resend unacknowledged messages;
- send keep-alive pings on its own;
- track packet ids;
- route messages.

There is no command-line program. The transports carry bytes only, and
connection handling beyond a single socket or serial link is left to you.

## Requirements

Python 3.10 or later. The package has no third-party dependencies.
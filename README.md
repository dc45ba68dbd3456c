# esplink

Small, dependency-free building blocks for a networked device bridge:
MQTT 3.1.1 packets and session bookkeeping, HTTP request helpers and a
forgiving base64 decoder.

## Modules

- **`esplink.mqtt_msg`** – packet construction and inspection.
  - `MessageBuilder(buffer_length)` assembles packets within a size budget:
    `connect(info)`, `publish(topic, data, qos, retain)`,
    `subscribe(topic, qos)`, `unsubscribe(topic)`, `puback`, `pubrec`,
    `pubrel`, `pubcomp` (each taking a message id), `pingreq()`,
    `pingresp()` and `disconnect()`. `publish`, `subscribe` and
    `unsubscribe` return `(packet, message_id)`; the others return the
    packet bytes. The builder hands out message ids from its
    `message_id` counter. A packet that does not fit, an empty topic or an
    empty client id raises `MessageBuildError`.
  - `ConnectInfo` holds the CONNECT parameters (client id, username,
    password, last-will topic/message/QoS/retain, keep-alive, clean session).
  - `MessageType` enumerates the control packet types.
  - `get_type`, `get_dup`, `get_qos`, `get_retain`, `get_total_length`,
    `get_publish_topic`, `get_publish_data` and `get_id` read fields out of
    a serialized packet.
- **`esplink.mqtt_session`** – the byte-stream side of a session.
  - `InboundBuffer(size=2048)` reassembles packets: `feed(data)` returns
    every packet completed so far and keeps the remainder. A packet longer
    than `size` raises `MessageTooLong`, whose `messages` attribute holds
    the complete packets that came before it.
  - `OutboundQueue(send, send_timeout=1)` sends one packet at a time through
    the `send` callable and holds back further packets while one that needs
    an acknowledgement (QoS>0 PUBLISH, PUBREL, PUBREC, SUBSCRIBE,
    UNSUBSCRIBE) is `pending`. It offers `enqueue`, `push_front`,
    `send_next(keepalive)`, `on_sent`, `acknowledge(msg_type, msg_id)`,
    `requeue_pending`, `reset` and `can_send`, and keeps `timeout_tick` and
    `keepalive_tick` counters for the caller's timer.
- **`esplink.httpd_util`** – `url_decode(value, max_len)` (percent and `+`
  decoding, returning bytes), `find_arg(line, arg, max_len)` (value of one
  form-encoded argument, or `None` if absent) and `get_mimetype(url)`
  (MIME type from a case-sensitive file extension, `text/html` by default).
- **`esplink.base64dec`** – `base64_decode(data, max_len)` skips whitespace,
  stops at `=` or at the first character outside the alphabet, and raises
  `DecodeOverflowError` if the output would exceed `max_len`.

## Installation

```
pip install esplink
```

Python 3.10 or later is required.

## Examples

### Building and reading MQTT packets

```python
from esplink.mqtt_msg import ConnectInfo, MessageBuilder, get_qos, get_type

password = "password"
builder = MessageBuilder(128)
connect = builder.connect(
    ConnectInfo(client_id="device-1", username="user", password=password, keepalive=60)
)
packet, message_id = builder.publish("sensors/temp", b"21.5", 1, 0)
assert get_type(packet) == 3 and get_qos(packet) == 1
```

### Framing and acknowledgements

```python
from esplink.mqtt_msg import MessageBuilder, get_id, get_type
from esplink.mqtt_session import InboundBuffer, OutboundQueue

builder = MessageBuilder(128)
inbound = InboundBuffer()
outbound = OutboundQueue(sock.sendall, send_timeout=5)

packet, _ = builder.subscribe("sensors/#", 0)
outbound.enqueue(packet)
outbound.send_next(keepalive=60)

# when the socket reports the write finished:
outbound.on_sent()

# when bytes arrive:
for message in inbound.feed(received):
    outbound.acknowledge(get_type(message), get_id(message))
if outbound.can_send:
    outbound.send_next(keepalive=60)
```

### HTTP helpers

```python
from esplink.base64dec import base64_decode
from esplink.httpd_util import find_arg, get_mimetype, url_decode

get_mimetype("/index.html")                # "text/html; charset=UTF-8"
find_arg("a=1&name=hi+there", "name", 64)  # b"hi there"
url_decode("a%20b")                        # b"a b"
base64_decode("dXNlcjpwYXNzd29yZA==", 64)  # b"user:password"
```

## What this package does not do

There is no HTTP server, no HTTP authentication handler and no multipart
upload parser here, only the request helpers above. Nor is there a complete
MQTT client: nothing opens sockets, resolves host names, runs keep-alive or
reconnect timers, or dispatches CONNACK and PUBLISH packets to callbacks.
`InboundBuffer` and `OutboundQueue` supply the framing and queueing, and the
caller drives them from its own network loop.

## Running the tests

```
pip install -e ".[test]"
pytest
```
import pytest

from esplink.mqtt_msg import MessageBuilder, MessageType
from esplink.mqtt_session import InboundBuffer, MessageTooLong, OutboundQueue


@pytest.fixture
def builder():
    return MessageBuilder(2048)


@pytest.fixture
def sent():
    return []


@pytest.fixture
def queue(sent):
    return OutboundQueue(sent.append, send_timeout=5)


# ----- InboundBuffer

def test_two_packets_in_one_feed(builder):
    first, _ = builder.publish("a/b", b"hello", 0, 0)
    second = builder.pingresp()
    buf = InboundBuffer()
    assert buf.feed(first + second) == [first, second]
    assert buf.filled == 0


def test_packet_split_across_feeds(builder):
    packet, _ = builder.publish("topic", b"payload", 1, 0)
    buf = InboundBuffer()
    assert buf.feed(packet[:3]) == []
    assert buf.filled == 3
    assert buf.feed(packet[3:]) == [packet]


def test_single_byte_is_incomplete():
    buf = InboundBuffer()
    assert buf.feed(b"\xd0") == []
    assert buf.feed(b"\x00") == [b"\xd0\x00"]


def test_long_packet_with_two_byte_length(builder):
    packet, _ = builder.publish("t", b"x" * 300, 0, 0)
    buf = InboundBuffer()
    assert buf.feed(packet) == [packet]


def test_too_long_message_raises_and_keeps_earlier(builder):
    small = builder.pingresp()
    big, _ = builder.publish("t", b"x" * 200, 0, 0)
    buf = InboundBuffer(size=64)
    with pytest.raises(MessageTooLong) as info:
        buf.feed(small + big)
    assert info.value.messages == [small]
    assert info.value.length == len(big)
    assert buf.filled == 0


def test_clear_drops_partial(builder):
    packet, _ = builder.publish("t", b"abc", 0, 0)
    buf = InboundBuffer()
    buf.feed(packet[:2])
    buf.clear()
    assert buf.filled == 0


# ----- OutboundQueue

def test_qos0_publish_is_not_pending(queue, sent, builder):
    packet, _ = builder.publish("t", b"d", 0, 0)
    queue.enqueue(packet)
    assert queue.send_next() == packet
    assert sent == [packet]
    assert queue.pending is None
    assert queue.sending
    assert queue.timeout_tick == 0


def test_qos1_publish_waits_for_puback(queue, builder):
    packet, msg_id = builder.publish("t", b"d", 1, 0)
    queue.enqueue(packet)
    queue.send_next()
    assert queue.pending == packet
    assert queue.timeout_tick == 5 + 1
    queue.on_sent()
    assert not queue.sending
    assert queue.acknowledge(MessageType.PUBACK, msg_id + 1) is False
    assert queue.acknowledge(MessageType.PUBACK, msg_id) is True
    assert queue.pending is None


def test_ack_of_wrong_type_is_ignored(queue, builder):
    packet, msg_id = builder.subscribe("t", 0)
    queue.enqueue(packet)
    queue.send_next()
    assert queue.acknowledge(MessageType.PUBACK, msg_id) is False
    assert queue.acknowledge(MessageType.SUBACK, msg_id) is True


def test_pubrel_acknowledged_by_pubcomp(queue, builder):
    packet = builder.pubrel(42)
    queue.enqueue(packet)
    queue.send_next()
    assert queue.pending == packet
    assert queue.acknowledge(MessageType.PUBCOMP, 42) is True


def test_pingreq_not_held(queue, sent, builder):
    ping = builder.pingreq()
    assert ping == b"\xc0\x00"
    queue.timeout_tick = 3
    queue.enqueue(ping)
    queue.send_next()
    assert queue.pending is None
    assert queue.sending_packet == ping
    assert queue.timeout_tick == 3


def test_nothing_sent_while_sending(queue, sent, builder):
    queue.enqueue(builder.pingresp())
    queue.enqueue(builder.disconnect())
    queue.send_next()
    assert queue.send_next() is None
    assert len(sent) == 1
    assert len(queue) == 1
    queue.on_sent()
    assert queue.send_next() == builder.disconnect()


def test_empty_queue_sends_nothing(queue, sent):
    assert queue.send_next() is None
    assert sent == []
    assert not queue.can_send


def test_push_front_goes_first(queue, builder):
    later = builder.disconnect()
    first = builder.pingreq()
    queue.enqueue(later)
    queue.push_front(first)
    assert queue.send_next() == first


def test_keepalive_tick(queue, builder):
    queue.enqueue(builder.pingresp())
    queue.send_next(keepalive=60)
    assert queue.keepalive_tick == 60 + 1
    queue.on_sent()
    queue.enqueue(builder.pingresp())
    queue.send_next(keepalive=0)
    assert queue.keepalive_tick == 0


def test_requeue_pending(queue, builder):
    packet, _ = builder.publish("t", b"d", 2, 0)
    queue.enqueue(packet)
    queue.send_next()
    queue.reset()
    assert queue.requeue_pending() is True
    assert queue.pending is None
    assert len(queue) == 1
    assert queue.can_send
    assert queue.send_next() == packet
    assert queue.requeue_pending() is True
    assert queue.requeue_pending() is False


def test_zero_send_timeout_becomes_one(sent):
    queue = OutboundQueue(sent.append, send_timeout=0)
    assert queue.send_timeout == 1
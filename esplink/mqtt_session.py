"""Inbound packet framing and the outbound send/acknowledge queue of an MQTT session."""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable

from .mqtt_msg import MessageType, get_id, get_qos, get_type

log = logging.getLogger(__name__)

MQTT_MAX_RCV_MESSAGE = 2048

# Which outstanding packet type each acknowledgement answers.
_ACK_FOR = {
    MessageType.SUBACK: MessageType.SUBSCRIBE,
    MessageType.UNSUBACK: MessageType.UNSUBSCRIBE,
    MessageType.PUBACK: MessageType.PUBLISH,
    MessageType.PUBREC: MessageType.PUBLISH,
    MessageType.PUBCOMP: MessageType.PUBREL,
    MessageType.PUBREL: MessageType.PUBREC,
}


class MessageTooLong(Exception):
    """An incoming packet is larger than the receive buffer allows.

    ``messages`` holds the complete packets that preceded it in the same
    feed, so the caller can still handle them.
    """

    def __init__(self, length: int, messages: list[bytes] | None = None) -> None:
        super().__init__(f"message of {length} bytes is too long")
        self.length = length
        self.messages = list(messages or [])


class InboundBuffer:
    """Reassembles packets from a TCP byte stream."""

    def __init__(self, size: int = MQTT_MAX_RCV_MESSAGE) -> None:
        self.size = size
        self._buf = bytearray()

    @property
    def filled(self) -> int:
        """Number of bytes held that do not yet form a complete packet."""
        return len(self._buf)

    def clear(self) -> None:
        """Drop any partial packet."""
        self._buf.clear()

    def _message_length(self) -> int | None:
        """Total length of the packet at the head, or None if the header is incomplete."""
        buf = self._buf
        remaining = 0
        for i in range(1, min(len(buf), 5)):
            byte = buf[i]
            remaining += (byte & 0x7F) << (7 * (i - 1))
            if byte & 0x80 == 0:
                return remaining + i + 1
        if len(buf) >= 5:
            # Four continuation bytes in a row: no valid length can follow.
            return remaining + 5 + self.size
        return None

    def feed(self, data: bytes) -> list[bytes]:
        """Add received bytes and return every packet now complete.

        Raises MessageTooLong when the packet at the head exceeds ``size``;
        the buffer is emptied in that case.
        """
        self._buf += data
        messages: list[bytes] = []
        while self._buf:
            total = self._message_length()
            if total is None:
                break
            if total > self.size:
                log.warning("MQTT: Too long a message (%d bytes)", total)
                self._buf.clear()
                raise MessageTooLong(total, messages)
            if total > len(self._buf):
                break
            messages.append(bytes(self._buf[:total]))
            del self._buf[:total]
        return messages


class OutboundQueue:
    """Packets waiting to go out, plus the one packet awaiting an acknowledgement.

    Only one packet is on the wire at a time, and while a packet that needs
    an acknowledgement is pending nothing else is sent.
    """

    def __init__(self, send: Callable[[bytes], None], send_timeout: int = 1) -> None:
        self._send = send
        self.send_timeout = send_timeout or 1
        self._queue: deque[bytes] = deque()
        self.pending: bytes | None = None
        self.sending_packet: bytes | None = None
        self.sending = False
        self.timeout_tick = 0
        self.keepalive_tick = 0

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def can_send(self) -> bool:
        """True when a queued packet may go out now."""
        return not self.sending and self.pending is None and bool(self._queue)

    def enqueue(self, packet: bytes) -> None:
        """Append a packet to the end of the queue."""
        self._queue.append(bytes(packet))

    def push_front(self, packet: bytes) -> None:
        """Put a packet at the head of the queue."""
        self._queue.appendleft(bytes(packet))

    def send_next(self, keepalive: int = 0) -> bytes | None:
        """Send the packet at the head of the queue; returns it, or None if nothing went out."""
        if not self._queue or self.sending:
            return None
        packet = self._queue.popleft()
        msg_type = get_type(packet)
        log.debug("MQTT: Send type=%d id=%04X len=%d", msg_type, get_id(packet), len(packet))

        self._send(packet)
        self.sending = True

        needs_ack = (
            (msg_type == MessageType.PUBLISH and get_qos(packet) > 0)
            or msg_type in (MessageType.PUBREL, MessageType.PUBREC,
                            MessageType.SUBSCRIBE, MessageType.UNSUBSCRIBE)
        )
        if msg_type == MessageType.PINGREQ:
            self.pending = None
            self.sending_packet = packet
        elif needs_ack:
            self.pending = packet
            self.sending_packet = None
            self.timeout_tick = self.send_timeout + 1
        else:
            self.pending = None
            self.sending_packet = packet
            self.timeout_tick = 0
        self.keepalive_tick = keepalive + 1 if keepalive > 0 else 0
        return packet

    def on_sent(self) -> None:
        """The transport finished sending the last packet."""
        self.sending_packet = None
        self.sending = False

    def reset(self) -> None:
        """Forget the packet on the wire, as after a dropped connection."""
        self.sending_packet = None
        self.sending = False

    def acknowledge(self, msg_type: int, msg_id: int) -> bool:
        """Release the pending packet if this acknowledgement answers it."""
        if self.pending is None:
            return False
        expected = _ACK_FOR.get(msg_type)
        if expected is None:
            return False
        if get_type(self.pending) != expected or get_id(self.pending) != msg_id:
            return False
        self.pending = None
        return True

    def requeue_pending(self) -> bool:
        """Move the pending packet back to the head of the queue for retransmission."""
        if self.pending is None:
            return False
        self._queue.appendleft(self.pending)
        self.pending = None
        return True
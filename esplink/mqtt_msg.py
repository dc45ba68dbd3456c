"""MQTT 3.1.1 packet construction and parsing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

_MAX_FIXED_HEADER_SIZE = 3

_FLAG_USERNAME = 1 << 7
_FLAG_PASSWORD = 1 << 6
_FLAG_WILL_RETAIN = 1 << 5
_FLAG_WILL = 1 << 2
_FLAG_CLEAN_SESSION = 1 << 1

_PROTOCOL_NAME = b"MQTT"
_PROTOCOL_LEVEL = 4


class MessageType(IntEnum):
    """Control packet types."""

    CONNECT = 1
    CONNACK = 2
    PUBLISH = 3
    PUBACK = 4
    PUBREC = 5
    PUBREL = 6
    PUBCOMP = 7
    SUBSCRIBE = 8
    SUBACK = 9
    UNSUBSCRIBE = 10
    UNSUBACK = 11
    PINGREQ = 12
    PINGRESP = 13
    DISCONNECT = 14


class MessageBuildError(ValueError):
    """Raised when a packet cannot be assembled (bad input or no room)."""


def _to_bytes(value: str | bytes | None) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


@dataclass
class ConnectInfo:
    """Parameters of a CONNECT packet."""

    client_id: str | bytes
    username: str | bytes = ""
    password: str | bytes = ""
    will_topic: str | bytes = ""
    will_message: str | bytes = ""
    keepalive: int = 0
    will_qos: int = 0
    will_retain: bool = False
    clean_session: bool = True


def get_type(buffer: bytes) -> int:
    """Packet type from the first header byte."""
    return (buffer[0] & 0xF0) >> 4


def get_dup(buffer: bytes) -> int:
    """DUP flag from the first header byte."""
    return (buffer[0] & 0x08) >> 3


def get_qos(buffer: bytes) -> int:
    """QoS level from the first header byte."""
    return (buffer[0] & 0x06) >> 1


def get_retain(buffer: bytes) -> int:
    """RETAIN flag from the first header byte."""
    return buffer[0] & 0x01


def _scan_remaining_length(buffer: bytes) -> tuple[int, int]:
    """Return (remaining length, offset past the fixed header)."""
    length = len(buffer)
    remaining = 0
    i = 1
    while i < length:
        remaining += (buffer[i] & 0x7F) << (7 * (i - 1))
        if buffer[i] & 0x80 == 0:
            i += 1
            break
        i += 1
    return remaining, i


def get_total_length(buffer: bytes) -> int:
    """Total packet length including the fixed header."""
    remaining, i = _scan_remaining_length(buffer)
    return remaining + i


def get_publish_topic(buffer: bytes) -> bytes | None:
    """Topic of a PUBLISH packet, or None if the buffer is too short."""
    length = len(buffer)
    _, i = _scan_remaining_length(buffer)
    if i + 2 >= length:
        return None
    topic_len = (buffer[i] << 8) | buffer[i + 1]
    i += 2
    if i + topic_len > length:
        return None
    return bytes(buffer[i:i + topic_len])


def get_publish_data(buffer: bytes) -> bytes | None:
    """Payload of a PUBLISH packet, or None if it cannot be located."""
    length = len(buffer)
    remaining, i = _scan_remaining_length(buffer)
    total = remaining + i
    if i + 2 >= length:
        return None
    topic_len = (buffer[i] << 8) | buffer[i + 1]
    i += 2
    if i + topic_len >= length:
        return None
    i += topic_len
    if get_qos(buffer) > 0:
        if i + 2 >= length:
            return None
        i += 2
    if total < i:
        return None
    data_len = total - i if total <= length else length - i
    return bytes(buffer[i:i + data_len])


def get_id(buffer: bytes) -> int:
    """Packet identifier, or 0 if the packet carries none."""
    length = len(buffer)
    if length < 1:
        return 0
    msg_type = get_type(buffer)
    if msg_type == MessageType.PUBLISH:
        _, i = _scan_remaining_length(buffer)
        if i + 2 >= length:
            return 0
        topic_len = (buffer[i] << 8) | buffer[i + 1]
        i += 2
        if i + topic_len >= length:
            return 0
        i += topic_len
        if get_qos(buffer) == 0 or i + 2 >= length:
            return 0
        return (buffer[i] << 8) | buffer[i + 1]
    if msg_type in (
        MessageType.PUBACK,
        MessageType.PUBREC,
        MessageType.PUBREL,
        MessageType.PUBCOMP,
        MessageType.SUBACK,
        MessageType.UNSUBACK,
        MessageType.SUBSCRIBE,
    ):
        # The remaining length must fit in a single byte here.
        if length >= 4 and buffer[1] & 0x80 == 0:
            return (buffer[2] << 8) | buffer[3]
        return 0
    return 0


class MessageBuilder:
    """Assembles outgoing packets within a fixed size budget.

    ``message_id`` holds the last identifier handed out; the next packet
    that needs one gets the following value.
    """

    def __init__(self, buffer_length: int) -> None:
        self.buffer_length = buffer_length
        self.message_id = 0
        self._body = bytearray()
        self._length = _MAX_FIXED_HEADER_SIZE

    def _start(self) -> None:
        self._body = bytearray()
        self._length = _MAX_FIXED_HEADER_SIZE

    def _append_string(self, value: bytes) -> None:
        if self._length + len(value) + 2 > self.buffer_length:
            raise MessageBuildError("packet does not fit in buffer")
        n = len(value)
        self._body += bytes(((n >> 8) & 0xFF, n & 0xFF))
        self._body += value
        self._length += n + 2

    def _append_message_id(self, message_id: int) -> int:
        while message_id == 0:
            self.message_id = (self.message_id + 1) & 0xFFFF
            message_id = self.message_id
        if self._length + 2 > self.buffer_length:
            raise MessageBuildError("packet does not fit in buffer")
        self._body += bytes(((message_id >> 8) & 0xFF, message_id & 0xFF))
        self._length += 2
        return message_id

    def _finish(self, msg_type: int, dup: int = 0, qos: int = 0, retain: int = 0) -> bytes:
        remaining = self._length - _MAX_FIXED_HEADER_SIZE
        first = ((msg_type & 0x0F) << 4) | ((dup & 1) << 3) | ((qos & 3) << 1) | (retain & 1)
        if remaining > 127:
            header = bytes((first, 0x80 | (remaining % 128), (remaining // 128) & 0xFF))
        else:
            header = bytes((first, remaining))
        return header + bytes(self._body)

    def connect(self, info: ConnectInfo) -> bytes:
        """Build a CONNECT packet."""
        self._start()
        variable_len = 2 + len(_PROTOCOL_NAME) + 4
        if self._length + variable_len > self.buffer_length:
            raise MessageBuildError("packet does not fit in buffer")
        self._length += variable_len

        flags = 0
        if info.clean_session:
            flags |= _FLAG_CLEAN_SESSION

        client_id = _to_bytes(info.client_id)
        if not client_id:
            raise MessageBuildError("client id is required")
        self._append_string(client_id)

        will_topic = _to_bytes(info.will_topic)
        if will_topic:
            self._append_string(will_topic)
            self._append_string(_to_bytes(info.will_message))
            flags |= _FLAG_WILL
            if info.will_retain:
                flags |= _FLAG_WILL_RETAIN
            flags |= (info.will_qos & 3) << 3

        username = _to_bytes(info.username)
        if username:
            self._append_string(username)
            flags |= _FLAG_USERNAME

        password = _to_bytes(info.password)
        if password:
            self._append_string(password)
            flags |= _FLAG_PASSWORD

        variable = (
            bytes((0, len(_PROTOCOL_NAME)))
            + _PROTOCOL_NAME
            + bytes((_PROTOCOL_LEVEL, flags, (info.keepalive >> 8) & 0xFF, info.keepalive & 0xFF))
        )
        self._body[0:0] = variable
        return self._finish(MessageType.CONNECT)

    def publish(self, topic: str | bytes, data: bytes | str, qos: int = 0,
                retain: int = 0) -> tuple[bytes, int]:
        """Build a PUBLISH packet; returns (packet, message id or 0)."""
        self._start()
        topic_bytes = _to_bytes(topic)
        if not topic_bytes:
            raise MessageBuildError("topic is required")
        self._append_string(topic_bytes)
        message_id = self._append_message_id(0) if qos > 0 else 0
        payload = _to_bytes(data)
        if self._length + len(payload) > self.buffer_length:
            raise MessageBuildError("packet does not fit in buffer")
        self._body += payload
        self._length += len(payload)
        return self._finish(MessageType.PUBLISH, 0, qos, int(retain)), message_id

    def _ack(self, msg_type: MessageType, message_id: int, qos: int = 0) -> bytes:
        self._start()
        self._append_message_id(message_id)
        return self._finish(msg_type, 0, qos, 0)

    def puback(self, message_id: int) -> bytes:
        """Build a PUBACK packet."""
        return self._ack(MessageType.PUBACK, message_id)

    def pubrec(self, message_id: int) -> bytes:
        """Build a PUBREC packet."""
        return self._ack(MessageType.PUBREC, message_id)

    def pubrel(self, message_id: int) -> bytes:
        """Build a PUBREL packet."""
        return self._ack(MessageType.PUBREL, message_id, qos=1)

    def pubcomp(self, message_id: int) -> bytes:
        """Build a PUBCOMP packet."""
        return self._ack(MessageType.PUBCOMP, message_id)

    def subscribe(self, topic: str | bytes, qos: int = 0) -> tuple[bytes, int]:
        """Build a SUBSCRIBE packet; returns (packet, message id)."""
        self._start()
        topic_bytes = _to_bytes(topic)
        if not topic_bytes:
            raise MessageBuildError("topic is required")
        message_id = self._append_message_id(0)
        self._append_string(topic_bytes)
        if self._length + 1 > self.buffer_length:
            raise MessageBuildError("packet does not fit in buffer")
        self._body.append(qos & 0xFF)
        self._length += 1
        return self._finish(MessageType.SUBSCRIBE, 0, 1, 0), message_id

    def unsubscribe(self, topic: str | bytes) -> tuple[bytes, int]:
        """Build an UNSUBSCRIBE packet; returns (packet, message id)."""
        self._start()
        topic_bytes = _to_bytes(topic)
        if not topic_bytes:
            raise MessageBuildError("topic is required")
        message_id = self._append_message_id(0)
        self._append_string(topic_bytes)
        return self._finish(MessageType.UNSUBSCRIBE, 0, 1, 0), message_id

    def pingreq(self) -> bytes:
        """Build a PINGREQ packet."""
        self._start()
        return self._finish(MessageType.PINGREQ)

    def pingresp(self) -> bytes:
        """Build a PINGRESP packet."""
        self._start()
        return self._finish(MessageType.PINGRESP)

    def disconnect(self) -> bytes:
        """Build a DISCONNECT packet."""
        self._start()
        return self._finish(MessageType.DISCONNECT)
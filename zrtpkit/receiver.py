"""Reception and validation of ZRTP messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from .defines import ZRTP_MAGIC, ZRTP_PREAMBLE, ZrtpFrameType, ZrtpMsgType
from .message import (
    CRC_BYTEORDER,
    CRC_SIZE,
    MESSAGE_HEADER_SIZE,
    BytesLike,
    header_length_to_packet,
    parse_message_header,
    verify_crc32,
)
from .types import RtpError, RtpException


@dataclass(frozen=True)
class _Rule:
    frame_type: ZrtpFrameType
    accepts: Callable[[int], bool]
    check_crc: bool


def _at_least(minimum: int) -> Callable[[int], bool]:
    return lambda length: length >= minimum


def _one_of(*allowed: int) -> Callable[[int], bool]:
    return lambda length: length in allowed


# Length field rules from RFC 6189 section 5.
_RULES: Dict[ZrtpMsgType, _Rule] = {
    ZrtpMsgType.HELLO: _Rule(ZrtpFrameType.HELLO, _at_least(22), True),
    ZrtpMsgType.HELLO_ACK: _Rule(ZrtpFrameType.HELLO_ACK, _one_of(3), True),
    ZrtpMsgType.COMMIT: _Rule(ZrtpFrameType.COMMIT, _one_of(25, 27, 29), True),
    ZrtpMsgType.DH_PART1: _Rule(ZrtpFrameType.DH_PART1, _at_least(21), True),
    ZrtpMsgType.DH_PART2: _Rule(ZrtpFrameType.DH_PART2, _at_least(21), True),
    ZrtpMsgType.CONFIRM1: _Rule(ZrtpFrameType.CONFIRM1, _at_least(19), True),
    ZrtpMsgType.CONFIRM2: _Rule(ZrtpFrameType.CONFIRM2, _at_least(19), True),
    ZrtpMsgType.CONF2_ACK: _Rule(ZrtpFrameType.CONF2_ACK, _one_of(3), True),
    ZrtpMsgType.ERROR: _Rule(ZrtpFrameType.ERROR, _one_of(4), False),
    ZrtpMsgType.ERROR_ACK: _Rule(ZrtpFrameType.ERROR_ACK, _one_of(3), False),
    ZrtpMsgType.SAS_RELAY: _Rule(ZrtpFrameType.SAS_RELAY, _at_least(19), False),
    ZrtpMsgType.RELAY_ACK: _Rule(ZrtpFrameType.RELAY_ACK, _one_of(3), False),
    ZrtpMsgType.PING_ACK: _Rule(ZrtpFrameType.PING_ACK, _one_of(9), False),
}


def _invalid(text: str) -> RtpException:
    return RtpException(RtpError.INVALID_VALUE, text)


def classify_message(data: BytesLike) -> ZrtpFrameType:
    """Validate a received ZRTP packet and return its frame type.

    Raises RtpException with INVALID_VALUE for malformed packets and
    NOT_SUPPORTED for unknown types or a failed CRC check.
    """
    data = bytes(data)
    if len(data) < MESSAGE_HEADER_SIZE:
        raise _invalid("received ZRTP packet is too small for mandatory structures")

    header = parse_message_header(data)
    if len(data) != header_length_to_packet(header.length):
        raise _invalid("ZRTP header size does not match received data amount")
    if header.version != 0:
        raise _invalid("received invalid ZRTP header version")
    if header.magic != ZRTP_MAGIC:
        raise _invalid("received invalid ZRTP magic")
    if header.preamble != ZRTP_PREAMBLE:
        raise _invalid("received invalid ZRTP preamble")

    try:
        msg_type = ZrtpMsgType.from_block(header.msgblock)
    except ValueError:
        msg_type = None
    rule = _RULES.get(msg_type) if msg_type is not None else None
    if rule is None:
        raise RtpException(
            RtpError.NOT_SUPPORTED, f"unknown message type received: {header.msgblock!r}"
        )

    if not rule.accepts(header.length):
        raise _invalid(f"ZRTP {msg_type.name} length field is wrong: {header.length}")

    if rule.check_crc:
        crc = int.from_bytes(data[-CRC_SIZE:], CRC_BYTEORDER)
        if not verify_crc32(data[:-CRC_SIZE], crc):
            raise RtpException(RtpError.NOT_SUPPORTED, f"CRC mismatch in ZRTP {msg_type.name}")

    return rule.frame_type


class ZrtpReceiver:
    """Reads ZRTP messages from a socket and keeps the last one received."""

    def __init__(self, buffer_size: int = 1024) -> None:
        self.buffer_size = buffer_size
        self._message = b""

    @property
    def received_length(self) -> int:
        """Size of the last received message in bytes."""
        return len(self._message)

    def recv_msg(self, sock, timeout: int, recv_flags: int = 0) -> ZrtpFrameType:
        """Receive one message, waiting at most ``timeout`` ms (forever if not positive)."""
        self._message = b""
        try:
            sock.settimeout(timeout / 1000 if timeout > 0 else None)
        except OSError as exc:
            raise RtpException(RtpError.GENERIC_ERROR, f"cannot set timeout: {exc}") from exc

        try:
            data = sock.recv(self.buffer_size, recv_flags)
        except (TimeoutError, BlockingIOError, InterruptedError) as exc:
            raise RtpException(RtpError.INTERRUPTED, "no ZRTP message received") from exc
        except OSError as exc:
            raise RtpException(RtpError.RECV_ERROR, f"recv failed: {exc}") from exc

        if len(data) < MESSAGE_HEADER_SIZE:
            raise _invalid("received ZRTP packet is too small for mandatory structures")

        self._message = bytes(data)
        return classify_message(self._message)

    def get_msg(self, size: int) -> bytes:
        """Return the last received message, truncated to ``size`` bytes."""
        if size <= 0:
            raise _invalid(f"buffer size must be positive, got {size}")
        return self._message[:size]
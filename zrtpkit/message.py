"""ZRTP message framing: the common header, CRC-32C and the message base class."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Tuple, Union

from .defines import ZRTP_MAGIC, ZRTP_PREAMBLE
from .types import RtpError, RtpException

if TYPE_CHECKING:
    from .defines import ZrtpSession

ZRTP_HEADER_SIZE = 12
MESSAGE_HEADER_SIZE = 24
CRC_SIZE = 4
CRC_BYTEORDER = "little"

# version/seq and preamble/length are kept in host (little-endian) order,
# magic and SSRC in network order, the type block as raw ASCII.
_LEAD = struct.Struct("<HH")
_IDS = struct.Struct(">II")
_TAIL = struct.Struct("<HH8s")

BytesLike = Union[bytes, bytearray, memoryview]


def _make_crc_table() -> Tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ 0x82F63B78 if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _make_crc_table()


def crc32c(data: BytesLike) -> int:
    """Return the CRC-32C (Castagnoli) checksum of ``data``."""
    crc = 0xFFFFFFFF
    for byte in bytes(data):
        crc = _CRC_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


def verify_crc32(data: BytesLike, crc: int) -> bool:
    """Return True if ``crc`` is the CRC-32C of ``data``."""
    return crc32c(data) == crc


def header_length_to_packet(header_len: int) -> int:
    """Convert a header length field (32-bit words minus one) to a packet size in bytes."""
    return (header_len + 1) * 4 + ZRTP_HEADER_SIZE


def packet_to_header_len(packet: int) -> int:
    """Convert a packet size in bytes to the value of the header length field."""
    if packet % 4 != 0:
        raise RtpException(
            RtpError.INVALID_VALUE,
            f"ZRTP message length is not divisible by 32-bit word: {packet}",
        )
    if packet < ZRTP_HEADER_SIZE + CRC_SIZE:
        raise RtpException(RtpError.INVALID_VALUE, f"ZRTP message too short: {packet}")
    return ((packet - ZRTP_HEADER_SIZE) // 4 - 1) & 0xFFFF


def _check_range(name: str, value: int, bits: int) -> None:
    if not 0 <= value < (1 << bits):
        raise RtpException(RtpError.INVALID_VALUE, f"{name} does not fit in {bits} bits: {value}")


def _as_block(msgblock: Union[str, BytesLike]) -> bytes:
    block = msgblock.encode("ascii") if isinstance(msgblock, str) else bytes(msgblock)
    if len(block) != 8:
        raise RtpException(
            RtpError.INVALID_VALUE, f"message type block must be 8 bytes, got {len(block)}"
        )
    return block


@dataclass
class ZrtpMessageHeader:
    """The 24-byte start of every ZRTP message: packet header, preamble, length and type."""

    version: int = 0
    seq: int = 0
    magic: int = ZRTP_MAGIC
    ssrc: int = 0
    preamble: int = ZRTP_PREAMBLE
    length: int = 0
    msgblock: bytes = field(default_factory=lambda: bytes(8))

    def to_bytes(self) -> bytes:
        """Encode the header as it appears at the start of a message."""
        for name, bits in (
            ("version", 4),
            ("seq", 16),
            ("magic", 32),
            ("ssrc", 32),
            ("preamble", 16),
            ("length", 16),
        ):
            _check_range(name, getattr(self, name), bits)
        block = _as_block(self.msgblock)
        return (
            _LEAD.pack(self.version, self.seq)
            + _IDS.pack(self.magic, self.ssrc)
            + _TAIL.pack(self.preamble, self.length, block)
        )


def parse_message_header(data: BytesLike) -> ZrtpMessageHeader:
    """Decode the message header from the start of ``data``."""
    if len(data) < MESSAGE_HEADER_SIZE:
        raise RtpException(
            RtpError.INVALID_VALUE,
            f"ZRTP message header needs {MESSAGE_HEADER_SIZE} bytes, got {len(data)}",
        )
    first, seq = _LEAD.unpack_from(data, 0)
    magic, ssrc = _IDS.unpack_from(data, _LEAD.size)
    preamble, length, block = _TAIL.unpack_from(data, _LEAD.size + _IDS.size)
    return ZrtpMessageHeader(
        version=first & 0x0F,
        seq=seq,
        magic=magic,
        ssrc=ssrc,
        preamble=preamble,
        length=length,
        msgblock=block,
    )


class ZrtpMessage:
    """Base of ZRTP messages: owns the outgoing frame and a received frame."""

    def __init__(self) -> None:
        self.frame = bytearray()
        self.rframe = bytearray()

    @property
    def length(self) -> int:
        """Size of the outgoing frame in bytes."""
        return len(self.frame)

    @property
    def rlength(self) -> int:
        """Size of the received frame in bytes."""
        return len(self.rframe)

    def __bytes__(self) -> bytes:
        return bytes(self.frame)

    def send_msg(self, sock, addr) -> int:
        """Send the frame to ``addr`` over ``sock``; return the number of bytes sent."""
        try:
            return sock.sendto(bytes(self.frame), addr)
        except OSError as exc:
            raise RtpException(RtpError.SEND_ERROR, f"failed to send ZRTP message: {exc}") from exc

    def _allocate_frame(self, size: int) -> None:
        self.frame = bytearray(size)

    def _allocate_rframe(self, size: int) -> None:
        self.rframe = bytearray(size)

    def _set_zrtp_start_base(
        self, msgblock: Union[str, BytesLike], ssrc: int = 0, seq: int = 0
    ) -> ZrtpMessageHeader:
        if len(self.frame) < MESSAGE_HEADER_SIZE + CRC_SIZE:
            raise RtpException(
                RtpError.INVALID_VALUE, f"frame of {len(self.frame)} bytes cannot hold a message"
            )
        header = ZrtpMessageHeader(
            seq=seq,
            ssrc=ssrc,
            length=packet_to_header_len(len(self.frame)),
            msgblock=_as_block(msgblock),
        )
        self.frame[:MESSAGE_HEADER_SIZE] = header.to_bytes()
        return header

    def _set_zrtp_start(
        self, session: "ZrtpSession", msgblock: Union[str, BytesLike]
    ) -> ZrtpMessageHeader:
        header = self._set_zrtp_start_base(msgblock, ssrc=session.ssrc, seq=session.seq)
        session.seq = (session.seq + 1) & 0xFFFF
        return header

    def _set_crc(self) -> int:
        crc = crc32c(self.frame[:-CRC_SIZE])
        self.frame[-CRC_SIZE:] = crc.to_bytes(CRC_SIZE, CRC_BYTEORDER)
        return crc
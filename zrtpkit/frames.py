"""RTP and RTCP frame structures and the RTP fixed header codec."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .types import RtpError, RtpException

_RTP_HEADER = struct.Struct("!BBHII")
RTP_HEADER_SIZE = _RTP_HEADER.size


class RtcpFrameType(enum.IntEnum):
    """RTCP packet types."""

    SR = 200
    RR = 201
    SDES = 202
    BYE = 203
    APP = 204
    RTPFB = 205
    PSFB = 206


class RtcpPsfbFmt(enum.IntEnum):
    """Payload-specific feedback message formats."""

    PLI = 1
    SLI = 2
    RPSI = 3
    FIR = 4
    TSTR = 5
    AFB = 15


class RtcpRtpfbFmt(enum.IntEnum):
    """Transport-layer feedback message formats."""

    NACK = 1


def _check_range(name: str, value: int, bits: int) -> None:
    if not 0 <= value < (1 << bits):
        raise RtpException(RtpError.INVALID_VALUE, f"{name} does not fit in {bits} bits: {value}")


@dataclass
class RtpHeader:
    """Fixed 12-byte RTP header (RFC 3550 section 5.1)."""

    version: int = 2
    padding: int = 0
    ext: int = 0
    cc: int = 0
    marker: int = 0
    payload: int = 0
    seq: int = 0
    timestamp: int = 0
    ssrc: int = 0

    def to_bytes(self) -> bytes:
        """Encode the header in network byte order."""
        for name, bits in (
            ("version", 2),
            ("padding", 1),
            ("ext", 1),
            ("cc", 4),
            ("marker", 1),
            ("payload", 7),
            ("seq", 16),
            ("timestamp", 32),
            ("ssrc", 32),
        ):
            _check_range(name, getattr(self, name), bits)
        first = (self.version << 6) | (self.padding << 5) | (self.ext << 4) | self.cc
        second = (self.marker << 7) | self.payload
        return _RTP_HEADER.pack(first, second, self.seq, self.timestamp, self.ssrc)


def parse_rtp_header(data: Union[bytes, bytearray, memoryview]) -> RtpHeader:
    """Decode the fixed RTP header from the start of ``data``."""
    if len(data) < RTP_HEADER_SIZE:
        raise RtpException(
            RtpError.INVALID_VALUE,
            f"RTP header needs {RTP_HEADER_SIZE} bytes, got {len(data)}",
        )
    first, second, seq, timestamp, ssrc = _RTP_HEADER.unpack_from(data)
    return RtpHeader(
        version=first >> 6,
        padding=(first >> 5) & 1,
        ext=(first >> 4) & 1,
        cc=first & 0x0F,
        marker=second >> 7,
        payload=second & 0x7F,
        seq=seq,
        timestamp=timestamp,
        ssrc=ssrc,
    )


@dataclass
class ExtHeader:
    """RTP header extension."""

    type: int = 0
    len: int = 0
    data: bytes = b""


@dataclass
class RtpFrame:
    """A received or outgoing RTP packet (RFC 3550 section 5)."""

    header: RtpHeader = field(default_factory=RtpHeader)
    csrc: List[int] = field(default_factory=list)
    ext: Optional[ExtHeader] = None
    padding_len: int = 0
    payload: bytes = b""
    dgram: bytes = b""

    @property
    def payload_len(self) -> int:
        """Length of the payload in bytes."""
        return len(self.payload)

    @property
    def dgram_size(self) -> int:
        """Size of the whole UDP datagram."""
        return len(self.dgram)


@dataclass
class RtcpHeader:
    """Header shared by all RTCP packets (RFC 3550 section 6)."""

    version: int = 0
    padding: int = 0
    count: int = 0
    pkt_type: int = 0
    length: int = 0

    @property
    def pkt_subtype(self) -> int:
        """Subtype of an APP packet; shares storage with ``count``."""
        return self.count

    @pkt_subtype.setter
    def pkt_subtype(self, value: int) -> None:
        self.count = value

    @property
    def fmt(self) -> int:
        """Feedback message type; shares storage with ``count``."""
        return self.count

    @fmt.setter
    def fmt(self, value: int) -> None:
        self.count = value


@dataclass
class RtcpSenderInfo:
    """Sender information block of a Sender Report."""

    ntp_msw: int = 0
    ntp_lsw: int = 0
    rtp_ts: int = 0
    pkt_cnt: int = 0
    byte_cnt: int = 0


@dataclass
class RtcpReportBlock:
    """Reception report block."""

    ssrc: int = 0
    fraction: int = 0
    lost: int = 0
    last_seq: int = 0
    jitter: int = 0
    lsr: int = 0
    dlsr: int = 0


@dataclass
class RtcpReceiverReport:
    """Receiver Report (RFC 3550 section 6.4.2)."""

    header: RtcpHeader = field(default_factory=RtcpHeader)
    ssrc: int = 0
    report_blocks: List[RtcpReportBlock] = field(default_factory=list)


@dataclass
class RtcpSenderReport:
    """Sender Report (RFC 3550 section 6.4.1)."""

    header: RtcpHeader = field(default_factory=RtcpHeader)
    ssrc: int = 0
    sender_info: RtcpSenderInfo = field(default_factory=RtcpSenderInfo)
    report_blocks: List[RtcpReportBlock] = field(default_factory=list)


@dataclass
class RtcpSdesItem:
    """One SDES item (RFC 3550 section 6.5)."""

    type: int = 0
    data: bytes = b""

    @property
    def length(self) -> int:
        """Length of the item data in bytes."""
        return len(self.data)


@dataclass
class RtcpSdesChunk:
    """SDES chunk: items describing one source."""

    ssrc: int = 0
    items: List[RtcpSdesItem] = field(default_factory=list)


@dataclass
class RtcpSdesPacket:
    """Source description packet."""

    header: RtcpHeader = field(default_factory=RtcpHeader)
    chunks: List[RtcpSdesChunk] = field(default_factory=list)


@dataclass
class RtcpAppPacket:
    """Application-defined packet (RFC 3550 section 6.7)."""

    header: RtcpHeader = field(default_factory=RtcpHeader)
    ssrc: int = 0
    name: bytes = b"\x00\x00\x00\x00"
    payload: bytes = b""

    @property
    def payload_len(self) -> int:
        """Length of the payload in bytes."""
        return len(self.payload)


@dataclass
class RtcpFir:
    """Full Intra Request entry (RFC 5104 section 4.3.1)."""

    ssrc: int = 0
    seq: int = 0


@dataclass
class RtcpSli:
    """Slice Loss Indication entry (RFC 4585 section 6.3.2)."""

    first: int = 0
    num: int = 0
    picture_id: int = 0


@dataclass
class RtcpRpsi:
    """Reference Picture Selection Indication (RFC 4585 section 6.3.3)."""

    pb: int = 0
    pt: int = 0
    str: bytes = b""


@dataclass
class RtcpFbPacket:
    """Feedback message (RFC 4585 section 6.1)."""

    header: RtcpHeader = field(default_factory=RtcpHeader)
    sender_ssrc: int = 0
    media_ssrc: int = 0
    items: List[Union[RtcpFir, RtcpSli, RtcpRpsi]] = field(default_factory=list)
    payload_len: int = 0
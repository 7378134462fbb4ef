"""ZRTP protocol constants and the state kept for one ZRTP session."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional

ZRTP_MAGIC = 0x5A525450
ZRTP_PREAMBLE = 0x505A


class ZrtpFrameType(enum.IntEnum):
    """Kinds of ZRTP message recognised by the receiver."""

    HELLO = 1
    HELLO_ACK = 2
    COMMIT = 3
    DH_PART1 = 4
    DH_PART2 = 5
    CONFIRM1 = 6
    CONFIRM2 = 7
    CONF2_ACK = 8
    SAS_RELAY = 9
    RELAY_ACK = 10
    ERROR = 11
    ERROR_ACK = 12
    PING_ACK = 13


def _block(text: bytes) -> int:
    return int.from_bytes(text, "little")


class ZrtpMsgType(enum.IntEnum):
    """Message type blocks, as the 8 ASCII bytes read as a little-endian integer."""

    HELLO = _block(b"Hello   ")
    HELLO_ACK = _block(b"HelloACK")
    COMMIT = _block(b"Commit  ")
    DH_PART1 = _block(b"DHPart1 ")
    DH_PART2 = _block(b"DHPart2 ")
    CONFIRM1 = _block(b"Confirm1")
    CONFIRM2 = _block(b"Confirm2")
    CONF2_ACK = _block(b"Conf2ACK")
    ERROR = _block(b"Error   ")
    ERROR_ACK = _block(b"ErrorACK")
    GO_CLEAR = _block(b"GoClear ")
    CLEAR_ACK = _block(b"ClearACK")
    SAS_RELAY = _block(b"SASrelay")
    RELAY_ACK = _block(b"RelayACK")
    PING = _block(b"Ping    ")
    PING_ACK = _block(b"PingACK ")

    @property
    def block(self) -> bytes:
        """The 8-byte message type block as sent on the wire."""
        return self.value.to_bytes(8, "little")

    @classmethod
    def from_block(cls, block: bytes) -> "ZrtpMsgType":
        """Look up a message type from its 8-byte block; ValueError if unknown."""
        if len(block) != 8:
            raise ValueError(f"message type block must be 8 bytes, got {len(block)}")
        return cls(_block(block))


class _AsciiCode(enum.IntEnum):
    @property
    def code(self) -> bytes:
        """The 4-byte ASCII code as sent on the wire."""
        return self.value.to_bytes(4, "little")


class HashAlgo(_AsciiCode):
    """Hash algorithms."""

    S256 = 0x36353253
    S384 = 0x34383353
    N256 = 0x3635324E
    N384 = 0x3438334E


class Cipher(_AsciiCode):
    """Cipher algorithms."""

    AES1 = 0x31534541
    AES2 = 0x32534541
    AES3 = 0x33534541
    TFS1 = 0x31534632
    TFS2 = 0x32534632
    TFS3 = 0x33534632


class AuthTag(_AsciiCode):
    """SRTP authentication tag types."""

    HS32 = 0x32335348
    HS80 = 0x30385348
    SK32 = 0x32334B53
    SK64 = 0x34364B53


class KeyAgreement(_AsciiCode):
    """Key agreement types."""

    DH3k = 0x6B334844
    DH2k = 0x6B324844
    EC25 = 0x35324345
    EC38 = 0x38334345
    EC52 = 0x32354345
    PRSH = 0x68737250
    MULT = 0x746C754D


class SasType(_AsciiCode):
    """Short authentication string rendering schemes."""

    B32 = 0x20323342
    B256 = 0x36353242


class ZrtpErrorCode(enum.IntEnum):
    """Error codes carried in ZRTP Error messages."""

    MALFORMED_PKT = 0x10
    SOFTWARE = 0x20
    VERSION = 0x30
    COMPONENT_MISMATCH = 0x40
    NS_HASH_TYPE = 0x51
    NS_CIPHER_TYPE = 0x52
    NS_PBKEY_EXCHANGE = 0x53
    NS_SRTP_AUTH_TAG = 0x54
    NS_SAS_RENDERING = 0x55
    NO_SHARED_SECRET = 0x56
    DHE_BAD_PVI = 0x61
    DHE_HVI_MISMATCH = 0x62
    UNTRUSTED_MITM = 0x63
    BAD_CONFIRM_MAC = 0x70
    NONCE_REUSE = 0x80
    EQUAL_ZID = 0x90
    SSRC_COLLISION = 0x91
    SERVICE_UNAVAILABLE = 0xA0
    PROTOCOL_TIMEOUT = 0xB0
    GOCLEAR_NOT_ALLOWED = 0x100


def _zeros(size: int):
    return field(default_factory=lambda: bytes(size))


@dataclass
class Capabilities:
    """Algorithms the remote end supports, gathered from its Hello."""

    version: int = 0
    hash_algos: List[int] = field(default_factory=list)
    cipher_algos: List[int] = field(default_factory=list)
    auth_tags: List[int] = field(default_factory=list)
    key_agreements: List[int] = field(default_factory=list)
    sas_types: List[int] = field(default_factory=list)


@dataclass
class Secrets:
    """Retained and shared secrets; only DH mode is used, so s1-s3 stay unset."""

    rs1: bytes = _zeros(32)
    rs2: bytes = _zeros(32)
    raux: bytes = _zeros(32)
    rpbx: bytes = _zeros(32)
    s0: bytes = _zeros(32)
    s1: Optional[bytes] = None
    s2: Optional[bytes] = None
    s3: Optional[bytes] = None


@dataclass
class StoredMessages:
    """Copies of sent or received messages kept for later hash calculations."""

    commit: Optional[bytes] = None
    hello: Optional[bytes] = None
    dh: Optional[bytes] = None


@dataclass
class KeyContext:
    """ZRTP keying material."""

    zrtp_sess_key: bytes = _zeros(32)
    sas_hash: bytes = _zeros(32)
    zrtp_keyi: bytes = _zeros(16)
    zrtp_keyr: bytes = _zeros(16)
    hmac_keyi: bytes = _zeros(32)
    hmac_keyr: bytes = _zeros(32)


@dataclass
class DhContext:
    """Diffie-Hellman key pair, remote public value and the shared result."""

    private_key: bytes = _zeros(22)
    public_key: bytes = _zeros(384)
    remote_public: bytes = _zeros(384)
    dh_result: bytes = _zeros(384)


@dataclass
class HashContext:
    """Hash chain values H0-H3 of both ends, hvi values and remote MACs."""

    o_hvi: bytes = _zeros(32)
    r_hvi: bytes = _zeros(32)
    o_hash: List[bytes] = field(default_factory=lambda: [bytes(32) for _ in range(4)])
    r_hash: List[bytes] = field(default_factory=lambda: [bytes(32) for _ in range(4)])
    r_mac: List[int] = field(default_factory=lambda: [0, 0, 0, 0])
    total_hash: bytes = _zeros(32)


@dataclass
class ZrtpSession:
    """Negotiated algorithms and all state of one ZRTP session."""

    role: int = 0
    ssrc: int = 0
    seq: int = 0
    hash_algo: int = 0
    cipher_algo: int = 0
    auth_tag_type: int = 0
    key_agreement_type: int = 0
    sas_type: int = 0
    capabilities: Capabilities = field(default_factory=Capabilities)
    hash_ctx: HashContext = field(default_factory=HashContext)
    dh_ctx: DhContext = field(default_factory=DhContext)
    key_ctx: KeyContext = field(default_factory=KeyContext)
    secrets: Secrets = field(default_factory=Secrets)
    o_zid: bytes = _zeros(12)
    r_zid: bytes = _zeros(12)
    l_msg: StoredMessages = field(default_factory=StoredMessages)
    r_msg: StoredMessages = field(default_factory=StoredMessages)
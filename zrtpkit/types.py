"""Error codes, media formats and flag sets shared by the RTP stack."""

from __future__ import annotations

import enum


class RtpError(enum.IntEnum):
    """Result codes; negative values are errors, positive ones are states."""

    MULTIPLE_PKTS_READY = 6
    PKT_READY = 5
    PKT_MODIFIED = 4
    PKT_NOT_HANDLED = 3
    INTERRUPTED = 2
    NOT_READY = 1
    OK = 0
    GENERIC_ERROR = -1
    SOCKET_ERROR = -2
    BIND_ERROR = -3
    INVALID_VALUE = -4
    SEND_ERROR = -5
    MEMORY_ERROR = -6
    SSRC_COLLISION = -7
    INITIALIZED = -8
    NOT_INITIALIZED = -9
    NOT_SUPPORTED = -10
    RECV_ERROR = -11
    TIMEOUT = -12
    NOT_FOUND = -13
    AUTH_TAG_MISMATCH = -14

    @property
    def is_error(self) -> bool:
        """True for the failure codes."""
        return self.value < 0


class RtpFormat(enum.IntEnum):
    """Payload formats a media stream can carry (RFC 3551 numbering)."""

    GENERIC = 0
    PCMU = 0
    GSM = 3
    G723 = 4
    DVI4_32 = 5
    DVI4_64 = 6
    LPC = 7
    PCMA = 8
    G722 = 9
    L16_STEREO = 10
    L16_MONO = 11
    G728 = 15
    DVI4_441 = 16
    DVI4_882 = 17
    G729 = 18
    G726_40 = 96
    G726_32 = 97
    G726_24 = 98
    G726_16 = 99
    G729D = 100
    G729E = 101
    GSM_EFR = 102
    L8 = 103
    VDVI = 104
    OPUS = 105
    H264 = 106
    H265 = 107
    H266 = 108
    ATLAS = 109


class RtpFlags(enum.IntFlag):
    """Flags accepted when pushing a frame."""

    NO_FLAGS = 0
    OBSOLETE = 1
    SLICE = 1
    COPY = 1 << 1
    NO_H26X_SCL = 1 << 2
    H26X_DO_NOT_AGGR = 1 << 3


class RceFlags(enum.IntFlag):
    """Flags enabling features of a media stream."""

    NO_FLAGS = 0
    OBSOLETE = 1
    SEND_ONLY = 1 << 1
    RECEIVE_ONLY = 1 << 2
    SRTP = 1 << 3
    SRTP_KMNGMNT_ZRTP = 1 << 4
    SRTP_KMNGMNT_USER = 1 << 5
    NO_H26X_PREPEND_SC = 1 << 6
    H26X_DEPENDENCY_ENFORCEMENT = 1 << 7
    FRAGMENT_GENERIC = 1 << 8
    SYSTEM_CALL_CLUSTERING = 1 << 9
    SRTP_NULL_CIPHER = 1 << 10
    SRTP_AUTHENTICATE_RTP = 1 << 11
    SRTP_REPLAY_PROTECTION = 1 << 12
    RTCP = 1 << 13
    HOLEPUNCH_KEEPALIVE = 1 << 14
    SRTP_KEYSIZE_192 = 1 << 15
    SRTP_KEYSIZE_256 = 1 << 16
    ZRTP_DIFFIE_HELLMAN_MODE = 1 << 17
    ZRTP_MULTISTREAM_MODE = 1 << 18
    FRAME_RATE = 1 << 19
    PACE_FRAGMENT_SENDING = 1 << 20
    RTCP_MUX = 1 << 21
    LAST = 1 << 22


class RccFlags(enum.IntEnum):
    """Configuration keys for a media stream."""

    NO_FLAGS = 0
    UDP_RCV_BUF_SIZE = 1
    UDP_SND_BUF_SIZE = 2
    RING_BUFFER_SIZE = 3
    PKT_MAX_DELAY = 4
    DYN_PAYLOAD_TYPE = 5
    CLOCK_RATE = 6
    MTU_SIZE = 7
    FPS_NUMERATOR = 8
    FPS_DENOMINATOR = 9
    SSRC = 10
    REMOTE_SSRC = 11
    SESSION_BANDWIDTH = 12
    POLL_TIMEOUT = 13
    MULTICAST_TTL = 15
    PACE_FRAG_NUMERATOR = 16
    PACE_FRAG_DENOMINATOR = 17
    LAST = 18


class RtpException(Exception):
    """Raised where an operation fails; carries the matching RtpError code."""

    def __init__(self, code, message=""):
        self.code = RtpError(code)
        self.message = message
        text = f"{self.code.name}: {message}" if message else self.code.name
        super().__init__(text)
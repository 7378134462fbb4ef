"""ZRTP discovery and commit messages: Hello, HelloACK, Commit and Error."""

from __future__ import annotations

import hashlib
import hmac
import os

from .defines import (
    AuthTag,
    Cipher,
    HashAlgo,
    KeyAgreement,
    SasType,
    ZrtpMsgType,
    ZrtpSession,
)
from .message import CRC_SIZE, MESSAGE_HEADER_SIZE, BytesLike, ZrtpMessage
from .types import RtpError, RtpException

ZRTP_VERSION = b"1.10"
CLIENT_ID = b"zrtpkit".ljust(16)

_MAC_SIZE = 8

# Hello layout: header, version, client id, H3, ZID, flag word, MAC, CRC.
_HELLO_VERSION = MESSAGE_HEADER_SIZE
_HELLO_CLIENT = _HELLO_VERSION + 4
_HELLO_HASH = _HELLO_CLIENT + 16
_HELLO_ZID = _HELLO_HASH + 32
_HELLO_FLAGS = _HELLO_ZID + 12
_HELLO_MAC = _HELLO_FLAGS + 4
HELLO_SIZE = _HELLO_MAC + _MAC_SIZE + CRC_SIZE
_HELLO_MAC_COVERAGE = 81

HELLO_ACK_SIZE = MESSAGE_HEADER_SIZE + CRC_SIZE

# Commit layout: header, H2, ZID, five algorithm codes, hvi, MAC, CRC.
_COMMIT_HASH = MESSAGE_HEADER_SIZE
_COMMIT_ZID = _COMMIT_HASH + 32
_COMMIT_HASH_ALGO = _COMMIT_ZID + 12
_COMMIT_CIPHER = _COMMIT_HASH_ALGO + 4
_COMMIT_AUTH_TAG = _COMMIT_CIPHER + 4
_COMMIT_KEY_AGREEMENT = _COMMIT_AUTH_TAG + 4
_COMMIT_SAS = _COMMIT_KEY_AGREEMENT + 4
_COMMIT_HVI = _COMMIT_SAS + 4
_COMMIT_MAC = _COMMIT_HVI + 32
COMMIT_SIZE = _COMMIT_MAC + _MAC_SIZE + CRC_SIZE

_ERROR_CODE = MESSAGE_HEADER_SIZE
ERROR_SIZE = _ERROR_CODE + 4 + CRC_SIZE


def _truncated_mac(key: bytes, data: BytesLike) -> bytes:
    return hmac.new(bytes(key), bytes(data), hashlib.sha256).digest()[:_MAC_SIZE]


def _u32(data: BytesLike, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 4], "little")


def _put_u32(frame: bytearray, offset: int, value: int) -> None:
    frame[offset:offset + 4] = (int(value) & 0xFFFFFFFF).to_bytes(4, "little")


def _require(data: BytesLike, size: int, name: str) -> bytes:
    data = bytes(data)
    if len(data) < size:
        raise RtpException(
            RtpError.INVALID_VALUE, f"ZRTP {name} needs {size} bytes, got {len(data)}"
        )
    return data


class Hello(ZrtpMessage):
    """Hello message announcing our version, client id, H3 and ZID."""

    def __init__(self, session: ZrtpSession) -> None:
        super().__init__()
        self._allocate_frame(HELLO_SIZE)
        self._set_zrtp_start(session, ZrtpMsgType.HELLO.block)

        frame = self.frame
        frame[_HELLO_VERSION:_HELLO_CLIENT] = ZRTP_VERSION
        frame[_HELLO_CLIENT:_HELLO_HASH] = CLIENT_ID
        frame[_HELLO_HASH:_HELLO_ZID] = session.hash_ctx.o_hash[3][:32]
        frame[_HELLO_ZID:_HELLO_FLAGS] = session.o_zid[:12]
        # Only the mandatory algorithms are used, so every flag and count is zero.
        _put_u32(frame, _HELLO_FLAGS, 0)

        frame[_HELLO_MAC:_HELLO_MAC + _MAC_SIZE] = _truncated_mac(
            session.hash_ctx.o_hash[2], frame[:_HELLO_MAC_COVERAGE]
        )
        self._set_crc()
        session.l_msg.hello = bytes(frame)

    def parse_msg(self, data: BytesLike, session: ZrtpSession) -> None:
        """Record the remote Hello's version, H3, MAC and ZID in ``session``."""
        data = _require(data, HELLO_SIZE, "Hello")
        self.rframe = bytearray(data)

        version = data[_HELLO_VERSION:_HELLO_CLIENT]
        session.capabilities.version = 110 if version == ZRTP_VERSION else 0

        caps = session.capabilities
        caps.hash_algos.append(HashAlgo.S256)
        caps.cipher_algos.append(Cipher.AES1)
        caps.auth_tags.append(AuthTag.HS32)
        caps.auth_tags.append(AuthTag.HS80)
        caps.key_agreements.append(KeyAgreement.DH3k)
        caps.sas_types.append(SasType.B32)

        session.hash_ctx.r_mac[3] = int.from_bytes(
            data[_HELLO_MAC:_HELLO_MAC + _MAC_SIZE], "little"
        )
        session.hash_ctx.r_hash[3] = data[_HELLO_HASH:_HELLO_ZID]
        session.r_zid = data[_HELLO_ZID:_HELLO_FLAGS]
        session.r_msg.hello = data


class HelloAck(ZrtpMessage):
    """HelloACK message acknowledging the remote Hello."""

    def __init__(self, session: ZrtpSession) -> None:
        super().__init__()
        self._allocate_frame(HELLO_ACK_SIZE)
        self._set_zrtp_start_base(ZrtpMsgType.HELLO_ACK.block, ssrc=session.ssrc)
        self._set_crc()


class Commit(ZrtpMessage):
    """Commit message choosing the algorithms and carrying hvi (or a nonce)."""

    def __init__(self, session: ZrtpSession) -> None:
        super().__init__()
        self._allocate_frame(COMMIT_SIZE)
        self._set_zrtp_start(session, ZrtpMsgType.COMMIT.block)

        frame = self.frame
        hash_ctx = session.hash_ctx
        frame[_COMMIT_HASH:_COMMIT_ZID] = hash_ctx.o_hash[2][:32]
        frame[_COMMIT_ZID:_COMMIT_HASH_ALGO] = session.o_zid[:12]

        if session.key_agreement_type == KeyAgreement.MULT:
            # Multistream mode uses a fresh random 128-bit nonce instead of hvi.
            hash_ctx.o_hvi = os.urandom(16) + bytes(16)
            frame[_COMMIT_HVI:_COMMIT_HVI + 16] = hash_ctx.o_hvi[:16]
        else:
            frame[_COMMIT_HVI:_COMMIT_MAC] = hash_ctx.o_hvi[:32]

        _put_u32(frame, _COMMIT_SAS, session.sas_type)
        _put_u32(frame, _COMMIT_HASH_ALGO, session.hash_algo)
        _put_u32(frame, _COMMIT_CIPHER, session.cipher_algo)
        _put_u32(frame, _COMMIT_AUTH_TAG, session.auth_tag_type)
        _put_u32(frame, _COMMIT_KEY_AGREEMENT, session.key_agreement_type)

        frame[_COMMIT_MAC:_COMMIT_MAC + _MAC_SIZE] = _truncated_mac(
            hash_ctx.o_hash[1], frame[:_COMMIT_MAC]
        )
        self._set_crc()
        session.l_msg.commit = bytes(frame)

    def parse_msg(self, data: BytesLike, session: ZrtpSession) -> None:
        """Adopt the remote Commit's algorithms and record its hvi, H2 and MAC."""
        data = _require(data, COMMIT_SIZE, "Commit")
        self.rframe = bytearray(data)

        session.sas_type = _u32(data, _COMMIT_SAS)
        session.hash_algo = _u32(data, _COMMIT_HASH_ALGO)
        session.cipher_algo = _u32(data, _COMMIT_CIPHER)
        session.auth_tag_type = _u32(data, _COMMIT_AUTH_TAG)
        session.key_agreement_type = _u32(data, _COMMIT_KEY_AGREEMENT)

        hash_ctx = session.hash_ctx
        if session.key_agreement_type == KeyAgreement.MULT:
            hash_ctx.r_hvi = data[_COMMIT_HVI:_COMMIT_HVI + 16] + bytes(hash_ctx.r_hvi[16:32])
        else:
            hash_ctx.r_hvi = data[_COMMIT_HVI:_COMMIT_MAC]

        hash_ctx.r_mac[2] = int.from_bytes(data[_COMMIT_MAC:_COMMIT_MAC + _MAC_SIZE], "little")
        hash_ctx.r_hash[2] = data[_COMMIT_HASH:_COMMIT_ZID]
        session.r_msg.commit = data


class ErrorMessage(ZrtpMessage):
    """Error message carrying one ZRTP error code."""

    def __init__(self, error_code: int) -> None:
        super().__init__()
        self.error_code = int(error_code)
        self._allocate_frame(ERROR_SIZE)
        self._set_zrtp_start_base(ZrtpMsgType.ERROR.block)
        _put_u32(self.frame, _ERROR_CODE, self.error_code)
        self._set_crc()

    def parse_msg(self, data: BytesLike, session: ZrtpSession) -> int:
        """Return the error code carried by a received Error message."""
        data = _require(data, ERROR_SIZE, "Error")
        self.rframe = bytearray(data)
        return _u32(data, _ERROR_CODE)
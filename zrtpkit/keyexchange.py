"""ZRTP key exchange and confirmation messages: DHPart1/2, Confirm1/2 and Conf2ACK."""

from __future__ import annotations

import hashlib
import hmac
import os

from cryptography.hazmat.primitives.ciphers import Cipher as _CipherCtx
from cryptography.hazmat.primitives.ciphers import algorithms, modes

from .defines import ZrtpMsgType, ZrtpSession
from .message import CRC_SIZE, MESSAGE_HEADER_SIZE, BytesLike, ZrtpMessage
from .types import RtpError, RtpException

_MAC_SIZE = 8
_ID_SIZE = 8
PUBLIC_KEY_SIZE = 384

# DHPartN layout: header, H1, rs1ID, rs2ID, auxsecretID, pbxsecretID, pvr/pvi, MAC, CRC.
_DH_HASH = MESSAGE_HEADER_SIZE
_DH_RS1 = _DH_HASH + 32
_DH_RS2 = _DH_RS1 + _ID_SIZE
_DH_AUX = _DH_RS2 + _ID_SIZE
_DH_PBX = _DH_AUX + _ID_SIZE
_DH_PK = _DH_PBX + _ID_SIZE
_DH_MAC = _DH_PK + PUBLIC_KEY_SIZE
DH_SIZE = _DH_MAC + _MAC_SIZE + CRC_SIZE

_DH_PARTS = {
    1: (ZrtpMsgType.DH_PART1, b"Responder"),
    2: (ZrtpMsgType.DH_PART2, b"Initiator"),
}

# Confirm layout: header, confirm_mac, CFB IV, then the encrypted part
# (H0, flag word, cache expiration), then CRC.
_CONFIRM_MAC = MESSAGE_HEADER_SIZE
_CONFIRM_IV = _CONFIRM_MAC + _MAC_SIZE
_CONFIRM_HASH = _CONFIRM_IV + 16
_CONFIRM_FLAGS = _CONFIRM_HASH + 32
_CONFIRM_CACHE = _CONFIRM_FLAGS + 4
_CONFIRM_END = _CONFIRM_CACHE + 4
CONFIRM_SIZE = _CONFIRM_END + CRC_SIZE
_ENCRYPTED_SIZE = _CONFIRM_END - _CONFIRM_HASH

CONFACK_SIZE = MESSAGE_HEADER_SIZE + CRC_SIZE


def _truncated_mac(key: BytesLike, data: BytesLike) -> bytes:
    return hmac.new(bytes(key), bytes(data), hashlib.sha256).digest()[:_MAC_SIZE]


def _require(data: BytesLike, size: int, name: str) -> bytes:
    data = bytes(data)
    if len(data) < size:
        raise RtpException(
            RtpError.INVALID_VALUE, f"ZRTP {name} needs {size} bytes, got {len(data)}"
        )
    return data


def _check_part(part: int, name: str) -> None:
    if part not in (1, 2):
        raise RtpException(RtpError.INVALID_VALUE, f"{name} part must be 1 or 2, got {part}")


def _aes_cfb(key: BytesLike, iv: BytesLike) -> _CipherCtx:
    return _CipherCtx(algorithms.AES(bytes(key)), modes.CFB(bytes(iv)))


class DhKeyExchange(ZrtpMessage):
    """DHPart1 (responder) or DHPart2 (initiator) message carrying our public value."""

    def __init__(self, session: ZrtpSession, part: int) -> None:
        super().__init__()
        _check_part(part, "DHPart")
        msg_type, role = _DH_PARTS[part]
        self.part = part

        self._allocate_frame(DH_SIZE)
        self._set_zrtp_start(session, msg_type.block)

        frame = self.frame
        hash_ctx = session.hash_ctx
        secrets = session.secrets
        frame[_DH_HASH:_DH_RS1] = hash_ctx.o_hash[1][:32]

        # Secret identifiers, truncated to 64 bits (RFC 6189 section 4.3.1).
        frame[_DH_RS1:_DH_RS2] = _truncated_mac(secrets.rs1, role)
        frame[_DH_RS2:_DH_AUX] = _truncated_mac(secrets.rs2, role)
        frame[_DH_AUX:_DH_PBX] = _truncated_mac(secrets.raux, hash_ctx.o_hash[3][:32])
        frame[_DH_PBX:_DH_PK] = _truncated_mac(secrets.rpbx, role)

        public_key = bytes(session.dh_ctx.public_key)
        if len(public_key) != PUBLIC_KEY_SIZE:
            raise RtpException(
                RtpError.INVALID_VALUE,
                f"public key must be {PUBLIC_KEY_SIZE} bytes, got {len(public_key)}",
            )
        frame[_DH_PK:_DH_MAC] = public_key

        frame[_DH_MAC:_DH_MAC + _MAC_SIZE] = _truncated_mac(hash_ctx.o_hash[0], frame[:_DH_MAC])
        self._set_crc()
        session.l_msg.dh = bytes(frame)

    def parse_msg(self, data: BytesLike, session: ZrtpSession) -> None:
        """Record the remote public value, H1 and MAC of a received DHPartN in ``session``."""
        data = _require(data, DH_SIZE, "DHPart")
        self.rframe = bytearray(data)

        session.dh_ctx.remote_public = data[_DH_PK:_DH_MAC]
        # Only DH mode is supported, so the retained secrets never match.
        session.secrets.s1 = None
        session.secrets.s2 = None
        session.secrets.s3 = None

        hash_ctx = session.hash_ctx
        hash_ctx.r_mac[1] = int.from_bytes(data[_DH_MAC:_DH_MAC + _MAC_SIZE], "little")
        hash_ctx.r_hash[1] = data[_DH_HASH:_DH_RS1]
        session.r_msg.dh = data


class Confirm(ZrtpMessage):
    """Confirm1 (responder) or Confirm2 (initiator) message with encrypted H0."""

    def __init__(self, session: ZrtpSession, part: int) -> None:
        super().__init__()
        _check_part(part, "Confirm")
        self.part = part

        self._allocate_frame(CONFIRM_SIZE)
        msg_type = ZrtpMsgType.CONFIRM1 if part == 1 else ZrtpMsgType.CONFIRM2
        self._set_zrtp_start(session, msg_type.block)

        keys = session.key_ctx
        if part == 1:
            aes_key, hmac_key = keys.zrtp_keyr, keys.hmac_keyr
        else:
            aes_key, hmac_key = keys.zrtp_keyi, keys.hmac_keyi

        frame = self.frame
        iv = os.urandom(16)
        frame[_CONFIRM_IV:_CONFIRM_HASH] = iv

        # Flags, signature length and cache expiration are all zero.
        plain = bytes(session.hash_ctx.o_hash[0][:32]).ljust(32, b"\x00") + bytes(8)
        encryptor = _aes_cfb(aes_key, iv).encryptor()
        encrypted = encryptor.update(plain) + encryptor.finalize()
        frame[_CONFIRM_HASH:_CONFIRM_END] = encrypted

        frame[_CONFIRM_MAC:_CONFIRM_IV] = _truncated_mac(hmac_key, encrypted)
        self._set_crc()

    def parse_msg(self, data: BytesLike, session: ZrtpSession) -> None:
        """Verify and decrypt a received Confirm, saving the remote H0 in ``session``.

        Raises RtpException with INVALID_VALUE if the confirm MAC does not match.
        """
        data = _require(data, CONFIRM_SIZE, "Confirm")

        keys = session.key_ctx
        block = data[MESSAGE_HEADER_SIZE - 8:MESSAGE_HEADER_SIZE]
        if block == ZrtpMsgType.CONFIRM1.block:
            aes_key, hmac_key = keys.zrtp_keyr, keys.hmac_keyr
        else:
            aes_key, hmac_key = keys.zrtp_keyi, keys.hmac_keyi

        encrypted = data[_CONFIRM_HASH:_CONFIRM_END]
        expected = _truncated_mac(hmac_key, encrypted)
        received = data[_CONFIRM_MAC:_CONFIRM_IV]
        if not hmac.compare_digest(expected, received):
            raise RtpException(RtpError.INVALID_VALUE, "Confirm MAC does not match")

        iv = data[_CONFIRM_IV:_CONFIRM_HASH]
        decryptor = _aes_cfb(aes_key, iv).decryptor()
        plain = decryptor.update(encrypted) + decryptor.finalize()

        rframe = bytearray(data)
        rframe[_CONFIRM_HASH:_CONFIRM_END] = plain
        self.rframe = rframe

        session.hash_ctx.r_hash[0] = plain[:32]
        session.hash_ctx.r_mac[0] = 0


class ConfAck(ZrtpMessage):
    """Conf2ACK message acknowledging the remote Confirm2."""

    def __init__(self, session: ZrtpSession) -> None:
        super().__init__()
        self._allocate_frame(CONFACK_SIZE)
        self._set_zrtp_start(session, ZrtpMsgType.CONF2_ACK.block)
        self._set_crc()

    def parse_msg(self, receiver, session: ZrtpSession) -> None:
        """Copy the message last received by ``receiver`` into the received frame."""
        self._allocate_rframe(CONFACK_SIZE)
        try:
            message = receiver.get_msg(CONFACK_SIZE)
        except RtpException as exc:
            raise RtpException(
                RtpError.INVALID_VALUE, "failed to get message from ZRTP receiver"
            ) from exc
        self.rframe[:len(message)] = message
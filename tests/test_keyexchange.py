import pytest

from zrtpkit.defines import ZrtpFrameType, ZrtpMsgType, ZrtpSession
from zrtpkit.keyexchange import (
    CONFACK_SIZE,
    CONFIRM_SIZE,
    DH_SIZE,
    ConfAck,
    Confirm,
    DhKeyExchange,
)
from zrtpkit.message import MESSAGE_HEADER_SIZE, crc32c
from zrtpkit.receiver import ZrtpReceiver, classify_message
from zrtpkit.types import RtpError, RtpException


def _session(ssrc=0x1234) -> ZrtpSession:
    session = ZrtpSession(ssrc=ssrc)
    session.hash_ctx.o_hash = [bytes([i + 1]) * 32 for i in range(4)]
    session.dh_ctx.public_key = bytes(range(256)) + bytes(range(128))
    session.key_ctx.zrtp_keyi = b"I" * 16
    session.key_ctx.zrtp_keyr = b"R" * 16
    session.key_ctx.hmac_keyi = b"i" * 32
    session.key_ctx.hmac_keyr = b"r" * 32
    return session


def _block(frame) -> bytes:
    return bytes(frame[MESSAGE_HEADER_SIZE - 8:MESSAGE_HEADER_SIZE])


class _FakeSocket:
    def __init__(self, payload: bytes) -> None:
        self.payload = payload
        self.timeout = None

    def settimeout(self, value) -> None:
        self.timeout = value

    def recv(self, size, flags=0) -> bytes:
        return self.payload[:size]


@pytest.mark.parametrize(
    "part, block, frame_type",
    [
        (1, b"DHPart1 ", ZrtpFrameType.DH_PART1),
        (2, b"DHPart2 ", ZrtpFrameType.DH_PART2),
    ],
)
def test_dh_message_is_valid_on_the_wire(part, block, frame_type):
    msg = DhKeyExchange(_session(), part)
    assert len(msg.frame) == DH_SIZE
    assert _block(msg.frame) == block
    assert classify_message(bytes(msg)) == frame_type


def test_dh_crc_covers_frame():
    msg = DhKeyExchange(_session(), 1)
    crc = int.from_bytes(msg.frame[-4:], "little")
    assert crc == crc32c(msg.frame[:-4])


def test_dh_stores_local_copy_and_advances_seq():
    session = _session()
    msg = DhKeyExchange(session, 2)
    assert session.l_msg.dh == bytes(msg.frame)
    assert session.seq == 1


def test_dh_parts_use_different_secret_ids():
    first = DhKeyExchange(_session(), 1)
    second = DhKeyExchange(_session(), 2)
    rs1 = slice(MESSAGE_HEADER_SIZE + 32, MESSAGE_HEADER_SIZE + 40)
    assert first.frame[rs1] != second.frame[rs1]


def test_dh_round_trip_updates_remote_session():
    local = _session()
    msg = DhKeyExchange(local, 1)
    remote = ZrtpSession()
    remote.secrets.s1 = b"x"
    DhKeyExchange(remote, 2).parse_msg(bytes(msg), remote)
    assert remote.dh_ctx.remote_public == local.dh_ctx.public_key
    assert remote.hash_ctx.r_hash[1] == local.hash_ctx.o_hash[1]
    assert remote.r_msg.dh == bytes(msg.frame)
    assert remote.secrets.s1 is None
    mac = msg.frame[DH_SIZE - 12:DH_SIZE - 4]
    assert remote.hash_ctx.r_mac[1] == int.from_bytes(mac, "little")


@pytest.mark.parametrize("part", [0, 3])
def test_dh_rejects_bad_part(part):
    with pytest.raises(RtpException) as info:
        DhKeyExchange(_session(), part)
    assert info.value.code == RtpError.INVALID_VALUE


def test_dh_parse_rejects_short_data():
    msg = DhKeyExchange(_session(), 1)
    with pytest.raises(RtpException) as info:
        msg.parse_msg(bytes(msg)[:-1], ZrtpSession())
    assert info.value.code == RtpError.INVALID_VALUE


@pytest.mark.parametrize(
    "part, block, frame_type",
    [
        (1, b"Confirm1", ZrtpFrameType.CONFIRM1),
        (2, b"Confirm2", ZrtpFrameType.CONFIRM2),
    ],
)
def test_confirm_is_valid_on_the_wire(part, block, frame_type):
    msg = Confirm(_session(), part)
    assert len(msg.frame) == CONFIRM_SIZE
    assert _block(msg.frame) == block
    assert classify_message(bytes(msg)) == frame_type


def test_confirm_hash_is_encrypted():
    session = _session()
    msg = Confirm(session, 1)
    start = MESSAGE_HEADER_SIZE + 24
    assert bytes(msg.frame[start:start + 32]) != session.hash_ctx.o_hash[0]


def test_confirm_uses_fresh_iv():
    session = _session()
    iv = slice(MESSAGE_HEADER_SIZE + 8, MESSAGE_HEADER_SIZE + 24)
    messages = [Confirm(session, 1) for _ in range(3)]
    ivs = {bytes(msg.frame[iv]) for msg in messages}
    assert len(ivs) == 3
    assert all(len(value) == 16 for value in ivs)
    for msg in messages:
        remote = _session()
        msg.parse_msg(bytes(msg), remote)
        assert remote.hash_ctx.r_hash[0] == session.hash_ctx.o_hash[0]


@pytest.mark.parametrize("part", [1, 2])
def test_confirm_round_trip_recovers_h0(part):
    local = _session()
    msg = Confirm(local, part)
    remote = _session()
    remote.hash_ctx.r_mac[0] = 7
    Confirm(remote, part).parse_msg(bytes(msg), remote)
    assert remote.hash_ctx.r_hash[0] == local.hash_ctx.o_hash[0]
    assert remote.hash_ctx.r_mac[0] == 0


def test_confirm2_needs_only_initiator_keys():
    local = _session()
    msg = Confirm(local, 2)
    remote = _session()
    remote.key_ctx.zrtp_keyr = b"Z" * 16
    remote.key_ctx.hmac_keyr = b"z" * 32
    Confirm(remote, 2).parse_msg(bytes(msg), remote)
    assert remote.hash_ctx.r_hash[0] == local.hash_ctx.o_hash[0]


def test_confirm_tampered_mac_rejected():
    msg = Confirm(_session(), 1)
    data = bytearray(msg.frame)
    data[MESSAGE_HEADER_SIZE] ^= 0xFF
    remote = _session()
    with pytest.raises(RtpException) as info:
        msg.parse_msg(bytes(data), remote)
    assert info.value.code == RtpError.INVALID_VALUE
    assert remote.hash_ctx.r_hash[0] == bytes(32)


def test_confirm_wrong_hmac_key_rejected():
    msg = Confirm(_session(), 1)
    remote = _session()
    remote.key_ctx.hmac_keyr = b"q" * 32
    with pytest.raises(RtpException) as info:
        msg.parse_msg(bytes(msg), remote)
    assert info.value.code == RtpError.INVALID_VALUE


def test_confirm_rejects_bad_part():
    with pytest.raises(RtpException) as info:
        Confirm(_session(), 5)
    assert info.value.code == RtpError.INVALID_VALUE


def test_confack_is_valid_on_the_wire():
    session = _session()
    msg = ConfAck(session)
    assert len(msg.frame) == CONFACK_SIZE
    assert _block(msg.frame) == ZrtpMsgType.CONF2_ACK.block
    assert classify_message(bytes(msg)) == ZrtpFrameType.CONF2_ACK
    assert session.seq == 1


def test_confack_parse_copies_received_message():
    msg = ConfAck(_session())
    receiver = ZrtpReceiver()
    assert receiver.recv_msg(_FakeSocket(bytes(msg)), 100) == ZrtpFrameType.CONF2_ACK
    parsed = ConfAck(ZrtpSession())
    parsed.parse_msg(receiver, ZrtpSession())
    assert bytes(parsed.rframe) == bytes(msg.frame)


def test_confack_parse_without_message_leaves_zeros():
    parsed = ConfAck(ZrtpSession())
    parsed.parse_msg(ZrtpReceiver(), ZrtpSession())
    assert bytes(parsed.rframe) == bytes(CONFACK_SIZE)
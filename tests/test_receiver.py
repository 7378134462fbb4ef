import socket

import pytest

from zrtpkit.defines import ZrtpFrameType, ZrtpMsgType
from zrtpkit.message import (
    CRC_BYTEORDER,
    CRC_SIZE,
    ZrtpMessageHeader,
    crc32c,
    header_length_to_packet,
)
from zrtpkit.receiver import ZrtpReceiver, classify_message
from zrtpkit.types import RtpError, RtpException


def _packet(msg_type, words, *, good_crc=True, size=None, **fields):
    size = header_length_to_packet(words) if size is None else size
    header = ZrtpMessageHeader(msgblock=msg_type.block, length=words, **fields).to_bytes()
    body = header + bytes(size - len(header) - CRC_SIZE)
    crc = crc32c(body) if good_crc else crc32c(body) ^ 1
    return body + crc.to_bytes(CRC_SIZE, CRC_BYTEORDER)


class _FakeSocket:
    def __init__(self, datagrams=(), error=None):
        self.datagrams = list(datagrams)
        self.error = error
        self.timeouts = []
        self.flags = []

    def settimeout(self, value):
        self.timeouts.append(value)

    def recv(self, bufsize, flags=0):
        self.flags.append(flags)
        if self.error is not None:
            raise self.error
        return self.datagrams.pop(0)[:bufsize]


@pytest.mark.parametrize(
    "msg_type, words, expected",
    [
        (ZrtpMsgType.HELLO, 22, ZrtpFrameType.HELLO),
        (ZrtpMsgType.HELLO_ACK, 3, ZrtpFrameType.HELLO_ACK),
        (ZrtpMsgType.COMMIT, 25, ZrtpFrameType.COMMIT),
        (ZrtpMsgType.COMMIT, 27, ZrtpFrameType.COMMIT),
        (ZrtpMsgType.COMMIT, 29, ZrtpFrameType.COMMIT),
        (ZrtpMsgType.DH_PART1, 21, ZrtpFrameType.DH_PART1),
        (ZrtpMsgType.DH_PART2, 117, ZrtpFrameType.DH_PART2),
        (ZrtpMsgType.CONFIRM1, 19, ZrtpFrameType.CONFIRM1),
        (ZrtpMsgType.CONFIRM2, 19, ZrtpFrameType.CONFIRM2),
        (ZrtpMsgType.CONF2_ACK, 3, ZrtpFrameType.CONF2_ACK),
        (ZrtpMsgType.ERROR, 4, ZrtpFrameType.ERROR),
        (ZrtpMsgType.ERROR_ACK, 3, ZrtpFrameType.ERROR_ACK),
        (ZrtpMsgType.SAS_RELAY, 19, ZrtpFrameType.SAS_RELAY),
        (ZrtpMsgType.RELAY_ACK, 3, ZrtpFrameType.RELAY_ACK),
        (ZrtpMsgType.PING_ACK, 9, ZrtpFrameType.PING_ACK),
    ],
)
def test_classify_valid(msg_type, words, expected):
    assert classify_message(_packet(msg_type, words)) == expected


@pytest.mark.parametrize(
    "msg_type, words",
    [
        (ZrtpMsgType.HELLO, 21),
        (ZrtpMsgType.HELLO_ACK, 4),
        (ZrtpMsgType.COMMIT, 26),
        (ZrtpMsgType.DH_PART1, 20),
        (ZrtpMsgType.CONFIRM2, 18),
        (ZrtpMsgType.ERROR, 3),
        (ZrtpMsgType.PING_ACK, 8),
    ],
)
def test_classify_wrong_length_field(msg_type, words):
    with pytest.raises(RtpException) as info:
        classify_message(_packet(msg_type, words))
    assert info.value.code == RtpError.INVALID_VALUE


def test_classify_bad_crc():
    with pytest.raises(RtpException) as info:
        classify_message(_packet(ZrtpMsgType.HELLO, 22, good_crc=False))
    assert info.value.code == RtpError.NOT_SUPPORTED


def test_classify_error_skips_crc():
    packet = _packet(ZrtpMsgType.ERROR, 4, good_crc=False)
    assert classify_message(packet) == ZrtpFrameType.ERROR


@pytest.mark.parametrize("msg_type", [ZrtpMsgType.PING, ZrtpMsgType.GO_CLEAR])
def test_classify_unhandled_type(msg_type):
    with pytest.raises(RtpException) as info:
        classify_message(_packet(msg_type, 3))
    assert info.value.code == RtpError.NOT_SUPPORTED


def test_classify_unknown_block():
    header = ZrtpMessageHeader(msgblock=b"Bogus!!!", length=3).to_bytes()
    with pytest.raises(RtpException) as info:
        classify_message(header + bytes(CRC_SIZE))
    assert info.value.code == RtpError.NOT_SUPPORTED


@pytest.mark.parametrize(
    "fields",
    [{"version": 1}, {"magic": 0x01020304}, {"preamble": 0x1234}],
)
def test_classify_bad_header_fields(fields):
    with pytest.raises(RtpException) as info:
        classify_message(_packet(ZrtpMsgType.HELLO_ACK, 3, **fields))
    assert info.value.code == RtpError.INVALID_VALUE


def test_classify_size_mismatch():
    packet = _packet(ZrtpMsgType.HELLO_ACK, 3, size=header_length_to_packet(4))
    with pytest.raises(RtpException) as info:
        classify_message(packet)
    assert info.value.code == RtpError.INVALID_VALUE


def test_classify_too_short():
    with pytest.raises(RtpException) as info:
        classify_message(bytes(10))
    assert info.value.code == RtpError.INVALID_VALUE


def test_recv_msg_returns_type_and_keeps_message():
    packet = _packet(ZrtpMsgType.HELLO, 22, ssrc=99)
    sock = _FakeSocket([packet])
    receiver = ZrtpReceiver()
    assert receiver.recv_msg(sock, 250, 0) == ZrtpFrameType.HELLO
    assert sock.timeouts == [0.25]
    assert receiver.received_length == len(packet)
    assert receiver.get_msg(len(packet)) == packet


def test_recv_msg_without_timeout_blocks_and_passes_flags():
    sock = _FakeSocket([_packet(ZrtpMsgType.HELLO_ACK, 3)])
    receiver = ZrtpReceiver()
    receiver.recv_msg(sock, 0, socket.MSG_PEEK)
    assert sock.timeouts == [None]
    assert sock.flags == [socket.MSG_PEEK]


def test_get_msg_truncates():
    packet = _packet(ZrtpMsgType.CONF2_ACK, 3)
    receiver = ZrtpReceiver()
    receiver.recv_msg(_FakeSocket([packet]), 100, 0)
    assert receiver.get_msg(10) == packet[:10]
    assert receiver.get_msg(4096) == packet


def test_get_msg_rejects_zero_size():
    with pytest.raises(RtpException) as info:
        ZrtpReceiver().get_msg(0)
    assert info.value.code == RtpError.INVALID_VALUE


def test_recv_msg_short_packet_is_not_kept():
    receiver = ZrtpReceiver()
    with pytest.raises(RtpException) as info:
        receiver.recv_msg(_FakeSocket([bytes(8)]), 100, 0)
    assert info.value.code == RtpError.INVALID_VALUE
    assert receiver.received_length == 0


def test_recv_msg_invalid_packet_is_kept():
    packet = _packet(ZrtpMsgType.HELLO, 22, good_crc=False)
    receiver = ZrtpReceiver()
    with pytest.raises(RtpException) as info:
        receiver.recv_msg(_FakeSocket([packet]), 100, 0)
    assert info.value.code == RtpError.NOT_SUPPORTED
    assert receiver.get_msg(len(packet)) == packet


def test_recv_msg_timeout_is_interrupted():
    with pytest.raises(RtpException) as info:
        ZrtpReceiver().recv_msg(_FakeSocket(error=socket.timeout()), 10, 0)
    assert info.value.code == RtpError.INTERRUPTED


def test_recv_msg_socket_error():
    with pytest.raises(RtpException) as info:
        ZrtpReceiver().recv_msg(_FakeSocket(error=ConnectionResetError()), 10, 0)
    assert info.value.code == RtpError.RECV_ERROR


def test_recv_msg_respects_buffer_size():
    packet = _packet(ZrtpMsgType.HELLO, 22)
    receiver = ZrtpReceiver(buffer_size=len(packet) - 4)
    with pytest.raises(RtpException) as info:
        receiver.recv_msg(_FakeSocket([packet]), 10, 0)
    assert info.value.code == RtpError.INVALID_VALUE


@pytest.fixture
def udp_pair():
    receiver = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sender = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    receiver.bind(("127.0.0.1", 0))
    yield sender, receiver
    sender.close()
    receiver.close()


def test_recv_msg_over_udp(udp_pair):
    sender, receiver_sock = udp_pair
    packet = _packet(ZrtpMsgType.COMMIT, 29, ssrc=1234, seq=3)
    sender.sendto(packet, receiver_sock.getsockname())
    receiver = ZrtpReceiver()
    assert receiver.recv_msg(receiver_sock, 2000, 0) == ZrtpFrameType.COMMIT
    assert receiver.get_msg(receiver.received_length) == packet


def test_recv_msg_over_udp_times_out(udp_pair):
    _, receiver_sock = udp_pair
    with pytest.raises(RtpException) as info:
        ZrtpReceiver().recv_msg(receiver_sock, 20, 0)
    assert info.value.code == RtpError.INTERRUPTED
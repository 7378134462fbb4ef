# zrtpkit

Building blocks for the ZRTP key agreement (RFC 6189) that sets up SRTP
sessions. The package also has the RTP/RTCP types and timing helpers that go
with it. It builds, parses and validates the individual ZRTP messages and keeps
the values they carry in a `ZrtpSession`.

## Modules

- `zrtpkit.types` has the RTP result codes (`RtpError`), media formats
  (`RtpFormat`), push flags (`RtpFlags`), stream enable flags (`RceFlags`) and
  configuration keys (`RccFlags`). It also has `RtpException`, which is raised
  on failure. The exception's `code` attribute holds an `RtpError`.
- `zrtpkit.clock` has NTP timestamps (`ntp_now`, and `ntp_diff` and
  `ntp_diff_now`, which return milliseconds). It also has a monotonic clock in
  nanoseconds (`hrc_now`, and `hrc_diff` and `hrc_diff_now` in milliseconds,
  `hrc_diff_now_us` in microseconds).
- `zrtpkit.frames` has dataclasses for RTP and RTCP frames: `RtpHeader`,
  `RtpFrame`, `RtcpSenderReport`, `RtcpReceiverReport`, `RtcpSdesPacket`,
  `RtcpAppPacket`, `RtcpFbPacket` and others. `RtpHeader.to_bytes()` encodes the
  fixed 12-byte RTP header and `parse_rtp_header()` decodes it.
- `zrtpkit.defines` has the ZRTP enumerations: `ZrtpFrameType`, `ZrtpMsgType`,
  `HashAlgo`, `Cipher`, `AuthTag`, `KeyAgreement`, `SasType` and
  `ZrtpErrorCode`. It also has `ZrtpSession` and the state it holds:
  `Capabilities`, `Secrets`, `StoredMessages`, `KeyContext`, `DhContext` and
  `HashContext`.
- `zrtpkit.message` has the following:
  - `ZrtpMessageHeader` and `parse_message_header()` for the 24-byte message
    start.
  - `crc32c()` and `verify_crc32()`.
  - `header_length_to_packet()` and `packet_to_header_len()`.
  - The `ZrtpMessage` base class, whose `send_msg(sock, addr)` sends the frame
    with `sock.sendto`.
- `zrtpkit.receiver` has two things:
  - `classify_message(data)` validates a datagram and returns its
    `ZrtpFrameType`. It checks the size, version, magic, preamble, the length
    field for the message type and, where the type requires it, the CRC.
  - `ZrtpReceiver` reads one message from a socket with `recv_msg(sock,
    timeout, recv_flags)`, where the timeout is in milliseconds and a value
    that is not positive means wait forever. `get_msg(size)` returns the last
    message received, cut to `size` bytes.
- `zrtpkit.handshake` has the `Hello`, `HelloAck`, `Commit` and `ErrorMessage`
  messages.
- `zrtpkit.keyexchange` has the `DhKeyExchange` (part 1 or 2, for DHPart1 or
  DHPart2), `Confirm` (part 1 or 2) and `ConfAck` messages. Confirm messages
  are encrypted with AES-CFB from `cryptography`, and their MAC is checked when
  they are parsed.

Each message class builds its outgoing bytes in `frame` from a `ZrtpSession`.
Where the message has a `parse_msg` method, that method stores the values of a
received message in the session.

## Errors

`classify_message` and `ZrtpReceiver.recv_msg` raise `RtpException` when a
message fails. The `code` of the exception is one of these:

- `INVALID_VALUE` if the packet is malformed.
- `NOT_SUPPORTED` if the message type is unknown or the CRC does not match.
- `INTERRUPTED` if the receive timed out.
- `RECV_ERROR` for any other socket error.

`Confirm.parse_msg` raises `INVALID_VALUE` if the confirm MAC does not match.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from zrtpkit.defines import ZrtpSession, ZrtpFrameType
from zrtpkit.handshake import Hello
from zrtpkit.receiver import classify_message

session = ZrtpSession(ssrc=0x1234)
hello = Hello(session)

assert classify_message(hello.frame) is ZrtpFrameType.HELLO

remote = ZrtpSession()
Hello(remote).parse_msg(hello.frame, remote)
assert remote.capabilities.version == 110
```

## What it does not do

- It does not run the ZRTP protocol.
  - There is no state machine that decides which message to send next.
  - There is no Diffie-Hellman computation and no key derivation. The public
    value in `session.dh_ctx.public_key` (384 bytes) and the keys in
    `session.key_ctx` must be filled in by the caller.
- It does not encrypt media with SRTP.
- It does not manage RTP media streams.
- Hello messages advertise only the mandatory algorithms. When a Hello is
  parsed, the remote capabilities are set to those mandatory algorithms.
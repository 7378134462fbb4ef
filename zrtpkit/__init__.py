"""ZRTP message building, parsing and validation, with RTP/RTCP types and clock helpers."""

__version__ = "0.1.0"

__all__ = [
    "types",
    "clock",
    "frames",
    "defines",
    "message",
    "receiver",
    "handshake",
    "keyexchange",
]
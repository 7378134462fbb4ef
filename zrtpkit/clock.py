"""NTP wall-clock timestamps and a monotonic high-resolution clock."""

from __future__ import annotations

import time

_NTP_EPOCH_OFFSET = 2208988800
_U64 = (1 << 64) - 1


def ntp_now() -> int:
    """Return the current time as a 64-bit NTP timestamp."""
    ns = time.time_ns()
    seconds, rem_ns = divmod(ns, 1_000_000_000)
    usec = rem_ns // 1000
    fraction = (usec << 32) // 1_000_000
    return (((seconds + _NTP_EPOCH_OFFSET) << 32) + fraction) & _U64


def ntp_diff(ntp1: int, ntp2: int) -> int:
    """Return ntp1 - ntp2 in milliseconds."""
    return (((ntp1 - ntp2) * 1000) >> 32) & _U64


def ntp_diff_now(then: int) -> int:
    """Return the milliseconds elapsed since the NTP timestamp ``then``."""
    return ntp_diff(ntp_now(), then)


def hrc_now() -> int:
    """Return a monotonic clock reading in nanoseconds."""
    return time.monotonic_ns()


def hrc_diff(hrc1: int, hrc2: int) -> int:
    """Return hrc1 - hrc2 in milliseconds."""
    return (hrc1 - hrc2) // 1_000_000


def hrc_diff_now(then: int) -> int:
    """Return the milliseconds elapsed since ``then``."""
    return hrc_diff(hrc_now(), then)


def hrc_diff_now_us(then: int) -> int:
    """Return the microseconds elapsed since ``then``."""
    return (hrc_now() - then) // 1000
"""
Throughput arithmetic and formatting.

Pure functions -- no I/O, no side effects.
Everything here is deterministic and easy to unit-test.

Speeds follow the convention of the tool this project replaces: a
"megabit" is 1,048,576 bytes / 8, i.e. ``Mbps = MiB * 8 / seconds``.
"""
from __future__ import annotations

import statistics
from typing import Sequence

from .constants import BYTES_PER_MEBIBYTE, INSTANT_TRANSFER_MBPS


# ---------------------------------------------------------------------------
# Throughput
# ---------------------------------------------------------------------------

def mebibytes(num_bytes: int) -> float:
    return num_bytes / BYTES_PER_MEBIBYTE


def compute_speed_mbps(num_bytes: int, elapsed_seconds: float) -> float:
    """Megabits per second for *num_bytes* moved in *elapsed_seconds*.

    A zero (or negative, from a misbehaving clock) duration yields
    ``INSTANT_TRANSFER_MBPS`` rather than a division error.
    """
    if elapsed_seconds <= 0:
        return INSTANT_TRANSFER_MBPS
    return mebibytes(num_bytes) * 8 / elapsed_seconds


def calculate_mean(samples: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if not samples:
        return 0.0
    return statistics.fmean(samples)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_latency(latency_ms: float) -> str:
    """Human-readable latency string."""
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.0f} ms"


def format_size(num_bytes: int) -> str:
    if num_bytes >= BYTES_PER_MEBIBYTE:
        return f"{mebibytes(num_bytes):.1f} MB"
    return f"{num_bytes / 1024:.1f} KB"

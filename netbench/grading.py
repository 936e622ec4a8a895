"""
Verdict classification for a finished run.

The verdict depends on the average download throughput only.
"""
from __future__ import annotations

from enum import Enum
from typing import Tuple

from .constants import EXCELLENT_THRESHOLD_MBPS, GOOD_THRESHOLD_MBPS


class Verdict(Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    POOR = "Poor"


_STYLES = {
    Verdict.EXCELLENT: ("green", "Great performance! Your link is flying"),
    Verdict.GOOD: ("yellow", "Solid speeds for everyday use"),
    Verdict.POOR: ("red", "Slow link - check signal/router, or try a wired connection"),
}


def classify_verdict(average_download_mbps: float) -> Verdict:
    """> 25 Mbps is Excellent, > 10 Mbps is Good, anything else is Poor."""
    if average_download_mbps > EXCELLENT_THRESHOLD_MBPS:
        return Verdict.EXCELLENT
    if average_download_mbps > GOOD_THRESHOLD_MBPS:
        return Verdict.GOOD
    return Verdict.POOR


def verdict_style(verdict: Verdict) -> Tuple[str, str]:
    """Return (color, message) for displaying *verdict*."""
    return _STYLES[verdict]

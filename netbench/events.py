"""
Structured status events emitted by the measurement core.

The core never prints.  It calls an optional ``on_event`` callback with a
:class:`StatusEvent`; ``ui.dashboard`` turns those into coloured console
lines.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class EventKind(Enum):
    TRIAL_STARTED = "trial_started"
    PING_MEASURED = "ping_measured"
    DOWNLOAD_STARTED = "download_started"
    DOWNLOAD_RETRY = "download_retry"
    DOWNLOAD_MEASURED = "download_measured"
    UPLOAD_STARTED = "upload_started"
    UPLOAD_MEASURED = "upload_measured"
    TRIAL_FINISHED = "trial_finished"


@dataclass(frozen=True)
class StatusEvent:
    kind: EventKind
    trial: int = 0
    total_trials: int = 0
    value: float = 0.0          # ms for ping, Mbps for transfers
    attempt: int = 0
    max_attempts: int = 0
    message: str = ""


EventCallback = Callable[[StatusEvent], None]


def emit(callback: Optional[EventCallback], kind: EventKind, **fields) -> None:
    """Call *callback* with a new event, if there is a callback."""
    if callback is not None:
        callback(StatusEvent(kind=kind, **fields))

"""
Transfer progress reporting.

``advance()`` only bumps a counter; a separate asyncio tick task reads the
counter every ``tick_interval`` seconds and hands a snapshot to the renderer.
The two never share anything else, so the writer (download chunk loop or
upload simulator) and the reader (tick) can run at unrelated cadences.

When the total size is unknown the reporter runs hidden: no tick task, no
rendering, but ``advance()`` is still accepted so callers need no branching.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from .constants import PROGRESS_TICK_INTERVAL


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time view of a transfer handed to renderers."""

    bytes_transferred: int
    total_bytes: Optional[int]
    elapsed: float

    @property
    def rate(self) -> float:
        """Average throughput so far in bytes per second."""
        if self.elapsed <= 0:
            return 0.0
        return self.bytes_transferred / self.elapsed

    @property
    def eta(self) -> Optional[float]:
        """Seconds remaining at the current rate, or None if unknown."""
        if self.total_bytes is None or self.rate <= 0:
            return None
        return max(self.total_bytes - self.bytes_transferred, 0) / self.rate

    @property
    def fraction(self) -> Optional[float]:
        if not self.total_bytes:
            return None
        return self.bytes_transferred / self.total_bytes


@dataclass
class ProgressState:
    """Monotonic byte counter, clamped to ``total_bytes`` when known."""

    total_bytes: Optional[int] = None
    bytes_transferred: int = 0
    started_at: float = field(default_factory=time.perf_counter)

    def advance(self, delta: int) -> int:
        if delta <= 0:
            return self.bytes_transferred
        value = self.bytes_transferred + delta
        if self.total_bytes is not None:
            value = min(value, self.total_bytes)
        self.bytes_transferred = value
        return value

    def snapshot(self, now: float) -> ProgressSnapshot:
        return ProgressSnapshot(
            bytes_transferred=self.bytes_transferred,
            total_bytes=self.total_bytes,
            elapsed=max(now - self.started_at, 0.0),
        )


class ProgressRenderer(Protocol):
    """Anything that can draw a progress snapshot (see ``ui.dashboard``)."""

    def update(self, snapshot: ProgressSnapshot) -> None: ...

    def close(self, snapshot: ProgressSnapshot, message: str, ok: bool) -> None: ...


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------

class ProgressReporter:
    """Progress handle owned by exactly one benchmark invocation."""

    def __init__(
        self,
        total: Optional[int],
        renderer: Optional[ProgressRenderer] = None,
        tick_interval: float = PROGRESS_TICK_INTERVAL,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        known = total is not None and total > 0
        self._clock = clock
        self.state = ProgressState(total_bytes=total if known else None, started_at=clock())
        self.hidden = not known or renderer is None
        self.tick_interval = tick_interval
        self._renderer = None if self.hidden else renderer
        self._task: Optional[asyncio.Task] = None
        self.closed = False
        self.message = ""

    @classmethod
    def create(
        cls,
        total: Optional[int],
        renderer: Optional[ProgressRenderer] = None,
        tick_interval: float = PROGRESS_TICK_INTERVAL,
        clock: Callable[[], float] = time.perf_counter,
    ) -> ProgressReporter:
        """Build a reporter and start its render tick (needs a running loop)."""
        reporter = cls(total, renderer=renderer, tick_interval=tick_interval, clock=clock)
        reporter.start()
        return reporter

    # -- Counter ------------------------------------------------------------

    @property
    def bytes_transferred(self) -> int:
        return self.state.bytes_transferred

    @property
    def total_bytes(self) -> Optional[int]:
        return self.state.total_bytes

    def advance(self, delta: int) -> None:
        if not self.closed:
            self.state.advance(delta)

    def snapshot(self) -> ProgressSnapshot:
        return self.state.snapshot(self._clock())

    # -- Tick ---------------------------------------------------------------

    def start(self) -> None:
        if self.hidden or self._task is not None:
            return
        self._task = asyncio.create_task(self._tick())

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            self._renderer.update(self.snapshot())

    # -- Completion ---------------------------------------------------------

    async def finish(self, message: str = "") -> None:
        await self._close(message, ok=True)

    async def abandon(self, message: str = "") -> None:
        await self._close(message, ok=False)

    async def _close(self, message: str, ok: bool) -> None:
        if self.closed:
            return
        self.closed = True
        self.message = message

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._renderer is not None:
            self._renderer.close(self.snapshot(), message, ok)

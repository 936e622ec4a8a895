"""
Download speed test module.

Streams one fixed remote resource into memory and times the transfer.
Opening the request is retried on timeouts and connect failures, reading
the body is retried on resets and timeouts, for at most
``MAX_DOWNLOAD_ATTEMPTS`` attempts in total.  Only the successful attempt
is timed: the clock starts once that attempt's response is established.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .config import TransferConfig
from .constants import MAX_DOWNLOAD_ATTEMPTS, PROGRESS_TICK_INTERVAL
from .events import EventCallback, EventKind, emit
from .progress import ProgressRenderer, ProgressReporter
from .stats import compute_speed_mbps
from .transfer import FaultKind, NetworkFault, TransferClient

log = logging.getLogger(__name__)

_RETRY_ON_OPEN = {FaultKind.TIMEOUT, FaultKind.CONNECT_FAILURE}
_RETRY_MID_STREAM = {FaultKind.RESET_OR_MID_STREAM, FaultKind.TIMEOUT}


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class DownloadResult:
    """Download test result."""

    speed_mbps: float = 0.0
    bytes_total: int = 0
    duration_s: float = 0.0
    attempts: int = 0

    def calculate(self) -> None:
        """Derive speed from total bytes and the successful attempt's duration."""
        self.speed_mbps = compute_speed_mbps(self.bytes_total, self.duration_s)

    def to_dict(self) -> dict:
        return {
            "speed_mbps": round(self.speed_mbps, 2),
            "bytes_total": self.bytes_total,
            "duration_s": round(self.duration_s, 3),
            "attempts": self.attempts,
        }


# ---------------------------------------------------------------------------
# Benchmark
# ---------------------------------------------------------------------------

class DownloadBenchmark:
    """Single-stream download with bounded retry."""

    def __init__(
        self,
        max_attempts: int = MAX_DOWNLOAD_ATTEMPTS,
        renderer_factory: Optional[Callable[[str], ProgressRenderer]] = None,
        on_event: Optional[EventCallback] = None,
        clock: Callable[[], float] = time.perf_counter,
        tick_interval: float = PROGRESS_TICK_INTERVAL,
    ) -> None:
        self.max_attempts = max_attempts
        self.renderer_factory = renderer_factory
        self.on_event = on_event
        self.clock = clock
        self.tick_interval = tick_interval

    def _retry_notice(self, attempt: int, message: str) -> None:
        log.warning("%s, retrying %d/%d", message, attempt, self.max_attempts)
        emit(
            self.on_event,
            EventKind.DOWNLOAD_RETRY,
            attempt=attempt,
            max_attempts=self.max_attempts,
            message=message,
        )

    async def run(self, client: TransferClient, config: TransferConfig) -> DownloadResult:
        url = config.target_url
        attempt = 0

        while True:
            attempt += 1
            opened = False
            log.debug("download attempt %d/%d: %s", attempt, self.max_attempts, url)

            try:
                async with client.get_streaming(url, config) as stream:
                    opened = True
                    total = stream.total_size or config.expected_total_bytes
                    renderer = None
                    if self.renderer_factory is not None and total:
                        renderer = self.renderer_factory("Downloading")
                    reporter = ProgressReporter.create(
                        total,
                        renderer=renderer,
                        tick_interval=self.tick_interval,
                    )

                    start = self.clock()
                    chunks = []
                    try:
                        async for chunk in stream.iter_chunks():
                            chunks.append(chunk)
                            reporter.advance(len(chunk))
                    except NetworkFault as fault:
                        if fault.kind in _RETRY_MID_STREAM:
                            await reporter.abandon("Connection reset - retrying...")
                        else:
                            await reporter.abandon("Download failed")
                        raise
                    elapsed = self.clock() - start
                    await reporter.finish("Download complete!")

            except NetworkFault as fault:
                retryable = _RETRY_MID_STREAM if opened else _RETRY_ON_OPEN
                if fault.kind not in retryable:
                    raise
                if attempt >= self.max_attempts:
                    log.error("download failed after %d attempts: %s", self.max_attempts, fault)
                    raise
                self._retry_notice(attempt, "Connection reset" if opened else "Connection issue")
                continue

            result = DownloadResult(
                bytes_total=sum(len(c) for c in chunks),
                duration_s=elapsed,
                attempts=attempt,
            )
            result.calculate()
            log.debug(
                "downloaded %d bytes in %.3f s (%.2f Mbps)",
                result.bytes_total,
                result.duration_s,
                result.speed_mbps,
            )
            return result


async def measure_download(
    client: TransferClient,
    config: TransferConfig,
    **kwargs,
) -> float:
    """Download ``config.target_url`` and return the speed in Mbps."""
    result = await DownloadBenchmark(**kwargs).run(client, config)
    return result.speed_mbps

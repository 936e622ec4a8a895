"""
Upload speed test module.

Posts one freshly generated random payload and times the request, response
drain included.

The transport does not expose how many request-body bytes have actually
left the socket, so upload progress is *simulated*: a background task
advances the reporter in fixed steps on a fixed interval while the POST
runs.  The bar is illustrative only; the reported speed always comes from
the wall-clock duration of the POST.
"""
from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .config import TransferConfig
from .constants import (
    PROGRESS_TICK_INTERVAL,
    UPLOAD_PAYLOAD_SIZE,
    UPLOAD_SIMULATION_INTERVAL,
    UPLOAD_SIMULATION_STEPS,
)
from .progress import ProgressRenderer, ProgressReporter
from .stats import compute_speed_mbps
from .transfer import NetworkFault, TransferClient

log = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Upload test result."""

    speed_mbps: float = 0.0
    bytes_total: int = 0
    duration_s: float = 0.0
    response_bytes: int = 0

    def calculate(self) -> None:
        """Calculate final speed from payload size and POST duration."""
        self.speed_mbps = compute_speed_mbps(self.bytes_total, self.duration_s)

    def to_dict(self) -> dict:
        return {
            "speed_mbps": round(self.speed_mbps, 2),
            "bytes_total": self.bytes_total,
            "duration_s": round(self.duration_s, 3),
        }


def simulation_step(total: int, steps: int = UPLOAD_SIMULATION_STEPS) -> int:
    return max(total // steps, 1)


async def simulate_progress(
    reporter: ProgressReporter,
    total: int,
    step: int,
    interval: float = UPLOAD_SIMULATION_INTERVAL,
) -> None:
    """Advance *reporter* by *step* every *interval* seconds until *total*."""
    sent = 0
    while sent < total:
        await asyncio.sleep(interval)
        chunk = min(step, total - sent)
        sent += chunk
        reporter.advance(chunk)


async def _join(task: asyncio.Task) -> None:
    if not task.done():
        task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


class UploadBenchmark:
    """
    Single POST upload tester.

    No retry: generating the payload again and hammering a public endpoint
    is not worth it, so any fault propagates to the caller.
    """

    def __init__(
        self,
        payload_size: int = UPLOAD_PAYLOAD_SIZE,
        renderer_factory: Optional[Callable[[str], ProgressRenderer]] = None,
        clock: Callable[[], float] = time.perf_counter,
        tick_interval: float = PROGRESS_TICK_INTERVAL,
        simulation_interval: float = UPLOAD_SIMULATION_INTERVAL,
        payload_factory: Callable[[int], bytes] = os.urandom,
    ) -> None:
        self.payload_size = payload_size
        self.renderer_factory = renderer_factory
        self.clock = clock
        self.tick_interval = tick_interval
        self.simulation_interval = simulation_interval
        self.payload_factory = payload_factory
        self.last_reporter: Optional[ProgressReporter] = None

    async def run(self, client: TransferClient, config: TransferConfig) -> UploadResult:
        payload = self.payload_factory(self.payload_size)
        size = len(payload)

        renderer = self.renderer_factory("Uploading") if self.renderer_factory else None
        reporter = ProgressReporter.create(size, renderer=renderer, tick_interval=self.tick_interval)
        self.last_reporter = reporter

        start = self.clock()
        simulator = asyncio.create_task(
            simulate_progress(reporter, size, simulation_step(size), self.simulation_interval)
        )
        try:
            try:
                drained = await client.post_body(config.target_url, payload, config)
            except NetworkFault as fault:
                log.error("upload to %s failed: %s", config.target_url, fault)
                await reporter.abandon("Upload failed")
                raise
            elapsed = self.clock() - start
        finally:
            await _join(simulator)

        del payload
        reporter.advance(size - reporter.bytes_transferred)
        await reporter.finish("Upload complete!")

        result = UploadResult(bytes_total=size, duration_s=elapsed, response_bytes=drained)
        result.calculate()
        log.debug(
            "uploaded %d bytes in %.3f s (%.2f Mbps), drained %d response bytes",
            size,
            elapsed,
            result.speed_mbps,
            drained,
        )
        return result


async def measure_upload(
    client: TransferClient,
    config: TransferConfig,
    **kwargs,
) -> float:
    """Upload a random payload to ``config.target_url`` and return Mbps."""
    result = await UploadBenchmark(**kwargs).run(client, config)
    return result.speed_mbps

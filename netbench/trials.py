"""
Trial orchestration.

A trial is ping, then download, then upload, strictly in that order.  A run
is N trials followed by per-metric arithmetic means and a verdict.  Any
fault that escapes a benchmark aborts the whole run: there is never a
summary built from fewer than N trials.
"""
from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .config import RunConfig
from .download import DownloadBenchmark
from .events import EventCallback, EventKind, emit
from .grading import Verdict, classify_verdict
from .latency import measure_ping
from .progress import ProgressRenderer
from .stats import calculate_mean
from .transfer import TransferClient
from .upload import UploadBenchmark

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TrialResult:
    """One completed {ping, download, upload} cycle."""

    ping_ms: int
    download_mbps: float
    upload_mbps: float
    index: int = 0

    def to_dict(self) -> dict:
        return {
            "trial": self.index,
            "ping_ms": self.ping_ms,
            "download_mbps": round(self.download_mbps, 2),
            "upload_mbps": round(self.upload_mbps, 2),
        }


@dataclass(frozen=True)
class RunSummary:
    """Averages over every trial of a run, plus the verdict."""

    average_ping_ms: float
    average_download_mbps: float
    average_upload_mbps: float
    verdict: Verdict
    trials: Tuple[TrialResult, ...] = field(default_factory=tuple)

    @classmethod
    def from_trials(cls, trials: List[TrialResult]) -> RunSummary:
        if not trials:
            raise ValueError("cannot summarise a run without trials")
        average_download = calculate_mean([t.download_mbps for t in trials])
        return cls(
            average_ping_ms=calculate_mean([t.ping_ms for t in trials]),
            average_download_mbps=average_download,
            average_upload_mbps=calculate_mean([t.upload_mbps for t in trials]),
            verdict=classify_verdict(average_download),
            trials=tuple(trials),
        )

    def to_dict(self) -> dict:
        return {
            "average_ping_ms": round(self.average_ping_ms, 1),
            "average_download_mbps": round(self.average_download_mbps, 2),
            "average_upload_mbps": round(self.average_upload_mbps, 2),
            "verdict": self.verdict.value,
            "trials": [t.to_dict() for t in self.trials],
        }


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

class TrialRunner:
    """Runs trials sequentially and reports progress through ``on_event``."""

    def __init__(
        self,
        config: RunConfig,
        renderer_factory: Optional[Callable[[str], ProgressRenderer]] = None,
        on_event: Optional[EventCallback] = None,
        download: Optional[DownloadBenchmark] = None,
        upload: Optional[UploadBenchmark] = None,
    ) -> None:
        self.config = config
        self.on_event = on_event
        self.download = download or DownloadBenchmark(
            renderer_factory=renderer_factory,
            on_event=on_event,
        )
        self.upload = upload or UploadBenchmark(renderer_factory=renderer_factory)

    async def run_trial(self, client: TransferClient, index: int, total: int) -> TrialResult:
        emit(self.on_event, EventKind.TRIAL_STARTED, trial=index, total_trials=total)

        ping_ms = await measure_ping(client, self.config.download_url)
        emit(self.on_event, EventKind.PING_MEASURED, trial=index, total_trials=total, value=ping_ms)

        emit(self.on_event, EventKind.DOWNLOAD_STARTED, trial=index, total_trials=total)
        dl = await self.download.run(client, self.config.download())
        emit(
            self.on_event,
            EventKind.DOWNLOAD_MEASURED,
            trial=index,
            total_trials=total,
            value=dl.speed_mbps,
            attempt=dl.attempts,
        )

        emit(self.on_event, EventKind.UPLOAD_STARTED, trial=index, total_trials=total)
        ul = await self.upload.run(client, self.config.upload())
        emit(self.on_event, EventKind.UPLOAD_MEASURED, trial=index, total_trials=total, value=ul.speed_mbps)

        result = TrialResult(
            ping_ms=ping_ms,
            download_mbps=dl.speed_mbps,
            upload_mbps=ul.speed_mbps,
            index=index,
        )
        emit(self.on_event, EventKind.TRIAL_FINISHED, trial=index, total_trials=total)
        log.info(
            "trial %d/%d: ping %d ms, download %.2f Mbps, upload %.2f Mbps",
            index,
            total,
            result.ping_ms,
            result.download_mbps,
            result.upload_mbps,
        )
        return result

    async def run(self, iterations: int, client: Optional[TransferClient] = None) -> RunSummary:
        if iterations < 1:
            raise ValueError("iterations must be >= 1")

        trials: List[TrialResult] = []
        async with AsyncExitStack() as stack:
            if client is None:
                client = await stack.enter_async_context(
                    TransferClient(
                        request_timeout=self.config.request_timeout,
                        connect_timeout=self.config.connect_timeout,
                    )
                )
            for index in range(1, iterations + 1):
                trials.append(await self.run_trial(client, index, iterations))

        return RunSummary.from_trials(trials)


async def run_trials(
    n: int,
    config: RunConfig,
    *,
    client: Optional[TransferClient] = None,
    renderer_factory: Optional[Callable[[str], ProgressRenderer]] = None,
    on_event: Optional[EventCallback] = None,
) -> RunSummary:
    """Run *n* trials against the endpoints in *config*."""
    runner = TrialRunner(config, renderer_factory=renderer_factory, on_event=on_event)
    return await runner.run(n, client=client)

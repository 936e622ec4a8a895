"""Link speed measurement core -- transfers, benchmarks, and trial aggregation."""

from .config import RunConfig, TransferConfig
from .download import DownloadBenchmark, DownloadResult, measure_download
from .events import EventKind, StatusEvent
from .grading import Verdict, classify_verdict
from .latency import measure_ping
from .progress import ProgressReporter, ProgressSnapshot, ProgressState
from .stats import compute_speed_mbps, format_latency, format_speed
from .transfer import FaultKind, NetworkFault, TransferClient, classify_fault
from .trials import RunSummary, TrialResult, TrialRunner, run_trials
from .upload import UploadBenchmark, UploadResult, measure_upload

__all__ = [
    "DownloadBenchmark",
    "DownloadResult",
    "EventKind",
    "FaultKind",
    "NetworkFault",
    "ProgressReporter",
    "ProgressSnapshot",
    "ProgressState",
    "RunConfig",
    "RunSummary",
    "StatusEvent",
    "TransferClient",
    "TransferConfig",
    "TrialResult",
    "TrialRunner",
    "UploadBenchmark",
    "UploadResult",
    "Verdict",
    "classify_fault",
    "classify_verdict",
    "compute_speed_mbps",
    "format_latency",
    "format_speed",
    "measure_download",
    "measure_ping",
    "measure_upload",
    "run_trials",
]

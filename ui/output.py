"""
Output formatting -- JSON export and plain text.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from netbench.config import RunConfig
from netbench.trials import RunSummary


def create_result_json(summary: RunSummary, config: RunConfig) -> Dict[str, Any]:
    """Build a JSON-serialisable dict describing a finished run."""
    result: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "servers": {
            "download": config.download_url,
            "upload": config.upload_url,
        },
        "iterations": len(summary.trials),
    }
    result.update(summary.to_dict())
    return result


def format_text_result(summary: RunSummary) -> str:
    sep = "=" * 40
    mid = "-" * 40
    lines = [sep, "Speed Trial Results", sep]
    for t in summary.trials:
        lines.append(
            f"Test {t.index}: ping {t.ping_ms} ms, "
            f"download {t.download_mbps:.2f} Mbps, upload {t.upload_mbps:.2f} Mbps"
        )
    lines += [
        mid,
        f"Average Ping: {summary.average_ping_ms:.0f} ms",
        f"Average Download: {summary.average_download_mbps:.2f} Mbps",
        f"Average Upload: {summary.average_upload_mbps:.2f} Mbps",
        f"Verdict: {summary.verdict.value}",
        sep,
    ]
    return "\n".join(lines)

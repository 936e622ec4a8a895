#!/usr/bin/env python3
"""
Speed Trial CLI -- repeated latency / download / upload measurement.

Usage::

    python speedtrial.py                      # rich dashboard, 3 trials
    python speedtrial.py -i 5                 # 5 trials
    python speedtrial.py -s http://host/file  # custom download server
    python speedtrial.py --simple             # plain text
    python speedtrial.py --json               # JSON to stdout
    python speedtrial.py --verbose            # debug logging to stderr
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import Optional
from urllib.parse import urlparse

from rich.console import Console
from rich.logging import RichHandler

from netbench.config import RunConfig, config_path, load_config
from netbench.constants import (
    MAX_ITERATIONS,
    MAX_TIMEOUT,
    MIN_ITERATIONS,
    MIN_TIMEOUT,
)
from netbench.transfer import NetworkFault
from netbench.trials import RunSummary, run_trials
from ui.dashboard import (
    TransferProgressBar,
    console,
    print_error,
    print_event,
    print_final_results,
    print_header,
)
from ui.output import create_result_json, format_text_result

log = logging.getLogger("speedtrial")


# ---------------------------------------------------------------------------
# Parameter validation
# ---------------------------------------------------------------------------

def _validate(config: RunConfig) -> None:
    """Raise ``ValueError`` if any parameter is out of range."""
    if not MIN_ITERATIONS <= config.iterations <= MAX_ITERATIONS:
        raise ValueError(f"Iterations must be between {MIN_ITERATIONS} and {MAX_ITERATIONS}")
    if not MIN_TIMEOUT <= config.request_timeout <= MAX_TIMEOUT:
        raise ValueError(f"Request timeout must be between {MIN_TIMEOUT:.0f} and {MAX_TIMEOUT:.0f} s")
    if not MIN_TIMEOUT <= config.connect_timeout <= MAX_TIMEOUT:
        raise ValueError(f"Connect timeout must be between {MIN_TIMEOUT:.0f} and {MAX_TIMEOUT:.0f} s")
    if config.expected_download_bytes is not None and config.expected_download_bytes <= 0:
        raise ValueError("Expected download size must be a positive number of bytes")
    for label, url in (("download", config.download_url), ("upload", config.upload_url)):
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid {label} URL: {url!r} (expected http:// or https://)")


def build_config(args: argparse.Namespace) -> RunConfig:
    """Merge the user config file with command-line overrides."""
    config = RunConfig.from_mapping(load_config())
    overrides = {
        "iterations": args.iterations,
        "download_url": args.server,
        "upload_url": args.upload_url,
        "request_timeout": args.timeout,
        "connect_timeout": args.connect_timeout,
        "expected_download_bytes": args.expected_size,
    }
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


def _configure_logging(verbose: bool, dashboard: bool) -> None:
    # The dashboard already shows every status line; only --verbose adds logs there.
    if verbose:
        level = logging.DEBUG
    elif dashboard:
        level = logging.CRITICAL
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

async def run_speedtrial(
    config: RunConfig,
    *,
    json_output: bool = False,
    simple: bool = False,
) -> Optional[dict]:
    """Run every trial and report; returns a JSON-serialisable dict."""
    show_ui = not json_output and not simple

    if show_ui:
        print_header(config)

    log.debug("config file: %s", config_path())
    summary: RunSummary = await run_trials(
        config.iterations,
        config,
        renderer_factory=TransferProgressBar if show_ui else None,
        on_event=print_event if show_ui else None,
    )

    if show_ui:
        print_final_results(summary)
    elif simple:
        print(format_text_result(summary))

    result_json = create_result_json(summary, config)
    if json_output:
        print(json.dumps(result_json, indent=2))

    return result_json


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(
        description="Speed Trial -- measure ping, download and upload over HTTP",
    )
    # Test parameters
    parser.add_argument("--iterations", "-i", type=int, metavar="N", help="Number of test iterations (default: 3)")
    parser.add_argument("--server", "-s", type=str, metavar="URL", help="Custom download server URL")
    parser.add_argument("--upload-url", type=str, metavar="URL", help="Custom upload endpoint URL")
    parser.add_argument("--timeout", type=float, metavar="SECS", help="Whole-request timeout (default: 300)")
    parser.add_argument("--connect-timeout", type=float, metavar="SECS", help="Connect timeout (default: 30)")
    parser.add_argument(
        "--expected-size", type=int, metavar="BYTES",
        help="Download size for the progress bar when the server sends no Content-Length",
    )

    # Output modes
    parser.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    parser.add_argument("--simple", action="store_true", help="Simple output mode (no dashboard)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging to stderr")

    args = parser.parse_args()
    _configure_logging(args.verbose, dashboard=not (args.json or args.simple))

    try:
        config = build_config(args)
        _validate(config)
    except (TypeError, ValueError) as exc:
        print_error(str(exc))
        sys.exit(1)

    try:
        asyncio.run(run_speedtrial(config, json_output=args.json, simple=args.simple))
    except KeyboardInterrupt:
        console.print("\n[yellow]Test cancelled by user[/yellow]")
        sys.exit(1)
    except NetworkFault as exc:
        print_error(f"{exc} ({exc.kind.value})")
        sys.exit(1)
    except Exception as exc:
        print_error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()

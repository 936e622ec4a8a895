"""
Run configuration and user configuration file support.

Reads/writes ``~/.speedtrial/config.json``.

Supported keys::

    iterations = 3                 # trials per run
    server = "http://..."          # download URL
    upload_url = "https://..."     # upload endpoint
    request_timeout = 300.0        # seconds, whole request
    connect_timeout = 30.0         # seconds, TCP/TLS connect
    expected_download_bytes = null # bar size when the server omits Content-Length
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DOWNLOAD_URL,
    DEFAULT_ITERATIONS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_UPLOAD_URL,
    UPLOAD_PAYLOAD_SIZE,
)

_CONFIG_DIR = os.path.join(Path.home(), ".speedtrial")
_CONFIG_FILE = "config.json"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


def _value(data: Mapping[str, Any], key: str, default: Any) -> Any:
    value = data.get(key)
    return default if value is None else value


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TransferConfig:
    """Per-benchmark transfer settings."""

    target_url: str
    expected_total_bytes: Optional[int] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT


@dataclass(frozen=True)
class RunConfig:
    """Everything a multi-trial run needs, already validated by the caller."""

    iterations: int = DEFAULT_ITERATIONS
    download_url: str = DEFAULT_DOWNLOAD_URL
    upload_url: str = DEFAULT_UPLOAD_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    expected_download_bytes: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RunConfig:
        """Build from a config-file style mapping; unknown keys are ignored.

        Only missing or null keys fall back to defaults, so out-of-range
        values such as 0 reach validation unchanged.
        """
        expected = data.get("expected_download_bytes")
        return cls(
            iterations=int(_value(data, "iterations", DEFAULT_ITERATIONS)),
            download_url=_value(data, "server", DEFAULT_DOWNLOAD_URL),
            upload_url=_value(data, "upload_url", DEFAULT_UPLOAD_URL),
            request_timeout=float(_value(data, "request_timeout", DEFAULT_REQUEST_TIMEOUT)),
            connect_timeout=float(_value(data, "connect_timeout", DEFAULT_CONNECT_TIMEOUT)),
            expected_download_bytes=None if expected is None else int(expected),
        )

    def download(self) -> TransferConfig:
        return TransferConfig(
            target_url=self.download_url,
            expected_total_bytes=self.expected_download_bytes,
            request_timeout=self.request_timeout,
            connect_timeout=self.connect_timeout,
        )

    def upload(self) -> TransferConfig:
        return TransferConfig(
            target_url=self.upload_url,
            expected_total_bytes=UPLOAD_PAYLOAD_SIZE,
            request_timeout=self.request_timeout,
            connect_timeout=self.connect_timeout,
        )


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "iterations": DEFAULT_ITERATIONS,
    "server": None,
    "upload_url": None,
    "request_timeout": DEFAULT_REQUEST_TIMEOUT,
    "connect_timeout": DEFAULT_CONNECT_TIMEOUT,
    "expected_download_bytes": None,
}


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys."""
    path = _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            config.update(user)
    except (json.JSONDecodeError, OSError):
        pass  # corrupt file; use defaults

    return config


def save_config(config: Dict[str, Any]) -> str:
    """Write *config* to disk.  Returns the file path."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)

    return path


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()

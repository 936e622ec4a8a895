"""
Shared constants used across all netbench modules.

Centralises magic numbers, default endpoints, and tunables so they live in
exactly one place.
"""

# ---------------------------------------------------------------------------
# HTTP headers
# ---------------------------------------------------------------------------

USER_AGENT = "speedtrial/1.0 (+aiohttp)"

COMMON_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
}

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

DEFAULT_DOWNLOAD_URL = "http://speedtest.tele2.net/100MB.zip"
DEFAULT_UPLOAD_URL = "https://file.io"

# ---------------------------------------------------------------------------
# Trials
# ---------------------------------------------------------------------------

DEFAULT_ITERATIONS = 3
MIN_ITERATIONS = 1
MAX_ITERATIONS = 100

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

DEFAULT_REQUEST_TIMEOUT = 300.0  # whole request, body included
DEFAULT_CONNECT_TIMEOUT = 30.0
MIN_TIMEOUT = 1.0
MAX_TIMEOUT = 3600.0

PROGRESS_TICK_INTERVAL = 0.1     # 100 ms between progress redraws
UPLOAD_SIMULATION_INTERVAL = 0.15
UPLOAD_SIMULATION_STEPS = 50

# ---------------------------------------------------------------------------
# Data transfer
# ---------------------------------------------------------------------------

MAX_DOWNLOAD_ATTEMPTS = 3
CHUNK_SIZE = 64 * 1024
BYTES_PER_MEBIBYTE = 1_048_576
UPLOAD_PAYLOAD_SIZE = 10 * BYTES_PER_MEBIBYTE

# Returned instead of dividing by a zero duration.
INSTANT_TRANSFER_MBPS = 1_000_000.0

# ---------------------------------------------------------------------------
# Verdict thresholds (average download, Mbps)
# ---------------------------------------------------------------------------

EXCELLENT_THRESHOLD_MBPS = 25.0
GOOD_THRESHOLD_MBPS = 10.0

"""
HTTP latency probe.

A single HEAD request against the download server; the round trip from
request start to response headers is the ping.  No retry: a failed ping
means the link is unusable for the whole trial.
"""
from __future__ import annotations

import logging

from .transfer import TransferClient

log = logging.getLogger(__name__)


async def measure_ping(client: TransferClient, url: str) -> int:
    """Return the HEAD round-trip time to *url* in whole milliseconds."""
    elapsed = await client.head(url)
    ping_ms = max(int(elapsed * 1000), 0)
    log.debug("ping %s: %d ms", url, ping_ms)
    return ping_ms

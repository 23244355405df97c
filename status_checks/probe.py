from __future__ import annotations

import time

import httpx

from status_checks.status import Observation, Reachable, Unreachable


DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; StatusChecks/1.0)"

# Any code in this range is a completed exchange; whether it is the expected
# one is decided by the classifier.
REACHABLE_MIN_STATUS = 200
REACHABLE_MAX_STATUS = 600


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000.0, 3)


async def probe_url(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> Observation:
    started = time.perf_counter()
    try:
        resp = await client.get(url, follow_redirects=True, timeout=timeout_seconds)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        # ValueError covers IDNA failures on hosts such as "xn--".
        return Unreachable(
            error_code=type(e).__name__,
            error_message=str(e) or type(e).__name__,
            elapsed_ms=_elapsed_ms(started),
        )

    code = resp.status_code
    if not (REACHABLE_MIN_STATUS <= code < REACHABLE_MAX_STATUS):
        return Unreachable(
            error_code="INVALID_STATUS",
            error_message=f"unexpected HTTP status {code}",
            elapsed_ms=_elapsed_ms(started),
        )
    return Reachable(status_code=code, elapsed_ms=_elapsed_ms(started))

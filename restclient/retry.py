# restclient/retry.py
from __future__ import annotations

import asyncio
import logging
import re
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable, Optional

import httpx

from .core.config import RetryConfig
from .domain.models import RetryState

log = logging.getLogger(__name__)

# Only these statuses may carry a Retry-After worth honoring.
RETRY_AFTER_CODES = frozenset({429, 503})

_SECONDS = re.compile(r"^\d+$")

Sleep = Callable[[float], Awaitable[None]]


def parse_http_date(value: str) -> Optional[datetime]:
    """RFC 7231 IMF-fixdate (and RFC 850/asctime), or ISO 8601 as a fallback."""
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RetryPolicy:
    """
    Decides whether a response is retried and how long to wait first.

    Delays are milliseconds. Precedence for 429/503 carrying ``Retry-After``:
    integer seconds, then a future HTTP date (terminal when further out than
    ``max_timeout``), then exponential backoff. Everything else gets
    ``base_timeout * 2**attempt`` or the configured backoff function.
    """

    def __init__(self, config: RetryConfig, *, sleep: Sleep = asyncio.sleep,
                 clock: Callable[[], float] = time.time):
        self.config = config
        self._sleep = sleep
        self._clock = clock

    def is_retryable(self, status_code: int) -> bool:
        return status_code in self.config.http_codes

    def backoff(self, attempt: int) -> float:
        if self.config.backoff is not None:
            return self.config.backoff(attempt)
        return self.config.base_timeout * 2 ** attempt

    def should_retry(self, state: RetryState) -> bool:
        """Checked before every retry; False makes the last response terminal."""
        response = state.last_response
        if response is None or not self.is_retryable(response.status_code):
            return False
        if state.attempt_count >= self.config.max_retry:
            return False
        if state.elapsed_ms() > self.config.max_timeout:
            log.info("retry deadline of %sms passed after %s attempt(s)",
                     self.config.max_timeout, state.attempt_count + 1)
            return False
        return True

    def next_delay(self, response: httpx.Response, attempt: int) -> Optional[float]:
        """Delay before the next attempt, or None when the response must be surfaced as-is."""
        header = response.headers.get("retry-after")
        if response.status_code not in RETRY_AFTER_CODES or not header:
            return self.backoff(attempt)

        header = header.strip()
        if _SECONDS.match(header):
            return int(header) * 1000.0

        when = parse_http_date(header)
        if when is not None:
            delay = (when.timestamp() - self._clock()) * 1000
            if delay > 0:
                if delay > self.config.max_timeout:
                    log.warning("Retry-After %r is %.0fms away (max %sms); giving up",
                                header, delay, self.config.max_timeout)
                    return None
                return delay
        # past date or garbage: plain backoff rather than an immediate retry
        return self.backoff(attempt)

    async def wait(self, delay_ms: float) -> None:
        await self._sleep(max(delay_ms, 0) / 1000)

"""Fault-tolerant JSON fetching over httpx with bounded retries and concurrency."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_CONCURRENCY = 5

SleepFn = Callable[[float], Awaitable[None]]


class RetryableStatusError(Exception):
    """Non-terminal HTTP status; `retry_after` is set only for a parseable 429 hint."""

    def __init__(self, status_code: int, retry_after: float | None = None) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.retry_after = retry_after


class ResilientFetchClient:
    """GET-and-parse helper that degrades every failure to None.

    Classification per response:
    - 2xx: body parsed as JSON, None if it does not parse
    - 404: None immediately
    - 401/403: None immediately, logged as a credential problem
    - 429: wait for Retry-After seconds (or delay * attempt) and retry
    - anything else, including transport errors and timeouts: wait `retry_delay` and retry

    At most `max_concurrency` requests are in flight at once across all callers.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        sleep: SleepFn | None = None,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be greater than 0")
        self.client = client
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._sleep = sleep or asyncio.sleep

    async def fetch_json(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any | None:
        attempts = self.max_retries + 1

        def give_up(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.error("Giving up on %s after %d attempts: %s", url, attempts, _describe(error))
            return None

        def log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "Retrying %s (attempt %d/%d) after %s, waiting %.1fs",
                url,
                retry_state.attempt_number,
                attempts,
                _describe(error),
                retry_state.next_action.sleep if retry_state.next_action else 0.0,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=self._wait_seconds,
            retry=retry_if_exception_type((httpx.HTTPError, RetryableStatusError)),
            sleep=self._sleep,
            before_sleep=log_retry,
            retry_error_callback=give_up,
        )
        return await retrying(self._attempt, url, headers, params)

    async def _attempt(
        self,
        url: str,
        headers: Mapping[str, str] | None,
        params: Mapping[str, Any] | None,
    ) -> Any | None:
        async with self._semaphore:
            response = await self.client.get(
                url,
                headers=dict(headers) if headers else None,
                params=dict(params) if params else None,
                timeout=self.timeout,
            )

        status = response.status_code
        if response.is_success:
            return _parse_body(response, url)
        if status == 404:
            logger.debug("Not found: %s", url)
            return None
        if status in (401, 403):
            logger.error("Authentication failed (%d) for %s; check the API key", status, url)
            return None
        if status == 429:
            raise RetryableStatusError(status, retry_after=_retry_after_seconds(response))
        raise RetryableStatusError(status)

    def _wait_seconds(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, RetryableStatusError) and error.status_code == 429:
            if error.retry_after is not None:
                return error.retry_after
            return self.retry_delay * retry_state.attempt_number
        return self.retry_delay


def _describe(error: BaseException | None) -> str:
    if error is None:
        return "no error"
    if isinstance(error, RetryableStatusError):
        return str(error)
    return error.__class__.__name__


def _parse_body(response: httpx.Response, url: str) -> Any | None:
    try:
        return json.loads(response.text)
    except ValueError:
        logger.warning("Malformed JSON body from %s", url)
        return None


def _retry_after_seconds(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return max(seconds, 0.0)


__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_DELAY_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "ResilientFetchClient",
    "RetryableStatusError",
]

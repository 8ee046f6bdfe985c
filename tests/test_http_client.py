from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx
import pytest

from clients.http import ResilientFetchClient

URL = "https://open.faceit.com/data/v4/players/p1"

Step = httpx.Response | Exception


class _Script:
    """Replays one scripted response (or exception) per request."""

    def __init__(self, *steps: Step) -> None:
        self.steps = list(steps)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
        if isinstance(step, Exception):
            raise step
        return step


class _Sleeps:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _fetcher(
    handler: Callable[[httpx.Request], httpx.Response],
    sleeps: _Sleeps,
    **kwargs: object,
) -> tuple[ResilientFetchClient, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ResilientFetchClient(client, sleep=sleeps, **kwargs), client  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_success_returns_parsed_json() -> None:
    script = _Script(httpx.Response(200, json={"player_id": "p1"}))
    sleeps = _Sleeps()
    fetcher, client = _fetcher(script, sleeps)

    async with client:
        body = await fetcher.fetch_json(URL, headers={"Authorization": "Bearer k"}, params={"limit": 30})

    assert body == {"player_id": "p1"}
    assert sleeps.calls == []
    assert script.requests[0].headers["Authorization"] == "Bearer k"
    assert script.requests[0].url.params["limit"] == "30"


@pytest.mark.asyncio
async def test_rate_limit_honors_retry_after() -> None:
    script = _Script(
        httpx.Response(429, headers={"Retry-After": "2"}),
        httpx.Response(200, json={"ok": True}),
    )
    sleeps = _Sleeps()
    fetcher, client = _fetcher(script, sleeps)

    async with client:
        body = await fetcher.fetch_json(URL)

    assert body == {"ok": True}
    assert sleeps.calls == [2.0]
    assert len(script.requests) == 2


@pytest.mark.asyncio
async def test_rate_limit_without_header_backs_off_linearly() -> None:
    script = _Script(
        httpx.Response(429),
        httpx.Response(429),
        httpx.Response(200, json=[1, 2]),
    )
    sleeps = _Sleeps()
    fetcher, client = _fetcher(script, sleeps, retry_delay=0.5)

    async with client:
        body = await fetcher.fetch_json(URL)

    assert body == [1, 2]
    assert sleeps.calls == [0.5, 1.0]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [404, 401, 403])
async def test_terminal_statuses_do_not_retry(status: int) -> None:
    script = _Script(httpx.Response(status))
    sleeps = _Sleeps()
    fetcher, client = _fetcher(script, sleeps)

    async with client:
        body = await fetcher.fetch_json(URL)

    assert body is None
    assert len(script.requests) == 1
    assert sleeps.calls == []


@pytest.mark.asyncio
async def test_server_errors_exhaust_retries() -> None:
    script = _Script(httpx.Response(503))
    sleeps = _Sleeps()
    fetcher, client = _fetcher(script, sleeps, max_retries=3, retry_delay=1.0)

    async with client:
        body = await fetcher.fetch_json(URL)

    assert body is None
    assert len(script.requests) == 4
    # No wait after the final attempt.
    assert sleeps.calls == [1.0, 1.0, 1.0]


@pytest.mark.asyncio
async def test_transport_errors_are_retried() -> None:
    request = httpx.Request("GET", URL)
    script = _Script(
        httpx.ReadTimeout("timed out", request=request),
        httpx.ConnectError("refused", request=request),
        httpx.Response(200, json={"ok": 1}),
    )
    sleeps = _Sleeps()
    fetcher, client = _fetcher(script, sleeps)

    async with client:
        body = await fetcher.fetch_json(URL)

    assert body == {"ok": 1}
    assert sleeps.calls == [1.0, 1.0]


@pytest.mark.asyncio
async def test_malformed_json_is_absent_without_retry() -> None:
    script = _Script(httpx.Response(200, text="<html>oops</html>"))
    sleeps = _Sleeps()
    fetcher, client = _fetcher(script, sleeps)

    async with client:
        body = await fetcher.fetch_json(URL)

    assert body is None
    assert len(script.requests) == 1


@pytest.mark.asyncio
async def test_zero_retries_means_single_attempt() -> None:
    script = _Script(httpx.Response(500))
    sleeps = _Sleeps()
    fetcher, client = _fetcher(script, sleeps, max_retries=0)

    async with client:
        assert await fetcher.fetch_json(URL) is None

    assert len(script.requests) == 1
    assert sleeps.calls == []


@pytest.mark.asyncio
async def test_concurrency_is_bounded() -> None:
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(200, json={"path": request.url.path})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    fetcher = ResilientFetchClient(client, max_concurrency=2)

    async with client:
        results = await asyncio.gather(*(fetcher.fetch_json(f"{URL}/{index}") for index in range(8)))

    assert len(results) == 8
    assert all(result is not None for result in results)
    assert peak == 2


def test_invalid_settings_are_rejected() -> None:
    client = httpx.AsyncClient()
    with pytest.raises(ValueError):
        ResilientFetchClient(client, max_retries=-1)
    with pytest.raises(ValueError):
        ResilientFetchClient(client, max_concurrency=0)

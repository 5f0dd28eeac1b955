"""Tests for the provider retry decorator."""

from __future__ import annotations

import pytest

from sky_booking_api.retry import async_retry


async def test_returns_after_transient_failures():
    calls = 0

    @async_retry(max_retries=3, base_delay=0, jitter=False)
    async def flaky() -> str:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise TimeoutError("slow provider")
        return "ok"

    assert await flaky() == "ok"
    assert calls == 3


async def test_reraises_after_exhausting_retries():
    calls = 0

    @async_retry(max_retries=1, base_delay=0)
    async def always_fails() -> None:
        nonlocal calls
        calls += 1
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        await always_fails()
    assert calls == 2


async def test_zero_retries_calls_once():
    calls = 0

    @async_retry(max_retries=0)
    async def fails() -> None:
        nonlocal calls
        calls += 1
        raise ValueError("bad")

    with pytest.raises(ValueError):
        await fails()
    assert calls == 1


async def test_only_listed_exceptions_are_retried():
    calls = 0

    @async_retry(max_retries=3, base_delay=0, exceptions=(TimeoutError,))
    async def fails() -> None:
        nonlocal calls
        calls += 1
        raise KeyError("nope")

    with pytest.raises(KeyError):
        await fails()
    assert calls == 1

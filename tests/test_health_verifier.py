"""Tests for release_deploy.core.health_verifier: polling with a fake clock."""

from __future__ import annotations

import asyncio
from typing import List
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from release_deploy.core.health_verifier import HealthVerifier

URL = "http://127.0.0.1:9000/health"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock that only moves when the verifier sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _mock_response(status_code: int = 200) -> MagicMock:
    """Return a mock httpx.Response with the given status code."""
    resp = MagicMock()
    resp.status_code = status_code
    return resp


def _mock_client(**get_kwargs) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.get = AsyncMock(**get_kwargs)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


def _verifier(clock: FakeClock, interval: float = 1.0) -> HealthVerifier:
    return HealthVerifier(poll_interval=interval, clock=clock, sleep=clock.sleep)


# ---------------------------------------------------------------------------
# TestHealthVerifier
# ---------------------------------------------------------------------------


class TestHealthVerifier:
    """Tests for HealthVerifier.check()."""

    async def test_passes_on_first_200(self) -> None:
        clock = FakeClock()
        mock_client = _mock_client(return_value=_mock_response(200))

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await _verifier(clock).check(URL, timeout=5)

        assert result.success is True
        assert result.attempts == 1
        assert result.last_status == 200
        assert clock.sleeps == []

    async def test_any_2xx_is_success(self) -> None:
        clock = FakeClock()
        mock_client = _mock_client(return_value=_mock_response(204))

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await _verifier(clock).check(URL, timeout=5)

        assert result.success is True

    async def test_retries_until_ready(self) -> None:
        clock = FakeClock()
        mock_client = _mock_client(side_effect=[
            _mock_response(503),
            _mock_response(502),
            _mock_response(200),
        ])

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await _verifier(clock).check(URL, timeout=5)

        assert result.success is True
        assert mock_client.get.await_count == 3
        assert clock.sleeps == [1.0, 1.0]

    async def test_never_healthy_probe_count(self) -> None:
        """timeout=5s, interval=1s: between 5 and 6 probes, then failure."""
        clock = FakeClock()
        mock_client = _mock_client(return_value=_mock_response(503))

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await _verifier(clock).check(URL, timeout=5)

        assert result.success is False
        assert 5 <= result.attempts <= 6
        assert mock_client.get.await_count == result.attempts
        assert result.last_status == 503
        assert result.elapsed == pytest.approx(5.0)

    async def test_connection_errors_are_not_ready(self) -> None:
        clock = FakeClock()
        mock_client = _mock_client(side_effect=httpx.ConnectError("connection refused"))

        with patch("httpx.AsyncClient", return_value=mock_client):
            result = await _verifier(clock).check(URL, timeout=3)

        assert result.success is False
        assert result.last_status is None
        assert "ConnectError" in result.last_error
        assert 3 <= result.attempts <= 4

    async def test_last_sleep_clipped_to_deadline(self) -> None:
        clock = FakeClock()
        mock_client = _mock_client(return_value=_mock_response(500))

        with patch("httpx.AsyncClient", return_value=mock_client):
            await _verifier(clock).check(URL, timeout=2.5)

        assert clock.sleeps == [1.0, 1.0, 0.5]
        assert clock.now == pytest.approx(2.5)

    async def test_request_timeout_passed_to_client(self) -> None:
        clock = FakeClock()
        mock_client = _mock_client(return_value=_mock_response(200))
        verifier = HealthVerifier(request_timeout=1.5, clock=clock, sleep=clock.sleep)

        with patch("httpx.AsyncClient", return_value=mock_client):
            await verifier.check(URL, timeout=10)

        assert mock_client.get.await_args.kwargs["timeout"] == 1.5

    async def test_cancellation_propagates(self) -> None:
        clock = FakeClock()
        mock_client = _mock_client(return_value=_mock_response(503))

        async def cancelled_sleep(seconds: float) -> None:
            raise asyncio.CancelledError()

        verifier = HealthVerifier(clock=clock, sleep=cancelled_sleep)

        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(asyncio.CancelledError):
                await verifier.check(URL, timeout=5)

        mock_client.__aexit__.assert_awaited()

"""HTTP health polling with a hard deadline"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Tuple

import httpx

from ..constants import DEFAULT_POLL_INTERVAL, DEFAULT_REQUEST_TIMEOUT
from ..models import HealthCheckResult

logger = logging.getLogger(__name__)


class HealthVerifier:
    """Poll a readiness endpoint until it answers 2xx or time runs out"""

    def __init__(self,
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        """Initialize health verifier

        Args:
            poll_interval: Seconds between probes
            request_timeout: Upper bound for a single request
            clock: Monotonic clock
            sleep: Async sleep
        """
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout
        self._clock = clock
        self._sleep = sleep

    async def check(self, url: str, timeout: float) -> HealthCheckResult:
        """Poll ``url`` until success or ``timeout`` seconds have elapsed

        Connection errors and non-2xx answers count as "not ready yet".
        Cancellation propagates immediately.

        Args:
            url: Health endpoint
            timeout: Overall deadline in seconds

        Returns:
            HealthCheckResult; ``success`` is False on timeout
        """
        started = self._clock()
        deadline = started + timeout
        result = HealthCheckResult(url=url, success=False)

        logger.info(f"Health checking {url} (timeout {timeout:g}s)")

        async with httpx.AsyncClient(follow_redirects=True) as client:
            while True:
                remaining = deadline - self._clock()
                request_timeout = max(min(self.request_timeout, remaining), 0.1)
                result.attempts += 1

                status, error = await self._probe(client, url, request_timeout)
                result.last_status = status
                result.last_error = error

                if status is not None and 200 <= status < 300:
                    result.success = True
                    break

                logger.debug(
                    f"Probe {result.attempts} not ready: "
                    f"{error or f'HTTP {status}'}"
                )

                remaining = deadline - self._clock()
                if remaining <= 0:
                    break
                await self._sleep(min(self.poll_interval, remaining))
                if self._clock() >= deadline:
                    break

        result.elapsed = self._clock() - started

        if result.success:
            logger.info(f"Health check passed after {result.attempts} attempt(s)")
        else:
            logger.warning(
                f"Health check failed after {result.attempts} attempt(s) "
                f"in {result.elapsed:.1f}s"
            )
        return result

    async def _probe(self, client: httpx.AsyncClient, url: str,
                     request_timeout: float) -> Tuple[Optional[int], Optional[str]]:
        try:
            response = await client.get(url, timeout=request_timeout)
        except httpx.HTTPError as e:
            return None, f"{type(e).__name__}: {e}"
        return response.status_code, None

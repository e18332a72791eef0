"""
Resilient HTTP client for the open-data APIs
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from plenario.core.timeouts import TIMEOUTS

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised once every attempt of a fetch has failed"""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None, attempts: int = 0):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code
        self.attempts = attempts


class ResilientFetchClient:
    """GET with a hard per-attempt timeout and exponential backoff between attempts.

    The delay doubles after every failed attempt, starting at ``initial_delay``.
    There is no jitter and no ceiling on the delay.
    """

    def __init__(
        self,
        max_retries: int = 3,
        timeout: float = TIMEOUTS.http_request,
        initial_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.max_retries = max_retries
        self.timeout = timeout
        self.initial_delay = initial_delay
        self._sleep = sleep
        self.client = httpx.AsyncClient(
            headers={"Accept": "application/json"},
            transport=transport,
            follow_redirects=True,
        )

    async def close(self):
        await self.client.aclose()

    async def fetch(
        self,
        url: str,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
        initial_delay: Optional[float] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Fetch url, making at most max_retries + 1 attempts"""
        retries = self.max_retries if max_retries is None else max_retries
        timeout = self.timeout if timeout is None else timeout
        delay = self.initial_delay if initial_delay is None else initial_delay

        attempts = 0
        while True:
            attempts += 1
            try:
                # wait_for cancels the in-flight request, not just the wait
                response = await asyncio.wait_for(
                    self.client.get(url, params=params, timeout=timeout),
                    timeout=timeout,
                )
                response.raise_for_status()
                return response
            except (httpx.HTTPError, asyncio.TimeoutError) as e:
                status_code = None
                if isinstance(e, httpx.HTTPStatusError):
                    status_code = e.response.status_code

                if retries <= 0:
                    raise FetchError(
                        url,
                        f"Request failed after {attempts} attempt(s): {e!r}",
                        status_code=status_code,
                        attempts=attempts,
                    ) from e

                logger.warning(
                    f"Fetch attempt {attempts} failed for {url} ({e!r}), retrying in {delay:.1f}s"
                )
                await self._sleep(delay)
                retries -= 1
                delay *= 2

    async def fetch_json(self, url: str, **kwargs) -> Any:
        response = await self.fetch(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(url, f"Invalid JSON payload: {e}", status_code=response.status_code) from e

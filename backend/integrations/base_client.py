"""Base HTTP client with rate limiting and opt-in connect retry."""
import asyncio
import logging
from typing import Any, Optional
from abc import ABC, abstractmethod

import httpx
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

logger = logging.getLogger(__name__)


class RateLimiter:
    """클라이언트별 최소 호출 간격 (초당 calls_per_second 회, 0 이하면 제한 없음).

    Lock 은 이벤트 루프에 묶이므로 루프가 바뀌면 상태를 새로 만든다.
    """

    def __init__(self, calls_per_second: float = 5.0):
        self.calls_per_second = calls_per_second
        self.min_interval = 1.0 / calls_per_second if calls_per_second > 0 else 0.0
        self._state: Optional[tuple[asyncio.AbstractEventLoop, asyncio.Lock]] = None
        self._next_slot: float = 0.0

    def _lock_for(self, loop: asyncio.AbstractEventLoop) -> asyncio.Lock:
        if self._state is None or self._state[0] is not loop:
            self._state = (loop, asyncio.Lock())
            self._next_slot = 0.0
        return self._state[1]

    async def acquire(self):
        if self.min_interval <= 0:
            return
        loop = asyncio.get_running_loop()
        async with self._lock_for(loop):
            delay = self._next_slot - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            self._next_slot = loop.time() + self.min_interval


class BaseAPIClient(ABC):
    """Base class for API clients.

    max_attempts > 1 이면 연결 수립 실패(ConnectError)에 한해 지수 백오프 재시도.
    응답을 받은 뒤의 실패(HTTP 상태 오류, 타임아웃)는 재시도하지 않는다.
    """

    def __init__(
        self,
        base_url: str,
        rate_limit: float = 5.0,
        timeout: float = 30.0,
        max_attempts: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.rate_limiter = RateLimiter(rate_limit)
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    @abstractmethod
    def get_headers(self) -> dict[str, str]:
        """Return headers for API requests. Override in subclasses."""
        pass

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json_data: Optional[Any] = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        await self.rate_limiter.acquire()

        request_headers = self.get_headers()
        if headers:
            request_headers.update(headers)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.ConnectError),
            reraise=True,
        ):
            with attempt:
                return await self.client.request(
                    method=method,
                    url=path,
                    params=params,
                    json=json_data,
                    headers=request_headers,
                )

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json_data: Optional[Any] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body."""
        try:
            response = await self._send(
                method, path, params=params, json_data=json_data, headers=headers
            )
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"HTTP error {e.response.status_code} for {method} {path}: {e.response.text[:500]}"
            )
            raise
        except httpx.RequestError as e:
            logger.error(f"Request error for {method} {path}: {e}")
            raise

    async def get(
        self,
        path: str,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        return await self._request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        json_data: Optional[Any] = None,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        return await self._request(
            "POST", path, params=params, json_data=json_data, headers=headers
        )

    async def patch(
        self,
        path: str,
        json_data: Optional[Any] = None,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> Any:
        return await self._request(
            "PATCH", path, params=params, json_data=json_data, headers=headers
        )

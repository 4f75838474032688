"""대시보드 API 폴링 클라이언트.

서버 푸시 없이 같은 요청을 고정 간격으로 반복해서 done/error 상태를 기다린다.
"""
import asyncio
import logging
from typing import Optional

import httpx

from integrations.base_client import BaseAPIClient

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {"done", "error"}


def _error_detail(response: httpx.Response) -> str:
    """FastAPI HTTPException 본문의 detail, 없으면 상태 코드."""
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        detail = None
    return str(detail) if detail else f"HTTP {response.status_code}"


class DashboardAPIClient(BaseAPIClient):
    """이 백엔드의 /api/v1 엔드포인트 클라이언트."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000/api/v1",
        timeout: float = 90.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=base_url,
            rate_limit=10.0,
            timeout=timeout,
            transport=transport,
        )

    def get_headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json"}

    async def request_indicator_insight(self, code: str) -> dict:
        return await self.post("/indicator-insight", json_data={"code": code})

    async def poll_indicator_insight(
        self,
        code: str,
        interval: float = 3.0,
        max_attempts: Optional[int] = None,
    ) -> dict:
        """done/error 가 나올 때까지 interval 초 간격으로 재요청.

        Args:
            code: 지표 코드
            interval: 폴링 간격(초)
            max_attempts: 최대 요청 횟수 (None 이면 무제한)

        Returns:
            종료 상태 응답. 횟수를 다 쓰면 마지막 응답 (보통 pending)
            HTTP 오류 응답은 {"status": "error", "error_message": ...} 로 바로 종료
        """
        attempt = 0
        last: dict = {"status": "pending"}

        while max_attempts is None or attempt < max_attempts:
            if attempt > 0:
                await asyncio.sleep(interval)
            attempt += 1

            try:
                data = await self.request_indicator_insight(code)
            except httpx.HTTPStatusError as e:
                # 4xx/5xx 응답은 재요청해도 같은 결과 (코드 없음, 설정 누락 등)
                detail = _error_detail(e.response)
                logger.error(f"인사이트 요청 실패: {code} ({e.response.status_code}) {detail}")
                return {"status": "error", "error_message": detail}
            except (httpx.RequestError, ValueError) as e:
                logger.warning(f"인사이트 폴링 연결 오류 ({code}, {attempt}회차): {e}")
                continue

            last = data or {"status": "pending"}
            status = last.get("status")
            if status in TERMINAL_STATUSES:
                logger.info(f"인사이트 폴링 종료: {code} → {status} ({attempt}회)")
                return last
            logger.debug(f"인사이트 대기 중: {code} ({attempt}회차)")

        logger.warning(f"인사이트 폴링 횟수 초과: {code} ({attempt}회)")
        return last

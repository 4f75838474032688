"""Supabase PostgREST 클라이언트.

뷰/테이블을 이름으로 조회하는 얇은 래퍼. 필터는 PostgREST 문법 그대로 전달한다.
예: filters={"code": "eq.vix"}, order="obs_date.desc"
"""
import logging
from typing import Any, Optional

import httpx

from core.config import Settings, get_settings
from core.exceptions import ConfigurationError, UpstreamDataError
from integrations.base_client import BaseAPIClient

logger = logging.getLogger(__name__)

_supabase_client: Optional["SupabaseClient"] = None


def in_filter(values: list[str]) -> str:
    """PostgREST in.(...) 필터 값 생성."""
    quoted = ",".join(f'"{v}"' for v in values)
    return f"in.({quoted})"


class SupabaseClient(BaseAPIClient):
    """Supabase REST (PostgREST) 클라이언트. 서비스 키 하나로 접근."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._service_key = settings.supabase_service_key
        super().__init__(
            base_url=f"{(settings.supabase_url or '').rstrip('/')}/rest/v1",
            rate_limit=20.0,
            timeout=settings.supabase_timeout_seconds,
            max_attempts=1,  # 원천 데이터 실패는 재시도 없이 요청 실패로 처리
            transport=transport,
        )
        self._configured = settings.is_supabase_configured

    @property
    def is_configured(self) -> bool:
        return self._configured

    def get_headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_key or "",
            "Authorization": f"Bearer {self._service_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _ensure_configured(self):
        if not self._configured:
            raise ConfigurationError("Missing Supabase credentials")

    async def select(
        self,
        relation: str,
        filters: Optional[dict[str, str]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """뷰/테이블 조회.

        Args:
            relation: 뷰 또는 테이블 이름
            filters: PostgREST 필터 (컬럼 → "연산자.값")
            order: 정렬 (예: "obs_date.desc", "category.asc,name.asc")
            limit: 최대 행 수
            columns: select 컬럼 목록

        Returns:
            JSON 레코드 리스트

        Raises:
            UpstreamDataError: HTTP 오류 또는 네트워크 오류
        """
        self._ensure_configured()

        params: dict[str, Any] = {"select": columns}
        if filters:
            params.update(filters)
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit

        try:
            data = await self.get(f"/{relation}", params=params)
        except httpx.HTTPStatusError as e:
            raise UpstreamDataError(
                f"Failed to fetch {relation}: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamDataError(f"Failed to fetch {relation}: {e}") from e
        except ValueError as e:
            raise UpstreamDataError(f"Invalid response body from {relation}") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise UpstreamDataError(f"Unexpected response shape from {relation}")
        return data

    async def update(
        self,
        relation: str,
        filters: dict[str, str],
        values: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """조건부 UPDATE (PATCH). 갱신된 행 반환."""
        self._ensure_configured()

        try:
            data = await self.patch(
                f"/{relation}",
                json_data=values,
                params=filters,
                headers={"Prefer": "return=representation"},
            )
        except httpx.HTTPStatusError as e:
            raise UpstreamDataError(
                f"Failed to update {relation}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamDataError(f"Failed to update {relation}: {e}") from e
        except ValueError as e:
            raise UpstreamDataError(f"Invalid response body from {relation}") from e

        return data or []


def get_supabase_client() -> SupabaseClient:
    """Supabase 클라이언트 싱글톤 반환."""
    global _supabase_client
    if _supabase_client is None:
        _supabase_client = SupabaseClient(get_settings())
    return _supabase_client


async def close_supabase_client():
    global _supabase_client
    if _supabase_client is not None:
        await _supabase_client.close()
        _supabase_client = None

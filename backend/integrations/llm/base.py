"""LLM 생성 백엔드 공통 인터페이스."""
import logging
from abc import abstractmethod
from typing import Optional

import httpx

from core.exceptions import ConfigurationError, GenerationError
from integrations.base_client import BaseAPIClient

logger = logging.getLogger(__name__)


class LLMClient(BaseAPIClient):
    """프롬프트 → 텍스트. 실패는 GenerationError."""

    provider: str = "llm"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str],
        model: str,
        timeout: float,
        max_attempts: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=base_url,
            rate_limit=2.0,
            timeout=timeout,
            max_attempts=max_attempts,
            transport=transport,
        )
        self._api_key = api_key
        self.model = model

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @abstractmethod
    def _build_request(
        self,
        system: str,
        user: str,
        json_mode: bool,
        max_tokens: int,
        temperature: Optional[float],
    ) -> tuple[str, dict]:
        """(경로, 요청 본문) 반환."""

    @abstractmethod
    def _extract_text(self, data: dict) -> str:
        """응답 본문에서 생성 텍스트 추출."""

    async def complete(
        self,
        system: str,
        user: str,
        json_mode: bool = False,
        max_tokens: int = 4096,
        temperature: Optional[float] = None,
    ) -> str:
        """단일 호출. 내부적으로 응답을 재시도하지 않는다.

        Raises:
            ConfigurationError: API 키 미설정
            GenerationError: 비정상 상태 코드, 네트워크 오류, JSON 아닌 본문, 빈 응답
        """
        if not self.is_configured:
            raise ConfigurationError(f"{self.provider} API key not configured")

        path, body = self._build_request(system, user, json_mode, max_tokens, temperature)
        try:
            data = await self.post(path, json_data=body)
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"{self.provider} API error: {e.response.status_code} {e.response.text[:300]}"
            ) from e
        except httpx.HTTPError as e:
            raise GenerationError(f"{self.provider} API request failed: {e}") from e
        except ValueError as e:
            # 2xx 인데 JSON 이 아닌 본문 (게이트웨이 HTML 등)
            raise GenerationError(f"Invalid {self.provider} response body: {e}") from e

        try:
            text = self._extract_text(data or {})
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"Unexpected {self.provider} response shape") from e

        if not text or not text.strip():
            raise GenerationError(f"Empty {self.provider} response")
        return text

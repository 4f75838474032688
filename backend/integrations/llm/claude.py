"""Anthropic Messages API 클라이언트 (포트폴리오 어드바이스 / 레짐 요약용)."""
from typing import Optional

import httpx

from core.config import Settings, get_settings
from integrations.llm.base import LLMClient

_claude_client: Optional["ClaudeClient"] = None
_takeaways_client: Optional["ClaudeClient"] = None


class ClaudeClient(LLMClient):
    """/v1/messages 엔드포인트.

    Messages API에는 JSON 모드가 없어서 json_mode는 무시하고,
    시스템 프롬프트의 스키마 지시 + 응답 파서의 JSON 추출에 맡긴다.
    """

    provider = "Claude"

    def __init__(
        self,
        settings: Settings,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=settings.anthropic_base_url,
            api_key=settings.anthropic_api_key,
            model=model or settings.advisory_model,
            timeout=settings.llm_timeout_seconds,
            max_attempts=settings.llm_max_attempts,
            transport=transport,
        )
        self.anthropic_version = settings.anthropic_version

    def get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self._api_key or "",
            "anthropic-version": self.anthropic_version,
        }

    def _build_request(self, system, user, json_mode, max_tokens, temperature):
        body = {
            "model": self.model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        }
        if temperature is not None:
            body["temperature"] = temperature
        return "/v1/messages", body

    def _extract_text(self, data: dict) -> str:
        block = data["content"][0]
        if block.get("type") != "text":
            raise TypeError(f"Unexpected content block: {block.get('type')}")
        return block.get("text", "")


def get_claude_client() -> ClaudeClient:
    """어드바이스용 Claude 클라이언트 싱글톤 반환."""
    global _claude_client
    if _claude_client is None:
        _claude_client = ClaudeClient(get_settings())
    return _claude_client


def get_takeaways_client() -> ClaudeClient:
    """레짐 요약용 Claude 클라이언트 싱글톤 반환."""
    global _takeaways_client
    if _takeaways_client is None:
        settings = get_settings()
        _takeaways_client = ClaudeClient(settings, model=settings.takeaways_model)
    return _takeaways_client

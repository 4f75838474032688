"""DeepSeek chat completions 클라이언트 (지표 인사이트용)."""
from typing import Optional

import httpx

from core.config import Settings, get_settings
from integrations.llm.base import LLMClient

_deepseek_client: Optional["DeepSeekClient"] = None


class DeepSeekClient(LLMClient):
    """OpenAI 호환 /chat/completions 엔드포인트."""

    provider = "DeepSeek"

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            base_url=settings.deepseek_base_url,
            api_key=settings.deepseek_api_key,
            model=settings.insight_model,
            timeout=settings.llm_timeout_seconds,
            max_attempts=settings.llm_max_attempts,
            transport=transport,
        )

    def get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def _build_request(self, system, user, json_mode, max_tokens, temperature):
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens,
        }
        if json_mode:
            body["response_format"] = {"type": "json_object"}
        if temperature is not None:
            body["temperature"] = temperature
        return "/chat/completions", body

    def _extract_text(self, data: dict) -> str:
        return data["choices"][0]["message"]["content"] or ""


def get_deepseek_client() -> DeepSeekClient:
    """DeepSeek 클라이언트 싱글톤 반환."""
    global _deepseek_client
    if _deepseek_client is None:
        _deepseek_client = DeepSeekClient(get_settings())
    return _deepseek_client

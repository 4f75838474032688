"""LLM 생성 백엔드 연동."""
from .base import LLMClient
from .deepseek import DeepSeekClient, get_deepseek_client
from .claude import ClaudeClient, get_claude_client, get_takeaways_client

__all__ = [
    "LLMClient",
    "DeepSeekClient",
    "get_deepseek_client",
    "ClaudeClient",
    "get_claude_client",
    "get_takeaways_client",
]


async def close_llm_clients():
    """종료 시 열린 HTTP 클라이언트 정리."""
    from . import deepseek, claude

    for client in (deepseek._deepseek_client, claude._claude_client, claude._takeaways_client):
        if client is not None:
            await client.close()

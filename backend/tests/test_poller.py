"""인사이트 폴링 클라이언트 테스트."""
import asyncio
import json

import httpx
import pytest

from integrations.dashboard_api import DashboardAPIClient


def _poll(responses, **kwargs):
    calls = []

    def handler(request):
        calls.append(request)
        item = responses[min(len(calls), len(responses)) - 1]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, tuple):
            status_code, body = item
            return httpx.Response(status_code, json=body)
        return httpx.Response(200, json=item)

    client = DashboardAPIClient(base_url="http://dashboard.test/api/v1", transport=httpx.MockTransport(handler))

    async def scenario():
        try:
            return await client.poll_indicator_insight("US_10Y", interval=0.01, **kwargs)
        finally:
            await client.close()

    return asyncio.run(scenario()), calls


class TestPollIndicatorInsight:
    """done/error 까지 같은 요청 반복."""

    def test_polls_until_done(self):
        result, calls = _poll([
            {"status": "pending"},
            {"status": "pending"},
            {"status": "done", "headline": "A"},
        ])

        assert result == {"status": "done", "headline": "A"}
        assert len(calls) == 3
        assert all(c.url.path == "/api/v1/indicator-insight" for c in calls)
        assert json.loads(calls[0].content) == {"code": "US_10Y"}

    def test_error_is_terminal(self):
        result, calls = _poll([{"status": "error", "error_message": "boom"}])
        assert result["status"] == "error"
        assert len(calls) == 1

    def test_max_attempts_returns_last_pending(self):
        result, calls = _poll([{"status": "pending"}], max_attempts=3)
        assert result == {"status": "pending"}
        assert len(calls) == 3

    def test_transport_error_keeps_polling(self):
        request = httpx.Request("POST", "http://dashboard.test/api/v1/indicator-insight")
        result, calls = _poll([
            httpx.ConnectError("refused", request=request),
            {"status": "done", "headline": "A"},
        ])
        assert result["status"] == "done"
        assert len(calls) == 2

    @pytest.mark.parametrize("status_code, body, message", [
        (404, {"detail": "Indicator feature not found: NOPE"}, "Indicator feature not found: NOPE"),
        (400, {"detail": "Missing configuration"}, "Missing configuration"),
        (502, {}, "HTTP 502"),
    ])
    def test_http_error_status_is_terminal(self, status_code, body, message):
        """4xx/5xx 응답은 재요청하지 않고 error 로 끝난다."""
        result, calls = _poll([(status_code, body)], max_attempts=5)
        assert result == {"status": "error", "error_message": message}
        assert len(calls) == 1

    def test_http_error_ends_unbounded_polling(self):
        result, calls = _poll([{"status": "pending"}, (404, {"detail": "Indicator feature not found: NOPE"})])
        assert result["status"] == "error"
        assert len(calls) == 2

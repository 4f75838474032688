"""포트폴리오 어드바이스 테스트."""
import asyncio
import json

import pytest

from conftest import ADVICE_TEXT, FakeLLM
from core.exceptions import ConfigurationError, GenerationError, UpstreamDataError
from services.advisory_generator import aggregate_portfolio, parse_advisory_response
from services.advisory_service import AdvisoryService


@pytest.fixture
def portfolio_market(market_data):
    market_data.regime = {
        "asof_date": "2026-03-01",
        "growth_label": "slowing",
        "inflation_label": "sticky",
        "policy_label": "restrictive",
        "risk_label": "risk_off",
        "liquidity_label": "tight",
        "confidence_label": "medium",
        "data_quality_label": "high",
        "data_quality_score": 0.92,
        "max_regime_lag_days": 3,
    }
    market_data.features["vix"] = {"code": "vix", "category": "risk", "latest_value": 22.5, "delta_1m": 3.1, "zscore_3y": 0.8}
    market_data.features["nfci"] = {"code": "nfci", "category": "liquidity", "latest_value": -0.4, "delta_1m": 0.05, "zscore_3y": 0.2}
    market_data.positions = [
        {"ticker": "VWRA", "asset_name": "Vanguard FTSE All-World", "asset_class": "Equity", "units": 100, "value_sgd": 4500.0},
        {"ticker": "A35", "asset_name": "ABF SG Bond", "asset_class": "Bond", "units": 300, "value_sgd": 3500.0},
        {"ticker": "SGD", "asset_name": "Cash", "asset_class": "Cash", "units": 2000, "value_sgd": 2000.0},
    ]
    return market_data


def _generate(session_maker, market_data, llm, settings):
    async def scenario():
        async with session_maker() as db:
            return await AdvisoryService(db, market_data, llm, settings).generate_advice()

    return asyncio.run(scenario())


class TestAggregatePortfolio:
    """보유 종목 집계."""

    def test_weights_and_subtotals(self, portfolio_market):
        result = aggregate_portfolio(portfolio_market.positions)

        assert result["total_value_sgd"] == 10000.0
        assert [s["asset_class"] for s in result["subtotals"]] == ["Equity", "Bond", "Cash"]
        assert result["subtotals"][0]["weight_pct"] == pytest.approx(45.0)
        assert result["holdings"][1]["weight_pct"] == pytest.approx(35.0)
        assert result["holdings"][0]["units"] == 100

    def test_empty_portfolio(self):
        result = aggregate_portfolio([])
        assert result == {"total_value_sgd": 0, "subtotals": [], "holdings": []}


class TestParseAdvisory:
    def test_parses_prose_wrapped_json(self):
        advice = parse_advisory_response(ADVICE_TEXT)
        assert advice.summary.conviction == "medium"
        assert advice.actions[0].action == "trim"
        assert advice.triggers[0].if_ == "VIX > 30"

    def test_too_many_actions(self):
        action = {"action": "hold", "asset": "X"}
        text = json.dumps({
            "summary": {"headline": "h", "conviction": "low", "data_quality": "low"},
            "actions": [action] * 6,
        })
        with pytest.raises(GenerationError):
            parse_advisory_response(text)

    def test_no_json(self):
        with pytest.raises(GenerationError):
            parse_advisory_response("No advice today.")


class TestAdvisoryService:
    """조회 → (미스) 생성 → 중복 무시 저장."""

    def test_miss_then_hit(self, session_maker, portfolio_market, advisory_llm, settings):
        cached, first = _generate(session_maker, portfolio_market, advisory_llm, settings)
        assert cached is False
        assert first["cached"] is False
        assert first["summary"]["headline"] == "Stay the course"
        assert first["triggers"] == [{"if": "VIX > 30", "then": "add cash"}]
        assert len(advisory_llm.calls) == 1

        cached, second = _generate(session_maker, portfolio_market, advisory_llm, settings)
        assert cached is True
        assert second["cached"] is True
        assert second["summary"] == first["summary"]
        assert second["created_at"]
        assert len(advisory_llm.calls) == 1

    def test_payload_contents(self, session_maker, portfolio_market, advisory_llm, settings):
        _generate(session_maker, portfolio_market, advisory_llm, settings)
        payload = json.loads(advisory_llm.calls[0]["user"])

        assert payload["asof"] == "2026-03-01"
        assert payload["base_currency"] == "SGD"
        assert payload["macro_regime"]["conviction_label"] == "medium"
        assert {d["code"] for d in payload["macro_drivers"]} == {"vix", "nfci"}
        assert payload["portfolio"]["total_value_sgd"] == 10000.0
        assert payload["constraints"]["max_single_position_pct"] == 20

    def test_portfolio_change_regenerates(self, session_maker, portfolio_market, advisory_llm, settings):
        _generate(session_maker, portfolio_market, advisory_llm, settings)
        portfolio_market.positions[2]["value_sgd"] = 2500.0
        cached, _ = _generate(session_maker, portfolio_market, advisory_llm, settings)

        assert cached is False
        assert len(advisory_llm.calls) == 2

    def test_concurrent_misses_store_single_row(self, session_maker, portfolio_market, settings):
        """동시 미스는 각자 생성하지만 저장은 한 건만."""
        llm = FakeLLM(response=ADVICE_TEXT, model="fake-claude", delay=0.2)

        async def one():
            async with session_maker() as db:
                return await AdvisoryService(db, portfolio_market, llm, settings).generate_advice()

        async def scenario():
            return await asyncio.gather(one(), one(), one())

        results = asyncio.run(scenario())
        assert all(body["summary"]["headline"] == "Stay the course" for _, body in results)

        cached, _ = _generate(session_maker, portfolio_market, llm, settings)
        assert cached is True

    def test_missing_regime(self, session_maker, market_data, advisory_llm, settings):
        with pytest.raises(UpstreamDataError):
            _generate(session_maker, market_data, advisory_llm, settings)
        assert advisory_llm.calls == []

    def test_missing_api_key(self, session_maker, portfolio_market, advisory_llm, settings):
        advisory_llm.is_configured = False
        with pytest.raises(ConfigurationError):
            _generate(session_maker, portfolio_market, advisory_llm, settings)

    def test_invalid_output_not_cached(self, session_maker, portfolio_market, settings):
        llm = FakeLLM(response="Sorry, no JSON.", model="fake-claude")
        with pytest.raises(GenerationError):
            _generate(session_maker, portfolio_market, llm, settings)

        llm.response = ADVICE_TEXT
        cached, _ = _generate(session_maker, portfolio_market, llm, settings)
        assert cached is False

"""pytest 설정 및 fixtures."""
import asyncio
from datetime import date
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import models  # noqa: F401  모델 등록
from api.deps import get_advisory_llm, get_insight_llm, get_market_data, get_takeaways_llm
from core.config import Settings, get_settings
from core.database import Base, get_async_db
from core.exceptions import GenerationError, UpstreamDataError
from main import app

TODAY = date(2026, 3, 2)

DONE_INSIGHT_TEXT = (
    '{"headline": "A", "signal_label": "neutral", "confidence": 0.6, '
    '"confidence_reason": "mixed signals"}'
)

ADVICE_TEXT = """Here is the advice:
{
  "summary": {"headline": "Stay the course", "conviction": "Medium", "data_quality": "high"},
  "actions": [
    {"action": "trim", "asset": "VWRA", "from_weight_pct": 45.0, "to_weight_pct": 40.0,
     "change_pct": -5.0, "why": "Equity weight above target while VIX rising"}
  ],
  "rationale": [{"point": "Growth slowing"}],
  "triggers": [{"if": "VIX > 30", "then": "add cash"}],
  "no_action_reason": null
}"""


class FakeMarketData:
    """MarketDataSource 대체. Supabase 없이 dict 로 응답."""

    def __init__(self):
        self.is_configured = True
        self.features: dict[str, dict] = {}
        self.history: dict[str, list[dict]] = {}  # 최신순
        self.regime: Optional[dict] = None
        self.takeaways: Optional[dict] = None
        self.explain: list[dict] = []
        self.credit_history: list[dict] = []  # 최신순
        self.positions: list[dict] = []
        self.assets: dict[str, int] = {}
        self.accounts: dict[str, int] = {}
        self.updates: list[dict] = []
        self.failing_history: set[str] = set()
        self.fail_takeaways = False

    async def get_indicator_features(self, code):
        feat = self.features.get(code)
        return dict(feat) if feat else None

    async def list_indicator_features(self, codes=None, columns="*"):
        rows = sorted(self.features.values(), key=lambda f: (f.get("category") or "", f["code"]))
        if codes:
            rows = [r for r in rows if r["code"] in codes]
        return [dict(r) for r in rows]

    async def get_indicator_history(self, code, limit):
        if code in self.failing_history:
            raise UpstreamDataError(f"indicator_values fetch failed: {code}")
        return list(self.history.get(code, []))[:limit]

    async def list_explain_features(self):
        return list(self.explain)

    async def get_latest_regime(self):
        return self.regime

    async def get_regime_takeaways(self):
        if self.fail_takeaways:
            raise UpstreamDataError("v_regime_takeaways fetch failed")
        return self.takeaways

    async def get_credit_gap_history(self, limit=1300):
        return list(self.credit_history)[:limit]

    async def list_portfolio_positions(self):
        return [dict(p) for p in self.positions]

    async def find_asset_id(self, code):
        return self.assets.get(code)

    async def find_account_id(self, account_name):
        return self.accounts.get(account_name)

    async def update_position_quantity(self, asset_id, account_id, quantity, updated_at):
        row = {"asset_id": asset_id, "account_id": account_id, "quantity": quantity, "updated_at": updated_at}
        self.updates.append(row)
        return [row]


class FakeLLM:
    """LLMClient 대체. 호출 기록 + 고정 응답."""

    def __init__(self, response: str = DONE_INSIGHT_TEXT, model: str = "fake-model", delay: float = 0.0):
        self.response = response
        self.model = model
        self.delay = delay
        self.is_configured = True
        self.error: Optional[Exception] = None
        self.calls: list[dict] = []

    async def complete(self, system, user, json_mode=False, max_tokens=4096, temperature=None):
        self.calls.append({
            "system": system,
            "user": user,
            "json_mode": json_mode,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings():
    """테스트용 설정 (.env 무시)."""
    return Settings(
        _env_file=None,
        supabase_url="http://supabase.test",
        supabase_service_key="service-key",
        deepseek_api_key="deepseek-key",
        anthropic_api_key="anthropic-key",
        regime_codes="vix,nfci",
    )


@pytest.fixture
def session_maker(tmp_path):
    """테스트마다 새 SQLite 파일 DB. 동시성 테스트를 위해 연결을 공유하지 않는다."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def market_data():
    data = FakeMarketData()
    data.features["US_10Y"] = {
        "code": "US_10Y",
        "name": "US 10Y Treasury Yield",
        "category": "rates",
        "frequency": "daily",
        "display_unit": "%",
        "source": "FRED",
        "latest_date": "2026-02-27",
        "latest_value": 10,
        "delta_1m": 0.5,
        "delta_3m": 0.8,
        "zscore_3y": 1.23456789,
        "pctile_10y": 0.91,
    }
    data.history["US_10Y"] = [
        {"obs_date": "2026-02-27", "raw_value": 10.0},
        {"obs_date": "2026-02-26", "raw_value": 9.87654321},
        {"obs_date": "2026-02-25", "raw_value": 9.5},
    ]
    return data


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def advisory_llm():
    return FakeLLM(response=ADVICE_TEXT, model="fake-claude")


@pytest.fixture
def client(session_maker, market_data, llm, advisory_llm, settings):
    """테스트 클라이언트. lifespan(실제 DB 연결)은 실행하지 않는다."""

    async def override_get_async_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_get_async_db
    app.dependency_overrides[get_market_data] = lambda: market_data
    app.dependency_overrides[get_insight_llm] = lambda: llm
    app.dependency_overrides[get_advisory_llm] = lambda: advisory_llm
    app.dependency_overrides[get_takeaways_llm] = lambda: advisory_llm
    app.dependency_overrides[get_settings] = lambda: settings

    yield TestClient(app)

    app.dependency_overrides.clear()


def failing_llm(message: str = "DeepSeek API error: 500") -> FakeLLM:
    fake = FakeLLM()
    fake.error = GenerationError(message)
    return fake

"""포트폴리오 서비스 (평가 포지션 조회, 그룹 요약, 수량 수정)."""
import logging
from typing import Optional

from core.exceptions import ConfigurationError
from core.timezone import now_sgt
from services.market_data import MarketDataSource

logger = logging.getLogger(__name__)

CORE_ASSET_TYPES = {"etf", "fund", "mmf", "gold"}

# (id, label) 고정 표시 순서
GROUP_ORDER = [
    ("cash", "Cash / Liquidity"),
    ("core", "Core Portfolio"),
    ("crypto", "Crypto"),
    ("others", "Others"),
]


class AssetNotFoundError(LookupError):
    pass


class AccountNotFoundError(LookupError):
    pass


def _group_id(position: dict) -> str:
    asset_type = (position.get("asset_type") or "other").lower()
    if asset_type == "cash":
        return "cash"
    if asset_type in CORE_ASSET_TYPES:
        return "core"
    if asset_type == "crypto":
        return "crypto"
    return "others"


def group_portfolio(positions: list[dict]) -> dict:
    """포지션을 cash / core / crypto / others 로 묶고 그룹 비중 계산.

    그룹 내 종목은 SGD 평가액 내림차순, 빈 그룹은 제외.
    """
    buckets: dict[str, list[dict]] = {gid: [] for gid, _ in GROUP_ORDER}
    for pos in positions:
        buckets[_group_id(pos)].append(pos)

    groups = []
    for gid, label in GROUP_ORDER:
        items = sorted(buckets[gid], key=lambda p: p.get("value_sgd") or 0, reverse=True)
        if not items:
            continue
        groups.append({
            "id": gid,
            "label": label,
            "items": items,
            "total_sgd": sum((p.get("value_sgd") or 0) for p in items),
            "weight_pct": 0.0,
        })

    total = sum(g["total_sgd"] for g in groups)
    for g in groups:
        g["weight_pct"] = (g["total_sgd"] / total) * 100 if total > 0 else 0.0

    allocation = [
        {"name": g["label"].split(" /")[0], "value": g["total_sgd"]}
        for g in groups
    ]
    return {"groups": groups, "total_sgd": total, "allocation_by_group": allocation}


class PortfolioService:
    def __init__(self, market_data: MarketDataSource):
        self.market_data = market_data

    def _ensure_configured(self):
        if not self.market_data.is_configured:
            raise ConfigurationError("Missing configuration")

    async def list_positions(self) -> list[dict]:
        self._ensure_configured()
        return await self.market_data.list_portfolio_positions()

    async def get_summary(self) -> dict:
        positions = await self.list_positions()
        return group_portfolio(positions)

    async def update_units(self, code: str, account: str, new_quantity: float) -> Optional[list]:
        """종목 코드 + 계좌명으로 포지션 수량 수정.

        Raises:
            AssetNotFoundError / AccountNotFoundError: 코드 또는 계좌 없음
        """
        self._ensure_configured()

        asset_id = await self.market_data.find_asset_id(code)
        if asset_id is None:
            raise AssetNotFoundError(f"Asset not found: {code}")

        account_id = await self.market_data.find_account_id(account)
        if account_id is None:
            raise AccountNotFoundError(f"Account not found: {account}")

        updated = await self.market_data.update_position_quantity(
            asset_id, account_id, new_quantity, now_sgt().isoformat()
        )
        logger.info(f"포지션 수량 수정: {code} @ {account} → {new_quantity}")
        return updated

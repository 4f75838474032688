"""포트폴리오 API."""
from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_market_data
from core.exceptions import ConfigurationError, UpstreamDataError
from schemas.portfolio import PortfolioSummaryResponse, UpdateUnitsRequest, UpdateUnitsResponse
from services.market_data import MarketDataSource
from services.portfolio_service import (
    AccountNotFoundError,
    AssetNotFoundError,
    PortfolioService,
)

router = APIRouter()


@router.get("/portfolio")
async def list_portfolio(market_data: MarketDataSource = Depends(get_market_data)):
    """SGD 평가 포지션 목록."""
    service = PortfolioService(market_data)
    try:
        return await service.list_positions()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamDataError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/portfolio/summary", response_model=PortfolioSummaryResponse)
async def get_portfolio_summary(market_data: MarketDataSource = Depends(get_market_data)):
    """cash / core / crypto / others 그룹 요약."""
    service = PortfolioService(market_data)
    try:
        return await service.get_summary()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamDataError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/portfolio/update-units", response_model=UpdateUnitsResponse)
async def update_units(
    request: UpdateUnitsRequest,
    market_data: MarketDataSource = Depends(get_market_data),
):
    """종목 코드 + 계좌명으로 보유 수량 수정."""
    if not request.code or not request.account or request.new_quantity is None:
        raise HTTPException(status_code=400, detail="Missing required fields")

    service = PortfolioService(market_data)
    try:
        await service.update_units(request.code, request.account, request.new_quantity)
    except (AssetNotFoundError, AccountNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamDataError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"success": True, "message": "Units updated"}

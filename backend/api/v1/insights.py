"""지표 인사이트 API."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_insight_llm, get_market_data
from core.config import Settings, get_settings
from core.database import get_async_db
from core.exceptions import (
    ConfigurationError,
    IndicatorNotFoundError,
    PersistenceError,
    UpstreamDataError,
)
from integrations.llm import LLMClient
from schemas.insight import IndicatorInsightRequest, IndicatorInsightResponse
from services.indicator_insight_service import IndicatorInsightService
from services.market_data import MarketDataSource

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/indicator-insight",
    response_model=IndicatorInsightResponse,
    response_model_exclude_none=True,
)
async def get_indicator_insight(
    request: IndicatorInsightRequest,
    db: AsyncSession = Depends(get_async_db),
    market_data: MarketDataSource = Depends(get_market_data),
    llm: LLMClient = Depends(get_insight_llm),
    settings: Settings = Depends(get_settings),
):
    """지표 인사이트 조회/생성.

    pending 이면 다른 요청이 생성 중. 같은 요청을 주기적으로 다시 보내면 된다.
    """
    code = (request.code or "").strip()
    if not code:
        raise HTTPException(status_code=400, detail="Missing indicator code")

    service = IndicatorInsightService(db, market_data, llm, settings)
    try:
        result = await service.get_insight(code)
    except IndicatorNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except UpstreamDataError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except (ConfigurationError, PersistenceError) as e:
        logger.error(f"인사이트 처리 실패 ({code}): {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return result.body

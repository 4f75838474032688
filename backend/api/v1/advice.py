"""포트폴리오 어드바이스 API."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_advisory_llm, get_market_data
from core.config import Settings, get_settings
from core.database import get_async_db
from core.exceptions import ConfigurationError, GenerationError, PersistenceError, UpstreamDataError
from integrations.llm import LLMClient
from schemas.advisory import AdvisoryResult
from services.advisory_service import AdvisoryService
from services.market_data import MarketDataSource

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/advice/generate", response_model=AdvisoryResult)
async def generate_advice(
    db: AsyncSession = Depends(get_async_db),
    market_data: MarketDataSource = Depends(get_market_data),
    llm: LLMClient = Depends(get_advisory_llm),
    settings: Settings = Depends(get_settings),
):
    """현재 레짐 + 포트폴리오 기준 어드바이스. 같은 입력이면 캐시 반환."""
    service = AdvisoryService(db, market_data, llm, settings)
    try:
        _, body = await service.generate_advice()
    except (ConfigurationError, PersistenceError) as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamDataError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except GenerationError as e:
        logger.error(f"어드바이스 생성 실패: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return body

"""매크로 대시보드 API (스냅샷, 신용 스트레스, 설명, 레짐 요약)."""
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_market_data, get_takeaways_llm
from core.config import Settings, get_settings
from core.exceptions import ConfigurationError, GenerationError, UpstreamDataError
from integrations.llm import LLMClient
from schemas.macro import CreditStressResponse, MacroSnapshotResponse, TakeawaysResponse
from services.macro_service import MacroService
from services.market_data import MarketDataSource

logger = logging.getLogger(__name__)

router = APIRouter()


def _service(
    market_data: MarketDataSource = Depends(get_market_data),
    llm: LLMClient = Depends(get_takeaways_llm),
    settings: Settings = Depends(get_settings),
) -> MacroService:
    return MacroService(market_data, settings, llm=llm)


@router.get("/macro-snapshot", response_model=MacroSnapshotResponse)
async def get_macro_snapshot(service: MacroService = Depends(_service)):
    """레짐 + 지표 + 스파크라인 추세."""
    try:
        return await service.get_snapshot()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamDataError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/credit-stress", response_model=CreditStressResponse)
async def get_credit_stress(service: MacroService = Depends(_service)):
    """HY-IG 스프레드 갭."""
    try:
        return await service.get_credit_stress()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamDataError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/explain")
async def get_explain(service: MacroService = Depends(_service)):
    try:
        return await service.get_explain()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamDataError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/generate-takeaways", response_model=TakeawaysResponse)
async def generate_takeaways(service: MacroService = Depends(_service)):
    """전체 지표 기반 3~5개 핵심 요약."""
    try:
        bullets = await service.generate_takeaways()
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except UpstreamDataError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except GenerationError as e:
        logger.error(f"레짐 요약 생성 실패: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"bullets": bullets}

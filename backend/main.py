import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager

from core.config import get_settings
from core.database import init_models
from api.v1 import insights, advice, macro, portfolio, health
from integrations.llm import close_llm_clients
from integrations.supabase import close_supabase_client

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_models()
    logger.info("Application started")

    yield

    # Shutdown
    await close_supabase_client()
    await close_llm_clients()
    logger.info("Application shutdown")


app = FastAPI(
    title="Macro Insight Dashboard API",
    description="매크로 지표 인사이트 / 포트폴리오 어드바이스 (LLM 생성 결과 캐시)",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(insights.router, prefix="/api/v1", tags=["indicator-insight"])
app.include_router(advice.router, prefix="/api/v1", tags=["advice"])
app.include_router(macro.router, prefix="/api/v1", tags=["macro"])
app.include_router(portfolio.router, prefix="/api/v1", tags=["portfolio"])
app.include_router(health.router, prefix="/api/v1/health", tags=["health"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}

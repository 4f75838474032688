from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from .config import get_settings

settings = get_settings()

# 비동기 엔진 (캐시 테이블 전용, 원천 데이터는 Supabase REST)
async_database_url = settings.database_url.replace('postgresql://', 'postgresql+asyncpg://')
async_engine = create_async_engine(
    async_database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
    pool_recycle=1800,
)
async_session_maker = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()

# PostgreSQL에서는 JSONB, 그 외(테스트용 SQLite)에서는 일반 JSON
JSONType = JSON().with_variant(JSONB(), "postgresql")


async def init_models():
    """캐시 테이블 생성 (존재하지 않을 때만)."""
    import models  # noqa: F401  모델 등록

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_db():
    """비동기 DB 세션 의존성."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()

"""포트폴리오 어드바이스 LLM 응답 캐시 모델."""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime, UniqueConstraint

from core.database import Base, JSONType

# 서비스 키로 INSERT 할 때 쓰는 시스템 사용자
SYSTEM_USER_ID = "00000000-0000-0000-0000-000000000000"


class PortfolioAdvice(Base):
    """레짐 스냅샷 + 포트폴리오 입력 해시별 어드바이스 캐시.

    클레임 단계 없음: 동시 캐시 미스는 각자 생성하고, 중복 INSERT는 유니크 제약에서 버려진다.
    """
    __tablename__ = "llm_portfolio_advice"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), default=SYSTEM_USER_ID, nullable=False)
    regime_asof_date = Column(Date, nullable=False)
    payload_hash = Column(String(64), nullable=False)
    model = Column(String(100), nullable=False)
    prompt_version = Column(String(20), nullable=False)
    payload = Column(JSONType, nullable=False)
    response = Column(JSONType, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "regime_asof_date", "payload_hash", "model", "prompt_version",
            name="uq_llm_portfolio_advice_key",
        ),
    )

    def __repr__(self):
        return f"<PortfolioAdvice {self.regime_asof_date} {self.payload_hash[:8]}>"

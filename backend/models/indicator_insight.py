"""지표 인사이트 일별 생성 기록 (캐시 겸 생성 락)."""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, Text, Float, Date, DateTime, Index, UniqueConstraint

from core.database import Base, JSONType


class InsightStatus(str, PyEnum):
    PENDING = "pending"
    DONE = "done"
    ERROR = "error"


class IndicatorInsight(Base):
    """지표별 LLM 인사이트.

    (code, asof_date, data_fingerprint, model, prompt_version) 유니크 제약이 곧 생성 락.
    pending 행을 먼저 INSERT 한 요청만 생성을 수행하고, 결과를 같은 행에 UPDATE 한다.
    행은 삭제하지 않음 (생성 로그 겸 캐시).
    """
    __tablename__ = "indicator_insights_daily"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(64), nullable=False)
    asof_date = Column(Date, nullable=False)  # 생성 윈도우 (SGT 날짜)
    data_fingerprint = Column(String(64), nullable=False)
    data_latest_date = Column(Date, nullable=True)

    status = Column(String(16), default=InsightStatus.PENDING.value, nullable=False)
    model = Column(String(100), nullable=False)
    prompt_version = Column(String(20), nullable=False)

    insight_json = Column(JSONType, nullable=True)
    headline = Column(Text, nullable=True)
    signal_label = Column(String(20), nullable=True)
    confidence = Column(Float, nullable=True)
    confidence_reason = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "code", "asof_date", "data_fingerprint", "model", "prompt_version",
            name="uq_indicator_insights_claim",
        ),
        Index("ix_indicator_insights_lookup", "code", "data_fingerprint", "status"),
    )

    def __repr__(self):
        return f"<IndicatorInsight {self.code} {self.asof_date} ({self.status})>"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "asof_date": self.asof_date.isoformat() if self.asof_date else None,
            "status": self.status,
            "headline": self.headline,
            "signal_label": self.signal_label,
            "confidence": self.confidence,
            "confidence_reason": self.confidence_reason,
            "insight_json": self.insight_json,
            "error_message": self.error_message,
            "model": self.model,
            "prompt_version": self.prompt_version,
            "data_latest_date": self.data_latest_date.isoformat() if self.data_latest_date else None,
            "data_fingerprint": self.data_fingerprint,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

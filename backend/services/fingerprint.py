"""데이터 버전 지문(fingerprint) 계산.

지문은 동일성 비교 외에 의미가 없다. 사람이 읽을 수 있거나 역산 가능할 필요 없음.
"""
import hashlib
import json
from typing import Any

# 지표 인사이트 내용에 영향을 주는 필드 (값이 바뀌면 재생성)
INDICATOR_WATCHED_FIELDS = {
    "val": "latest_value",
    "d1m": "delta_1m",
    "z3y": "zscore_3y",
}


def canonical_json(data: Any) -> str:
    """키 정렬 + 공백 없는 직렬화."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def indicator_fingerprint(features: dict) -> str:
    """지표 스냅샷 지문 (최신값, 1개월 변화, 3년 z-score)."""
    watched = {
        short: features.get(field)
        for short, field in INDICATOR_WATCHED_FIELDS.items()
    }
    raw = canonical_json(watched)
    return hashlib.sha256(raw.encode()).hexdigest()[:32]


def payload_hash(payload: dict) -> str:
    """어드바이스 요청 페이로드 전체 해시 (sha256 hex)."""
    raw = canonical_json(payload)
    return hashlib.sha256(raw.encode()).hexdigest()

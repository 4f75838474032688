"""대시보드 백엔드 예외 계층."""


class DashboardError(Exception):
    """모든 도메인 예외의 기반 클래스."""


class ConfigurationError(DashboardError):
    """API 키/엔드포인트 미설정. 재시도 없이 즉시 실패."""


class UpstreamDataError(DashboardError):
    """원천 데이터(Supabase) 조회 실패."""


class IndicatorNotFoundError(UpstreamDataError):
    """요청한 지표 코드가 피처 뷰에 없음."""

    def __init__(self, code: str):
        super().__init__(f"Indicator feature not found: {code}")
        self.code = code


class GenerationError(DashboardError):
    """LLM 호출 실패 또는 응답 파싱/스키마 검증 실패."""


class PersistenceError(DashboardError):
    """캐시 저장소 접근 실패 또는 정합성 오류."""

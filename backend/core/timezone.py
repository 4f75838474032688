"""인사이트 생성 윈도우 시계.

윈도우(asof_date)는 서버 타임존과 무관하게 싱가포르(SGT) 달력 날짜다.
SGT 자정에 윈도우가 바뀌며, 그 전까지 남은 pending/error 행이 같은 키의 재생성을 막는다.
DB 타임스탬프는 naive UTC(datetime.utcnow)로 저장된다.
"""
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

try:
    SGT = ZoneInfo("Asia/Singapore")
except ZoneInfoNotFoundError:
    # tzdata 없음. SGT는 서머타임이 없어서 고정 오프셋과 같다
    SGT = timezone(timedelta(hours=8))


def now_sgt() -> datetime:
    return datetime.now(SGT)


def window_for(moment: datetime) -> date:
    """시각이 속한 생성 윈도우. naive 값은 UTC로 본다."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(SGT).date()


def current_window() -> date:
    return window_for(datetime.now(timezone.utc))


def window_closes_at(window: date) -> datetime:
    """윈도우가 끝나는 시각 (다음 SGT 자정, aware)."""
    return datetime.combine(window + timedelta(days=1), datetime.min.time(), tzinfo=SGT)


"""
타임존 유틸리티

내부 저장: UTC | 영업일 판정: 가게 현지 시간 원칙 준수를 위한 헬퍼 함수
"""

from datetime import date, datetime, timedelta, timezone

from core.constants import Defaults


def business_tz(offset_hours: int = Defaults.TIMEZONE_OFFSET_HOURS) -> timezone:
    """가게 현지 타임존 (고정 오프셋)

    Args:
        offset_hours: UTC 기준 오프셋 (기본 +5, PKT)
    """
    return timezone(timedelta(hours=offset_hours))


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    datetime.now(timezone.utc)의 축약형.

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def now_local(offset_hours: int = Defaults.TIMEZONE_OFFSET_HOURS) -> datetime:
    """현재 가게 현지 시간 반환"""
    return datetime.now(business_tz(offset_hours))


def today_local(offset_hours: int = Defaults.TIMEZONE_OFFSET_HOURS) -> date:
    """가게 현지 기준 오늘 날짜

    일별 집계의 날짜 키는 항상 이 값을 기준으로 한다.
    """
    return now_local(offset_hours).date()


def format_date(d: date) -> str:
    """날짜 키 포맷 (YYYY-MM-DD)"""
    return d.strftime("%Y-%m-%d")


def format_time(dt: datetime) -> str:
    """시각 포맷 (HH:MM:SS)"""
    return dt.strftime("%H:%M:%S")


def parse_date(value: str) -> date:
    """YYYY-MM-DD 문자열을 date로 변환"""
    return date.fromisoformat(value)

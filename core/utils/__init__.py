"""
유틸리티 패키지

타임존 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    business_tz,
    format_date,
    format_time,
    now_local,
    now_utc,
    parse_date,
    today_local,
)

__all__ = [
    "business_tz",
    "format_date",
    "format_time",
    "now_local",
    "now_utc",
    "parse_date",
    "today_local",
]

"""
타임존 유틸리티

서비스 기준 시간대(settings.TIMEZONE, 기본 Asia/Shanghai) 처리를 위한 함수들
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

import pytz

from lifecurve.config import settings


def get_local_tz(tz_name: Optional[str] = None):
    return pytz.timezone(tz_name or settings.TIMEZONE)


def utc_now() -> datetime:
    """현재 UTC 시간을 반환합니다."""
    return datetime.now(timezone.utc)


def get_local_now(tz_name: Optional[str] = None) -> datetime:
    """서비스 시간대 기준 현재 시간을 반환합니다."""
    return utc_now().astimezone(get_local_tz(tz_name))


def get_local_day_start_utc(tz_name: Optional[str] = None) -> datetime:
    """서비스 시간대 기준 오늘 0시를 UTC datetime으로 반환합니다.

    "오늘 매출" 같은 일 단위 통계의 하한으로 사용합니다.
    """
    tz = get_local_tz(tz_name)
    local_now = utc_now().astimezone(tz)
    local_midnight = tz.localize(
        datetime(local_now.year, local_now.month, local_now.day)
    )
    return local_midnight.astimezone(timezone.utc)


def minutes_from_now(minutes: int) -> datetime:
    return utc_now() + timedelta(minutes=minutes)


def epoch_millis() -> int:
    return int(utc_now().timestamp() * 1000)

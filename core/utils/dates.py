"""
날짜 유틸리티

내부 저장: UTC (ISO 8601)
예산 기간 키: 월간 "YYYY-MM", 주간 "YYYY-Www" (ISO 주차)
"""

import calendar
import re
from datetime import date, datetime, time, timedelta, timezone

from core.errors import ValidationError

_MONTHLY_KEY = re.compile(r"^(\d{4})-(\d{2})$")
_WEEKLY_KEY = re.compile(r"^(\d{4})-W(\d{2})$")


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """naive datetime은 UTC로 간주, aware는 UTC로 변환"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: datetime) -> str:
    """저장용 ISO 문자열 (UTC, 마이크로초 고정 → 문자열 비교 = 시간 비교)"""
    return ensure_utc(dt).isoformat(timespec="microseconds")


def from_iso(value: str) -> datetime:
    """저장된 ISO 문자열 → UTC datetime"""
    return ensure_utc(datetime.fromisoformat(value))


def start_of_month(dt: datetime) -> datetime:
    """해당 월 1일 00:00:00 (UTC)"""
    dt = ensure_utc(dt)
    return datetime(dt.year, dt.month, 1, tzinfo=timezone.utc)


def end_of_month(dt: datetime) -> datetime:
    """해당 월 말일 23:59:59.999999 (UTC)"""
    dt = ensure_utc(dt)
    last_day = calendar.monthrange(dt.year, dt.month)[1]
    return datetime.combine(date(dt.year, dt.month, last_day), time.max, tzinfo=timezone.utc)


def add_months(dt: datetime, months: int) -> datetime:
    """월 단위 이동 (말일 보정: 3/31 - 1개월 → 2/28)"""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def sub_months(dt: datetime, months: int) -> datetime:
    return add_months(dt, -months)


def monthly_period_key(dt: datetime) -> str:
    """월간 예산 키 (예: "2025-01")"""
    dt = ensure_utc(dt)
    return f"{dt.year}-{dt.month:02d}"


def weekly_period_key(dt: datetime) -> str:
    """주간 예산 키 (예: "2025-W03", ISO 주차)"""
    iso_year, iso_week, _ = ensure_utc(dt).isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def is_weekly_key(period_key: str) -> bool:
    return _WEEKLY_KEY.match(period_key) is not None


def period_window(period_key: str) -> tuple[datetime, datetime]:
    """기간 키 → (시작, 끝) UTC 구간 (양 끝 포함)

    Raises:
        ValidationError: 형식이 잘못된 경우
    """
    monthly = _MONTHLY_KEY.match(period_key)
    if monthly:
        year, month = int(monthly.group(1)), int(monthly.group(2))
        if not 1 <= month <= 12:
            raise ValidationError(f"기간 키의 월이 잘못되었습니다: {period_key}")
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        return start, end_of_month(start)

    weekly = _WEEKLY_KEY.match(period_key)
    if weekly:
        year, week = int(weekly.group(1)), int(weekly.group(2))
        try:
            monday = date.fromisocalendar(year, week, 1)
        except ValueError as e:
            raise ValidationError(f"기간 키의 주차가 잘못되었습니다: {period_key}") from e
        start = datetime.combine(monday, time.min, tzinfo=timezone.utc)
        end = datetime.combine(monday + timedelta(days=6), time.max, tzinfo=timezone.utc)
        return start, end

    raise ValidationError(f"기간 키 형식이 잘못되었습니다 (YYYY-MM 또는 YYYY-Www): {period_key}")


def previous_period_key(period_key: str) -> str:
    """직전 기간 키 ("2025-01" → "2024-12", "2025-W01" → "2024-W52")"""
    start, _ = period_window(period_key)
    if is_weekly_key(period_key):
        return weekly_period_key(start - timedelta(days=7))
    return monthly_period_key(sub_months(start, 1))

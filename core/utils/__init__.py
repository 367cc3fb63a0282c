"""
유틸리티 패키지

금액(보조 단위 정수) 연산, 통화 정보, UTC 날짜/예산 기간 처리 등 공통 유틸리티
"""

from core.utils.dates import (
    end_of_month,
    monthly_period_key,
    now_utc,
    period_window,
    start_of_month,
    weekly_period_key,
)

__all__ = [
    "now_utc",
    "start_of_month",
    "end_of_month",
    "monthly_period_key",
    "weekly_period_key",
    "period_window",
]

"""
분석 리포트

카테고리별 지출, 월별 현금 흐름. 읽기 전용 집계.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from adapters.db.sqlite_adapter import DatabaseExecutor
from core.errors import ValidationError
from core.storage.transaction_store import TransactionStore
from core.types import TransactionType
from core.utils.dates import (
    add_months,
    ensure_utc,
    monthly_period_key,
    now_utc,
    start_of_month,
    sub_months,
)


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    value = Decimal(part) * 100 / Decimal(whole)
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


async def expenses_by_category(
    db: DatabaseExecutor,
    owner_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
) -> dict[str, Any]:
    """카테고리별 지출 (금액 내림차순, 기본 기간: 최근 1개월)

    Returns:
        {"items": [...], "total": int, "period": {"start", "end"}}
    """
    end = ensure_utc(end) if end else now_utc()
    start = ensure_utc(start) if start else sub_months(end, 1)

    rows = await TransactionStore(db).sum_by_category(
        owner_id, TransactionType.EXPENSE, start, end
    )
    total = sum(int(row["total_amount"]) for row in rows)

    return {
        "items": [
            {
                "category_id": row["category_id"],
                "category_name": row["category_name"],
                "icon": row["icon"],
                "color": row["color"],
                "total_amount": int(row["total_amount"]),
                "transaction_count": int(row["transaction_count"]),
                "percentage": _percent(int(row["total_amount"]), total),
            }
            for row in rows
        ],
        "total": total,
        "period": {"start": start, "end": end},
    }


async def monthly_cash_flow(
    db: DatabaseExecutor,
    owner_id: str,
    months: int = 6,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """월별 현금 흐름 (오래된 달부터, 거래 없는 달은 0)

    Returns:
        [{"month", "income", "expense", "net_cash_flow", "savings_rate"}]
    """
    if months < 1:
        raise ValidationError(f"조회 개월 수는 1 이상이어야 합니다: {months}")

    now = ensure_utc(now) if now else now_utc()
    first_month = start_of_month(sub_months(now, months - 1))

    totals = await TransactionStore(db).monthly_totals(owner_id, first_month, now)

    flow = []
    for offset in range(months):
        key = monthly_period_key(add_months(first_month, offset))
        month = totals.get(key, {"income": 0, "expense": 0})
        net = month["income"] - month["expense"]
        flow.append(
            {
                "month": key,
                "income": month["income"],
                "expense": month["expense"],
                "net_cash_flow": net,
                "savings_rate": _percent(net, month["income"]),
            }
        )
    return flow

"""
예산 서비스

카테고리별 기간 예산 관리와 사용액(spent) 재계산.

spent는 캐시: 조회할 때마다 해당 기간의 EXPENSE 거래 합계로 덮어쓴다.
거래 쓰기 경로는 예산을 건드리지 않는다.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from adapters.db.sqlite_adapter import DatabaseExecutor, SQLiteAdapter
from core.domain.models import Budget
from core.domain.requests import BudgetCreateRequest, BudgetUpdateRequest, parse_request
from core.errors import ValidationError
from core.storage.budget_store import BudgetStore
from core.storage.category_store import CategoryStore
from core.storage.transaction_store import TransactionStore
from core.types import BudgetPeriod, CategoryType, TransactionType
from core.utils.dates import (
    is_weekly_key,
    monthly_period_key,
    now_utc,
    period_window,
    previous_period_key,
    weekly_period_key,
)

logger = logging.getLogger(__name__)


def current_period_key(period: BudgetPeriod) -> str:
    """현재 기간 키"""
    if period == BudgetPeriod.WEEKLY:
        return weekly_period_key(now_utc())
    return monthly_period_key(now_utc())


def percent_used(spent: int, budgeted: int) -> float:
    """사용률 (%) 소수점 2자리 반올림, 예산 0이면 0"""
    if budgeted <= 0:
        return 0.0
    ratio = Decimal(spent) * 100 / Decimal(budgeted)
    return float(ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class BudgetService:
    """예산 서비스

    Args:
        db: SQLiteAdapter (연결된 상태)
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create_budget(
        self,
        owner_id: str,
        request: BudgetCreateRequest | dict[str, Any],
    ) -> Budget:
        """예산 생성

        Raises:
            NotFoundError: 카테고리가 없는 경우
            ValidationError: EXPENSE 카테고리가 아님, 기간 키 오류, 중복 예산
        """
        req = parse_request(BudgetCreateRequest, request)
        period_key = req.period_key or current_period_key(req.period)
        self._check_period_key(req.period, period_key)

        async with self.db.transaction() as uow:
            category = await CategoryStore(uow).get_active(owner_id, req.category_id)
            if category.type != CategoryType.EXPENSE:
                raise ValidationError("예산은 EXPENSE 카테고리에만 설정할 수 있습니다")

            store = BudgetStore(uow)
            if await store.find_by_period(owner_id, req.category_id, period_key):
                raise ValidationError(f"'{category.name}' 카테고리의 {period_key} 예산이 이미 있습니다")

            budget = await store.insert(
                owner_id=owner_id,
                category_id=req.category_id,
                amount=req.amount,
                period=req.period,
                period_key=period_key,
                carry_over_enabled=req.carry_over_enabled,
            )
            return await self._recompute(uow, owner_id, budget)

    async def update_budget(
        self,
        owner_id: str,
        budget_id: str,
        changes: BudgetUpdateRequest | dict[str, Any],
    ) -> Budget:
        """예산 수정 (금액, 이월 여부)"""
        req = parse_request(BudgetUpdateRequest, changes)
        fields = {
            name: getattr(req, name)
            for name in req.model_fields_set
            if getattr(req, name) is not None
        }

        async with self.db.transaction() as uow:
            return await BudgetStore(uow).update_fields(owner_id, budget_id, **fields)

    async def delete_budget(self, owner_id: str, budget_id: str) -> None:
        """예산 삭제 (soft delete)"""
        async with self.db.transaction() as uow:
            await BudgetStore(uow).deactivate(owner_id, budget_id)

    async def get_budget(self, owner_id: str, budget_id: str) -> Budget:
        """예산 조회 (spent 재계산 포함)"""
        async with self.db.transaction() as uow:
            budget = await BudgetStore(uow).get(owner_id, budget_id)
            return await self._recompute(uow, owner_id, budget)

    async def recompute_spent(self, owner_id: str, budget: Budget) -> Budget:
        """예산 기간의 EXPENSE 합계로 spent 덮어쓰기"""
        async with self.db.transaction() as uow:
            return await self._recompute(uow, owner_id, budget)

    async def get_budget_status(self, owner_id: str, period_key: str) -> list[dict[str, Any]]:
        """기간별 예산 현황

        Returns:
            [{budget_id, category_id, category_name, period, period_key,
              budgeted, spent, remaining, percent_used, is_over_budget}]
        """
        period_window(period_key)  # 형식 검증

        async with self.db.transaction() as uow:
            categories = CategoryStore(uow)
            status: list[dict[str, Any]] = []
            for budget in await BudgetStore(uow).list_by_period(owner_id, period_key):
                budget = await self._recompute(uow, owner_id, budget)
                category = await categories.find(owner_id, budget.category_id)
                status.append(
                    {
                        "budget_id": budget.id,
                        "category_id": budget.category_id,
                        "category_name": category.name if category else None,
                        "period": budget.period.value,
                        "period_key": budget.period_key,
                        "budgeted": budget.budgeted,
                        "spent": budget.spent,
                        "remaining": budget.remaining,
                        "percent_used": percent_used(budget.spent, budget.budgeted),
                        "is_over_budget": budget.spent > budget.budgeted,
                    }
                )
            return status

    async def process_carry_over(self, owner_id: str, period_key: str) -> list[dict[str, Any]]:
        """직전 기간의 남은 예산을 현재 기간으로 이월

        직전 기간 예산 중 이월이 켜져 있고 (예산액 - 사용액) > 0 인 것만,
        같은 카테고리의 현재 기간 예산 carry_over_amount에 기록한다.

        Returns:
            [{category_id, carried_over}]
        """
        previous_key = previous_period_key(period_key)

        async with self.db.transaction() as uow:
            store = BudgetStore(uow)
            current = {b.category_id: b for b in await store.list_by_period(owner_id, period_key)}

            updates: list[dict[str, Any]] = []
            for previous in await store.list_by_period(owner_id, previous_key):
                if not previous.carry_over_enabled:
                    continue
                previous = await self._recompute(uow, owner_id, previous)
                remaining = previous.amount - previous.spent
                target = current.get(previous.category_id)
                if remaining <= 0 or target is None:
                    continue

                await store.update_fields(owner_id, target.id, carry_over_amount=remaining)
                updates.append({"category_id": previous.category_id, "carried_over": remaining})

        if updates:
            logger.info(
                f"예산 이월 완료: {previous_key} → {period_key} ({len(updates)}건)",
                extra={"owner_id": owner_id},
            )
        return updates

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _recompute(self, db: DatabaseExecutor, owner_id: str, budget: Budget) -> Budget:
        start, end = period_window(budget.period_key)
        spent = await TransactionStore(db).sum_amount(
            owner_id, TransactionType.EXPENSE, start, end, category_id=budget.category_id
        )
        if spent == budget.spent:
            return budget
        return await BudgetStore(db).update_fields(owner_id, budget.id, spent=spent)

    @staticmethod
    def _check_period_key(period: BudgetPeriod, period_key: str) -> None:
        period_window(period_key)
        if (period == BudgetPeriod.WEEKLY) != is_weekly_key(period_key):
            raise ValidationError(
                f"{period.value} 예산의 기간 키 형식이 맞지 않습니다: {period_key}"
            )

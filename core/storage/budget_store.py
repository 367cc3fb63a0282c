"""
BudgetStore - 예산 저장소

budget 테이블 CRUD. (owner, category, period_key) 당 활성 예산 하나.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from adapters.db.sqlite_adapter import DatabaseExecutor
from core.domain.models import Budget
from core.errors import NotFoundError
from core.types import BudgetPeriod

logger = logging.getLogger(__name__)


class BudgetStore:
    """예산 저장소

    Args:
        db: SQLiteAdapter 또는 UnitOfWork
    """

    def __init__(self, db: DatabaseExecutor):
        self.db = db

    async def get(self, owner_id: str, budget_id: str) -> Budget:
        """예산 조회

        Raises:
            NotFoundError: 없거나 소유자가 다르거나 삭제된 경우
        """
        row = await self.db.fetchone(
            "SELECT * FROM budget WHERE id = ? AND owner_id = ? AND is_active = 1",
            (budget_id, owner_id),
        )
        if row is None:
            raise NotFoundError("예산을 찾을 수 없습니다")
        return Budget.from_row(dict(row))

    async def find_by_period(
        self,
        owner_id: str,
        category_id: str,
        period_key: str,
    ) -> Budget | None:
        row = await self.db.fetchone(
            """
            SELECT * FROM budget
            WHERE owner_id = ? AND category_id = ? AND period_key = ? AND is_active = 1
            """,
            (owner_id, category_id, period_key),
        )
        if row is None:
            return None
        return Budget.from_row(dict(row))

    async def list_by_period(self, owner_id: str, period_key: str) -> list[Budget]:
        """기간별 활성 예산 목록 (생성 순)"""
        rows = await self.db.fetchall(
            """
            SELECT * FROM budget
            WHERE owner_id = ? AND period_key = ? AND is_active = 1
            ORDER BY created_at ASC, rowid ASC
            """,
            (owner_id, period_key),
        )
        return [Budget.from_row(dict(row)) for row in rows]

    async def insert(
        self,
        owner_id: str,
        category_id: str,
        amount: int,
        period: BudgetPeriod,
        period_key: str,
        carry_over_enabled: bool = False,
        carry_over_amount: int = 0,
    ) -> Budget:
        """예산 저장"""
        budget_id = f"bud-{uuid.uuid4().hex[:12]}"
        now = datetime.now(timezone.utc).isoformat()

        await self.db.execute(
            """
            INSERT INTO budget (
                id, owner_id, category_id, amount, period, period_key,
                carry_over_enabled, carry_over_amount, spent, is_active,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, 1, ?, ?)
            """,
            (
                budget_id,
                owner_id,
                category_id,
                amount,
                BudgetPeriod(period).value,
                period_key,
                int(carry_over_enabled),
                carry_over_amount,
                now,
                now,
            ),
        )

        logger.info(
            f"예산 생성: {budget_id}",
            extra={"owner_id": owner_id, "category_id": category_id, "period_key": period_key},
        )
        return await self.get(owner_id, budget_id)

    async def update_fields(self, owner_id: str, budget_id: str, **fields: Any) -> Budget:
        """지정한 컬럼만 수정 (amount, carry_over_enabled, carry_over_amount, spent)"""
        allowed = {"amount", "carry_over_enabled", "carry_over_amount", "spent"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Unknown budget fields: {sorted(unknown)}")

        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            values = [int(value) for value in fields.values()]
            await self.db.execute(
                f"UPDATE budget SET {assignments}, updated_at = ? WHERE id = ? AND owner_id = ?",
                (*values, datetime.now(timezone.utc).isoformat(), budget_id, owner_id),
            )
        return await self.get(owner_id, budget_id)

    async def deactivate(self, owner_id: str, budget_id: str) -> None:
        """예산 삭제 (soft delete)"""
        await self.get(owner_id, budget_id)
        await self.db.execute(
            "UPDATE budget SET is_active = 0, updated_at = ? WHERE id = ? AND owner_id = ?",
            (datetime.now(timezone.utc).isoformat(), budget_id, owner_id),
        )
        logger.info(f"예산 삭제: {budget_id}", extra={"owner_id": owner_id})

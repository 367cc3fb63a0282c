"""
TransactionStore - 거래 기록 저장소

ledger_transaction 테이블 CRUD 및 기간 합계 조회.
거래 기록은 잔액 효과와 함께 TransactionWorkflow에서만 생성/수정/삭제한다.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from adapters.db.sqlite_adapter import DatabaseExecutor
from core.domain.models import Transaction
from core.errors import NotFoundError
from core.types import TransactionType
from core.utils.dates import to_iso

logger = logging.getLogger(__name__)


@dataclass
class TransactionFilter:
    """거래 목록 필터

    account_id는 account/from/to 중 어느 쪽이든 일치하면 포함.
    search는 description/notes 대소문자 무시 부분 일치.
    """

    type: TransactionType | None = None
    account_id: str | None = None
    category_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    search: str | None = None

    def to_sql(self) -> tuple[str, list[Any]]:
        """WHERE 절 조각과 파라미터"""
        clauses: list[str] = []
        params: list[Any] = []

        if self.type is not None:
            clauses.append("type = ?")
            params.append(TransactionType(self.type).value)
        if self.account_id:
            clauses.append("(account_id = ? OR from_account_id = ? OR to_account_id = ?)")
            params.extend([self.account_id] * 3)
        if self.category_id:
            clauses.append("category_id = ?")
            params.append(self.category_id)
        if self.start_date is not None:
            clauses.append("date >= ?")
            params.append(to_iso(self.start_date))
        if self.end_date is not None:
            clauses.append("date <= ?")
            params.append(to_iso(self.end_date))
        if self.search:
            clauses.append("(LOWER(description) LIKE ? OR LOWER(notes) LIKE ?)")
            pattern = f"%{self.search.lower()}%"
            params.extend([pattern, pattern])

        return "".join(f" AND {clause}" for clause in clauses), params


class TransactionStore:
    """거래 기록 저장소

    Args:
        db: SQLiteAdapter 또는 UnitOfWork
    """

    def __init__(self, db: DatabaseExecutor):
        self.db = db

    async def find(self, owner_id: str, transaction_id: str) -> Transaction | None:
        row = await self.db.fetchone(
            "SELECT * FROM ledger_transaction WHERE id = ? AND owner_id = ?",
            (transaction_id, owner_id),
        )
        if row is None:
            return None
        return Transaction.from_row(dict(row))

    async def get(self, owner_id: str, transaction_id: str) -> Transaction:
        """거래 조회

        Raises:
            NotFoundError: 없거나 소유자가 다른 경우
        """
        tx = await self.find(owner_id, transaction_id)
        if tx is None:
            raise NotFoundError("거래를 찾을 수 없습니다")
        return tx

    async def insert(self, tx: Transaction) -> None:
        """거래 기록 저장"""
        await self.db.execute(
            """
            INSERT INTO ledger_transaction (
                id, owner_id, type, amount, date,
                account_id, category_id, from_account_id, to_account_id,
                description, notes, tags, recurrence, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                tx.id,
                tx.owner_id,
                tx.type.value,
                tx.amount,
                to_iso(tx.date),
                tx.account_id,
                tx.category_id,
                tx.from_account_id,
                tx.to_account_id,
                tx.description,
                tx.notes,
                json.dumps(tx.tags),
                json.dumps(tx.recurrence) if tx.recurrence else None,
                to_iso(tx.created_at or tx.date),
                to_iso(tx.updated_at or tx.created_at or tx.date),
            ),
        )

    async def update(self, tx: Transaction) -> None:
        """거래 기록 전체 덮어쓰기"""
        await self.db.execute(
            """
            UPDATE ledger_transaction SET
                type = ?, amount = ?, date = ?,
                account_id = ?, category_id = ?, from_account_id = ?, to_account_id = ?,
                description = ?, notes = ?, tags = ?, recurrence = ?, updated_at = ?
            WHERE id = ? AND owner_id = ?
            """,
            (
                tx.type.value,
                tx.amount,
                to_iso(tx.date),
                tx.account_id,
                tx.category_id,
                tx.from_account_id,
                tx.to_account_id,
                tx.description,
                tx.notes,
                json.dumps(tx.tags),
                json.dumps(tx.recurrence) if tx.recurrence else None,
                to_iso(tx.updated_at or tx.date),
                tx.id,
                tx.owner_id,
            ),
        )

    async def delete(self, owner_id: str, transaction_id: str) -> None:
        """거래 기록 삭제"""
        cursor = await self.db.execute(
            "DELETE FROM ledger_transaction WHERE id = ? AND owner_id = ?",
            (transaction_id, owner_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError("거래를 찾을 수 없습니다")

    async def list_transactions(
        self,
        owner_id: str,
        filters: TransactionFilter | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Transaction]:
        """거래 목록 (최신순)"""
        where, params = (filters or TransactionFilter()).to_sql()
        rows = await self.db.fetchall(
            f"""
            SELECT * FROM ledger_transaction
            WHERE owner_id = ?{where}
            ORDER BY date DESC, created_at DESC, rowid DESC
            LIMIT ? OFFSET ?
            """,
            (owner_id, *params, limit, offset),
        )
        return [Transaction.from_row(dict(row)) for row in rows]

    async def count_transactions(
        self,
        owner_id: str,
        filters: TransactionFilter | None = None,
    ) -> int:
        where, params = (filters or TransactionFilter()).to_sql()
        row = await self.db.fetchone(
            f"SELECT COUNT(*) AS cnt FROM ledger_transaction WHERE owner_id = ?{where}",
            (owner_id, *params),
        )
        return int(row["cnt"]) if row else 0

    async def sum_amount(
        self,
        owner_id: str,
        tx_type: TransactionType,
        start: datetime,
        end: datetime,
        category_id: str | None = None,
    ) -> int:
        """기간 [start, end] 내 유형별 금액 합계"""
        filters = TransactionFilter(
            type=tx_type, category_id=category_id, start_date=start, end_date=end
        )
        where, params = filters.to_sql()
        row = await self.db.fetchone(
            f"""
            SELECT COALESCE(SUM(amount), 0) AS total
            FROM ledger_transaction
            WHERE owner_id = ?{where}
            """,
            (owner_id, *params),
        )
        return int(row["total"]) if row else 0

    async def sum_by_category(
        self,
        owner_id: str,
        tx_type: TransactionType,
        start: datetime,
        end: datetime,
    ) -> list[dict[str, Any]]:
        """기간 내 카테고리별 합계 (금액 내림차순)"""
        rows = await self.db.fetchall(
            """
            SELECT t.category_id, c.name AS category_name, c.icon, c.color,
                   SUM(t.amount) AS total_amount, COUNT(*) AS transaction_count
            FROM ledger_transaction t
            JOIN category c ON c.id = t.category_id
            WHERE t.owner_id = ? AND t.type = ? AND t.date >= ? AND t.date <= ?
            GROUP BY t.category_id, c.name, c.icon, c.color
            ORDER BY total_amount DESC
            """,
            (owner_id, TransactionType(tx_type).value, to_iso(start), to_iso(end)),
        )
        return [dict(row) for row in rows]

    async def monthly_totals(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
    ) -> dict[str, dict[str, int]]:
        """월별 수입/지출 합계

        Returns:
            {"YYYY-MM": {"income": int, "expense": int}}
        """
        rows = await self.db.fetchall(
            """
            SELECT SUBSTR(date, 1, 7) AS year_month, type, SUM(amount) AS total
            FROM ledger_transaction
            WHERE owner_id = ? AND type IN ('INCOME', 'EXPENSE')
              AND date >= ? AND date <= ?
            GROUP BY year_month, type
            ORDER BY year_month ASC
            """,
            (owner_id, to_iso(start), to_iso(end)),
        )

        totals: dict[str, dict[str, int]] = {}
        for row in rows:
            month = totals.setdefault(row["year_month"], {"income": 0, "expense": 0})
            month[str(row["type"]).lower()] = int(row["total"])
        return totals

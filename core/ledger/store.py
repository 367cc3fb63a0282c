"""
Ledger 저장소

원장 기록(ledger_entry) 저장 및 조회, 잔액 정합성 검증.
account.balance는 원장 기록의 Projection으로 관리됨.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from core.ledger.types import EntryKind, JournalSide, signed_delta
from core.types import AccountType
from core.utils.dates import from_iso, to_iso

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import DatabaseExecutor

logger = logging.getLogger(__name__)


@dataclass
class LedgerEntry:
    """원장 기록 (잔액 변경 1회)

    balance_after - balance_before는 항상 계좌 유형 부호 규칙을 따른 변화량.
    """

    entry_id: str
    owner_id: str
    account_id: str
    kind: EntryKind
    side: JournalSide
    amount: int
    balance_before: int
    balance_after: int
    ts: datetime
    transaction_id: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> LedgerEntry:
        """DB 행에서 생성"""
        return cls(
            entry_id=row["entry_id"],
            owner_id=row["owner_id"],
            account_id=row["account_id"],
            kind=EntryKind(row["kind"]),
            side=JournalSide(row["side"]),
            amount=int(row["amount"]),
            balance_before=int(row["balance_before"]),
            balance_after=int(row["balance_after"]),
            ts=from_iso(row["ts"]),
            transaction_id=row.get("transaction_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_id": self.entry_id,
            "account_id": self.account_id,
            "transaction_id": self.transaction_id,
            "kind": self.kind.value,
            "side": self.side.value,
            "amount": self.amount,
            "balance_before": self.balance_before,
            "balance_after": self.balance_after,
            "ts": to_iso(self.ts),
        }


@dataclass(frozen=True)
class BalanceDrift:
    """저장된 잔액과 원장 기록 합계의 불일치"""

    account_id: str
    owner_id: str
    stored_balance: int
    ledger_balance: int

    @property
    def difference(self) -> int:
        return self.stored_balance - self.ledger_balance


class LedgerStore:
    """Ledger 저장소

    원장 기록은 추가만 가능 (수정/삭제 없음).
    잔액 변경과 같은 작업 단위(UnitOfWork)로 생성해야 함께 커밋/롤백된다.

    Args:
        db: SQLiteAdapter 또는 UnitOfWork
    """

    def __init__(self, db: DatabaseExecutor):
        self.db = db

    async def insert_entry(self, entry: LedgerEntry) -> str:
        """원장 기록 추가

        Returns:
            저장된 entry_id
        """
        await self.db.execute(
            """
            INSERT INTO ledger_entry (
                entry_id, owner_id, account_id, transaction_id,
                kind, side, amount, balance_before, balance_after, ts
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.entry_id,
                entry.owner_id,
                entry.account_id,
                entry.transaction_id,
                entry.kind.value,
                entry.side.value,
                entry.amount,
                entry.balance_before,
                entry.balance_after,
                to_iso(entry.ts),
            ),
        )
        return entry.entry_id

    async def get_entries(
        self,
        account_id: str,
        owner_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """계좌별 원장 기록 조회 (최신순)

        Args:
            account_id: 계좌 ID
            owner_id: 소유자 ID
            limit: 최대 조회 개수
            offset: 시작 위치
        """
        rows = await self.db.fetchall(
            """
            SELECT * FROM ledger_entry
            WHERE account_id = ? AND owner_id = ?
            ORDER BY rowid DESC
            LIMIT ? OFFSET ?
            """,
            (account_id, owner_id, limit, offset),
        )
        return [LedgerEntry.from_row(dict(row)) for row in rows]

    async def get_entries_by_transaction(
        self,
        transaction_id: str,
        owner_id: str,
    ) -> list[LedgerEntry]:
        """거래별 원장 기록 조회 (기록 순서)"""
        rows = await self.db.fetchall(
            """
            SELECT * FROM ledger_entry
            WHERE transaction_id = ? AND owner_id = ?
            ORDER BY rowid ASC
            """,
            (transaction_id, owner_id),
        )
        return [LedgerEntry.from_row(dict(row)) for row in rows]

    async def get_ledger_balances(self, owner_id: str | None = None) -> dict[str, int]:
        """원장 기록으로부터 계좌별 잔액 재계산

        Returns:
            {account_id: 원장 기준 잔액}
        """
        sql = """
            SELECT a.id AS account_id, a.type AS account_type, e.side, SUM(e.amount) AS total
            FROM account a
            JOIN ledger_entry e ON e.account_id = a.id
        """
        params: tuple[Any, ...] = ()
        if owner_id is not None:
            sql += " WHERE a.owner_id = ?"
            params = (owner_id,)
        sql += " GROUP BY a.id, a.type, e.side"

        balances: dict[str, int] = {}
        for row in await self.db.fetchall(sql, params):
            delta = signed_delta(
                AccountType(row["account_type"]),
                JournalSide(row["side"]),
                int(row["total"]),
            )
            balances[row["account_id"]] = balances.get(row["account_id"], 0) + delta
        return balances

    async def verify_balances(self, owner_id: str | None = None) -> list[BalanceDrift]:
        """저장된 잔액과 원장 기록 합계 비교

        Args:
            owner_id: 특정 사용자만 검사 (None이면 전체)

        Returns:
            불일치 목록 (비어 있으면 정상)
        """
        ledger_balances = await self.get_ledger_balances(owner_id)

        sql = "SELECT id, owner_id, balance FROM account"
        params: tuple[Any, ...] = ()
        if owner_id is not None:
            sql += " WHERE owner_id = ?"
            params = (owner_id,)

        drifts: list[BalanceDrift] = []
        for row in await self.db.fetchall(sql, params):
            stored = int(row["balance"])
            computed = ledger_balances.get(row["id"], 0)
            if stored != computed:
                drifts.append(
                    BalanceDrift(
                        account_id=row["id"],
                        owner_id=row["owner_id"],
                        stored_balance=stored,
                        ledger_balance=computed,
                    )
                )

        if drifts:
            logger.warning(
                f"잔액 불일치 발견: {len(drifts)}건",
                extra={"owner_id": owner_id, "drift_count": len(drifts)},
            )
        return drifts

"""
원장 엔진

account.balance를 변경하는 유일한 경로.
모든 잔액 변경은 apply_transaction()을 거치며, 같은 작업 단위 안에서
원장 기록(ledger_entry)을 함께 남긴다.

부호 규칙:
    ASSET           차변 +, 대변 -
    LIABILITY/EQUITY 차변 -, 대변 +

ASSET 잔액은 음수가 될 수 없다 (InsufficientFundsError).
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from core.constants import Limits
from core.domain.models import Account, Transaction
from core.errors import (
    ConcurrencyConflictError,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
)
from core.ledger.entry_builder import (
    Effect,
    ExpenseEffect,
    IncomeEffect,
    JournalLine,
    TransferEffect,
    build_lines,
    build_reversal_lines,
    effect_from_transaction,
)
from core.ledger.store import LedgerEntry, LedgerStore
from core.ledger.types import EntryKind, JournalSide, opening_side, signed_delta
from core.types import AccountType
from core.utils import money

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import DatabaseExecutor

logger = logging.getLogger(__name__)


class LedgerEngine:
    """원장 엔진

    반드시 UnitOfWork 위에서 생성한다. 엔진이 실패하면 예외를 그대로 전파하고
    작업 단위 전체가 롤백된다 (부분 반영 없음).

    Args:
        uow: 작업 단위 (SQLiteAdapter.transaction()이 돌려준 핸들)
        defer_balance_checks: True면 ASSET 음수 검사를 check_deferred_balances()
            호출 시점까지 미룬다. 취소 후 재적용처럼 중간에 잠깐 음수가 되는
            순서에서 사용.

    사용 예시:
    ```python
    async with db.transaction() as uow:
        engine = LedgerEngine(uow)
        await engine.record_income(owner_id, wallet_id, 50000)
    ```
    """

    def __init__(self, uow: DatabaseExecutor, defer_balance_checks: bool = False):
        self.uow = uow
        self.ledger = LedgerStore(uow)
        self.defer_balance_checks = defer_balance_checks
        self._pending_checks: dict[str, str] = {}  # account_id → owner_id

    # -------------------------------------------------------------------------
    # 핵심 연산
    # -------------------------------------------------------------------------

    async def apply_transaction(
        self,
        owner_id: str,
        account_id: str,
        amount: int,
        is_debit: bool,
        *,
        transaction_id: str | None = None,
        kind: EntryKind = EntryKind.APPLY,
    ) -> int:
        """계좌 하나에 차변/대변 적용

        Args:
            owner_id: 소유자 ID
            account_id: 계좌 ID
            amount: 금액 (보조 단위, > 0)
            is_debit: True면 차변, False면 대변
            transaction_id: 연관 거래 ID (원장 기록용)
            kind: 기록 종류

        Returns:
            변경 후 잔액

        Raises:
            ValidationError: 금액이 양의 정수가 아닌 경우, 또는 잔액이 최대 금액을 넘는 경우
            NotFoundError: 계좌가 없거나 소유자가 다른 경우
            InsufficientFundsError: ASSET 잔액이 음수가 되는 경우
            ConcurrencyConflictError: 읽은 뒤 다른 작업이 잔액을 변경한 경우
        """
        money.ensure_positive_amount(amount)
        account = await self._load_account(owner_id, account_id)
        side = JournalSide.DEBIT if is_debit else JournalSide.CREDIT

        before = account.balance
        after = before + signed_delta(account.type, side, amount)
        if abs(after) > Limits.MAX_AMOUNT:
            raise ValidationError(
                f"'{account.name}' 계좌의 잔액이 허용 범위를 초과합니다 "
                f"(잔액 {money.format_without_symbol(before)}, "
                f"요청 {money.format_without_symbol(amount)})"
            )

        if account.type == AccountType.ASSET and after < 0:
            if self.defer_balance_checks:
                self._pending_checks[account.id] = owner_id
            else:
                raise InsufficientFundsError(
                    f"'{account.name}' 계좌의 잔액이 부족합니다 "
                    f"(잔액 {money.format_without_symbol(before)}, "
                    f"요청 {money.format_without_symbol(amount)})",
                    account_id=account.id,
                )

        await self._write_balance(account, after)
        await self.ledger.insert_entry(
            LedgerEntry(
                entry_id=f"le-{uuid.uuid4().hex[:12]}",
                owner_id=owner_id,
                account_id=account.id,
                kind=kind,
                side=side,
                amount=amount,
                balance_before=before,
                balance_after=after,
                ts=datetime.now(timezone.utc),
                transaction_id=transaction_id,
            )
        )

        logger.info(
            f"잔액 변경: {account.id} {side.value} {amount} ({before} → {after})",
            extra={
                "account_id": account.id,
                "transaction_id": transaction_id,
                "kind": kind.value,
                "side": side.value,
                "amount": amount,
                "balance_before": before,
                "balance_after": after,
            },
        )

        return after

    async def debit(self, owner_id: str, account_id: str, amount: int, **kwargs: Any) -> int:
        return await self.apply_transaction(owner_id, account_id, amount, True, **kwargs)

    async def credit(self, owner_id: str, account_id: str, amount: int, **kwargs: Any) -> int:
        return await self.apply_transaction(owner_id, account_id, amount, False, **kwargs)

    # -------------------------------------------------------------------------
    # 효과 단위 연산
    # -------------------------------------------------------------------------

    async def apply_effect(
        self,
        owner_id: str,
        effect: Effect,
        transaction_id: str | None = None,
    ) -> dict[str, int]:
        """거래 효과 적용

        Returns:
            {account_id: 변경 후 잔액}
        """
        return await self._apply_lines(
            owner_id, build_lines(effect), transaction_id, EntryKind.APPLY
        )

    async def reverse_effect(
        self,
        owner_id: str,
        effect: Effect,
        transaction_id: str | None = None,
    ) -> dict[str, int]:
        """거래 효과의 정확한 역연산 적용

        Returns:
            {account_id: 변경 후 잔액}
        """
        return await self._apply_lines(
            owner_id, build_reversal_lines(effect), transaction_id, EntryKind.REVERSE
        )

    async def record_income(
        self,
        owner_id: str,
        account_id: str,
        amount: int,
        transaction_id: str | None = None,
    ) -> int:
        """수입 기록 = 차변(account)"""
        balances = await self.apply_effect(
            owner_id, IncomeEffect(account_id, amount), transaction_id
        )
        return balances[account_id]

    async def record_expense(
        self,
        owner_id: str,
        account_id: str,
        amount: int,
        transaction_id: str | None = None,
    ) -> int:
        """지출 기록 = 대변(account)"""
        balances = await self.apply_effect(
            owner_id, ExpenseEffect(account_id, amount), transaction_id
        )
        return balances[account_id]

    async def record_transfer(
        self,
        owner_id: str,
        from_account_id: str,
        to_account_id: str,
        amount: int,
        transaction_id: str | None = None,
    ) -> dict[str, int]:
        """이체 기록 = 대변(from) 후 차변(to)

        Raises:
            ValidationError: 출금/입금 계좌가 같은 경우
        """
        return await self.apply_effect(
            owner_id,
            TransferEffect(from_account_id, to_account_id, amount),
            transaction_id,
        )

    async def apply_transaction_record(self, tx: Transaction) -> dict[str, int]:
        """저장된 거래 기록의 효과 적용"""
        return await self.apply_effect(tx.owner_id, effect_from_transaction(tx), tx.id)

    async def reverse_transaction(self, tx: Transaction) -> dict[str, int]:
        """저장된 거래 기록의 효과 취소

        INCOME → 대변, EXPENSE → 차변, TRANSFER → 출금 계좌 차변 + 입금 계좌 대변.
        reverse 후 같은 효과를 다시 적용하면 모든 잔액이 그대로다.
        """
        return await self.reverse_effect(tx.owner_id, effect_from_transaction(tx), tx.id)

    async def post_opening_balance(self, account: Account, amount: int) -> int:
        """계좌 초기 잔액 기록 (ASSET 차변, LIABILITY/EQUITY 대변)"""
        side = opening_side(account.type)
        return await self.apply_transaction(
            account.owner_id,
            account.id,
            amount,
            side == JournalSide.DEBIT,
            kind=EntryKind.OPENING,
        )

    async def check_deferred_balances(self) -> None:
        """미뤄둔 ASSET 음수 검사 실행 (커밋 직전에 호출)

        Raises:
            InsufficientFundsError: 최종 잔액이 음수인 ASSET 계좌가 있는 경우
        """
        pending = dict(self._pending_checks)
        self._pending_checks.clear()

        for account_id, owner_id in pending.items():
            account = await self._load_account(owner_id, account_id)
            if account.type == AccountType.ASSET and account.balance < 0:
                raise InsufficientFundsError(
                    f"'{account.name}' 계좌의 잔액이 부족합니다 "
                    f"(최종 잔액 {money.format_without_symbol(account.balance)})",
                    account_id=account.id,
                )

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_balance(self, owner_id: str, account_id: str) -> int:
        """계좌 잔액 조회"""
        account = await self._load_account(owner_id, account_id)
        return account.balance

    async def calculate_net_worth(self, owner_id: str) -> dict[str, int]:
        """순자산 = 자산 - 부채 (활성 + 합계 포함 계좌만)

        Returns:
            {"assets", "liabilities", "net_worth"} (보조 단위)
        """
        rows = await self.uow.fetchall(
            """
            SELECT type, COALESCE(SUM(balance), 0) AS total
            FROM account
            WHERE owner_id = ? AND is_active = 1 AND include_in_total = 1
            GROUP BY type
            """,
            (owner_id,),
        )
        totals = {row["type"]: int(row["total"]) for row in rows}
        assets = totals.get(AccountType.ASSET.value, 0)
        liabilities = totals.get(AccountType.LIABILITY.value, 0)
        return {
            "assets": assets,
            "liabilities": liabilities,
            "net_worth": assets - liabilities,
        }

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _apply_lines(
        self,
        owner_id: str,
        lines: list[JournalLine],
        transaction_id: str | None,
        kind: EntryKind,
    ) -> dict[str, int]:
        balances: dict[str, int] = {}
        for line in lines:
            balances[line.account_id] = await self.apply_transaction(
                owner_id,
                line.account_id,
                line.amount,
                line.side == JournalSide.DEBIT,
                transaction_id=transaction_id,
                kind=kind,
            )
        return balances

    async def _load_account(self, owner_id: str, account_id: str) -> Account:
        row = await self.uow.fetchone(
            "SELECT * FROM account WHERE id = ? AND owner_id = ?",
            (account_id, owner_id),
        )
        if row is None:
            raise NotFoundError("계좌를 찾을 수 없습니다")
        return Account.from_row(dict(row))

    async def _write_balance(self, account: Account, new_balance: int) -> None:
        """version 비교 후 잔액 쓰기 (compare-and-swap)"""
        cursor = await self.uow.execute(
            """
            UPDATE account
            SET balance = ?, version = version + 1, updated_at = ?
            WHERE id = ? AND version = ?
            """,
            (
                new_balance,
                datetime.now(timezone.utc).isoformat(),
                account.id,
                account.version,
            ),
        )
        if cursor.rowcount == 0:
            raise ConcurrencyConflictError("계좌 잔액이 다른 작업에 의해 변경되었습니다")

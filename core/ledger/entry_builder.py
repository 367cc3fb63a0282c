"""
분개 생성기

거래를 잔액 효과(Effect)로 변환하고, 효과를 순서 있는 분개 라인으로 펼친다.

효과는 닫힌 합 타입:
    IncomeEffect   → 차변(account)
    ExpenseEffect  → 대변(account)
    TransferEffect → 대변(from) 후 차변(to)

취소 라인은 같은 순서, 반대 방향. 적용 후 취소하면 모든 잔액이 원래대로 돌아간다.
"""

from dataclasses import dataclass
from typing import assert_never

from core.domain.models import Transaction
from core.errors import ValidationError
from core.ledger.types import JournalSide
from core.types import TransactionType


@dataclass(frozen=True)
class IncomeEffect:
    """수입: 계좌 차변"""

    account_id: str
    amount: int


@dataclass(frozen=True)
class ExpenseEffect:
    """지출: 계좌 대변"""

    account_id: str
    amount: int


@dataclass(frozen=True)
class TransferEffect:
    """이체: 출금 계좌 대변, 입금 계좌 차변"""

    from_account_id: str
    to_account_id: str
    amount: int


Effect = IncomeEffect | ExpenseEffect | TransferEffect


@dataclass(frozen=True)
class JournalLine:
    """분개 항목 (계좌 하나에 대한 차변 또는 대변)"""

    account_id: str
    side: JournalSide
    amount: int

    def flipped(self) -> "JournalLine":
        return JournalLine(self.account_id, self.side.flipped(), self.amount)


def effect_from_transaction(tx: Transaction) -> Effect:
    """거래 기록 → 잔액 효과

    Raises:
        ValidationError: 거래 형태가 유형과 맞지 않는 경우
    """
    if tx.type == TransactionType.INCOME:
        if not tx.account_id:
            raise ValidationError("수입 거래에 계좌가 없습니다")
        return IncomeEffect(tx.account_id, tx.amount)
    if tx.type == TransactionType.EXPENSE:
        if not tx.account_id:
            raise ValidationError("지출 거래에 계좌가 없습니다")
        return ExpenseEffect(tx.account_id, tx.amount)
    if tx.type == TransactionType.TRANSFER:
        if not tx.from_account_id or not tx.to_account_id:
            raise ValidationError("이체 거래에 출금/입금 계좌가 없습니다")
        return TransferEffect(tx.from_account_id, tx.to_account_id, tx.amount)
    assert_never(tx.type)


def build_lines(effect: Effect) -> list[JournalLine]:
    """효과 → 적용 순서대로 나열된 분개 라인

    Raises:
        ValidationError: 동일 계좌 이체
    """
    if isinstance(effect, IncomeEffect):
        return [JournalLine(effect.account_id, JournalSide.DEBIT, effect.amount)]
    if isinstance(effect, ExpenseEffect):
        return [JournalLine(effect.account_id, JournalSide.CREDIT, effect.amount)]
    if isinstance(effect, TransferEffect):
        if effect.from_account_id == effect.to_account_id:
            raise ValidationError("출금 계좌와 입금 계좌가 같을 수 없습니다")
        # 출금 먼저: 출금 계좌 잔액 부족이면 입금 쪽은 건드리지 않음
        return [
            JournalLine(effect.from_account_id, JournalSide.CREDIT, effect.amount),
            JournalLine(effect.to_account_id, JournalSide.DEBIT, effect.amount),
        ]
    assert_never(effect)


def build_reversal_lines(effect: Effect) -> list[JournalLine]:
    """효과의 정확한 역분개 (순서 유지, 방향 반전)

    INCOME 취소 → 대변, EXPENSE 취소 → 차변,
    TRANSFER 취소 → 원 출금 계좌 차변, 원 입금 계좌 대변
    """
    return [line.flipped() for line in build_lines(effect)]


def effect_accounts(effect: Effect) -> list[str]:
    """효과가 건드리는 계좌 ID (라인 순서)"""
    return [line.account_id for line in build_lines(effect)]

"""
복식부기 (Double-Entry Bookkeeping) 원장

계좌 잔액을 바꾸는 유일한 경로. 모든 잔액 변경은 원장 기록으로 남고,
거래 기록과 잔액 효과는 하나의 작업 단위로 함께 커밋/롤백된다.

사용 예시:
```python
from core.ledger import LedgerEngine, init_schema
from core.ledger.workflow import TransactionWorkflow

async with SQLiteAdapter(db_path) as db:
    await init_schema(db)

    # 원장 엔진 직접 사용 (작업 단위 안에서)
    async with db.transaction() as uow:
        engine = LedgerEngine(uow)
        await engine.record_income(owner_id, wallet_id, 50000)

    # 거래 워크플로우 (검증 + 저장 + 잔액 반영)
    workflow = TransactionWorkflow(db)
    tx = await workflow.create_transaction(owner_id, {...})
```
"""

from core.ledger.engine import LedgerEngine
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
from core.ledger.schema import init_schema
from core.ledger.store import BalanceDrift, LedgerEntry, LedgerStore
from core.ledger.types import EntryKind, JournalSide

__all__ = [
    # 핵심 클래스
    "LedgerEngine",
    "LedgerStore",
    "init_schema",
    # 효과 / 분개
    "Effect",
    "IncomeEffect",
    "ExpenseEffect",
    "TransferEffect",
    "JournalLine",
    "build_lines",
    "build_reversal_lines",
    "effect_from_transaction",
    # 기록
    "LedgerEntry",
    "BalanceDrift",
    # Enum
    "JournalSide",
    "EntryKind",
]

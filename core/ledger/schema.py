"""
원장 스키마 초기화

서비스/스크립트 시작 시 모든 테이블과 인덱스 생성.
CREATE IF NOT EXISTS 패턴으로 여러 번 호출해도 안전하게 동작.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


TABLES: list[str] = [
    # account: balance는 ledger_entry의 Projection (version으로 낙관적 락)
    """
    CREATE TABLE IF NOT EXISTS account (
        id                  TEXT PRIMARY KEY,
        owner_id            TEXT NOT NULL,
        name                TEXT NOT NULL,
        type                TEXT NOT NULL CHECK (type IN ('ASSET', 'LIABILITY', 'EQUITY')),
        subtype             TEXT NOT NULL,
        balance             INTEGER NOT NULL DEFAULT 0,
        version             INTEGER NOT NULL DEFAULT 0,
        currency            TEXT NOT NULL,
        include_in_total    INTEGER NOT NULL DEFAULT 1,
        is_active           INTEGER NOT NULL DEFAULT 1,
        sort_order          INTEGER NOT NULL DEFAULT 0,
        icon                TEXT,
        color               TEXT,
        notes               TEXT,
        credit_card_details TEXT,
        loan_details        TEXT,
        sinking_funds       TEXT,
        created_at          TEXT NOT NULL,
        updated_at          TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS category (
        id          TEXT PRIMARY KEY,
        owner_id    TEXT NOT NULL,
        name        TEXT NOT NULL,
        type        TEXT NOT NULL CHECK (type IN ('INCOME', 'EXPENSE')),
        parent_id   TEXT REFERENCES category(id),
        icon        TEXT,
        color       TEXT,
        sort_order  INTEGER NOT NULL DEFAULT 0,
        is_active   INTEGER NOT NULL DEFAULT 1,
        created_at  TEXT NOT NULL,
        updated_at  TEXT NOT NULL
    )
    """,
    # 거래: account+category 또는 from+to 중 하나만
    """
    CREATE TABLE IF NOT EXISTS ledger_transaction (
        id              TEXT PRIMARY KEY,
        owner_id        TEXT NOT NULL,
        type            TEXT NOT NULL CHECK (type IN ('INCOME', 'EXPENSE', 'TRANSFER')),
        amount          INTEGER NOT NULL CHECK (amount > 0),
        date            TEXT NOT NULL,
        account_id      TEXT REFERENCES account(id),
        category_id     TEXT REFERENCES category(id),
        from_account_id TEXT REFERENCES account(id),
        to_account_id   TEXT REFERENCES account(id),
        description     TEXT,
        notes           TEXT,
        tags            TEXT,
        recurrence      TEXT,
        created_at      TEXT NOT NULL,
        updated_at      TEXT NOT NULL,
        CHECK (
            (type = 'TRANSFER'
                AND from_account_id IS NOT NULL AND to_account_id IS NOT NULL
                AND from_account_id <> to_account_id
                AND account_id IS NULL AND category_id IS NULL)
            OR
            (type <> 'TRANSFER'
                AND account_id IS NOT NULL AND category_id IS NOT NULL
                AND from_account_id IS NULL AND to_account_id IS NULL)
        )
    )
    """,
    # 원장 기록 (append-only): 잔액 변경 1회당 1행
    """
    CREATE TABLE IF NOT EXISTS ledger_entry (
        entry_id        TEXT PRIMARY KEY,
        owner_id        TEXT NOT NULL,
        account_id      TEXT NOT NULL REFERENCES account(id),
        transaction_id  TEXT,
        kind            TEXT NOT NULL CHECK (kind IN ('APPLY', 'REVERSE', 'OPENING')),
        side            TEXT NOT NULL CHECK (side IN ('DEBIT', 'CREDIT')),
        amount          INTEGER NOT NULL CHECK (amount > 0),
        balance_before  INTEGER NOT NULL,
        balance_after   INTEGER NOT NULL,
        ts              TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS budget (
        id                  TEXT PRIMARY KEY,
        owner_id            TEXT NOT NULL,
        category_id         TEXT NOT NULL REFERENCES category(id),
        amount              INTEGER NOT NULL CHECK (amount >= 0),
        period              TEXT NOT NULL CHECK (period IN ('WEEKLY', 'MONTHLY')),
        period_key          TEXT NOT NULL,
        carry_over_enabled  INTEGER NOT NULL DEFAULT 0,
        carry_over_amount   INTEGER NOT NULL DEFAULT 0,
        spent               INTEGER NOT NULL DEFAULT 0,
        is_active           INTEGER NOT NULL DEFAULT 1,
        created_at          TEXT NOT NULL,
        updated_at          TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS progress (
        owner_id            TEXT PRIMARY KEY,
        current_step        INTEGER NOT NULL DEFAULT 1,
        step1_target        INTEGER NOT NULL,
        step1_current       INTEGER NOT NULL DEFAULT 0,
        step1_completed_at  TEXT,
        step2_debts         TEXT,
        step2_completed_at  TEXT,
        step3_months        INTEGER NOT NULL,
        step3_target        INTEGER NOT NULL DEFAULT 0,
        step3_current       INTEGER NOT NULL DEFAULT 0,
        step3_completed_at  TEXT,
        manual_steps        TEXT,
        updated_at          TEXT NOT NULL
    )
    """,
]

INDEXES: list[str] = [
    "CREATE INDEX IF NOT EXISTS idx_account_owner ON account(owner_id, is_active, sort_order)",
    "CREATE INDEX IF NOT EXISTS idx_category_owner ON category(owner_id, type)",
    "CREATE INDEX IF NOT EXISTS idx_category_parent ON category(parent_id)",
    "CREATE INDEX IF NOT EXISTS idx_tx_owner_date ON ledger_transaction(owner_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_tx_category ON ledger_transaction(category_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_entry_account ON ledger_entry(account_id)",
    "CREATE INDEX IF NOT EXISTS idx_entry_tx ON ledger_entry(transaction_id)",
    # 예산은 (사용자, 카테고리, 기간) 당 하나
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_budget_unique
    ON budget(owner_id, category_id, period_key) WHERE is_active = 1
    """,
]


async def init_schema(db: "SQLiteAdapter") -> None:
    """원장 스키마 초기화 (테이블 + 인덱스)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: SQLiteAdapter 인스턴스
    """
    async with db.transaction() as uow:
        for ddl in TABLES:
            await uow.execute(ddl)
        for ddl in INDEXES:
            await uow.execute(ddl)

    logger.info("원장 스키마 초기화 완료")

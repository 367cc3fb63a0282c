"""LedgerStore 통합 테스트"""

from typing import Awaitable, Callable

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.models import Account
from core.ledger import EntryKind, LedgerEngine, LedgerStore, init_schema
from core.types import AccountSubType, AccountType

CreateAccount = Callable[..., Awaitable[Account]]


@pytest.fixture
def ledger_store(db: SQLiteAdapter) -> LedgerStore:
    """LedgerStore 인스턴스"""
    return LedgerStore(db)


class TestSchema:
    """스키마 초기화"""

    @pytest.mark.asyncio
    async def test_tables_created(self, db: SQLiteAdapter) -> None:
        for table in ("account", "category", "ledger_transaction", "ledger_entry", "budget", "progress"):
            assert await db.table_exists(table)

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self, db: SQLiteAdapter) -> None:
        await init_schema(db)
        await init_schema(db)

        assert await db.table_exists("ledger_entry")


class TestEntryQueries:
    """원장 기록 조회"""

    @pytest.mark.asyncio
    async def test_pagination_newest_first(
        self, db: SQLiteAdapter, owner_id: str, ledger_store: LedgerStore, create_account: CreateAccount
    ) -> None:
        wallet = await create_account("Wallet")
        async with db.transaction() as uow:
            engine = LedgerEngine(uow)
            for amount in (100, 200, 300, 400):
                await engine.record_income(owner_id, wallet.id, amount)

        first_page = await ledger_store.get_entries(wallet.id, owner_id, limit=2)
        second_page = await ledger_store.get_entries(wallet.id, owner_id, limit=2, offset=2)

        assert [e.amount for e in first_page] == [400, 300]
        assert [e.amount for e in second_page] == [200, 100]

    @pytest.mark.asyncio
    async def test_owner_scoped(
        self, owner_id: str, ledger_store: LedgerStore, create_account: CreateAccount
    ) -> None:
        wallet = await create_account("Wallet", initial_balance=100)

        assert await ledger_store.get_entries(wallet.id, "user-2") == []
        assert len(await ledger_store.get_entries(wallet.id, owner_id)) == 1

    @pytest.mark.asyncio
    async def test_entries_by_transaction_in_order(
        self, db: SQLiteAdapter, owner_id: str, ledger_store: LedgerStore, create_account: CreateAccount
    ) -> None:
        checking = await create_account("Checking", initial_balance=1000)
        savings = await create_account("Savings", subtype=AccountSubType.SAVINGS)

        async with db.transaction() as uow:
            await LedgerEngine(uow).record_transfer(owner_id, checking.id, savings.id, 400, "tx-1")

        entries = await ledger_store.get_entries_by_transaction("tx-1", owner_id)

        assert [e.account_id for e in entries] == [checking.id, savings.id]
        assert all(e.kind == EntryKind.APPLY for e in entries)

    @pytest.mark.asyncio
    async def test_entry_to_dict(
        self, owner_id: str, ledger_store: LedgerStore, create_account: CreateAccount
    ) -> None:
        wallet = await create_account("Wallet", initial_balance=100)
        [entry] = await ledger_store.get_entries(wallet.id, owner_id)

        data = entry.to_dict()
        assert data["kind"] == "OPENING"
        assert data["balance_after"] == 100
        assert "owner_id" not in data


class TestVerifyBalances:
    """저장 잔액 vs 원장 재계산"""

    @pytest.mark.asyncio
    async def test_consistent_ledger(
        self, db: SQLiteAdapter, owner_id: str, ledger_store: LedgerStore, create_account: CreateAccount
    ) -> None:
        wallet = await create_account("Wallet", initial_balance=5000)
        card = await create_account("Card", AccountType.LIABILITY, AccountSubType.CREDIT_CARD, initial_balance=700)

        async with db.transaction() as uow:
            engine = LedgerEngine(uow)
            await engine.record_transfer(owner_id, wallet.id, card.id, 700)
            await engine.record_expense(owner_id, wallet.id, 300)

        assert await ledger_store.get_ledger_balances(owner_id) == {wallet.id: 4000, card.id: 0}
        assert await ledger_store.verify_balances(owner_id) == []

    @pytest.mark.asyncio
    async def test_drift_detected(
        self, db: SQLiteAdapter, owner_id: str, ledger_store: LedgerStore, create_account: CreateAccount
    ) -> None:
        """원장을 거치지 않은 잔액 변경은 불일치로 보고"""
        wallet = await create_account("Wallet", initial_balance=5000)
        untouched = await create_account("Empty")

        await db.execute("UPDATE account SET balance = 4200 WHERE id = ?", (wallet.id,))

        drifts = await ledger_store.verify_balances()

        assert len(drifts) == 1
        assert drifts[0].account_id == wallet.id
        assert (drifts[0].stored_balance, drifts[0].ledger_balance) == (4200, 5000)
        assert drifts[0].difference == -800
        assert untouched.id not in {d.account_id for d in drifts}

    @pytest.mark.asyncio
    async def test_verify_filtered_by_owner(
        self, db: SQLiteAdapter, ledger_store: LedgerStore, create_account: CreateAccount
    ) -> None:
        other = await create_account("Other", initial_balance=100, owner_id="user-2")
        await db.execute("UPDATE account SET balance = 1 WHERE id = ?", (other.id,))

        assert await ledger_store.verify_balances("user-1") == []
        assert len(await ledger_store.verify_balances("user-2")) == 1

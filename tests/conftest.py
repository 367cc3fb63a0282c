"""
pytest 공통 fixture 정의

임시 SQLite DB(스키마 초기화 포함)와 계좌/카테고리 생성 헬퍼
"""

from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Iterator

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.domain.models import Account, Category
from core.ledger import init_schema
from core.storage.account_store import AccountStore
from core.storage.category_store import CategoryStore
from core.types import AccountSubType, AccountType, CategoryType

OWNER_ID = "user-1"
OTHER_OWNER_ID = "user-2"


@pytest.fixture(autouse=True)
def reset_settings() -> Iterator[None]:
    """Settings 싱글턴 초기화 (테스트 간 격리)"""
    Settings.reset()
    yield
    Settings.reset()


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncIterator[SQLiteAdapter]:
    """스키마가 준비된 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "ledger.db")
    await adapter.connect()
    await init_schema(adapter)

    yield adapter

    await adapter.close()


@pytest.fixture
def owner_id() -> str:
    return OWNER_ID


@pytest.fixture
def create_account(db: SQLiteAdapter) -> Callable[..., Awaitable[Account]]:
    """계좌 생성 헬퍼 (초기 잔액은 OPENING 기록으로 반영)"""

    async def _create(
        name: str = "Wallet",
        account_type: AccountType = AccountType.ASSET,
        subtype: AccountSubType = AccountSubType.CASH,
        initial_balance: int = 0,
        owner_id: str = OWNER_ID,
        **extra: Any,
    ) -> Account:
        async with db.transaction() as uow:
            return await AccountStore(uow).create_account(
                owner_id,
                {
                    "name": name,
                    "type": account_type,
                    "subtype": subtype,
                    "initial_balance": initial_balance,
                    **extra,
                },
            )

    return _create


@pytest.fixture
def create_category(db: SQLiteAdapter) -> Callable[..., Awaitable[Category]]:
    """카테고리 생성 헬퍼"""

    async def _create(
        name: str = "Food",
        category_type: CategoryType = CategoryType.EXPENSE,
        parent_id: str | None = None,
        owner_id: str = OWNER_ID,
    ) -> Category:
        async with db.transaction() as uow:
            return await CategoryStore(uow).create_category(
                owner_id,
                {"name": name, "type": category_type, "parent_id": parent_id},
            )

    return _create


@pytest.fixture
def balance_of(db: SQLiteAdapter) -> Callable[[str], Awaitable[int]]:
    """계좌 잔액 조회 헬퍼"""

    async def _balance(account_id: str, owner_id: str = OWNER_ID) -> int:
        account = await AccountStore(db).get(owner_id, account_id)
        return account.balance

    return _balance

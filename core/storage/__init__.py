"""
스토리지 모듈

Account, Category, Transaction, Budget, Progress 저장소.
모든 Store는 DatabaseExecutor(SQLiteAdapter 또는 UnitOfWork)를 받아
같은 작업 단위 안에서 실행될 수 있다.
"""

from core.storage.account_store import AccountStore
from core.storage.budget_store import BudgetStore
from core.storage.category_store import CategoryStore
from core.storage.progress_store import ProgressStore
from core.storage.transaction_store import TransactionStore

__all__ = [
    "AccountStore",
    "CategoryStore",
    "TransactionStore",
    "BudgetStore",
    "ProgressStore",
]

"""예산 서비스 통합 테스트"""

from datetime import datetime
from typing import Awaitable, Callable

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.analytics.budget import BudgetService, current_period_key, percent_used
from core.config.loader import WorkflowConfig
from core.domain.models import Account, Category
from core.errors import NotFoundError, ValidationError
from core.ledger.workflow import TransactionWorkflow
from core.types import BudgetPeriod, CategoryType
from core.utils.dates import is_weekly_key

CreateCategory = Callable[..., Awaitable[Category]]


@pytest.fixture
def service(db: SQLiteAdapter) -> BudgetService:
    return BudgetService(db)


@pytest.fixture
def workflow(db: SQLiteAdapter) -> TransactionWorkflow:
    return TransactionWorkflow(db, WorkflowConfig(retry_backoff_sec=0))


@pytest_asyncio.fixture
async def wallet(create_account: Callable[..., Awaitable[Account]]) -> Account:
    return await create_account("Wallet", initial_balance=1_000_000)


@pytest_asyncio.fixture
async def food(create_category: CreateCategory) -> Category:
    return await create_category("Food")


async def spend(
    workflow: TransactionWorkflow,
    owner_id: str,
    wallet: Account,
    category: Category,
    amount: int,
    date: datetime,
) -> None:
    await workflow.create_transaction(
        owner_id,
        {
            "type": "EXPENSE",
            "amount": amount,
            "account_id": wallet.id,
            "category_id": category.id,
            "date": date,
        },
    )


class TestPercentUsed:
    """사용률 계산"""

    @pytest.mark.parametrize(
        "spent, budgeted, expected",
        [
            (2500, 10000, 25.0),
            (1, 3, 33.33),
            (2, 3, 66.67),
            (15000, 10000, 150.0),
            (500, 0, 0.0),
            (0, 10000, 0.0),
        ],
    )
    def test_values(self, spent: int, budgeted: int, expected: float) -> None:
        assert percent_used(spent, budgeted) == expected


class TestCurrentPeriodKey:
    def test_formats(self) -> None:
        assert len(current_period_key(BudgetPeriod.MONTHLY)) == 7
        assert is_weekly_key(current_period_key(BudgetPeriod.WEEKLY))


class TestCreateBudget:
    """예산 생성"""

    @pytest.mark.asyncio
    async def test_create_with_existing_spending(
        self,
        owner_id: str,
        service: BudgetService,
        workflow: TransactionWorkflow,
        wallet: Account,
        food: Category,
    ) -> None:
        """생성 시점에 이미 있는 지출도 spent에 반영"""
        await spend(workflow, owner_id, wallet, food, 3000, datetime(2025, 3, 4))

        budget = await service.create_budget(
            owner_id, {"category_id": food.id, "amount": 20000, "period_key": "2025-03"}
        )

        assert budget.id.startswith("bud-")
        assert budget.period == BudgetPeriod.MONTHLY
        assert budget.spent == 3000
        assert budget.remaining == 17000

    @pytest.mark.asyncio
    async def test_default_period_key(
        self, owner_id: str, service: BudgetService, food: Category
    ) -> None:
        budget = await service.create_budget(owner_id, {"category_id": food.id, "amount": 100})
        assert budget.period_key == current_period_key(BudgetPeriod.MONTHLY)

    @pytest.mark.asyncio
    async def test_duplicate_rejected(
        self, owner_id: str, service: BudgetService, food: Category
    ) -> None:
        request = {"category_id": food.id, "amount": 100, "period_key": "2025-03"}
        await service.create_budget(owner_id, request)

        with pytest.raises(ValidationError, match="이미"):
            await service.create_budget(owner_id, request)

    @pytest.mark.asyncio
    async def test_income_category_rejected(
        self, owner_id: str, service: BudgetService, create_category: CreateCategory
    ) -> None:
        salary = await create_category("Salary", CategoryType.INCOME)

        with pytest.raises(ValidationError, match="EXPENSE"):
            await service.create_budget(
                owner_id, {"category_id": salary.id, "amount": 100, "period_key": "2025-03"}
            )

    @pytest.mark.asyncio
    async def test_missing_category(self, owner_id: str, service: BudgetService) -> None:
        with pytest.raises(NotFoundError):
            await service.create_budget(
                owner_id, {"category_id": "cat-missing", "amount": 100, "period_key": "2025-03"}
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "period, period_key",
        [("WEEKLY", "2025-03"), ("MONTHLY", "2025-W10"), ("MONTHLY", "2025-13"), ("MONTHLY", "March")],
    )
    async def test_period_key_mismatch(
        self, owner_id: str, service: BudgetService, food: Category, period: str, period_key: str
    ) -> None:
        with pytest.raises(ValidationError):
            await service.create_budget(
                owner_id,
                {"category_id": food.id, "amount": 100, "period": period, "period_key": period_key},
            )

    @pytest.mark.asyncio
    async def test_weekly_budget(
        self,
        owner_id: str,
        service: BudgetService,
        workflow: TransactionWorkflow,
        wallet: Account,
        food: Category,
    ) -> None:
        """2025-W10 = 3월 3일(월) ~ 3월 9일(일)"""
        await spend(workflow, owner_id, wallet, food, 700, datetime(2025, 3, 3))
        await spend(workflow, owner_id, wallet, food, 800, datetime(2025, 3, 9, 23, 0))
        await spend(workflow, owner_id, wallet, food, 900, datetime(2025, 3, 10))

        budget = await service.create_budget(
            owner_id,
            {"category_id": food.id, "amount": 5000, "period": "WEEKLY", "period_key": "2025-W10"},
        )

        assert budget.spent == 1500


class TestBudgetStatus:
    """기간별 현황"""

    @pytest.mark.asyncio
    async def test_status_recomputed_on_read(
        self,
        owner_id: str,
        service: BudgetService,
        workflow: TransactionWorkflow,
        wallet: Account,
        food: Category,
        create_category: CreateCategory,
    ) -> None:
        rent = await create_category("Rent")
        await service.create_budget(
            owner_id, {"category_id": food.id, "amount": 10000, "period_key": "2025-03"}
        )
        await service.create_budget(
            owner_id, {"category_id": rent.id, "amount": 50000, "period_key": "2025-03"}
        )

        await spend(workflow, owner_id, wallet, food, 2500, datetime(2025, 3, 1))
        await spend(workflow, owner_id, wallet, food, 9000, datetime(2025, 3, 31, 22, 0))
        await spend(workflow, owner_id, wallet, food, 4000, datetime(2025, 4, 1))
        await spend(workflow, owner_id, wallet, rent, 50000, datetime(2025, 3, 2))

        status = {row["category_name"]: row for row in await service.get_budget_status(owner_id, "2025-03")}

        assert status["Food"]["spent"] == 11500
        assert status["Food"]["remaining"] == -1500
        assert status["Food"]["percent_used"] == 115.0
        assert status["Food"]["is_over_budget"] is True
        assert status["Rent"]["percent_used"] == 100.0
        assert status["Rent"]["is_over_budget"] is False

    @pytest.mark.asyncio
    async def test_deleted_transaction_no_longer_counted(
        self,
        owner_id: str,
        service: BudgetService,
        workflow: TransactionWorkflow,
        wallet: Account,
        food: Category,
    ) -> None:
        budget = await service.create_budget(
            owner_id, {"category_id": food.id, "amount": 10000, "period_key": "2025-03"}
        )
        tx = await workflow.create_transaction(
            owner_id,
            {
                "type": "EXPENSE",
                "amount": 4000,
                "account_id": wallet.id,
                "category_id": food.id,
                "date": datetime(2025, 3, 15),
            },
        )
        assert (await service.get_budget(owner_id, budget.id)).spent == 4000

        await workflow.delete_transaction(owner_id, tx.id)

        assert (await service.get_budget(owner_id, budget.id)).spent == 0

    @pytest.mark.asyncio
    async def test_invalid_period_key(self, owner_id: str, service: BudgetService) -> None:
        with pytest.raises(ValidationError):
            await service.get_budget_status(owner_id, "2025/03")

    @pytest.mark.asyncio
    async def test_deleted_budget_hidden(
        self, owner_id: str, service: BudgetService, food: Category
    ) -> None:
        budget = await service.create_budget(
            owner_id, {"category_id": food.id, "amount": 100, "period_key": "2025-03"}
        )

        await service.delete_budget(owner_id, budget.id)

        assert await service.get_budget_status(owner_id, "2025-03") == []
        # 삭제 후 같은 기간에 다시 만들 수 있음
        await service.create_budget(
            owner_id, {"category_id": food.id, "amount": 200, "period_key": "2025-03"}
        )

    @pytest.mark.asyncio
    async def test_update_budget(self, owner_id: str, service: BudgetService, food: Category) -> None:
        budget = await service.create_budget(
            owner_id, {"category_id": food.id, "amount": 100, "period_key": "2025-03"}
        )

        updated = await service.update_budget(
            owner_id, budget.id, {"amount": 900, "carry_over_enabled": True}
        )

        assert (updated.amount, updated.carry_over_enabled) == (900, True)
        with pytest.raises(ValidationError):
            await service.update_budget(owner_id, budget.id, {"spent": 0})


class TestCarryOver:
    """이월"""

    @pytest.mark.asyncio
    async def test_december_to_january(
        self,
        owner_id: str,
        service: BudgetService,
        workflow: TransactionWorkflow,
        wallet: Account,
        food: Category,
        create_category: CreateCategory,
    ) -> None:
        """2024-12 예산 10000 / 지출 4000 → 2025-01에 6000 이월"""
        rent = await create_category("Rent")
        await service.create_budget(
            owner_id,
            {"category_id": food.id, "amount": 10000, "period_key": "2024-12", "carry_over_enabled": True},
        )
        # 이월 꺼짐
        await service.create_budget(owner_id, {"category_id": rent.id, "amount": 5000, "period_key": "2024-12"})
        await spend(workflow, owner_id, wallet, food, 4000, datetime(2024, 12, 20))

        january = await service.create_budget(
            owner_id, {"category_id": food.id, "amount": 10000, "period_key": "2025-01"}
        )
        await service.create_budget(owner_id, {"category_id": rent.id, "amount": 5000, "period_key": "2025-01"})

        updates = await service.process_carry_over(owner_id, "2025-01")

        assert updates == [{"category_id": food.id, "carried_over": 6000}]
        refreshed = await service.get_budget(owner_id, january.id)
        assert refreshed.carry_over_amount == 6000
        assert refreshed.budgeted == 16000

    @pytest.mark.asyncio
    async def test_overspent_previous_period_carries_nothing(
        self,
        owner_id: str,
        service: BudgetService,
        workflow: TransactionWorkflow,
        wallet: Account,
        food: Category,
    ) -> None:
        await service.create_budget(
            owner_id,
            {"category_id": food.id, "amount": 1000, "period_key": "2025-01", "carry_over_enabled": True},
        )
        await service.create_budget(owner_id, {"category_id": food.id, "amount": 1000, "period_key": "2025-02"})
        await spend(workflow, owner_id, wallet, food, 1500, datetime(2025, 1, 10))

        assert await service.process_carry_over(owner_id, "2025-02") == []

    @pytest.mark.asyncio
    async def test_no_current_budget(
        self, owner_id: str, service: BudgetService, food: Category
    ) -> None:
        """현재 기간 예산이 없으면 이월 대상 없음"""
        await service.create_budget(
            owner_id,
            {
                "category_id": food.id,
                "amount": 1000,
                "period": "WEEKLY",
                "period_key": "2025-W01",
                "carry_over_enabled": True,
            },
        )

        assert await service.process_carry_over(owner_id, "2025-W02") == []

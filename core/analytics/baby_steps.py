"""
Baby Step 서비스

계좌/거래 상태에서 Baby Step 진행 상태를 다시 계산한다.
진행 상태는 캐시일 뿐 금액의 원천이 아니다 (수동 단계 4~7과 목표값만 사용자 입력).

    Step 1: 유동 자산(CASH/BANK/SAVINGS) ≥ 초기 비상금 목표
    Step 2: 잔액 > 0 인 부채 없음 (작은 잔액부터 갚는 snowball 순위)
    Step 3: 유동 자산 ≥ 최근 평균 월 지출 × 목표 개월 수
    Step 4~7: 사용자가 직접 표시
"""

import logging
from datetime import datetime
from typing import Any

from adapters.db.sqlite_adapter import DatabaseExecutor, SQLiteAdapter
from core.config.loader import BabyStepConfig, get_settings
from core.constants import Limits
from core.domain.models import Account, Progress
from core.domain.requests import BabyStepTargetsRequest, parse_request
from core.errors import ValidationError
from core.ledger.engine import LedgerEngine
from core.storage.account_store import AccountStore
from core.storage.progress_store import ProgressStore
from core.storage.transaction_store import TransactionStore
from core.types import LIQUID_SUBTYPES, AccountSubType, AccountType, TransactionType
from core.utils import money
from core.utils.dates import ensure_utc, now_utc, start_of_month, sub_months

logger = logging.getLogger(__name__)

AUTO_STEPS = (1, 2, 3)


def liquid_total(accounts: list[Account]) -> int:
    """유동 자산 합계 (활성 ASSET 중 CASH/BANK/SAVINGS)"""
    return sum(
        account.balance
        for account in accounts
        if account.is_active
        and account.type == AccountType.ASSET
        and account.subtype in LIQUID_SUBTYPES
    )


def rank_debts(accounts: list[Account]) -> list[dict[str, Any]]:
    """부채 snowball 순위 (잔액 오름차순)

    입력 순서(표시 순서, 생성 순)를 유지하는 안정 정렬이므로 같은 잔액은 먼저 만든 계좌가 앞.
    INITIAL_BALANCE 세부 유형과 잔액 0 이하 계좌는 제외.
    """
    debts = [
        account
        for account in accounts
        if account.is_active
        and account.type == AccountType.LIABILITY
        and account.subtype != AccountSubType.INITIAL_BALANCE
        and account.balance > 0
    ]
    debts.sort(key=lambda account: account.balance)

    ranked = []
    for index, account in enumerate(debts, start=1):
        loan = account.loan_details or {}
        ranked.append(
            {
                "account_id": account.id,
                "name": account.name,
                "original_balance": loan.get("original_amount") or account.balance,
                "current_balance": account.balance,
                "minimum_payment": loan.get("minimum_payment") or 0,
                "order": index,
            }
        )
    return ranked


def resolve_current_step(progress: Progress) -> int:
    """현재 단계 = 1~3 중 가장 낮은 미완료 단계

    1~3이 모두 완료되면 수동으로 표시한 4~7 중 가장 높은 단계 (없으면 4).
    """
    completed = {
        1: progress.step1_completed,
        2: progress.step2_completed,
        3: progress.step3_completed,
    }
    for step in AUTO_STEPS:
        if not completed[step]:
            return step

    manual = [step for step, active in progress.manual_steps.items() if active]
    return max(manual, default=Limits.MANUAL_STEP_MIN)


class BabyStepService:
    """Baby Step 서비스

    Args:
        db: SQLiteAdapter (연결된 상태)
        config: 기본 목표값 설정 (None이면 settings의 baby_steps 섹션)
    """

    def __init__(self, db: SQLiteAdapter, config: BabyStepConfig | None = None):
        self.db = db
        self.config = config or get_settings().baby_steps

    async def get_baby_step_progress(
        self,
        owner_id: str,
        now: datetime | None = None,
    ) -> Progress:
        """진행 상태 재계산 후 저장"""
        async with self.db.transaction() as uow:
            progress = await self._load(uow, owner_id)
            return await self._recalculate(uow, progress, now)

    async def set_targets(
        self,
        owner_id: str,
        request: BabyStepTargetsRequest | dict[str, Any],
    ) -> Progress:
        """초기 비상금 목표 / 비상금 개월 수 변경

        Raises:
            ValidationError: 목표 금액 음수, 개월 수 3~12 범위 밖
        """
        req = parse_request(BabyStepTargetsRequest, request)

        async with self.db.transaction() as uow:
            progress = await self._load(uow, owner_id)
            if req.starter_fund_target is not None:
                progress.step1_target = req.starter_fund_target
            if req.months_of_expenses is not None:
                progress.step3_months = req.months_of_expenses
            return await self._recalculate(uow, progress)

    async def set_manual_step(self, owner_id: str, step: int, active: bool) -> Progress:
        """수동 단계(4~7) 표시/해제

        Raises:
            ValidationError: 4~7 이외의 단계
        """
        if isinstance(step, bool) or not isinstance(step, int) or not (
            Limits.MANUAL_STEP_MIN <= step <= Limits.MANUAL_STEP_MAX
        ):
            raise ValidationError(
                f"수동으로 표시할 수 있는 단계는 {Limits.MANUAL_STEP_MIN}~"
                f"{Limits.MANUAL_STEP_MAX} 입니다: {step!r}"
            )

        async with self.db.transaction() as uow:
            progress = await self._load(uow, owner_id)
            progress.manual_steps[step] = bool(active)
            return await self._recalculate(uow, progress)

    async def get_smallest_debt(self, owner_id: str) -> dict[str, Any] | None:
        """snowball 1순위 부채 (없으면 None)"""
        progress = await self.get_baby_step_progress(owner_id)
        return progress.step2_debts[0] if progress.step2_debts else None

    async def get_gazelle_intensity(
        self,
        owner_id: str,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """이번 달 수입 - 지출 (부채 상환 여력 지표, 저장하지 않음)"""
        now = ensure_utc(now) if now else now_utc()
        month_start = start_of_month(now)

        transactions = TransactionStore(self.db)
        monthly_income = await transactions.sum_amount(
            owner_id, TransactionType.INCOME, month_start, now
        )
        monthly_expense = await transactions.sum_amount(
            owner_id, TransactionType.EXPENSE, month_start, now
        )
        accounts = await AccountStore(self.db).list_accounts(owner_id)
        unallocated = monthly_income - monthly_expense

        return {
            "monthly_income": monthly_income,
            "monthly_expense": monthly_expense,
            "unallocated": unallocated,
            "total_liquid": liquid_total(accounts),
            "should_throw_at_debt": unallocated > 0,
        }

    async def get_net_worth(self, owner_id: str) -> dict[str, int]:
        """순자산 {assets, liabilities, net_worth}"""
        return await LedgerEngine(self.db).calculate_net_worth(owner_id)

    async def average_monthly_expense(
        self,
        owner_id: str,
        now: datetime | None = None,
        db: DatabaseExecutor | None = None,
    ) -> int:
        """최근 N개월 평균 월 지출 (N = expense_window_months, 반올림)"""
        now = ensure_utc(now) if now else now_utc()
        window = self.config.expense_window_months
        total = await TransactionStore(db or self.db).sum_amount(
            owner_id, TransactionType.EXPENSE, sub_months(now, window), now
        )
        return money.divide(total, window)

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    async def _load(self, db: DatabaseExecutor, owner_id: str) -> Progress:
        progress = await ProgressStore(db).find(owner_id)
        if progress is None:
            progress = Progress(
                owner_id=owner_id,
                step1_target=self.config.starter_fund_target,
                step3_months=self.config.months_of_expenses,
            )
        return progress

    async def _recalculate(
        self,
        db: DatabaseExecutor,
        progress: Progress,
        now: datetime | None = None,
    ) -> Progress:
        now = ensure_utc(now) if now else now_utc()
        accounts = await AccountStore(db).list_accounts(progress.owner_id)
        liquid = liquid_total(accounts)

        # Step 1
        progress.step1_current = liquid
        progress.step1_completed_at = self._stamp(
            progress, 1, liquid >= progress.step1_target, progress.step1_completed_at, now
        )

        # Step 2
        progress.step2_debts = rank_debts(accounts)
        progress.step2_completed_at = self._stamp(
            progress, 2, not progress.step2_debts, progress.step2_completed_at, now
        )

        # Step 3
        average = await self.average_monthly_expense(progress.owner_id, now, db)
        progress.step3_target = money.multiply(average, progress.step3_months)
        progress.step3_current = liquid
        progress.step3_completed_at = self._stamp(
            progress,
            3,
            progress.step3_target > 0 and liquid >= progress.step3_target,
            progress.step3_completed_at,
            now,
        )

        progress.current_step = resolve_current_step(progress)
        return await ProgressStore(db).save(progress)

    @staticmethod
    def _stamp(
        progress: Progress,
        step: int,
        is_complete: bool,
        completed_at: datetime | None,
        now: datetime,
    ) -> datetime | None:
        """완료 전환 시 시각 기록, 미완료면 해제"""
        if not is_complete:
            return None
        if completed_at is None:
            logger.info(
                f"Baby Step {step} 완료",
                extra={"owner_id": progress.owner_id, "step": step},
            )
            return now
        return completed_at

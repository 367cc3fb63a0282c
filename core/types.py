"""
타입 정의 모듈

도메인 전반에서 사용하는 Enum 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class AccountType(str, Enum):
    """계좌 회계 유형 (잔액 부호 규칙 결정)"""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"


class AccountSubType(str, Enum):
    """계좌 세부 유형"""

    CASH = "CASH"
    BANK = "BANK"
    CREDIT_CARD = "CREDIT_CARD"
    LOAN = "LOAN"
    INVESTMENT = "INVESTMENT"
    SAVINGS = "SAVINGS"
    INITIAL_BALANCE = "INITIAL_BALANCE"


# 비상금(Baby Step 1, 3) 계산에 포함되는 유동 자산 세부 유형
LIQUID_SUBTYPES: frozenset[AccountSubType] = frozenset(
    {AccountSubType.CASH, AccountSubType.BANK, AccountSubType.SAVINGS}
)


class TransactionType(str, Enum):
    """거래 유형"""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class CategoryType(str, Enum):
    """카테고리 유형 (거래 유형 INCOME/EXPENSE와 일치해야 함)"""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class BudgetPeriod(str, Enum):
    """예산 주기"""

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"

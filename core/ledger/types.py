"""
복식부기 타입 정의

분개 방향, 기록 종류 및 계좌 유형별 부호 규칙
"""

from enum import Enum

from core.types import AccountType


class JournalSide(str, Enum):
    """분개 방향 (차변/대변)"""

    DEBIT = "DEBIT"  # 차변 (자산 증가, 부채/자본 감소)
    CREDIT = "CREDIT"  # 대변 (자산 감소, 부채/자본 증가)

    def flipped(self) -> "JournalSide":
        """반대 방향"""
        if self is JournalSide.DEBIT:
            return JournalSide.CREDIT
        return JournalSide.DEBIT


class EntryKind(str, Enum):
    """원장 기록 종류"""

    APPLY = "APPLY"  # 거래 효과 적용
    REVERSE = "REVERSE"  # 거래 효과 취소
    OPENING = "OPENING"  # 계좌 생성 시 초기 잔액


# 계좌 유형별 차변 부호 (대변은 반대 부호)
#   ASSET: 차변 +, 대변 -
#   LIABILITY/EQUITY: 차변 -, 대변 +
DEBIT_SIGN: dict[AccountType, int] = {
    AccountType.ASSET: 1,
    AccountType.LIABILITY: -1,
    AccountType.EQUITY: -1,
}


def signed_delta(account_type: AccountType, side: JournalSide, amount: int) -> int:
    """분개 한 줄이 잔액에 주는 부호 있는 변화량

    Example:
        >>> signed_delta(AccountType.LIABILITY, JournalSide.DEBIT, 500)
        -500
    """
    sign = DEBIT_SIGN[AccountType(account_type)]
    if side == JournalSide.CREDIT:
        sign = -sign
    return sign * amount


def opening_side(account_type: AccountType) -> JournalSide:
    """초기 잔액 기록 방향 (잔액을 증가시키는 쪽)"""
    if DEBIT_SIGN[AccountType(account_type)] > 0:
        return JournalSide.DEBIT
    return JournalSide.CREDIT

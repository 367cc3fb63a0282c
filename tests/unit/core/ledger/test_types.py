"""Ledger 타입 / 부호 규칙 테스트"""

import pytest

from core.ledger.types import DEBIT_SIGN, EntryKind, JournalSide, opening_side, signed_delta
from core.types import AccountType


class TestJournalSide:
    """JournalSide Enum 테스트"""

    def test_sides(self) -> None:
        """차변/대변 확인"""
        assert JournalSide.DEBIT.value == "DEBIT"
        assert JournalSide.CREDIT.value == "CREDIT"

    def test_flipped(self) -> None:
        assert JournalSide.DEBIT.flipped() is JournalSide.CREDIT
        assert JournalSide.CREDIT.flipped() is JournalSide.DEBIT


class TestEntryKind:
    """EntryKind Enum 테스트"""

    def test_kinds(self) -> None:
        assert {k.value for k in EntryKind} == {"APPLY", "REVERSE", "OPENING"}


class TestSignedDelta:
    """계좌 유형별 부호 규칙"""

    @pytest.mark.parametrize(
        "account_type,side,expected",
        [
            (AccountType.ASSET, JournalSide.DEBIT, 500),
            (AccountType.ASSET, JournalSide.CREDIT, -500),
            (AccountType.LIABILITY, JournalSide.DEBIT, -500),
            (AccountType.LIABILITY, JournalSide.CREDIT, 500),
            (AccountType.EQUITY, JournalSide.DEBIT, -500),
            (AccountType.EQUITY, JournalSide.CREDIT, 500),
        ],
    )
    def test_sign_table(self, account_type: AccountType, side: JournalSide, expected: int) -> None:
        assert signed_delta(account_type, side, 500) == expected

    def test_accepts_string_type(self) -> None:
        """DB에서 읽은 문자열 유형도 허용"""
        assert signed_delta("LIABILITY", JournalSide.CREDIT, 10) == 10  # type: ignore[arg-type]

    def test_every_account_type_has_sign(self) -> None:
        assert set(DEBIT_SIGN) == set(AccountType)

    def test_debit_and_credit_cancel(self) -> None:
        for account_type in AccountType:
            total = signed_delta(account_type, JournalSide.DEBIT, 777) + signed_delta(
                account_type, JournalSide.CREDIT, 777
            )
            assert total == 0


class TestOpeningSide:
    """초기 잔액 기록 방향"""

    def test_asset_opens_with_debit(self) -> None:
        assert opening_side(AccountType.ASSET) == JournalSide.DEBIT

    @pytest.mark.parametrize("account_type", [AccountType.LIABILITY, AccountType.EQUITY])
    def test_liability_equity_open_with_credit(self, account_type: AccountType) -> None:
        assert opening_side(account_type) == JournalSide.CREDIT

    def test_opening_increases_balance(self) -> None:
        for account_type in AccountType:
            assert signed_delta(account_type, opening_side(account_type), 100) == 100

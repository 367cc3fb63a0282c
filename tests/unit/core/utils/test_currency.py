"""통화 정보 테스트"""

import logging

import pytest

from core.errors import ValidationError
from core.utils.currency import CURRENCIES, convert, format_amount, get_currency, is_supported


class TestCurrencyTable:
    """지원 통화 테이블"""

    def test_supported_codes(self) -> None:
        assert set(CURRENCIES) == {"NGN", "USD", "EUR", "GBP"}

    def test_all_use_hundred_subunits(self) -> None:
        assert all(info.subunit_to_unit == 100 for info in CURRENCIES.values())

    def test_lookup_is_case_insensitive(self) -> None:
        assert get_currency("usd").symbol == "$"
        assert is_supported("gbp")

    @pytest.mark.parametrize("code", ["XYZ", "", None])
    def test_unknown_falls_back_to_naira(self, code: str | None) -> None:
        assert get_currency(code).code == "NGN"

    def test_not_supported(self) -> None:
        assert not is_supported("JPY")


class TestFormatAmount:
    """통화별 표시"""

    def test_dollar(self) -> None:
        assert format_amount(250075, "USD") == "$2,500.75"

    def test_default_naira(self) -> None:
        assert format_amount(100) == "₦1.00"

    def test_pound(self) -> None:
        assert format_amount(99, "GBP") == "£0.99"


class TestConvert:
    """환전 (미지원: 금액 그대로)"""

    def test_same_currency(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            assert convert(1000, "NGN", "ngn") == 1000
        assert not caplog.records

    def test_different_currency_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            assert convert(1000, "NGN", "USD") == 1000
        assert any("통화 변환 미지원" in record.message for record in caplog.records)

    @pytest.mark.parametrize("amount", [-1, 10.5, "100"])
    def test_invalid_amount(self, amount: object) -> None:
        with pytest.raises(ValidationError):
            convert(amount, "NGN", "USD")  # type: ignore[arg-type]

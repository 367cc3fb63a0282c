"""금액 유틸리티 테스트"""

from decimal import Decimal

import pytest

from core.constants import Limits
from core.errors import FormatError, ValidationError
from core.utils import money


class TestToSubunits:
    """주 단위 → 보조 단위"""

    def test_float_amount(self) -> None:
        """10.50 → 1050"""
        assert money.to_subunits(10.50) == 1050

    def test_decimal_amount(self) -> None:
        assert money.to_subunits(Decimal("1234.56")) == 123456

    def test_half_rounds_up(self) -> None:
        """0.005 → 1 (ROUND_HALF_UP)"""
        assert money.to_subunits(0.005) == 1
        assert money.to_subunits(0.004) == 0

    def test_custom_subunit_to_unit(self) -> None:
        assert money.to_subunits(2, subunit_to_unit=1000) == 2000

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValidationError):
            money.to_subunits(-1)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "10", None, True])
    def test_non_numeric_rejected(self, value: object) -> None:
        with pytest.raises(ValidationError):
            money.to_subunits(value)  # type: ignore[arg-type]

    def test_invalid_subunit_to_unit(self) -> None:
        with pytest.raises(ValidationError):
            money.to_subunits(1, subunit_to_unit=0)


class TestFromSubunits:
    """보조 단위 → 주 단위"""

    def test_conversion(self) -> None:
        assert money.from_subunits(1050) == Decimal("10.5")

    def test_negative_balance(self) -> None:
        """부채 잔액 등 음수도 표시 가능"""
        assert money.from_subunits(-250) == Decimal("-2.5")

    def test_float_rejected(self) -> None:
        with pytest.raises(ValidationError):
            money.from_subunits(10.5)  # type: ignore[arg-type]


class TestParse:
    """문자열 입력 파싱"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("1000", 100000),
            ("1,000", 100000),
            ("₦1,000.50", 100050),
            ("$ 12.5", 1250),
            ("£0.99", 99),
            (".5", 50),
        ],
    )
    def test_valid_strings(self, text: str, expected: int) -> None:
        assert money.parse(text) == expected

    def test_number_input(self) -> None:
        assert money.parse(25) == 2500

    @pytest.mark.parametrize("text", ["abc", "12a", "", "1.2.3", "₦"])
    def test_invalid_strings(self, text: str) -> None:
        with pytest.raises(FormatError):
            money.parse(text)

    def test_negative_string(self) -> None:
        """형식은 맞지만 음수 → ValidationError"""
        with pytest.raises(ValidationError):
            money.parse("-5")

    def test_format_error_is_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            money.parse("not money")


class TestFormat:
    """표시용 문자열"""

    def test_default_naira(self) -> None:
        assert money.format(105050) == "₦1,050.50"

    def test_negative_with_symbol(self) -> None:
        assert money.format(-2500, "$", locale="en-US") == "-$25.00"

    def test_zero(self) -> None:
        assert money.format(0) == "₦0.00"

    def test_without_symbol(self) -> None:
        assert money.format_without_symbol(123456789) == "1,234,567.89"

    def test_locale_separators(self) -> None:
        """de-DE: 천 단위 '.', 소수점 ','"""
        assert money.format_without_symbol(123456, locale="de-DE") == "1.234,56"


class TestArithmetic:
    """정수 전용 연산"""

    def test_add_subtract(self) -> None:
        assert money.add(1000, 250) == 1250
        assert money.subtract(1000, 250) == 750

    def test_add_rejects_float(self) -> None:
        with pytest.raises(ValidationError):
            money.add(10.5, 1)  # type: ignore[arg-type]

    def test_multiply_rounds(self) -> None:
        assert money.multiply(1000, 1.5) == 1500
        assert money.multiply(333, 0.5) == 167

    def test_divide_rounds(self) -> None:
        assert money.divide(1000, 3) == 333
        assert money.divide(1000, 6) == 167

    def test_divide_by_zero(self) -> None:
        with pytest.raises(ValidationError):
            money.divide(1000, 0)

    def test_percentage(self) -> None:
        assert money.percentage(10000, 12.5) == 1250

    def test_compare(self) -> None:
        assert money.compare(1, 2) == -1
        assert money.compare(2, 2) == 0
        assert money.compare(3, 2) == 1

    def test_predicates(self) -> None:
        assert money.is_zero(0)
        assert money.is_positive(1)
        assert money.is_negative(-1)
        assert money.abs_amount(-750) == 750


class TestSplit:
    """분할 (합계 보존)"""

    def test_remainder_goes_first(self) -> None:
        assert money.split(1000, 3) == [334, 333, 333]

    @pytest.mark.parametrize(
        "amount,parts",
        [(1, 1), (1, 7), (100, 3), (99999, 13), (10**12 + 7, 9), (5, 10)],
    )
    def test_sum_is_exact(self, amount: int, parts: int) -> None:
        result = money.split(amount, parts)

        assert len(result) == parts
        assert sum(result) == amount
        assert all(isinstance(part, int) for part in result)

    @pytest.mark.parametrize("parts", [0, -1, 1.5])
    def test_invalid_parts(self, parts: object) -> None:
        with pytest.raises(ValidationError):
            money.split(100, parts)  # type: ignore[arg-type]


class TestValidate:
    """저장 가능 금액 검사"""

    def test_valid(self) -> None:
        assert money.validate(0) == (True, None)
        assert money.validate(1050) == (True, None)

    @pytest.mark.parametrize(
        "value", [10.5, -1, True, "100", None, float("nan"), Limits.MAX_AMOUNT + 1]
    )
    def test_invalid(self, value: object) -> None:
        is_valid, reason = money.validate(value)

        assert is_valid is False
        assert reason

    def test_ensure_positive_amount(self) -> None:
        assert money.ensure_positive_amount(1) == 1
        assert money.ensure_positive_amount(Limits.MAX_AMOUNT) == Limits.MAX_AMOUNT
        with pytest.raises(ValidationError, match="허용 범위"):
            money.ensure_positive_amount(Limits.MAX_AMOUNT + 1)
        with pytest.raises(ValidationError):
            money.ensure_positive_amount(0)
        with pytest.raises(ValidationError):
            money.ensure_positive_amount(12.0)

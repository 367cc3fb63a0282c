"""
금액 유틸리티 (보조 단위 정수 연산)

모든 금액은 보조 단위 정수로 저장한다 (예: NGN → kobo).
부동소수점 오차를 막기 위해 공개 함수는 정수만 받고 정수만 돌려준다.
주 단위 값(10.50 등)은 입력 변환(to_subunits, parse)과 표시(from_subunits, format)에만 등장.

반올림: Decimal ROUND_HALF_UP (0.5는 0에서 먼 쪽으로)
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from core.constants import Defaults, Limits
from core.errors import FormatError, ValidationError

# 통화 기호, 천 단위 구분자, 공백 제거용
_STRIP_PATTERN = re.compile(r"[₦$€£,\s]")
_NUMBER_PATTERN = re.compile(r"^-?(\d+(\.\d*)?|\.\d+)$")

# 로케일별 (천 단위 구분자, 소수점 구분자)
_LOCALE_SEPARATORS: dict[str, tuple[str, str]] = {
    "en-NG": (",", "."),
    "en-US": (",", "."),
    "en-GB": (",", "."),
    "en-EU": (",", "."),
    "de-DE": (".", ","),
    "fr-FR": (" ", ","),
}


def _is_int(value: object) -> bool:
    """bool을 제외한 정수 여부"""
    return isinstance(value, int) and not isinstance(value, bool)


def _require_int(value: object, name: str = "금액") -> int:
    if not _is_int(value):
        raise ValidationError(f"{name}은(는) 보조 단위 정수여야 합니다: {value!r}")
    return value  # type: ignore[return-value]


def _to_decimal(value: object, name: str) -> Decimal:
    """숫자 입력을 Decimal로 변환 (NaN/무한대/bool 거부)"""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"{name}은(는) 유효한 숫자여야 합니다: {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"{name}은(는) 유효한 숫자여야 합니다: {value!r}") from e
    if not result.is_finite():
        raise ValidationError(f"{name}은(는) 유효한 숫자여야 합니다: {value!r}")
    return result


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _require_subunit_to_unit(subunit_to_unit: int) -> int:
    if not _is_int(subunit_to_unit) or subunit_to_unit < 1:
        raise ValidationError(f"보조 단위 환산값은 양의 정수여야 합니다: {subunit_to_unit!r}")
    return subunit_to_unit


# =========================================================================
# 변환
# =========================================================================


def to_subunits(
    amount: int | float | Decimal,
    subunit_to_unit: int = Defaults.SUBUNIT_TO_UNIT,
) -> int:
    """주 단위 → 보조 단위

    Example:
        >>> to_subunits(10.50)
        1050

    Raises:
        ValidationError: 숫자가 아니거나 음수인 경우
    """
    value = _to_decimal(amount, "금액")
    if value < 0:
        raise ValidationError("금액은 음수일 수 없습니다")

    return _round(value * _require_subunit_to_unit(subunit_to_unit))


def from_subunits(
    amount: int,
    subunit_to_unit: int = Defaults.SUBUNIT_TO_UNIT,
) -> Decimal:
    """보조 단위 → 주 단위 (표시 전용)

    Example:
        >>> from_subunits(1050)
        Decimal('10.5')
    """
    _require_int(amount)
    return Decimal(amount) / Decimal(_require_subunit_to_unit(subunit_to_unit))


def parse(
    value: str | int | float | Decimal,
    subunit_to_unit: int = Defaults.SUBUNIT_TO_UNIT,
) -> int:
    """문자열/숫자 입력을 보조 단위로 변환

    "1000", "1,000", "₦1,000.50", "$ 12.5" 형식 허용.

    Raises:
        FormatError: 숫자가 아닌 내용이 포함된 경우
        ValidationError: 음수인 경우
    """
    if not isinstance(value, str):
        return to_subunits(value, subunit_to_unit)

    cleaned = _STRIP_PATTERN.sub("", value)
    if not _NUMBER_PATTERN.match(cleaned):
        raise FormatError(f"금액 형식이 올바르지 않습니다: {value!r}")

    return to_subunits(Decimal(cleaned), subunit_to_unit)


def format(
    amount: int,
    symbol: str = "₦",
    subunit_to_unit: int = Defaults.SUBUNIT_TO_UNIT,
    locale: str = Defaults.LOCALE,
) -> str:
    """표시용 문자열 (소수점 2자리, 로케일별 천 단위 구분)

    Example:
        >>> format(105050)
        '₦1,050.50'
        >>> format(-2500, "$", locale="en-US")
        '-$25.00'
    """
    main_unit = from_subunits(amount, subunit_to_unit)
    text = format_without_symbol(amount, subunit_to_unit, locale)
    if main_unit < 0:
        return f"-{symbol}{text.lstrip('-')}"
    return f"{symbol}{text}"


def format_without_symbol(
    amount: int,
    subunit_to_unit: int = Defaults.SUBUNIT_TO_UNIT,
    locale: str = Defaults.LOCALE,
) -> str:
    """통화 기호 없는 표시용 문자열"""
    main_unit = from_subunits(amount, subunit_to_unit).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
    group_sep, decimal_sep = _LOCALE_SEPARATORS.get(locale, (",", "."))

    # 기본 형식 "1,234.56"을 만든 뒤 로케일 구분자로 치환
    text = f"{main_unit:,.2f}"
    return text.replace(",", "\x00").replace(".", decimal_sep).replace("\x00", group_sep)


# =========================================================================
# 연산 (정수 전용)
# =========================================================================


def add(amount1: int, amount2: int) -> int:
    """두 금액의 합"""
    return _require_int(amount1) + _require_int(amount2)


def subtract(amount1: int, amount2: int) -> int:
    """두 금액의 차"""
    return _require_int(amount1) - _require_int(amount2)


def multiply(amount: int, multiplier: int | float | Decimal) -> int:
    """금액 × 배수 (결과 반올림)"""
    _require_int(amount)
    return _round(Decimal(amount) * _to_decimal(multiplier, "배수"))


def divide(amount: int, divisor: int | float | Decimal) -> int:
    """금액 ÷ 제수 (결과 반올림)

    Raises:
        ValidationError: 제수가 0인 경우
    """
    _require_int(amount)
    value = _to_decimal(divisor, "제수")
    if value == 0:
        raise ValidationError("0으로 나눌 수 없습니다")
    return _round(Decimal(amount) / value)


def percentage(amount: int, percent: int | float | Decimal) -> int:
    """금액의 percent% (결과 반올림)"""
    _require_int(amount)
    return _round(Decimal(amount) * _to_decimal(percent, "비율") / Decimal(100))


def split(amount: int, parts: int) -> list[int]:
    """금액을 parts개로 분할

    나머지는 첫 번째 몫에 더한다. 결과의 합은 항상 amount와 같다.

    Example:
        >>> split(1000, 3)
        [334, 333, 333]
    """
    _require_int(amount)
    if not _is_int(parts) or parts < 1:
        raise ValidationError(f"분할 개수는 양의 정수여야 합니다: {parts!r}")

    base, remainder = divmod(amount, parts)
    result = [base] * parts
    result[0] += remainder
    return result


def compare(amount1: int, amount2: int) -> int:
    """비교 (-1, 0, 1)"""
    _require_int(amount1)
    _require_int(amount2)
    if amount1 < amount2:
        return -1
    if amount1 > amount2:
        return 1
    return 0


def abs_amount(amount: int) -> int:
    """절대값"""
    return abs(_require_int(amount))


def is_zero(amount: int) -> bool:
    return _require_int(amount) == 0


def is_positive(amount: int) -> bool:
    return _require_int(amount) > 0


def is_negative(amount: int) -> bool:
    return _require_int(amount) < 0


def validate(amount: object) -> tuple[bool, str | None]:
    """저장 가능한 금액인지 검사

    Returns:
        (유효 여부, 오류 메시지)
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float, Decimal)):
        return False, "금액은 유효한 숫자여야 합니다"
    if isinstance(amount, (float, Decimal)) and amount != amount:
        return False, "금액은 유효한 숫자여야 합니다"
    if not _is_int(amount):
        return False, "금액은 보조 단위 정수여야 합니다"
    if amount < 0:  # type: ignore[operator]
        return False, "금액은 음수일 수 없습니다"
    if amount > Limits.MAX_AMOUNT:  # type: ignore[operator]
        return False, "금액이 허용 범위를 초과합니다"
    return True, None


def ensure_positive_amount(amount: object, name: str = "금액") -> int:
    """0보다 큰 보조 단위 정수인지 검사 후 반환

    Raises:
        ValidationError: 정수가 아니거나 0 이하이거나 최대 금액을 넘는 경우
    """
    value = _require_int(amount, name)
    if value <= 0:
        raise ValidationError(f"{name}은(는) 0보다 커야 합니다: {value}")
    if value > Limits.MAX_AMOUNT:
        raise ValidationError(f"{name}이(가) 허용 범위를 초과합니다: {value}")
    return value

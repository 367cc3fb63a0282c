"""
통화 정보

지원 통화 테이블 및 통화별 표시 형식.
환전(convert)은 지원하지 않으며 금액을 그대로 돌려준다.
"""

import logging
from dataclasses import dataclass

from core.constants import Defaults
from core.errors import ValidationError
from core.utils import money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrencyInfo:
    """통화 정보"""

    code: str
    symbol: str
    name: str
    locale: str
    subunit: str
    subunit_to_unit: int = Defaults.SUBUNIT_TO_UNIT


CURRENCIES: dict[str, CurrencyInfo] = {
    "NGN": CurrencyInfo("NGN", "₦", "Nigerian Naira", "en-NG", "kobo"),
    "USD": CurrencyInfo("USD", "$", "US Dollar", "en-US", "cent"),
    "EUR": CurrencyInfo("EUR", "€", "Euro", "en-EU", "cent"),
    "GBP": CurrencyInfo("GBP", "£", "British Pound", "en-GB", "penny"),
}


def get_currency(code: str | None) -> CurrencyInfo:
    """통화 코드 → 통화 정보 (알 수 없으면 기본 통화)"""
    if code:
        info = CURRENCIES.get(code.upper())
        if info is not None:
            return info
    return CURRENCIES[Defaults.CURRENCY]


def is_supported(code: str) -> bool:
    return code.upper() in CURRENCIES


def format_amount(amount: int, code: str | None = None) -> str:
    """통화 형식으로 표시

    Example:
        >>> format_amount(250075, "USD")
        '$2,500.75'
    """
    info = get_currency(code)
    return money.format(amount, info.symbol, info.subunit_to_unit, info.locale)


def convert(amount: int, from_code: str, to_code: str) -> int:
    """통화 변환 (미지원: 금액을 그대로 반환)

    환율 연동 전까지는 같은 금액을 돌려주고 경고만 남긴다.
    """
    is_valid, reason = money.validate(amount)
    if not is_valid:
        raise ValidationError(reason or "금액이 올바르지 않습니다")

    if from_code.upper() != to_code.upper():
        logger.warning(
            "통화 변환 미지원 - 금액을 그대로 반환",
            extra={"from_currency": from_code, "to_currency": to_code, "amount": amount},
        )
    return amount

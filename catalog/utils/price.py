"""
루피아(Rp) 가격 문자열 <-> Decimal 변환

- 표시 형식: "Rp. 50.000,00" (천 단위 구분자 '.', 소수점 ',', 소수 둘째 자리까지)
- 입력은 루피아 형식 문자열, 일반 숫자 문자열("30000", "30000.50"), 숫자 모두 허용
"""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from catalog.core.exceptions import ValidationError

CURRENCY_PREFIX = "Rp."
TWO_PLACES = Decimal("0.01")
# books.price 컬럼이 Numeric(12, 2) 이므로 정수부는 10자리까지
MAX_PRICE_EXCLUSIVE = Decimal(10) ** 10

_RUPIAH_PREFIX = re.compile(r"^\s*rp\.?\s*", re.IGNORECASE)
_RUPIAH_NUMBER = re.compile(r"^-?\d{1,3}(\.\d{3})*(,\d+)?$|^-?\d+(,\d+)?$")

PriceLike = Union[str, int, float, Decimal, None]


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _to_decimal(value: PriceLike) -> Decimal:
    if value is None:
        return Decimal(0)

    if isinstance(value, bool):
        raise ValidationError("Price must be a number", {"price": value})

    if isinstance(value, (int, Decimal)):
        return Decimal(value)

    if isinstance(value, float):
        text = str(value)
    else:
        text = str(value).strip()
        if not text:
            return Decimal(0)

        if _RUPIAH_PREFIX.match(text):
            number = _RUPIAH_PREFIX.sub("", text).replace(" ", "")
            if not _RUPIAH_NUMBER.match(number):
                raise ValidationError(f"Invalid Rupiah price: {value!r}", {"price": value})
            # 천 단위 '.' 제거, 소수점 ',' -> '.'
            text = number.replace(".", "").replace(",", ".")

    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"Price must be a number: {value!r}", {"price": value})


def parse_price(value: PriceLike) -> Decimal:
    """가격 입력을 Decimal(소수 둘째 자리)로 변환"""
    parsed = _to_decimal(value)

    if not parsed.is_finite():
        raise ValidationError(f"Price must be a finite number: {value!r}", {"price": str(value)})

    too_large = ValidationError(
        f"Price must be less than {format_price(MAX_PRICE_EXCLUSIVE)}",
        {"price": str(value)},
    )
    try:
        amount = _quantize(parsed)
    except InvalidOperation:
        # 28자리 정밀도를 넘는 값
        raise too_large

    if abs(amount) >= MAX_PRICE_EXCLUSIVE:
        raise too_large
    return amount


def format_price(value: PriceLike) -> str:
    """Decimal 가격을 "Rp. 1.234.567,89" 형식으로 변환"""
    amount = _quantize(Decimal(0) if value is None else Decimal(str(value)))
    # 1,234,567.89 -> 1.234.567,89
    grouped = f"{amount:,.2f}".translate(str.maketrans(",.", ".,"))
    return f"{CURRENCY_PREFIX} {grouped}"

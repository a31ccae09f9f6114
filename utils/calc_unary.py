# utils/calc_unary.py
from __future__ import annotations

import math
from decimal import Decimal, DecimalException, localcontext
from typing import Union

from utils.calc import CALC_CONTEXT, DomainError, MathError, ensure_finite, parse_number

# 171! уже не помещается в double
MAX_FACTORIAL = 170

Number = Union[Decimal, int, float, str]


def to_number(x: Number) -> Decimal:
    """Decimal | int | float | строка с одним числом -> Decimal."""
    if isinstance(x, Decimal):
        return x
    if isinstance(x, int):
        return Decimal(x)
    if isinstance(x, float):
        return Decimal(repr(x))
    return parse_number(x)


def _power(x: Number, exp: int) -> Decimal:
    val = to_number(x)
    try:
        with localcontext(CALC_CONTEXT):
            res = Decimal(1)
            for _ in range(exp):
                res = res * val
            return ensure_finite(res)
    except DecimalException:
        raise MathError()


def square(x: Number) -> Decimal:
    return _power(x, 2)


def cube(x: Number) -> Decimal:
    return _power(x, 3)


def factorial(n: Number) -> Decimal:
    val = to_number(n)
    if not val.is_finite():
        raise MathError()
    if val != val.to_integral_value():
        raise DomainError("Whole numbers only")
    if val < 0:
        raise DomainError("Negative numbers not allowed")
    if val > MAX_FACTORIAL:
        raise DomainError("Value too large")
    return ensure_finite(Decimal(math.factorial(int(val))))

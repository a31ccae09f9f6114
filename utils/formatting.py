# utils/formatting.py
from decimal import Context, Decimal, ROUND_HALF_UP

THIN_APOSTROPHE = u"’"

DISPLAY_FRACTION_DIGITS = 8


def _wide_context(d: Decimal, precision: int) -> Context:
    # хватает разрядов, чтобы quantize не падал на огромных числах (170!)
    prec = max(1, len(d.as_tuple().digits), d.adjusted() + 1 + precision)
    return Context(prec=prec, rounding=ROUND_HALF_UP)


def _group_int(int_part, sep=THIN_APOSTROPHE):
    rev = int_part[::-1]
    chunks = [rev[i:i + 3] for i in range(0, len(rev), 3)]
    return sep.join(ch[::-1] for ch in chunks[::-1])


def format_number(d: Decimal, max_fraction: int = DISPLAY_FRACTION_DIGITS) -> str:
    """
    Число для дисплея калькулятора:
    - целое -> без дробной части
    - иначе -> не больше max_fraction знаков, без хвостовых нулей
    - без экспоненты и без "-0"
    """
    if d.as_tuple().exponent < -max_fraction:
        q = Decimal(1).scaleb(-max_fraction)
        d = d.quantize(q, context=_wide_context(d, max_fraction))
    s = f"{d.normalize(_wide_context(d, 0)):f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    if s in ("", "-0"):
        s = "0"
    return s


def format_amount_core(amount: Decimal, precision: int, sep: str = THIN_APOSTROPHE) -> str:
    """Поддержка отрицательных значений: -1000000.5 -> '-1’000’000.50'."""
    q = Decimal(10) ** -precision
    a = amount.quantize(q, context=_wide_context(amount, precision))
    neg = a < 0
    a_abs = -a if neg else a

    s = f"{a_abs:f}"  # без экспоненты
    if "." in s:
        int_part, frac_part = s.split(".", 1)
        res = f"{_group_int(int_part, sep)}.{frac_part.ljust(precision, '0')[:precision]}"
    else:
        res = _group_int(s, sep) + ("." + "0" * precision if precision > 0 else "")
    return "-" + res if neg else res


def format_error(err) -> str:
    return f"Error: {err}"

# utils/calc.py
"""
Вычислитель выражений калькулятора.

Поддерживает числа (не больше одной точки), операторы + - * / %, скобки
и суффиксный процент. Процент трактуется по контексту:

    10 % 3      -> остаток от деления (после % идёт обычное число)
    100 + 10%   -> 100 + 10% от 100 = 110
    2*50 + 10%  -> 2*50 + 10% от 50 = 105 (A — операнд прямо перед знаком)
    100 - 10%   -> 100 - 10% от 100 = 90
    100 * 10%   -> 100 * 0.1 = 10
    8%          -> 0.08

Ошибки — подклассы CalcError; никаких "сырых" исключений наружу.
"""
from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from decimal import (
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import List, Optional

CALC_CONTEXT = Context(prec=28, traps=[InvalidOperation, DivisionByZero, Overflow])

# диапазон как у double: всё, что больше, считаем переполнением (Infinity)
MAX_MAGNITUDE = Decimal(sys.float_info.max)

MAX_EXPRESSION_LENGTH = 1024

NUMBER = "num"
OP = "op"
PERCENT = "pct"
LPAREN = "("
RPAREN = ")"

_GLYPHS = str.maketrans({",": ".", "×": "*", "÷": "/", "−": "-"})
_RE_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)$")


class CalcError(Exception):
    default_message = "Invalid Input"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


EvaluationError = CalcError


class InvalidNumberError(CalcError):
    default_message = "Invalid Input"


class UnbalancedParenError(CalcError):
    default_message = "Unbalanced parentheses"


class DivideByZeroError(CalcError):
    default_message = "Cannot divide by zero"


class ModuloByZeroError(CalcError):
    default_message = "Cannot mod by zero"


class MathError(CalcError):
    default_message = "Math Error"


class DomainError(CalcError):
    default_message = "Value out of range"


@dataclass(frozen=True)
class Token:
    kind: str
    text: str


@dataclass(frozen=True)
class CalcResult:
    """Результат без исключений: либо value, либо error."""
    value: Optional[Decimal] = None
    error: Optional[CalcError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def ensure_finite(value: Decimal) -> Decimal:
    """Округлить до точности контекста и проверить диапазон."""
    try:
        value = CALC_CONTEXT.plus(value)
    except DecimalException:
        raise MathError()
    if not value.is_finite() or abs(value) > MAX_MAGNITUDE:
        raise MathError()
    return value


def parse_number(text: str) -> Decimal:
    """Строгий разбор одного числа со знаком: '-12.5', '.5', '3.'"""
    s = (text or "").strip().translate(_GLYPHS)
    if not _RE_NUMBER.match(s):
        raise InvalidNumberError()
    return Decimal(s)


def tokenize(s: str, max_length: int = MAX_EXPRESSION_LENGTH) -> List[Token]:
    s = (s or "").strip().translate(_GLYPHS)
    if not s:
        raise InvalidNumberError("Empty expression")
    if len(s) > max_length:
        raise InvalidNumberError("Expression too long")

    tokens: List[Token] = []
    i, n = 0, len(s)
    while i < n:
        ch = s[i]
        if ch.isspace():
            i += 1
            continue
        if ch in "+-*/":
            tokens.append(Token(OP, ch))
            i += 1
            continue
        if ch == "%":
            tokens.append(Token(PERCENT, ch))
            i += 1
            continue
        if ch == "(":
            tokens.append(Token(LPAREN, ch))
            i += 1
            continue
        if ch == ")":
            tokens.append(Token(RPAREN, ch))
            i += 1
            continue
        if s[i:i + 3].lower() == "mod":
            # явный остаток: "10 mod 3"
            tokens.append(Token(OP, "%"))
            i += 3
            continue
        if ch.isdigit() or ch == ".":
            j = i
            dot = 0
            while j < n and (s[j].isdigit() or s[j] == "."):
                if s[j] == ".":
                    dot += 1
                    if dot > 1:
                        raise InvalidNumberError("Invalid number")
                j += 1
            num = s[i:j]
            if num == ".":
                raise InvalidNumberError("Invalid number")
            tokens.append(Token(NUMBER, num))
            i = j
            continue
        raise InvalidNumberError(f"Invalid character: {ch}")
    return tokens


def check_parens(tokens: List[Token]) -> None:
    depth = 0
    for tok in tokens:
        if tok.kind == LPAREN:
            depth += 1
        elif tok.kind == RPAREN:
            depth -= 1
            if depth < 0:
                raise UnbalancedParenError()
    if depth:
        raise UnbalancedParenError()


def normalize_percent(tokens: List[Token]) -> List[Token]:
    """
    Разводим два смысла '%':
    - "A % B", где B — число без своего '%' (или скобка) -> бинарный остаток (OP)
    - всё остальное остаётся суффиксом процента (PERCENT)
    """
    out: List[Token] = []
    for idx, tok in enumerate(tokens):
        if tok.kind == PERCENT:
            nxt = tokens[idx + 1] if idx + 1 < len(tokens) else None
            after = tokens[idx + 2] if idx + 2 < len(tokens) else None
            if nxt is not None and (
                nxt.kind == LPAREN
                or (nxt.kind == NUMBER and (after is None or after.kind != PERCENT))
            ):
                out.append(Token(OP, "%"))
                continue
        out.append(tok)
    return out


def _apply(op: str, a: Decimal, b: Decimal) -> Decimal:
    if op == "+":
        return ensure_finite(a + b)
    if op == "-":
        return ensure_finite(a - b)
    if op == "*":
        return ensure_finite(a * b)
    if op == "/":
        if b == 0:
            raise DivideByZeroError()
        return ensure_finite(a / b)
    if op == "%":
        if b == 0:
            raise ModuloByZeroError()
        # целая часть частного должна влезть в точность, иначе DivisionImpossible
        with localcontext() as ctx:
            ctx.prec = max(CALC_CONTEXT.prec, a.adjusted() - b.adjusted() + 30)
            # Decimal: знак остатка как у делимого
            rem = a % b
        return ensure_finite(rem)
    raise InvalidNumberError(f"Unexpected '{op}'")


def _parse(tokens: List[Token]) -> Decimal:
    idx = [0]
    # значение последнего операнда (число или скобка) без своего '%';
    # это A для "A ± B%"
    last = [None]

    def cur() -> Optional[Token]:
        return tokens[idx[0]] if idx[0] < len(tokens) else None

    def is_op(*ops: str) -> bool:
        tok = cur()
        return tok is not None and tok.kind == OP and tok.text in ops

    def eat() -> Token:
        tok = tokens[idx[0]]
        idx[0] += 1
        return tok

    def parse_expr() -> Decimal:
        left = parse_term()
        while is_op("+", "-"):
            op = eat().text
            right = parse_term(anchor=last[0])
            left = _apply(op, left, right)
        return left

    def parse_term(anchor: Optional[Decimal] = None) -> Decimal:
        left = parse_factor(anchor)
        while is_op("*", "/", "%"):
            op = eat().text
            right = parse_factor()
            left = _apply(op, left, right)
        return left

    def suffix(val: Decimal) -> Decimal:
        # 50%% -> процент от процента
        while cur() is not None and cur().kind == PERCENT:
            eat()
            val = ensure_finite(val / Decimal(100))
        return val

    def parse_factor(anchor: Optional[Decimal] = None) -> Decimal:
        tok = cur()
        if tok is None:
            raise InvalidNumberError("Expected number")
        if tok.kind == OP and tok.text in ("+", "-"):
            sign = eat().text
            val = parse_factor()
            return val if sign == "+" else -val
        if tok.kind == LPAREN:
            eat()
            if cur() is not None and cur().kind == RPAREN:
                raise InvalidNumberError("Empty parentheses")
            val = parse_expr()
            if cur() is None or cur().kind != RPAREN:
                raise UnbalancedParenError()
            eat()
        elif tok.kind == NUMBER:
            eat()
            try:
                val = Decimal(tok.text)
            except InvalidOperation:
                raise InvalidNumberError("Invalid number")
        else:
            raise InvalidNumberError(f"Unexpected '{tok.text}'")

        if cur() is None or cur().kind != PERCENT:
            last[0] = val
            return val
        last[0] = None
        if anchor is not None:
            # A ± B%  ->  A ± A*B/100, дальше B% ведёт себя как обычное число
            eat()
            val = ensure_finite(anchor * val / Decimal(100))
        return suffix(val)

    val = parse_expr()
    tok = cur()
    if tok is not None:
        raise InvalidNumberError(f"Unexpected '{tok.text}'")
    return val


def evaluate(expression: str, *, max_length: int = MAX_EXPRESSION_LENGTH) -> Decimal:
    """Вычислить выражение. Бросает подклассы CalcError, частичных результатов нет."""
    tokens = tokenize(expression, max_length)
    check_parens(tokens)
    tokens = normalize_percent(tokens)
    try:
        with localcontext(CALC_CONTEXT):
            return ensure_finite(_parse(tokens))
    except DecimalException:
        raise MathError()
    except RecursionError:
        raise InvalidNumberError("Expression too complex")


def try_evaluate(expression: str, *, max_length: int = MAX_EXPRESSION_LENGTH) -> CalcResult:
    try:
        return CalcResult(value=evaluate(expression, max_length=max_length))
    except CalcError as e:
        return CalcResult(error=e)

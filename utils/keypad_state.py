# utils/keypad_state.py
"""
Состояние экранной клавиатуры калькулятора (одно сообщение = одно состояние).

Сам вычислитель чистый, а вся "память" (буфер, сброс после результата,
показ ошибки) живёт здесь.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from utils.calc import MAX_EXPRESSION_LENGTH, CalcError, evaluate, try_evaluate
from utils.calc_unary import cube, factorial, square
from utils.formatting import format_error, format_number

DEFAULT_DISPLAY = "0"
ERROR_PREFIX = "Error: "

OPERATORS = "+-*/"
INPUT_KEYS = set("0123456789.()") | set(OPERATORS)

_RE_LAST_NUMBER = re.compile(r"[\d.]*$")


@dataclass
class KeypadState:
    current_input: str = DEFAULT_DISPLAY
    should_reset_screen: bool = False
    error: bool = False
    # растёт при каждом изменении; по нему отложенная очистка понимает,
    # что после ошибки уже что-то нажали
    revision: int = 0
    max_length: int = MAX_EXPRESSION_LENGTH

    @classmethod
    def from_display(cls, text: Optional[str], **kwargs) -> "KeypadState":
        """Восстановить состояние по тексту сообщения (например, после рестарта бота)."""
        text = (text or "").strip()
        if not text or text.startswith(ERROR_PREFIX):
            return cls(**kwargs)
        return cls(current_input=text, **kwargs)

    @property
    def display(self) -> str:
        return self.current_input or DEFAULT_DISPLAY

    def _touch(self) -> bool:
        self.revision += 1
        return True

    def press(self, key: str) -> bool:
        """Нажатие кнопки. Возвращает True, если дисплей изменился."""
        if key in INPUT_KEYS:
            return self.append(key)
        handler = {
            "%": self.toggle_percent,
            "=": self.equals,
            "C": self.clear,
            "DEL": self.delete,
            "SQ": lambda: self.apply_unary(square),
            "CUBE": lambda: self.apply_unary(cube),
            "FACT": lambda: self.apply_unary(factorial),
        }.get(key)
        if handler is None:
            return False
        return handler()

    def append(self, value: str) -> bool:
        if self.should_reset_screen:
            # после результата оператор продолжает выражение, остальное — с нуля
            if self.error or value not in OPERATORS:
                self.current_input = ""
            self.should_reset_screen = False
            self.error = False

        if self.current_input in ("", DEFAULT_DISPLAY) and value != ".":
            self.current_input = value
            return self._touch()

        if value == "." and "." in _RE_LAST_NUMBER.search(self.current_input).group():
            return False
        if len(self.current_input) >= self.max_length:
            return False
        self.current_input += value
        return self._touch()

    def delete(self) -> bool:
        if self.error:
            return self.clear()
        if len(self.current_input) <= 1:
            if self.current_input == DEFAULT_DISPLAY:
                return False
            self.current_input = DEFAULT_DISPLAY
        else:
            self.current_input = self.current_input[:-1]
        self.should_reset_screen = False
        return self._touch()

    def clear(self) -> bool:
        changed = (self.current_input, self.should_reset_screen, self.error) != (DEFAULT_DISPLAY, False, False)
        self.current_input = DEFAULT_DISPLAY
        self.should_reset_screen = False
        self.error = False
        return self._touch() if changed else False

    def toggle_percent(self) -> bool:
        if self.error:
            self.clear()
        if not self.current_input or self.current_input == DEFAULT_DISPLAY:
            self.current_input = DEFAULT_DISPLAY + "%"
        elif self.current_input.endswith("%"):
            self.current_input = self.current_input[:-1]
        else:
            self.current_input += "%"
        self.should_reset_screen = False
        return self._touch()

    def equals(self) -> bool:
        if not self.current_input or self.error:
            return False
        res = try_evaluate(self.current_input, max_length=self.max_length)
        if not res.ok:
            return self.show_error(res.error)
        return self._show_result(format_number(res.value))

    def apply_unary(self, op: Callable) -> bool:
        """x², x³, n! — над значением того, что сейчас на дисплее."""
        if self.error:
            return False
        try:
            value = evaluate(self.current_input, max_length=self.max_length)
            result = op(value)
        except CalcError as e:
            return self.show_error(e)
        return self._show_result(format_number(result))

    def _show_result(self, text: str) -> bool:
        self.current_input = text
        self.should_reset_screen = True
        self.error = False
        return self._touch()

    def show_error(self, err: CalcError) -> bool:
        self.current_input = format_error(err)
        self.should_reset_screen = True
        self.error = True
        return self._touch()

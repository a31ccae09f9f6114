# keyboards/keypad.py
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

CB_KEYPAD = "kp"

# код кнопки -> подпись
KEY_LABELS = {
    "C": "C", "DEL": "⌫", "%": "%", "/": "÷",
    "7": "7", "8": "8", "9": "9", "*": "×",
    "4": "4", "5": "5", "6": "6", "-": "−",
    "1": "1", "2": "2", "3": "3", "+": "+",
    "(": "(", "0": "0", ".": ".", ")": ")",
    "SQ": "x²", "CUBE": "x³", "FACT": "n!", "=": "=",
}

LAYOUT = [
    ["C", "DEL", "%", "/"],
    ["7", "8", "9", "*"],
    ["4", "5", "6", "-"],
    ["1", "2", "3", "+"],
    ["(", "0", ".", ")"],
    ["SQ", "CUBE", "FACT", "="],
]


def keypad_cb(key: str) -> str:
    return f"{CB_KEYPAD}:{key}"


def parse_keypad_cb(data: str) -> str:
    """'kp:7' -> '7'; чужие данные -> ''"""
    prefix, _, key = (data or "").partition(":")
    return key if prefix == CB_KEYPAD else ""


def keypad_kb() -> InlineKeyboardMarkup:
    """
    Клавиатура калькулятора под сообщением с дисплеем.
    callback_data = "kp:<код кнопки>"
    """
    rows = [
        [InlineKeyboardButton(text=KEY_LABELS[key], callback_data=keypad_cb(key)) for key in row]
        for row in LAYOUT
    ]
    return InlineKeyboardMarkup(inline_keyboard=rows)

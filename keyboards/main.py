# keyboards/main.py
from aiogram.types import ReplyKeyboardMarkup, KeyboardButton


class MainKeyboard:
    @staticmethod
    def main() -> ReplyKeyboardMarkup:
        return ReplyKeyboardMarkup(
            keyboard=[
                [KeyboardButton(text="/keypad")],
                [KeyboardButton(text="/calc"), KeyboardButton(text="/help")],
            ],
            resize_keyboard=True,
            input_field_placeholder="Type an expression, e.g. /100+10%"
        )

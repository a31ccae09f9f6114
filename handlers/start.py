# handlers/start.py
from aiogram import Router
from aiogram.filters import CommandStart, Command
from aiogram.types import Message, ReplyKeyboardRemove

from keyboards.main import MainKeyboard


class StartHandler:
    def __init__(self) -> None:
        self.router = Router()
        self._register()

    async def _on_start(self, message: Message) -> None:
        text = (
            "👋 Hi! I'm a calculator bot.\n\n"
            "Send an expression after a slash, e.g. <code>/100+10%</code>, "
            "or open the on-screen calculator with <code>/keypad</code>.\n\n"
            "Command list: <code>/help</code>. Show buttons: <code>/buttons</code>."
        )
        # Не показываем клавиатуру автоматически
        await message.answer(text, parse_mode="HTML", reply_markup=ReplyKeyboardRemove())

    async def _show_help(self, message: Message) -> None:
        text_help = (
            "📖 Commands\n\n"
            "🧮 Expressions:\n"
            "• <code>/calc (2+3)*4</code> — evaluate an expression\n"
            "• <code>/2+3*4</code> — same, without the command\n"
            "• Operators: <code>+ - * / %</code> and parentheses\n\n"
            "💯 Percent:\n"
            "• <code>100+10%</code> = 110, <code>100-10%</code> = 90 (percent of the left side)\n"
            "• <code>100*10%</code> = 10, <code>8%</code> = 0.08\n"
            "• <code>10%3</code> = 1 (remainder)\n\n"
            "🔢 Functions:\n"
            "• <code>/sq 12</code> — square, <code>/cube 3</code> — cube\n"
            "• <code>/fact 5</code> — factorial (0…170)\n\n"
            "⌨️ <code>/keypad</code> — on-screen calculator\n"
            "Inline: <code>@bot 100+10%</code> in any chat.\n\n"
            "Show buttons: <code>/buttons</code> · Hide: <code>/hide</code>"
        )
        await message.answer(text_help, parse_mode="HTML", reply_markup=ReplyKeyboardRemove())

    async def _show_keyboard(self, message: Message) -> None:
        """Включить клавиатуру по запросу пользователя."""
        await message.answer(
            "Keyboard on. Pick a command below:",
            reply_markup=MainKeyboard.main(),
        )

    async def _hide_keyboard(self, message: Message) -> None:
        """Спрятать клавиатуру по запросу пользователя."""
        await message.answer("Keyboard hidden. To bring it back — /buttons.", reply_markup=ReplyKeyboardRemove())

    def _register(self) -> None:
        self.router.message.register(self._on_start, CommandStart())
        self.router.message.register(self._show_help, Command("help"))
        self.router.message.register(self._show_keyboard, Command("buttons"))
        self.router.message.register(self._hide_keyboard, Command("hide"))

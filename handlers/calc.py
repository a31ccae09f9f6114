from __future__ import annotations

import html
import logging
from uuid import uuid4

from aiogram import Router, F
from aiogram.filters import Command, CommandObject
from aiogram.types import (
    Message,
    InlineQuery,
    InlineQueryResultArticle,
    InputTextMessageContent,
)

from utils.calc import MAX_EXPRESSION_LENGTH, CalcError, evaluate
from utils.calc_unary import cube, factorial, square
from utils.formatting import format_amount_core, format_error, format_number

logger = logging.getLogger(__name__)

USAGE = "Usage: /calc <expression>\nExample: /calc (2+3)*100-50%"

# команда -> (операция, подпись результата)
_UNARY = {
    "sq": (square, "{x}² = {r}"),
    "cube": (cube, "{x}³ = {r}"),
    "fact": (factorial, "{x}! = {r}"),
}


class CalcHandler:
    def __init__(self, *, max_length: int = MAX_EXPRESSION_LENGTH) -> None:
        self.max_length = max_length
        self.router = Router()
        self._register()

    def _calc_text(self, expr: str) -> str:
        try:
            result = evaluate(expr, max_length=self.max_length)
        except CalcError as e:
            logger.info("calc failed: expr=%r error=%s", expr, type(e).__name__)
            return format_error(e)
        return f"{expr} = {format_number(result)}"

    async def _cmd_calc(self, message: Message, command: CommandObject) -> None:
        expr = (command.args or "").strip()
        if not expr:
            await message.answer(USAGE)
            return
        await message.answer(self._calc_text(expr))

    async def _slash_calc(self, message: Message) -> None:
        raw = (message.text or "").strip()
        expr = raw[1:].strip()  # убираем первый '/'
        if not expr:
            return
        await message.answer(self._calc_text(expr))

    async def _cmd_unary(self, message: Message, command: CommandObject) -> None:
        op, template = _UNARY[command.command.lower()]
        arg = (command.args or "").strip()
        if not arg:
            await message.answer(f"Usage: /{command.command} <number>")
            return
        try:
            # аргумент может быть выражением: /sq 2+3
            x = evaluate(arg, max_length=self.max_length)
            result = op(x)
        except CalcError as e:
            logger.info("/%s failed: arg=%r error=%s", command.command, arg, type(e).__name__)
            await message.answer(format_error(e))
            return
        await message.answer(template.format(x=format_number(x), r=format_number(result)))

    # ---------- INLINE MODE ----------
    async def _on_inline(self, q: InlineQuery) -> None:
        query = (q.query or "").strip()

        # пустой запрос — подсказка
        if not query:
            hint = "Type an expression, e.g.: (2+3)*10 - 50%"
            await q.answer(
                results=[
                    InlineQueryResultArticle(
                        id=str(uuid4()),
                        title="Calculator — type an expression",
                        description=hint,
                        input_message_content=InputTextMessageContent(
                            message_text="Calculator: type an expression after @bot, e.g.: <code>(2+3)*10-50%</code>",
                            parse_mode="HTML",
                        ),
                    )
                ],
                is_personal=True,
                cache_time=1,
            )
            return

        try:
            value = evaluate(query, max_length=self.max_length)
        except CalcError as e:
            await q.answer(
                results=[
                    InlineQueryResultArticle(
                        id=str(uuid4()),
                        title="Invalid expression",
                        description=str(e),
                        input_message_content=InputTextMessageContent(
                            message_text=f"❌ {html.escape(format_error(e))}: <code>{html.escape(query)}</code>",
                            parse_mode="HTML",
                        ),
                    )
                ],
                is_personal=True,
                cache_time=1,
            )
            return

        pretty = format_number(value)
        safe_query = html.escape(query)
        # Вариант 1: <expr> = <result>
        res_full = InlineQueryResultArticle(
            id=str(uuid4()),
            title=f"= {pretty}",
            description=f"{query} = {pretty}",
            input_message_content=InputTextMessageContent(
                message_text=f"<code>{safe_query}</code> = <b>{pretty}</b>",
                parse_mode="HTML",
            ),
        )
        # Вариант 2: только число
        res_num = InlineQueryResultArticle(
            id=str(uuid4()),
            title=f"Number only: {pretty}",
            description="Send just the result",
            input_message_content=InputTextMessageContent(
                message_text=f"{pretty}",
            ),
        )
        # Вариант 3: деньги с 2 знаками + исходное выражение
        money2 = format_amount_core(value, 2)
        res_money2 = InlineQueryResultArticle(
            id=str(uuid4()),
            title=f"Money (2 places): {money2}",
            description=f"{query} = {money2}",
            input_message_content=InputTextMessageContent(
                message_text=f"<code>{safe_query}</code> = <b>{money2}</b>",
                parse_mode="HTML",
            ),
        )

        await q.answer(
            results=[res_full, res_num, res_money2],
            is_personal=True,
            cache_time=1,
        )

    def _register(self) -> None:
        # команды
        self.router.message.register(self._cmd_calc, Command("calc"))
        self.router.message.register(self._cmd_unary, Command(*_UNARY))
        # любой слэш, который не команда (после / не буква)
        self.router.message.register(self._slash_calc, F.text.regexp(r"^/[+\-0-9(.]"))
        # inline
        self.router.inline_query.register(self._on_inline, F.query.regexp(r".*"))

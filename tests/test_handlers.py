"""
Handler tests: aiogram objects are replaced with mocks, nothing goes to Telegram
"""

import logging
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import CommandObject
from aiogram.types import CallbackQuery, Chat, InlineQuery, Message, User

from handlers.calc import USAGE, CalcHandler
from handlers.keypad import KeypadHandler
from middlewares.dedup import DedupMiddleware
from utils.locks import KeypadLocks
from utils.sessions import KeypadSessions


def make_message(text: str = "") -> AsyncMock:
    message = AsyncMock()
    message.text = text
    return message


def make_command(command: str, args=None) -> CommandObject:
    return CommandObject(prefix="/", command=command, args=args)


class TestCalcHandler:
    @pytest.fixture
    def handler(self):
        return CalcHandler()

    @pytest.mark.asyncio
    async def test_calc_command(self, handler):
        message = make_message("/calc 2+3*4")
        await handler._cmd_calc(message, make_command("calc", "2+3*4"))
        message.answer.assert_awaited_once_with("2+3*4 = 14")

    @pytest.mark.asyncio
    async def test_calc_command_usage(self, handler):
        message = make_message("/calc")
        await handler._cmd_calc(message, make_command("calc"))
        message.answer.assert_awaited_once_with(USAGE)

    @pytest.mark.asyncio
    async def test_calc_command_error(self, handler):
        message = make_message("/calc 5/0")
        await handler._cmd_calc(message, make_command("calc", "5/0"))
        message.answer.assert_awaited_once_with("Error: Cannot divide by zero")

    @pytest.mark.asyncio
    async def test_slash_expression(self, handler):
        message = make_message("/100+10%")
        await handler._slash_calc(message)
        message.answer.assert_awaited_once_with("100+10% = 110")

    @pytest.mark.asyncio
    async def test_factorial_command(self, handler):
        message = make_message("/fact 5")
        await handler._cmd_unary(message, make_command("fact", "5"))
        message.answer.assert_awaited_once_with("5! = 120")

    @pytest.mark.asyncio
    async def test_factorial_command_domain_error(self, handler):
        message = make_message("/fact 171")
        await handler._cmd_unary(message, make_command("fact", "171"))
        message.answer.assert_awaited_once_with("Error: Value too large")

    @pytest.mark.asyncio
    async def test_square_of_expression(self, handler):
        message = make_message("/sq 2+3")
        await handler._cmd_unary(message, make_command("sq", "2+3"))
        message.answer.assert_awaited_once_with("5² = 25")

    @pytest.mark.asyncio
    async def test_inline_result(self, handler):
        q = AsyncMock()
        q.query = "100+10%"
        await handler._on_inline(q)
        results = q.answer.await_args.kwargs["results"]
        assert len(results) == 3
        assert results[0].title == "= 110"
        assert results[1].input_message_content.message_text == "110"
        assert results[2].title == "Money (2 places): 110.00"

    @pytest.mark.asyncio
    async def test_inline_error(self, handler):
        q = AsyncMock()
        q.query = "5/0"
        await handler._on_inline(q)
        results = q.answer.await_args.kwargs["results"]
        assert len(results) == 1
        assert results[0].description == "Cannot divide by zero"

    @pytest.mark.asyncio
    async def test_inline_hint(self, handler):
        q = AsyncMock()
        q.query = "  "
        await handler._on_inline(q)
        results = q.answer.await_args.kwargs["results"]
        assert len(results) == 1


def make_callback(data: str, message: AsyncMock) -> AsyncMock:
    cq = AsyncMock()
    cq.data = data
    cq.message = message
    return cq


def make_keypad_message(chat_id: int = 1, message_id: int = 10, text: str = "0") -> AsyncMock:
    message = AsyncMock()
    message.chat.id = chat_id
    message.message_id = message_id
    message.text = text
    return message


class TestKeypadHandler:
    @pytest.fixture
    def handler(self):
        return KeypadHandler(KeypadSessions(), KeypadLocks(), error_clear_delay=0)

    async def press(self, handler, message, keys):
        for key in keys:
            await handler._cb_key(make_callback(f"kp:{key}", message))

    @pytest.mark.asyncio
    async def test_keypad_command_registers_session(self, handler):
        sent = MagicMock()
        sent.chat.id = 1
        sent.message_id = 10
        message = make_message("/keypad")
        message.answer.return_value = sent

        await handler._cmd_keypad(message)

        assert message.answer.await_args.args[0] == "<code>0</code>"
        assert (1, 10) in handler.sessions

    @pytest.mark.asyncio
    async def test_keys_edit_display(self, handler):
        message = make_keypad_message()
        await self.press(handler, message, ["1", "2", "+", "3", "="])
        assert message.edit_text.await_args.args[0] == "<code>15</code>"

    @pytest.mark.asyncio
    async def test_callback_is_answered(self, handler):
        message = make_keypad_message()
        cq = make_callback("kp:7", message)
        await handler._cb_key(cq)
        cq.answer.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unchanged_display_not_redrawn(self, handler):
        message = make_keypad_message()
        await self.press(handler, message, ["C"])
        message.edit_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_session_restored_from_message_text(self, handler):
        message = make_keypad_message(text="12+3")
        await self.press(handler, message, ["="])
        assert message.edit_text.await_args.args[0] == "<code>15</code>"

    @pytest.mark.asyncio
    async def test_error_is_cleared_after_delay(self, handler):
        message = make_keypad_message()
        await self.press(handler, message, ["5", "/", "0", "="])
        assert message.edit_text.await_args.args[0] == "<code>Error: Cannot divide by zero</code>"

        await handler.wait_pending()

        assert message.edit_text.await_args.args[0] == "<code>0</code>"
        assert handler.sessions.peek((1, 10)).display == "0"

    @pytest.mark.asyncio
    async def test_keystroke_after_error_cancels_clear(self, handler):
        message = make_keypad_message()
        await self.press(handler, message, ["5", "/", "0", "=", "7"])

        await handler.wait_pending()

        assert handler.sessions.peek((1, 10)).display == "7"

    @pytest.mark.asyncio
    async def test_edit_failure_is_swallowed(self, handler):
        message = make_keypad_message()
        message.edit_text.side_effect = TelegramBadRequest(
            method=MagicMock(), message="Bad Request: message is not modified"
        )
        await self.press(handler, message, ["7"])
        assert handler.sessions.peek((1, 10)).display == "7"

    @pytest.mark.asyncio
    async def test_deleted_message_drops_session(self, handler):
        message = make_keypad_message()
        await self.press(handler, message, ["7"])
        assert (1, 10) in handler.sessions

        message.edit_text.side_effect = TelegramBadRequest(
            method=MagicMock(), message="Bad Request: message to edit not found"
        )
        await self.press(handler, message, ["8"])

        assert (1, 10) not in handler.sessions

    @pytest.mark.asyncio
    async def test_error_log_shows_display_at_keypress(self, handler, caplog):
        caplog.set_level(logging.INFO, logger="handlers.keypad")
        message = make_keypad_message()
        await self.press(handler, message, ["5", "/", "0"])

        cq = make_callback("kp:=", message)
        # the display changes between releasing the lock and logging
        cq.answer.side_effect = lambda *a, **kw: handler.sessions.peek((1, 10)).clear()
        await handler._cb_key(cq)
        await handler.wait_pending()

        assert "Error: Cannot divide by zero" in caplog.text

    @pytest.mark.asyncio
    async def test_foreign_callback_ignored(self, handler):
        message = make_keypad_message()
        cq = make_callback("other:7", message)
        await handler._cb_key(cq)
        cq.answer.assert_awaited_once()
        assert len(handler.sessions) == 0


class TestDedupMiddleware:
    @pytest.fixture
    def user(self):
        return User(id=1, is_bot=False, first_name="Test")

    @pytest.mark.asyncio
    async def test_duplicate_callback_dropped(self, user):
        middleware = DedupMiddleware()
        handler = AsyncMock(return_value="ok")
        event = CallbackQuery(id="cb1", from_user=user, chat_instance="ci", data="kp:1")

        assert await middleware(handler, event, {}) == "ok"
        assert await middleware(handler, event, {}) is None
        handler.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_distinct_messages_pass(self):
        middleware = DedupMiddleware()
        handler = AsyncMock(return_value="ok")
        chat = Chat(id=1, type="private")
        first = Message(message_id=1, date=datetime.now(), chat=chat, text="/2+2")
        second = Message(message_id=2, date=datetime.now(), chat=chat, text="/2+2")

        await middleware(handler, first, {})
        await middleware(handler, second, {})
        await middleware(handler, first, {})

        assert handler.await_count == 2

    @pytest.mark.asyncio
    async def test_inline_query_dedup(self, user):
        middleware = DedupMiddleware(maxsize=1)
        handler = AsyncMock(return_value="ok")
        q1 = InlineQuery(id="q1", from_user=user, query="1+1", offset="")
        q2 = InlineQuery(id="q2", from_user=user, query="1+1", offset="")

        await middleware(handler, q1, {})
        await middleware(handler, q2, {})
        # q1 вытеснен из памяти, поэтому проходит снова
        await middleware(handler, q1, {})

        assert handler.await_count == 3

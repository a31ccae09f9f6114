from __future__ import annotations

import asyncio
import html
import logging
from typing import Hashable, Set

from aiogram import Router, F
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.types import Message, CallbackQuery

from keyboards.keypad import CB_KEYPAD, keypad_kb, parse_keypad_cb
from utils.keypad_state import KeypadState
from utils.locks import KeypadLocks
from utils.sessions import KeypadSessions

logger = logging.getLogger(__name__)

# сколько держим "Error: ..." на дисплее, как в исходном калькуляторе
DEFAULT_ERROR_CLEAR_DELAY = 1.5


def render_display(state: KeypadState) -> str:
    return f"<code>{html.escape(state.display)}</code>"


def _session_key(message: Message) -> Hashable:
    return message.chat.id, message.message_id


class KeypadHandler:
    def __init__(
        self,
        sessions: KeypadSessions,
        locks: KeypadLocks,
        *,
        error_clear_delay: float = DEFAULT_ERROR_CLEAR_DELAY,
    ) -> None:
        self.sessions = sessions
        self.locks = locks
        self.error_clear_delay = error_clear_delay
        self._tasks: Set[asyncio.Task] = set()
        self.router = Router()
        self._register()

    async def _cmd_keypad(self, message: Message) -> None:
        state = KeypadState()
        sent = await message.answer(render_display(state), parse_mode="HTML", reply_markup=keypad_kb())
        self.sessions.get(_session_key(sent))

    async def _redraw(self, message: Message, state: KeypadState) -> None:
        try:
            await message.edit_text(render_display(state), parse_mode="HTML", reply_markup=keypad_kb())
        except TelegramBadRequest as e:
            # "message is not modified" и удалённые сообщения — не повод падать
            logger.debug("keypad redraw failed chat_id=%s: %s", message.chat.id, e)
            if "message to edit not found" in str(e):
                # сообщение с клавиатурой удалили — состояние больше не нужно
                self.sessions.drop(_session_key(message))

    async def _cb_key(self, cq: CallbackQuery) -> None:
        key = parse_keypad_cb(cq.data or "")
        message = cq.message
        if not key or message is None:
            await cq.answer()
            return

        skey = _session_key(message)
        async with self.locks.for_keypad(skey):
            state = self.sessions.get(skey, display=getattr(message, "text", None))
            changed = state.press(key)
            if changed:
                await self._redraw(message, state)
            failed = state.error
            revision = state.revision
            display = state.display
        await cq.answer()

        if changed and failed:
            logger.info("keypad error chat_id=%s key=%r: %s", message.chat.id, key, display)
            self._schedule_clear(message, skey, revision)

    def _schedule_clear(self, message: Message, skey: Hashable, revision: int) -> None:
        task = asyncio.create_task(self._clear_later(message, skey, revision))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _clear_later(self, message: Message, skey: Hashable, revision: int) -> None:
        await asyncio.sleep(self.error_clear_delay)
        async with self.locks.for_keypad(skey):
            state = self.sessions.peek(skey)
            # после ошибки уже нажимали кнопки — ничего не трогаем
            if state is None or state.revision != revision:
                return
            if state.clear():
                await self._redraw(message, state)

    async def wait_pending(self) -> None:
        """Дождаться отложенных очисток (нужно при остановке и в тестах)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _register(self) -> None:
        self.router.message.register(self._cmd_keypad, Command("keypad"))
        self.router.callback_query.register(self._cb_key, F.data.startswith(f"{CB_KEYPAD}:"))

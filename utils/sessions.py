# utils/sessions.py
from collections import OrderedDict
from typing import Hashable, Optional

from utils.keypad_state import KeypadState


class KeypadSessions:
    """
    Состояния открытых клавиатур калькулятора, только в памяти.
    Ключ = (chat_id, message_id). Старые вытесняются (LRU).
    """

    def __init__(self, maxsize: int = 1000, *, max_length: Optional[int] = None) -> None:
        self._states: "OrderedDict[Hashable, KeypadState]" = OrderedDict()
        self._max = maxsize
        self._state_kwargs = {"max_length": max_length} if max_length else {}

    def get(self, key: Hashable, display: Optional[str] = None) -> KeypadState:
        """
        Вернуть состояние клавиатуры. Если его нет (бот перезапускался или
        ключ вытеснен), восстанавливаем по тексту сообщения.
        """
        state = self._states.get(key)
        if state is None:
            state = KeypadState.from_display(display, **self._state_kwargs)
            self._states[key] = state
        self._states.move_to_end(key)
        if len(self._states) > self._max:
            self._states.popitem(last=False)
        return state

    def peek(self, key: Hashable) -> Optional[KeypadState]:
        return self._states.get(key)

    def drop(self, key: Hashable) -> None:
        self._states.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._states

    def __len__(self) -> int:
        return len(self._states)

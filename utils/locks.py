# utils/locks.py
import asyncio
from collections import OrderedDict
from typing import Hashable


class KeypadLocks:
    """
    По замку на каждую клавиатуру: быстрые нажатия применяются по очереди.
    Свободные замки старше maxsize вытесняются, занятые не трогаем.
    """

    def __init__(self, maxsize: int = 1000) -> None:
        self._locks: "OrderedDict[Hashable, asyncio.Lock]" = OrderedDict()
        self._max = maxsize

    def for_keypad(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
            self._evict(keep=key)
        self._locks.move_to_end(key)
        return lock

    def _evict(self, keep: Hashable) -> None:
        if len(self._locks) <= self._max:
            return
        for key in list(self._locks):
            if len(self._locks) <= self._max:
                break
            if key != keep and not self._locks[key].locked():
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)

# middlewares/dedup.py
from collections import OrderedDict
from typing import Any, Callable, Dict, Awaitable, Hashable, Optional
from aiogram import BaseMiddleware
from aiogram.types import Message, CallbackQuery, InlineQuery


def _key(event: Any) -> Optional[Hashable]:
    if isinstance(event, Message):
        # правка сообщения — новый апдейт с тем же message_id, его не режем
        return "msg", event.chat.id, event.message_id, event.edit_date
    if isinstance(event, CallbackQuery):
        # у колбэков id уникален на каждое нажатие
        return "cb", event.id
    if isinstance(event, InlineQuery):
        return "iq", event.id
    return None


class DedupMiddleware(BaseMiddleware):
    """
    Отбрасывает повторные апдейты (Telegram иногда доставляет их дважды,
    а двойное нажатие "=" или цифры на клавиатуре калькулятора — это ошибка).
    Память O(N), старые ключи вытесняются (LRU).
    """

    def __init__(self, maxsize: int = 1000) -> None:
        super().__init__()
        self.seen: "OrderedDict[Hashable, bool]" = OrderedDict()
        self.maxsize = maxsize

    async def __call__(
            self,
            handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
            event: Any,
            data: Dict[str, Any]
    ) -> Any:
        key = _key(event)
        if key is not None:
            if key in self.seen:
                # дубль — просто игнорируем
                return None
            self.seen[key] = True
            if len(self.seen) > self.maxsize:
                self.seen.popitem(last=False)
        return await handler(event, data)

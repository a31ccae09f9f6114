import asyncio
import logging

from aiogram import Bot, Dispatcher

from config import Config
from handlers.calc import CalcHandler
from handlers.keypad import KeypadHandler
from handlers.start import StartHandler
from middlewares.dedup import DedupMiddleware
from utils.locks import KeypadLocks
from utils.sessions import KeypadSessions


class BotApp:
    def __init__(self, config: Config) -> None:
        self.config = config
        self.bot = Bot(token=config.bot_token)
        self.dp = Dispatcher()

        # анти-дедуп
        self.dp.message.middleware(DedupMiddleware())
        self.dp.callback_query.middleware(DedupMiddleware())
        self.dp.inline_query.middleware(DedupMiddleware())

        # состояния экранных калькуляторов — только в памяти
        self.sessions = KeypadSessions(
            config.keypad_sessions_max,
            max_length=config.max_expression_length,
        )
        self.locks = KeypadLocks(config.keypad_sessions_max)

        self.start_handler = StartHandler()
        self.calc_handler = CalcHandler(max_length=config.max_expression_length)
        self.keypad_handler = KeypadHandler(
            self.sessions,
            self.locks,
            error_clear_delay=config.error_clear_delay,
        )

        # роутеры; калькулятор по "/выражению" — последним, после команд
        self.dp.include_router(self.start_handler.router)
        self.dp.include_router(self.keypad_handler.router)
        self.dp.include_router(self.calc_handler.router)

    async def run(self) -> None:
        logging.info(
            "Bot is starting… (error_clear_delay=%s, max_expression_length=%s, keypad_sessions_max=%s)",
            self.config.error_clear_delay,
            self.config.max_expression_length,
            self.config.keypad_sessions_max,
        )
        try:
            await self.dp.start_polling(self.bot)
        finally:
            await self.keypad_handler.wait_pending()


def run_app() -> None:
    config = Config.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    app = BotApp(config)
    asyncio.run(app.run())


if __name__ == "__main__":
    run_app()

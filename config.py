# config.py
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from utils.calc import MAX_EXPRESSION_LENGTH


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise RuntimeError(f"{name} must not be negative")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise RuntimeError(f"{name} must be positive")
    return value


@dataclass
class Config:
    bot_token: str
    error_clear_delay: float = 1.5
    max_expression_length: int = MAX_EXPRESSION_LENGTH
    keypad_sessions_max: int = 1000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        token = os.getenv("BOT_TOKEN", "").strip()
        if not token:
            raise RuntimeError("BOT_TOKEN is not set")

        return cls(
            bot_token=token,
            error_clear_delay=_env_float("CALC_ERROR_CLEAR_DELAY", 1.5),
            max_expression_length=_env_int("CALC_MAX_LENGTH", MAX_EXPRESSION_LENGTH),
            keypad_sessions_max=_env_int("KEYPAD_SESSIONS_MAX", 1000),
            log_level=(os.getenv("LOG_LEVEL", "").strip() or "INFO").upper(),
        )

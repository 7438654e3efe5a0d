# --- Standard library imports ---
import os
from pathlib import Path
from dataclasses import dataclass

# --- Third-party imports ---
from dotenv import load_dotenv

# --- Project imports ---
from .logger import get_logger
from .envfile import read_env_file, upsert_key
from .errors import ConfigError


# Load .env once
load_dotenv()

logger = get_logger("config")

DEFAULT_HOME = Path.home() / "ipwatch"


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


class Config:
    """Process-level settings (environment / .env), fixed for the lifetime of a run"""

    # --- Storage ---
    BASE_DIR = Path(os.getenv("IPWATCH_HOME", str(DEFAULT_HOME))).expanduser()

    # --- Network Policy ---
    LOOKUP_TIMEOUT = _int_env("LOOKUP_TIMEOUT", 6)     # seconds per lookup attempt
    NOTIFY_TIMEOUT = _int_env("NOTIFY_TIMEOUT", 10)    # seconds for the webhook POST

    # --- Notification ---
    NOTIFY_TZ = os.getenv("NOTIFY_TZ", "Asia/Shanghai")
    TELEGRAM_API_BASE = os.getenv(
        "TELEGRAM_API_BASE", "https://api.telegram.org"
    ).rstrip("/")

    # --- Observability Policy ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE = os.getenv("LOG_FILE") or None


# --- Persisted settings (config.env) ---
KEY_TELEGRAM_ENABLE = "TELEGRAM_ENABLE"
KEY_TELEGRAM_BOT_TOKEN = "TELEGRAM_BOT_TOKEN"
KEY_TELEGRAM_CHAT_ID = "TELEGRAM_CHAT_ID"
KEY_ENABLE_IPV4 = "ENABLE_IPV4"
KEY_ENABLE_IPV6 = "ENABLE_IPV6"

RECOGNIZED_KEYS = (
    KEY_TELEGRAM_ENABLE,
    KEY_TELEGRAM_BOT_TOKEN,
    KEY_TELEGRAM_CHAT_ID,
    KEY_ENABLE_IPV4,
    KEY_ENABLE_IPV6,
)

TRUE_VALUES = {"1", "true", "yes", "on"}


def parse_flag(value: str | None, default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in TRUE_VALUES


def format_flag(enabled: bool) -> str:
    return "1" if enabled else "0"


@dataclass(frozen=True)
class Settings:
    """
    User settings loaded once per run from config.env.

    Defaults: notifications off, IPv4 monitored, IPv6 not monitored.
    """
    notify_enabled: bool = False
    bot_token: str = ""
    chat_id: str = ""
    monitor_ipv4: bool = True
    monitor_ipv6: bool = False

    @property
    def telegram_ready(self) -> bool:
        """Notifications enabled and both credentials present"""
        return self.notify_enabled and bool(self.bot_token) and bool(self.chat_id)

    @property
    def any_family_enabled(self) -> bool:
        return self.monitor_ipv4 or self.monitor_ipv6


class ConfigStore:
    """
    Reads and edits the key=value configuration file.

    The file is parsed, never executed. Lines that do not parse
    are skipped and unknown keys are left untouched on edit.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Settings:
        if not self.path.exists():
            logger.debug(f"No config file at {self.path}; using defaults")
            return Settings()

        try:
            values = read_env_file(self.path)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"Cannot read {self.path}: {e}") from e

        unknown = sorted(set(values) - set(RECOGNIZED_KEYS))
        if unknown:
            logger.debug(f"Ignoring unrecognized config keys: {', '.join(unknown)}")

        return Settings(
            notify_enabled=parse_flag(values.get(KEY_TELEGRAM_ENABLE), False),
            bot_token=values.get(KEY_TELEGRAM_BOT_TOKEN, ""),
            chat_id=values.get(KEY_TELEGRAM_CHAT_ID, ""),
            monitor_ipv4=parse_flag(values.get(KEY_ENABLE_IPV4), True),
            monitor_ipv6=parse_flag(values.get(KEY_ENABLE_IPV6), False),
        )

    def set_key(self, key: str, value: str) -> None:
        """Upsert a single key, replacing its line in place or appending it"""
        upsert_key(self.path, key, value)
        logger.debug(f"Config key written: {key}")

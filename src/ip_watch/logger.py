# --- Standard library imports ---
import sys
import logging
from logging.handlers import RotatingFileHandler


# --- Format configuration constants ---
LOG_LEVEL_EMOJIS = {
    logging.DEBUG: "🧱",
    logging.INFO: "🟢",
    logging.WARNING: "⚠️ ",
    logging.ERROR: "❌",
    logging.CRITICAL: "🔥",
}

LEVEL_NAME_MAP = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}

LOG_FORMAT = "%(asctime)s %(levelemoji)s [%(levelname)s] %(name)s → %(message)s"
FILE_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s → %(message)s"

# --- Formatters ---
class EmojiFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        """
        Formatter that prepends an emoji per
        log level and shortens log level names.
        """
        record.levelemoji = LOG_LEVEL_EMOJIS.get(record.levelno, "")
        record.levelname = LEVEL_NAME_MAP.get(record.levelname, record.levelname)
        return super().format(record)

# --- Public logging setup API ---
def setup_logging(level=logging.INFO, log_file: str | None = None) -> None:
    """
    Configure global logging with emoji decorations.

    Cron discards stdout, so an optional rotating log file
    keeps a record of unattended runs.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        EmojiFormatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S")
    )
    root.addHandler(handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(
            EmojiFormatter(fmt=FILE_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        root.addHandler(file_handler)

def get_logger(name: str) -> logging.Logger:
    """
    Return a namespaced logger for any module.
    """
    return logging.getLogger(f"ip_watch.{name}")

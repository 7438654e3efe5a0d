# --- Standard library imports ---
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from datetime import datetime

# --- Project imports ---
from .config import Config
from .logger import get_logger


logger = get_logger("time_service")


class TimeService:
    """
    Wall clock in the fixed notification timezone.

    The zone is resolved once; an unknown zone name falls back to UTC.
    """

    def __init__(self, tz_name: str | None = None):
        tz_name = tz_name or Config.NOTIFY_TZ
        try:
            self.tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone {tz_name!r}; falling back to UTC")
            self.tz = ZoneInfo("UTC")

    def now_local(self) -> datetime:
        return datetime.now(self.tz)

    def format_local(self, dt: datetime) -> str:
        """Format as 'YYYY-MM-DD HH:MM:SS' in the service timezone."""
        return dt.astimezone(self.tz).strftime("%Y-%m-%d %H:%M:%S")

    def now_string(self) -> str:
        return self.format_local(self.now_local())

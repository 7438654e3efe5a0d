# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config, Settings
from .logger import get_logger
from .time_service import TimeService


CHANGE_HEADER = "公网 IP 变更通知"
TEST_HEADER = "IP 监控 Telegram 测试"
FIRST_SEEN_MARKER = "(首次记录)"


def _family_line(label: str, old: str, new: str) -> str:
    if old:
        return f"{label}: {old} -> {new}"
    return f"{label}: {new} {FIRST_SEEN_MARKER}"

def format_change_message(
    old4: str, new4: str, old6: str, new6: str, timestamp: str
) -> str:
    """
    Build the change notification text.

    One line per family with a new value; a family seen for the
    first time is marked instead of showing an arrow.
    """
    lines = [CHANGE_HEADER, f"Time(BJ): {timestamp}"]
    if new4:
        lines.append(_family_line("IPv4", old4, new4))
    if new6:
        lines.append(_family_line("IPv6", old6, new6))
    return "\n".join(lines)

def format_test_message(ipv4_status: str, ipv6_status: str, timestamp: str) -> str:
    return "\n".join([
        TEST_HEADER,
        f"IPv4 local: {ipv4_status}",
        f"IPv6 local: {ipv6_status}",
        f"Time(BJ): {timestamp}",
    ])


class TelegramNotifier:
    """
    Sends notifications through the Telegram Bot API sendMessage webhook.

    Delivery is best-effort: one POST with a bounded timeout, failures
    are logged and reported as False, never retried within a run.
    """

    def __init__(self, settings: Settings, time_service: TimeService | None = None):
        self.settings = settings
        self.time = time_service or TimeService()
        self.logger = get_logger("telegram")

    @property
    def is_ready(self) -> bool:
        return self.settings.telegram_ready

    def _api_url(self) -> str:
        return f"{Config.TELEGRAM_API_BASE}/bot{self.settings.bot_token}/sendMessage"

    def send_message(self, text: str) -> bool:
        """
        Deliver a message; a disabled or incomplete setup is a no-op success.
        """
        if not self.is_ready:
            self.logger.debug("Telegram disabled or incomplete; message not sent")
            return True

        payload = {
            "chat_id": self.settings.chat_id,
            "text": text,
            "disable_web_page_preview": "true",
        }

        try:
            resp = requests.post(
                self._api_url(), data=payload, timeout=Config.NOTIFY_TIMEOUT
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            # Never log the URL, it carries the bot token
            status = getattr(e.response, "status_code", None)
            detail = f"HTTP {status}" if status else e.__class__.__name__
            self.logger.warning(f"Telegram delivery failed ({detail})")
            return False

        self.logger.info("📨 Telegram message delivered")
        return True

    def notify_change(self, old4: str, new4: str, old6: str, new6: str) -> bool:
        text = format_change_message(
            old4, new4, old6, new6, timestamp=self.time.now_string()
        )
        return self.send_message(text)

    def send_test(self, ipv4_status: str, ipv6_status: str) -> bool:
        text = format_test_message(
            ipv4_status, ipv6_status, timestamp=self.time.now_string()
        )
        return self.send_message(text)

from datetime import datetime
from urllib.parse import parse_qs

import pytest
import responses

from ip_watch.config import Config, Settings
from ip_watch.time_service import TimeService
from ip_watch.telegram import (
    TelegramNotifier,
    format_change_message,
    format_test_message,
)


TOKEN = "123456:ABC-mock"
SEND_URL = f"{Config.TELEGRAM_API_BASE}/bot{TOKEN}/sendMessage"
READY = Settings(notify_enabled=True, bot_token=TOKEN, chat_id="-100200")


class FixedTime(TimeService):
    def now_local(self):
        return datetime(2026, 10, 19, 8, 30, 0, tzinfo=self.tz)


# =============================
# TEST GROUP: Message Formatting
# =============================
def test_first_observation_message():
    """Empty cache → first-record marker, no arrow"""
    text = format_change_message("", "203.0.113.5", "", "", timestamp="2026-10-19 08:30:00")

    assert text.splitlines() == [
        "公网 IP 变更通知",
        "Time(BJ): 2026-10-19 08:30:00",
        "IPv4: 203.0.113.5 (首次记录)",
    ]
    assert "->" not in text

def test_changed_message():
    text = format_change_message(
        "203.0.113.5", "203.0.113.9", "", "", timestamp="2026-10-19 08:30:00"
    )

    assert "IPv4: 203.0.113.5 -> 203.0.113.9" in text
    assert "IPv6" not in text

def test_both_families_message():
    text = format_change_message(
        "203.0.113.5", "203.0.113.9", "", "2001:db8::1", timestamp="t"
    )

    lines = text.splitlines()
    assert lines[2] == "IPv4: 203.0.113.5 -> 203.0.113.9"
    assert lines[3] == "IPv6: 2001:db8::1 (首次记录)"

def test_family_without_new_value_is_omitted():
    text = format_change_message("203.0.113.5", "", "2001:db8::1", "2001:db8::2", timestamp="t")

    assert "IPv4" not in text
    assert "IPv6: 2001:db8::1 -> 2001:db8::2" in text

def test_test_message_lists_status():
    text = format_test_message("203.0.113.5", "(disabled)", timestamp="t")

    assert "IPv4 local: 203.0.113.5" in text
    assert "IPv6 local: (disabled)" in text


# ===========================
# TEST GROUP: Webhook Delivery
# ===========================
@pytest.mark.parametrize(
    "settings",
    [
        # ❌ Disabled
        Settings(notify_enabled=False, bot_token=TOKEN, chat_id="1"),

        # ❌ Missing token
        Settings(notify_enabled=True, bot_token="", chat_id="1"),

        # ❌ Missing chat id
        Settings(notify_enabled=True, bot_token=TOKEN, chat_id=""),
    ],
)
@responses.activate
def test_send_message_noop_when_not_ready(settings):
    """Disabled/incomplete setup → success without any outbound call"""
    notifier = TelegramNotifier(settings)

    assert notifier.is_ready is False
    assert notifier.send_message("hello") is True
    assert len(responses.calls) == 0

@responses.activate
def test_send_message_posts_form():
    responses.add(responses.POST, SEND_URL, json={"ok": True}, status=200)

    assert TelegramNotifier(READY).send_message("hello\nworld") is True

    assert len(responses.calls) == 1
    form = parse_qs(responses.calls[0].request.body)
    assert form["chat_id"] == ["-100200"]
    assert form["text"] == ["hello\nworld"]
    assert form["disable_web_page_preview"] == ["true"]
    assert responses.calls[0].request.req_kwargs["timeout"] == Config.NOTIFY_TIMEOUT

@pytest.mark.parametrize("status", [400, 401, 500])
@responses.activate
def test_send_message_http_error(status):
    """Non-2xx → failure reported, no retry"""
    responses.add(responses.POST, SEND_URL, json={"ok": False}, status=status)

    assert TelegramNotifier(READY).send_message("hello") is False
    assert len(responses.calls) == 1

@responses.activate
def test_send_message_transport_error():
    """Unreachable API → failure reported, nothing raised"""
    # No registered URL → ConnectionError from responses
    assert TelegramNotifier(READY).send_message("hello") is False

@responses.activate
def test_send_message_failure_does_not_log_token(caplog):
    responses.add(responses.POST, SEND_URL, status=500)

    TelegramNotifier(READY).send_message("hello")

    assert TOKEN not in caplog.text

@responses.activate
def test_notify_change_uses_fixed_timestamp():
    responses.add(responses.POST, SEND_URL, json={"ok": True}, status=200)
    notifier = TelegramNotifier(READY, time_service=FixedTime("Asia/Shanghai"))

    assert notifier.notify_change("203.0.113.5", "203.0.113.9", "", "") is True

    text = parse_qs(responses.calls[0].request.body)["text"][0]
    assert "Time(BJ): 2026-10-19 08:30:00" in text
    assert "203.0.113.5 -> 203.0.113.9" in text

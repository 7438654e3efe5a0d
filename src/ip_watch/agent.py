# --- Standard library imports ---
from enum import Enum
from typing import Callable

# --- Project imports ---
from .lock import RunLock
from .logger import get_logger
from .paths import StoragePaths
from .telegram import TelegramNotifier
from .time_service import TimeService
from .cache import CacheStore, CacheRecord
from .config import ConfigStore, Settings
from .errors import ConfigError, LockHeldError
from .sanity import check_runtime, print_summary
from .resolver import AddressFamily, resolve


class RunOutcome(Enum):
    CHANGED = ("changed", "🔔")
    UNCHANGED = ("unchanged", "💚")
    LOCKED = ("skipped (locked)", "⏳")

    def __init__(self, label: str, emoji: str):
        self.label = label
        self.emoji = emoji


def enabled_families(settings: Settings) -> list[AddressFamily]:
    families = []
    if settings.monitor_ipv4:
        families.append(AddressFamily.IPV4)
    if settings.monitor_ipv6:
        families.append(AddressFamily.IPV6)
    return families


class IPWatcher:
    """
    Run-once public IP change detector.

    Workflow (one cron tick):
    1. Check runtime prerequisites (before anything is mutated)
    2. Take the advisory run lock; a busy lock ends the run quietly
    3. Load settings and the cached addresses
    4. Resolve each enabled family and diff against the cache
    5. Persist the cache (every run), then notify if anything changed

    A failed lookup for one family keeps that family's cached value
    and never blocks the other family.
    """

    def __init__(
        self,
        paths: StoragePaths,
        resolver: Callable[[AddressFamily], str] | None = None,
        notifier_factory: Callable[[Settings], TelegramNotifier] | None = None,
    ):
        self.paths = paths
        self.resolver = resolver or resolve
        self.notifier_factory = notifier_factory or TelegramNotifier
        self.config_store = ConfigStore(paths.config_file)
        self.cache_store = CacheStore(paths.cache_file)
        self.time = TimeService()
        self.logger = get_logger("agent")

    def run_once(self) -> RunOutcome:
        """
        Execute one detection cycle.

        Raises:
            DependencyError: runtime prerequisites missing (no lock taken).
            ConfigError: both address families disabled (no lookups made).
        """
        check_runtime(self.paths)

        lock = RunLock(self.paths.lock_dir)
        try:
            lock.acquire()
        except LockHeldError as e:
            self.logger.warning(f"{e}; exiting")
            return RunOutcome.LOCKED

        try:
            return self._run_locked()
        finally:
            lock.release()

    def _run_locked(self) -> RunOutcome:
        settings = self.config_store.load()
        if not settings.any_family_enabled:
            raise ConfigError("IPv4 and IPv6 monitoring are both disabled")

        previous = self.cache_store.load()

        self.logger.info(f"🛰️  Public IP check ({self.time.now_string()})")
        print_summary(settings)

        record = previous
        changed: dict[AddressFamily, str] = {}

        for family in enabled_families(settings):
            new_ip = self.resolver(family)
            if not new_ip:
                self.logger.error(
                    f"Could not resolve public {family.label}; keeping cached value"
                )
                continue

            old_ip = record.get(family)
            self.logger.info(f"🌐 Current public {family.label}: {new_ip}")

            if new_ip != old_ip:
                self.logger.info(
                    f"🔀 {family.label} changed: {old_ip or '<none>'} → {new_ip}"
                )
                record = record.with_address(family, new_ip)
                changed[family] = new_ip
            else:
                self.logger.info(f"{family.label} unchanged")

        # Persist before notifying, even when nothing changed
        self.cache_store.save(record)

        if not changed:
            self.logger.info("✅ No public IP change detected")
            return RunOutcome.UNCHANGED

        self._notify(previous, changed, settings)
        return RunOutcome.CHANGED

    def _notify(
        self,
        previous: CacheRecord,
        changed: dict[AddressFamily, str],
        settings: Settings,
    ) -> None:
        notifier = self.notifier_factory(settings)
        if notifier.is_ready:
            self.logger.info("✅ Change recorded; sending Telegram notification")
        else:
            self.logger.info("✅ Change recorded; Telegram notifications are off")

        # A disabled notifier returns True without any outbound call
        delivered = notifier.notify_change(
            previous.last_ipv4,
            changed.get(AddressFamily.IPV4, ""),
            previous.last_ipv6,
            changed.get(AddressFamily.IPV6, ""),
        )
        if not delivered:
            self.logger.warning("Change notification not delivered; will not retry")

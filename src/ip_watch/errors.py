class IPWatchError(Exception):
    """Base class for failures that abort a command."""


class ConfigError(IPWatchError):
    """Configuration cannot produce a meaningful run."""


class DependencyError(IPWatchError):
    """A runtime prerequisite is missing or unusable."""


class SchedulerError(IPWatchError):
    """The cron backend cannot be read or written."""


class LockHeldError(IPWatchError):
    """Raised when another run already holds the advisory lock."""

    def __init__(self, lock_dir, pid: int | None = None):
        self.lock_dir = lock_dir
        self.pid = pid
        if pid:
            super().__init__(f"Another run is in progress (lock: {lock_dir}, pid {pid})")
        else:
            super().__init__(f"Another run is in progress (lock: {lock_dir})")

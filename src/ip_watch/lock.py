"""Cross-process advisory lock for run-once invocations.

Creating a directory is atomic on POSIX filesystems, so `os.mkdir`
serves as the test-and-set: whoever creates the lock directory owns
the run. The owner's PID is recorded inside so a lock left behind by
a killed process can be recognised and cleared.

Clearing a stale lock is a second test-and-set: reclaimers serialize
on an `fcntl.flock` over a sibling file and re-read the recorded PID
under it, so only one of them replaces a given stale directory.
"""

# --- Standard library imports ---
import os
import fcntl
import signal
import shutil
import threading
from pathlib import Path

# --- Project imports ---
from .errors import LockHeldError
from .logger import get_logger


logger = get_logger("lock")

PID_FILE_NAME = "pid"
RECLAIM_SUFFIX = ".reclaim"
RELEASE_ON_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


def _raise_system_exit(signum, frame):
    raise SystemExit(128 + signum)


class RunLock:
    """
    Directory lock held for the lifetime of one run.

    Usage:
        with RunLock(paths.lock_dir):
            ...  # critical section

    While held, SIGTERM/SIGHUP raise SystemExit so the `with` block
    unwinds and the lock directory is removed.
    """

    def __init__(self, lock_dir: Path):
        self._lock_dir = Path(lock_dir)
        self._held = False
        self._previous_handlers: dict[int, object] = {}

    @property
    def path(self) -> Path:
        return self._lock_dir

    @property
    def reclaim_file(self) -> Path:
        return self._lock_dir.with_name(self._lock_dir.name + RECLAIM_SUFFIX)

    def acquire(self) -> None:
        """
        Take the lock.

        Raises:
            LockHeldError: another live process holds the lock, or is
                clearing a stale one right now.
        """
        if self._held:
            return

        self._lock_dir.parent.mkdir(parents=True, exist_ok=True)

        if self._try_create():
            self._write_pid()
        else:
            owner = self.get_owner_pid()
            if owner is None or self._is_process_running(owner):
                raise LockHeldError(self._lock_dir, owner)
            self._reclaim(owner)

        self._held = True
        self._install_signal_handlers()

    def _reclaim(self, stale_pid: int) -> None:
        """Replace a lock directory whose owner `stale_pid` is gone."""
        fd = os.open(str(self.reclaim_file), os.O_RDWR | os.O_CREAT, 0o600)
        try:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except OSError:
                # Someone else is reclaiming the same lock
                raise LockHeldError(self._lock_dir, self.get_owner_pid())

            # Another reclaimer may have finished between our read and the flock
            current = self.get_owner_pid()
            if current != stale_pid:
                raise LockHeldError(self._lock_dir, current)

            logger.warning(f"Removing stale lock left by PID {stale_pid}")
            shutil.rmtree(self._lock_dir, ignore_errors=True)
            if not self._try_create():
                raise LockHeldError(self._lock_dir, self.get_owner_pid())
            self._write_pid()
        finally:
            os.close(fd)  # drops the flock

    def release(self) -> None:
        """Release the lock. Safe to call multiple times."""
        if not self._held:
            return

        self._restore_signal_handlers()
        shutil.rmtree(self._lock_dir, ignore_errors=True)
        self._held = False

    def is_held(self) -> bool:
        return self._held

    def get_owner_pid(self) -> int | None:
        try:
            return int((self._lock_dir / PID_FILE_NAME).read_text().strip())
        except (FileNotFoundError, ValueError, OSError):
            return None

    def _try_create(self) -> bool:
        try:
            os.mkdir(self._lock_dir, 0o700)
            return True
        except FileExistsError:
            return False

    def _write_pid(self) -> None:
        (self._lock_dir / PID_FILE_NAME).write_text(f"{os.getpid()}\n")

    def _is_process_running(self, pid: int) -> bool:
        try:
            # Signal 0 doesn't kill, just checks if process exists
            os.kill(pid, 0)
            return True
        except ProcessLookupError:
            return False
        except PermissionError:
            return True  # Exists, owned by someone else

    def _install_signal_handlers(self) -> None:
        # signal.signal() only works from the main thread
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in RELEASE_ON_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, _raise_system_exit)

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._previous_handlers.clear()

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()

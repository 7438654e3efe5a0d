# --- Standard library imports ---
import os
import sys
import shutil
import tempfile
import subprocess
from pathlib import Path

# --- Project imports ---
from .logger import get_logger
from .errors import SchedulerError


logger = get_logger("scheduler")

CRON_TAG = "IP_WATCH"
CRON_SUFFIX = f" # {CRON_TAG}"
CRON_SCHEDULE = "* * * * *"   # every minute
SYSTEM_CRONTAB = Path("/etc/crontabs/root")
# `crontab -l` stderr for a user without a table (cronie/vixie, busybox)
NO_CRONTAB_MARKERS = ("no crontab for", "can't open")


def cron_line(python: str | None = None, home: Path | None = None) -> str:
    """
    The tagged crontab entry running one detection cycle per minute.

    cron does not see the caller's environment, so a non-default
    storage directory is passed explicitly.
    """
    python = python or sys.executable
    command = f'"{python}" -m ip_watch --run'
    if home:
        command += f' --home "{home}"'
    return f"{CRON_SCHEDULE} {command} >/dev/null 2>&1{CRON_SUFFIX}"

def is_tagged(line: str) -> bool:
    return line.rstrip().endswith(CRON_SUFFIX)


class UserCrontab:
    """Per-user cron table managed through the `crontab` command."""

    name = "crontab"

    def __init__(self, crontab_bin: str = "crontab"):
        self.crontab_bin = crontab_bin

    def read_lines(self) -> list[str]:
        result = subprocess.run(
            [self.crontab_bin, "-l"], capture_output=True, text=True
        )
        if result.returncode != 0:
            # A missing table is empty; any other failure must not lead to an overwrite
            stderr = result.stderr.lower()
            if any(marker in stderr for marker in NO_CRONTAB_MARKERS):
                logger.debug("No crontab yet; treating as empty")
                return []
            raise SchedulerError(
                f"crontab -l failed: {result.stderr.strip() or result.returncode}"
            )
        return result.stdout.splitlines()

    def write_lines(self, lines: list[str]) -> None:
        content = "".join(f"{line}\n" for line in lines)
        result = subprocess.run(
            [self.crontab_bin, "-"], input=content, capture_output=True, text=True
        )
        if result.returncode != 0:
            raise SchedulerError(
                f"crontab rejected the new table: {result.stderr.strip() or result.returncode}"
            )


class SystemCrontab:
    """System-wide cron file (busybox/OpenWrt style), root only."""

    def __init__(self, path: Path = SYSTEM_CRONTAB):
        self.path = Path(path)
        self.name = str(self.path)

    def _require_root(self) -> None:
        if os.geteuid() != 0:
            raise SchedulerError(f"Modifying {self.path} requires root")

    def read_lines(self) -> list[str]:
        self._require_root()
        try:
            return self.path.read_text().splitlines()
        except FileNotFoundError:
            return []

    def write_lines(self, lines: list[str]) -> None:
        self._require_root()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = "".join(f"{line}\n" for line in lines)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w") as fh:
                fh.write(content)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise


def select_backend() -> UserCrontab | SystemCrontab:
    """Prefer the per-user table; fall back to the system file without `crontab`."""
    crontab_bin = shutil.which("crontab")
    if crontab_bin:
        return UserCrontab(crontab_bin)
    return SystemCrontab()

def install(backend, line: str | None = None) -> None:
    """
    Install the tagged entry, replacing any previous one.

    Running it again leaves exactly one tagged line.
    """
    line = line or cron_line()
    lines = [l for l in backend.read_lines() if not is_tagged(l)]
    lines.append(line)
    backend.write_lines(lines)
    logger.info(f"⏰ Cron entry installed in {backend.name} (every 1 minute)")

def uninstall(backend) -> bool:
    """Remove tagged entries; returns True if any were present."""
    current = backend.read_lines()
    lines = [l for l in current if not is_tagged(l)]

    removed = len(current) - len(lines)
    if removed:
        backend.write_lines(lines)
        logger.info(f"🧹 Removed {CRON_TAG} cron entry from {backend.name}")
    else:
        logger.info(f"No {CRON_TAG} cron entry found in {backend.name}")
    return bool(removed)

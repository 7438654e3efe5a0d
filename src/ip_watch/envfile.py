# --- Standard library imports ---
import os
import re
import tempfile
from pathlib import Path

# --- Third-party imports ---
from dotenv import dotenv_values


FILE_MODE = 0o600
DIR_MODE = 0o700


def escape_value(value: str) -> str:
    """Escape backslashes and double quotes for a quoted KEY="value" line."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def format_line(key: str, value: str) -> str:
    return f'{key}="{escape_value(value)}"'


def ensure_dir(path: Path) -> None:
    """Create a directory (and parents) restricted to the owner."""
    path.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(path, DIR_MODE)
    except OSError:
        pass  # Not owner (e.g. shared parent); permissions stay as they are


def read_env_file(path: Path) -> dict[str, str]:
    """
    Parse a KEY=value file into a dict.

    Uses python-dotenv's parser with interpolation disabled, so
    `$VAR` sequences stay literal. Keys without a value map to "".
    """
    values = dotenv_values(path, interpolate=False)
    return {k: (v if v is not None else "") for k, v in values.items()}


def _key_pattern(key: str) -> "re.Pattern[str]":
    return re.compile(rf"^\s*(?:export\s+)?{re.escape(key)}\s*=")


def upsert_key(path: Path, key: str, value: str) -> None:
    """
    Set one key in a KEY=value file.

    An existing line for the key is replaced in place, otherwise the
    key is appended. All other lines are kept as they are. The new
    content is swapped in atomically like `write_env_file`.
    """
    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        lines = []

    pattern = _key_pattern(key)
    new_line = format_line(key, value)
    updated: list[str] = []
    replaced = False
    for line in lines:
        if pattern.match(line):
            if not replaced:
                updated.append(new_line)
                replaced = True
            # Duplicate definitions of the key collapse into one
            continue
        updated.append(line)
    if not replaced:
        updated.append(new_line)

    _atomic_write(path, "".join(f"{line}\n" for line in updated))


def write_env_file(path: Path, values: dict[str, str]) -> None:
    """
    Replace a KEY=value file atomically with the given mapping.

    The content goes to a temp file in the same directory which is
    then renamed over the target, so readers never see a partial file.
    """
    content = "".join(f"{format_line(k, v)}\n" for k, v in values.items())
    _atomic_write(Path(path), content)


def _atomic_write(path: Path, content: str) -> None:
    ensure_dir(path.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

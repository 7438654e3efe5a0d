# --- Standard library imports ---
from pathlib import Path
from dataclasses import dataclass, replace

# --- Project imports ---
from .logger import get_logger
from .resolver import AddressFamily, is_valid_address
from .envfile import read_env_file, write_env_file


logger = get_logger("cache")

# --- Cache layout ---
KEY_LAST_IPV4 = "LAST_IPV4"
KEY_LAST_IPV6 = "LAST_IPV6"


@dataclass(frozen=True)
class CacheRecord:
    """Last observed address per family; "" means never observed"""
    last_ipv4: str = ""
    last_ipv6: str = ""

    def get(self, family: AddressFamily) -> str:
        return self.last_ipv4 if family is AddressFamily.IPV4 else self.last_ipv6

    def with_address(self, family: AddressFamily, ip: str) -> "CacheRecord":
        if family is AddressFamily.IPV4:
            return replace(self, last_ipv4=ip)
        return replace(self, last_ipv6=ip)


class CacheStore:
    """
    Persists the last observed IPv4/IPv6 between runs.

    Each save fully replaces the previous file (owner-only permissions).
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> CacheRecord:
        """
        Return the cached record.

        A missing or unreadable file is a cache miss (all empty).
        Stored values that fail validation are dropped.
        """
        try:
            values = read_env_file(self.path) if self.path.exists() else {}
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cache unreadable ({e.__class__.__name__}); treating as empty")
            values = {}

        record = CacheRecord()
        for family, key in (
            (AddressFamily.IPV4, KEY_LAST_IPV4),
            (AddressFamily.IPV6, KEY_LAST_IPV6),
        ):
            ip = values.get(key, "").strip()
            if ip and not is_valid_address(family, ip):
                logger.warning(f"Discarding invalid cached {family.label}: {ip!r}")
                ip = ""
            record = record.with_address(family, ip)
        return record

    def save(self, record: CacheRecord) -> None:
        for family in AddressFamily:
            ip = record.get(family)
            if ip and not is_valid_address(family, ip):
                raise ValueError(f"Refusing to cache invalid {family.label}: {ip!r}")

        write_env_file(self.path, {
            KEY_LAST_IPV4: record.last_ipv4,
            KEY_LAST_IPV6: record.last_ipv6,
        })
        logger.debug(f"Cache written → {self.path}")

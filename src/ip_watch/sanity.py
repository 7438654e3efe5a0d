# --- Standard library imports ---
import os

# --- Third-party imports ---
import requests.certs

# --- Project imports ---
from .config import Settings
from .logger import get_logger
from .paths import StoragePaths
from .envfile import ensure_dir
from .errors import DependencyError

# Define the logger once for the entire module
logger = get_logger("sanity")


def print_summary(settings: Settings) -> None:
    logger.info("===== Runtime Summary =====")
    logger.info(f"IPv4 monitoring:     {settings.monitor_ipv4}")
    logger.info(f"IPv6 monitoring:     {settings.monitor_ipv6}")
    logger.info(f"Telegram enabled:    {settings.notify_enabled}")
    logger.info("===========================")

def check_runtime(paths: StoragePaths) -> None:
    """
    Validate runtime prerequisites before any state is touched.

    Raises DependencyError when the storage directory cannot be
    used or the HTTPS client has no CA bundle to verify lookups.
    """
    try:
        ensure_dir(paths.base_dir)
    except OSError as e:
        raise DependencyError(
            f"Cannot create storage directory {paths.base_dir}: {e.strerror or e}"
        ) from e

    if not os.access(paths.base_dir, os.W_OK | os.X_OK):
        raise DependencyError(f"Storage directory not writable: {paths.base_dir}")

    ca_bundle = requests.certs.where()
    if not os.path.isfile(ca_bundle):
        raise DependencyError(f"CA bundle missing for HTTPS lookups: {ca_bundle}")

    logger.debug("Runtime prerequisites OK")

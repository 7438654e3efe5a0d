# --- Standard library imports ---
import re
from enum import Enum

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config
from .logger import get_logger


# Define the logger once for the entire module
logger = get_logger("resolver")

IPV4_PATTERN = re.compile(r"([0-9]{1,3}\.){3}[0-9]{1,3}")


class AddressFamily(Enum):
    """
    Monitored address families and their lookup services.

    Each family has a direct-answer service (plain-text body) and a
    Cloudflare trace fallback whose `ip=` line holds the address.
    Both are reachable over that family only.
    """
    IPV4 = ("IPv4", "https://api.ipify.org", "https://1.1.1.1/cdn-cgi/trace")
    IPV6 = (
        "IPv6",
        "https://api6.ipify.org",
        "https://[2606:4700:4700::1111]/cdn-cgi/trace",
    )

    def __init__(self, label: str, primary_url: str, trace_url: str):
        self.label = label
        self.primary_url = primary_url
        self.trace_url = trace_url

    def __str__(self) -> str:
        return self.label


def is_valid_ipv4(ip: str) -> bool:
    """
    Four dot-separated groups of 1-3 digits.

    Octet ranges are not checked.
    """
    return bool(IPV4_PATTERN.fullmatch(ip))

def is_valid_ipv6(ip: str) -> bool:
    """
    Loose shape check: any string containing a colon.

    Known to accept malformed values such as ":"; kept loose so that
    every answer a lookup service gives for IPv6 is still recorded.
    """
    return ":" in ip

def is_valid_address(family: AddressFamily, ip: str) -> bool:
    if family is AddressFamily.IPV4:
        return is_valid_ipv4(ip)
    return is_valid_ipv6(ip)

def parse_trace(text: str) -> str:
    """Extract the `ip=` field from a /cdn-cgi/trace body ("" if absent)."""
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip() == "ip":
            return value.strip()
    return ""

def _fetch(url: str) -> str:
    """GET a lookup service; returns the stripped body or "" on any failure."""
    try:
        resp = requests.get(url, timeout=Config.LOOKUP_TIMEOUT)
        resp.raise_for_status()
        return resp.text.strip()
    except requests.RequestException as e:
        logger.warning(f"IP lookup failed via {url} ({e.__class__.__name__})")
        return ""

def resolve(family: AddressFamily) -> str:
    """
    Resolve the current public address for one family.

    Tries the direct-answer service first, then the trace fallback.
    Returns the first answer that looks like an address of that
    family, or "" when neither source gives one.
    """
    sources = (
        (family.primary_url, lambda body: body),
        (family.trace_url, parse_trace),
    )

    for url, extract in sources:
        ip = extract(_fetch(url))
        if not ip:
            continue
        if is_valid_address(family, ip):
            logger.debug(f"🌐 Public {family.label} acquired ({url})")
            return ip
        logger.warning(f"Invalid {family.label} returned from {url}: {ip!r}")

    return ""

"""Network context - country normalization and source IP resolution."""

import ipaddress
from dataclasses import dataclass
from typing import Optional

from riskgate.common.constants import NetworkConstants


def normalize_country(country: Optional[str]) -> str:
    """Trim and upper-case a country code; blank or absent becomes UNKNOWN."""
    if country is None or not country.strip():
        return NetworkConstants.UNKNOWN_COUNTRY
    return country.strip().upper()


def placeholder_ip(country: str) -> str:
    """Deterministic demo IP for a normalized country code."""
    return NetworkConstants.COUNTRY_PLACEHOLDER_IPS.get(
        country, NetworkConstants.FALLBACK_PLACEHOLDER_IP
    )


def _is_loopback(address: str) -> bool:
    try:
        return ipaddress.ip_address(address).is_loopback
    except ValueError:
        return False


def resolve_source_ip(
    forwarded_for: Optional[str],
    peer_address: Optional[str],
    country: str,
) -> str:
    """Pick the client IP for telemetry.

    The first X-Forwarded-For entry wins, then the peer address. A loopback
    address is replaced by the country's placeholder so local demo traffic
    still produces plausible geography.
    """
    ip = ""
    if forwarded_for:
        ip = forwarded_for.split(",")[0].strip()
    if not ip:
        ip = (peer_address or "").strip()

    if not ip or _is_loopback(ip):
        ip = placeholder_ip(country)
    return ip


@dataclass(frozen=True)
class NetworkContext:
    """Normalized origin of a request."""
    country: str
    source_ip: str

    @classmethod
    def resolve(
        cls,
        country: Optional[str] = None,
        forwarded_for: Optional[str] = None,
        peer_address: Optional[str] = None,
    ) -> "NetworkContext":
        normalized = normalize_country(country)
        return cls(
            country=normalized,
            source_ip=resolve_source_ip(forwarded_for, peer_address, normalized),
        )

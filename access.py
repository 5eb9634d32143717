import hmac
from typing import Iterable, Mapping, Optional

from logging_config import get_logger

logger = get_logger(__name__)

IPV4_MAPPED_PREFIX = "::ffff:"


def normalize_address(ip: Optional[str]) -> str:
    """Strip whitespace and the IPv4-mapped IPv6 prefix (``::ffff:10.0.0.1`` -> ``10.0.0.1``)."""
    if not ip:
        return ""
    ip = ip.strip()
    if ip.lower().startswith(IPV4_MAPPED_PREFIX):
        ip = ip[len(IPV4_MAPPED_PREFIX):]
    return ip


class AccessGate:
    """Optional perimeter checks: a server-wide join password and a source address allow-list.

    Both are off when unconfigured.
    """

    def __init__(self, password: Optional[str] = None, allowed_ips: Iterable[str] = (), trust_proxy: bool = True):
        self.password = password or None
        self.allowed_ips = {normalize_address(ip) for ip in allowed_ips if normalize_address(ip)}
        self.trust_proxy = trust_proxy
        if self.password:
            logger.info("Room password protection enabled")
        if self.allowed_ips:
            logger.info(f"IP allow-list enabled with {len(self.allowed_ips)} address(es)")

    @property
    def has_password(self) -> bool:
        return self.password is not None

    def check_password(self, password: Optional[str]) -> bool:
        if self.password is None:
            return True
        if not password:
            return False
        return hmac.compare_digest(str(password).encode(), self.password.encode())

    def is_address_allowed(self, ip: Optional[str]) -> bool:
        if not self.allowed_ips:
            return True
        return normalize_address(ip) in self.allowed_ips

    def client_address(self, headers: Mapping[str, str], peer_host: Optional[str]) -> str:
        """Address of the real client: first X-Forwarded-For hop when proxies are trusted."""
        if self.trust_proxy:
            forwarded_for = headers.get("x-forwarded-for")
            if forwarded_for:
                return normalize_address(forwarded_for.split(",")[0])
        return normalize_address(peer_host)

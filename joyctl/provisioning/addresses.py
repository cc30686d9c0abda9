"""IPv4 address classification and public address selection."""

import ipaddress
import logging

from joyctl.provisioning.errors import InvalidAddressError
from joyctl.provisioning.types import AddressCandidate, AddressClass

logger = logging.getLogger(__name__)

LOOPBACK_NET = ipaddress.IPv4Network("127.0.0.0/8")
LINK_LOCAL_NET = ipaddress.IPv4Network("169.254.0.0/16")
PRIVATE_NETS = (
    ipaddress.IPv4Network("10.0.0.0/8"),
    ipaddress.IPv4Network("172.16.0.0/12"),
    ipaddress.IPv4Network("192.168.0.0/16"),
)


def classify_address(address: str) -> AddressClass:
    """Classify a textual IPv4 address.

    Only the RFC 1918, loopback and link-local ranges count as non-public;
    other reserved ranges (documentation, CGNAT, multicast) are public here.

    Raises:
        InvalidAddressError: if *address* is not a valid IPv4 address.
    """
    try:
        ip = ipaddress.IPv4Address(str(address).strip())
    except ValueError as e:
        raise InvalidAddressError(f"Invalid IPv4 address: {address!r}") from e

    if ip in LOOPBACK_NET:
        return AddressClass.LOOPBACK
    if ip in LINK_LOCAL_NET:
        return AddressClass.LINK_LOCAL
    if any(ip in net for net in PRIVATE_NETS):
        return AddressClass.PRIVATE
    return AddressClass.PUBLIC


def _is_ipv6(address: str) -> bool:
    try:
        return ipaddress.ip_address(str(address).strip()).version == 6
    except ValueError:
        return False


def address_candidates(ips):
    """Yield an AddressCandidate for each non-empty IPv4 entry of *ips*.

    IPv6 entries are skipped; anything else that does not parse raises
    InvalidAddressError.
    """
    for ip in ips:
        if not ip:
            continue
        if _is_ipv6(ip):
            logger.debug(f"Skipping IPv6 address {ip}")
            continue
        yield AddressCandidate(address=ip, address_class=classify_address(ip))


def select_public_address(ips) -> str | None:
    """Return the first publicly routable address in *ips*, or None."""
    for candidate in address_candidates(ips):
        if candidate.is_public:
            return candidate.address
        logger.debug(f"Skipping {candidate.address} ({candidate.address_class.value})")
    return None

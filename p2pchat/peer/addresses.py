import ipaddress
import socket

from p2pchat.log import get_logger

logger = get_logger(__name__)

# No packet is sent; connecting a UDP socket only selects the outgoing interface
ROUTE_PROBE = ("192.0.2.1", 9)


def is_reachable_address(address):
    try:
        ip = ipaddress.IPv4Address(address)
    except ipaddress.AddressValueError:
        return False
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


def local_ipv4_addresses():
    """IPv4 addresses of this host that a LAN peer could connect to."""
    candidates = set()
    hostname = socket.gethostname()
    try:
        _, _, addresses = socket.gethostbyname_ex(hostname)
        candidates.update(addresses)
    except OSError as e:
        logger.debug(f"Could not resolve own hostname {hostname}: {e}")

    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as probe:
            probe.connect(ROUTE_PROBE)
            candidates.add(probe.getsockname()[0])
    except OSError as e:
        logger.debug(f"No default route for address probe: {e}")

    reachable = [address for address in candidates if is_reachable_address(address)]
    return sorted(reachable, key=ipaddress.IPv4Address)

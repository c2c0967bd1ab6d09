"""
Utility functions for Port Keeper
"""
import logging
import socket
from typing import Dict, Iterable, Tuple

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Hosts that accept IPv4 connections on a dual-stack [::] socket
DUALSTACK = socket.has_dualstack_ipv6()

# Socket utility functions
def wildcard_socket() -> Tuple[socket.socket, str]:
    """
    Create an unbound TCP socket covering every local address

    Returns:
        Tuple of (socket, wildcard host); the socket is dual-stack [::]
        where supported and IPv4-only otherwise
    """
    if not DUALSTACK:
        return socket.socket(socket.AF_INET, socket.SOCK_STREAM), ""

    sock = socket.socket(socket.AF_INET6, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
    except OSError:
        sock.close()
        raise
    return sock, "::"

def is_port_in_use(port: int) -> bool:
    """Check if a port is already in use on the system, over IPv4 or IPv6"""
    s, host = wildcard_socket()
    with s:
        try:
            s.bind((host, port))
            return False
        except OSError:
            return True

def get_port_status(ports: Iterable[int]) -> Dict[int, str]:
    """Get status (available/in use) for a list of ports"""
    return {port: ("in use" if is_port_in_use(port) else "available") for port in ports}

def configure_logging(debug: bool = False) -> None:
    """
    Set up root logging

    Args:
        debug: Log DEBUG records instead of warnings and errors only
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT
    )
    logger.debug("Debug logging enabled")

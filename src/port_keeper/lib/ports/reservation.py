"""
Single port reservation backed by a listening socket
"""
import logging
import os
import socket
from typing import Optional

from ..utils import wildcard_socket
from .base import ReservationState

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 50


class Reservation:
    """Holds one port open for as long as it stays bound"""

    def __init__(self, port: int):
        """
        Initialize a pending reservation

        Args:
            port: Port number to hold
        """
        self.port = port
        self.state = ReservationState.PENDING
        self._socket: Optional[socket.socket] = None

    def __repr__(self) -> str:
        return f"Reservation(port={self.port}, state={self.state.value})"

    @property
    def is_bound(self) -> bool:
        return self.state is ReservationState.BOUND

    def bind(self) -> None:
        """
        Make a single attempt to bind and listen on the port

        Binds the dual-stack wildcard address [::] so the port is held for
        IPv4 and IPv6 alike, or 0.0.0.0 on hosts without dual-stack support.
        Connections are never accepted; the socket only occupies the port.

        Raises:
            BindFailed: If the port cannot be bound right now
        """
        if self.is_bound:
            return

        sock = None
        try:
            sock, host = wildcard_socket()
            if os.name != 'nt':  # On Windows this would allow stealing a bound port
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, self.port))
            sock.listen(LISTEN_BACKLOG)
        except (OSError, OverflowError) as e:
            if sock is not None:
                sock.close()
            raise BindFailed(self.port, _describe(e)) from e

        self._socket = sock
        self.state = ReservationState.BOUND
        logger.debug(f"Bound port {self.port}")

    def release(self) -> None:
        """
        Close the socket held for the port

        Raises:
            ReleaseFailed: If closing the socket fails
        """
        sock, self._socket = self._socket, None
        if sock is None:
            return

        self.state = ReservationState.RELEASED
        try:
            sock.close()
        except OSError as e:
            raise ReleaseFailed(self.port, _describe(e)) from e
        logger.debug(f"Released port {self.port}")


def _describe(error: Exception) -> str:
    """Human readable reason for a socket error"""
    if isinstance(error, OSError) and error.strerror:
        return error.strerror
    return str(error)


class BindFailed(Exception):
    """Port could not be bound"""

    def __init__(self, port: int, reason: str):
        super().__init__(f"Failed to bind port {port}: {reason}")
        self.port = port
        self.reason = reason


class ReleaseFailed(Exception):
    """Bound port could not be released"""

    def __init__(self, port: int, reason: str):
        super().__init__(f"Failed to release port {port}: {reason}")
        self.port = port
        self.reason = reason

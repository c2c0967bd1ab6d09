"""
Reservation manager: binds requested ports and retries the pending ones
"""
import logging
import threading
from typing import Dict, Iterable, List, Optional

from .base import EventType, ReservationEvent, ReservationListener
from .reservation import BindFailed, ReleaseFailed, Reservation

logger = logging.getLogger(__name__)


class ReservationManager:
    """
    Owns every reservation and its socket

    Each requested port is either bound or pending. Pending reservations are
    retried with retry_pending() until they bind or are discarded. Bound
    reservations are only touched from the thread driving the manager;
    the pending list is also cleared from other threads and is guarded by
    a lock.
    """

    def __init__(
        self,
        listener: Optional[ReservationListener] = None,
        cancel_event: Optional[threading.Event] = None
    ):
        """
        Initialize reservation manager

        Args:
            listener: Receives bound/unbound/failure events
            cancel_event: When set, no further bind attempts are made
        """
        self.listener = listener
        self._cancel_event = cancel_event
        self._bound: Dict[int, Reservation] = {}
        self._pending: List[Reservation] = []
        self._pending_lock = threading.Lock()

    @property
    def bound_ports(self) -> List[int]:
        return list(self._bound)

    @property
    def pending_ports(self) -> List[int]:
        with self._pending_lock:
            return [reservation.port for reservation in self._pending]

    def _cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()

    def _emit(self, event_type: EventType, port: int, reason: Optional[str] = None) -> None:
        if self.listener is None:
            return
        try:
            self.listener.notify(ReservationEvent(event_type, port, reason))
        except Exception:
            # Listener errors are logged; the pass carries on
            logger.exception(f"Listener failed on {event_type.value} event for port {port}")

    def _bind(self, reservation: Reservation, report_failure: bool) -> bool:
        """
        Make one bind attempt for a reservation

        Args:
            reservation: Reservation to bind
            report_failure: Emit a BIND_FAILED event when the attempt fails

        Returns:
            True if the port is now bound
        """
        try:
            reservation.bind()
        except BindFailed as e:
            if report_failure:
                logger.debug(str(e))
                self._emit(EventType.BIND_FAILED, reservation.port, e.reason)
            return False

        self._bound[reservation.port] = reservation
        self._emit(EventType.BOUND, reservation.port)
        return True

    def reserve_all(self, ports: Iterable[int]) -> None:
        """
        Try every port once; unavailable ones are kept for retrying

        Args:
            ports: Ports in the order they should be reserved
        """
        with self._pending_lock:
            tracked = set(self._bound) | {reservation.port for reservation in self._pending}

        for port in ports:
            if port in tracked:
                continue
            if self._cancelled():
                logger.debug("Reservation pass cancelled")
                return
            tracked.add(port)

            reservation = Reservation(port)
            if not self._bind(reservation, report_failure=True):
                with self._pending_lock:
                    self._pending.append(reservation)

        logger.debug(f"Initial pass: {len(self._bound)} bound, {len(self._pending)} pending")

    def retry_pending(self) -> None:
        """Retry pending reservations once each, silently keeping failures"""
        with self._pending_lock:
            if not self._pending:
                return

            still_pending = []
            for index, reservation in enumerate(self._pending):
                if self._cancelled():
                    still_pending.extend(self._pending[index:])
                    break
                if not self._bind(reservation, report_failure=False):
                    still_pending.append(reservation)

            if len(still_pending) != len(self._pending):
                logger.debug(f"Retry pass bound {len(self._pending) - len(still_pending)} ports")
            self._pending = still_pending

    def clear_pending(self) -> None:
        """Discard pending reservations without trying to bind them"""
        with self._pending_lock:
            if self._pending:
                logger.debug(f"Discarding {len(self._pending)} pending reservations")
            self._pending = []

    def release_all(self) -> None:
        """Close every bound socket and forget all reservations"""
        try:
            for port, reservation in list(self._bound.items()):
                try:
                    reservation.release()
                except ReleaseFailed as e:
                    logger.warning(str(e))
                    self._emit(EventType.RELEASE_FAILED, port, e.reason)
                else:
                    self._emit(EventType.UNBOUND, port)
        finally:
            self._bound.clear()
            self.clear_pending()

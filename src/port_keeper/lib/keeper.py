"""
Port keeper lifecycle: runs the reservation manager on a background thread
"""
import logging
import threading
from enum import Enum
from typing import List, Optional

from .ports.base import ReservationListener
from .ports.manager import ReservationManager
from .ports.resolver import resolve

logger = logging.getLogger(__name__)

# Seconds between retry passes
RETRY_INTERVAL = 1.0


class KeeperState(Enum):
    """Port keeper lifecycle state"""
    INITIALIZING = "initializing"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class PortKeeper:
    """
    Keeps a set of ports bound until stopped

    start() resolves the port specification and launches the keeper thread,
    which makes one reservation pass and then retries pending ports every
    interval. stop() may be called from any other thread (typically the one
    handling a shutdown signal); it returns only after every socket has been
    closed.
    """

    def __init__(self, listener: Optional[ReservationListener] = None, interval: float = RETRY_INTERVAL):
        """
        Initialize port keeper

        Args:
            listener: Receives reservation events
            interval: Seconds to wait between retry passes
        """
        self.interval = interval
        self._stop_event = threading.Event()
        self._state_lock = threading.Lock()
        self._state = KeeperState.INITIALIZING
        self._thread: Optional[threading.Thread] = None
        # Exception that ended the keeper loop, if any
        self.error: Optional[Exception] = None
        self.manager = ReservationManager(listener=listener, cancel_event=self._stop_event)

    @property
    def state(self) -> KeeperState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: KeeperState) -> None:
        with self._state_lock:
            logger.debug(f"Keeper state {self._state.value} -> {state.value}")
            self._state = state

    @property
    def bound_ports(self) -> List[int]:
        return self.manager.bound_ports

    @property
    def pending_ports(self) -> List[int]:
        return self.manager.pending_ports

    def start(self, include_spec: str, exclude_spec: Optional[str] = None) -> List[int]:
        """
        Resolve the specification and start keeping the ports

        Args:
            include_spec: Ports and ranges to reserve
            exclude_spec: Ports and ranges to leave out

        Returns:
            The resolved ports, in reservation order

        Raises:
            InvalidSpecification: If a specification is malformed; nothing is bound
            RuntimeError: If the keeper was already started or stopped
        """
        with self._state_lock:
            if self._state is not KeeperState.INITIALIZING or self._thread is not None:
                raise RuntimeError(f"Port keeper cannot start while {self._state.value}")

        try:
            ports = resolve(include_spec, exclude_spec)
        except Exception:
            self._set_state(KeeperState.STOPPED)
            raise

        with self._state_lock:
            if self._state is not KeeperState.INITIALIZING:
                logger.debug("Stopped before the keeper thread started")
                return ports

            # Not a daemon: the process must not exit while sockets are still held
            self._thread = threading.Thread(
                target=self._run,
                args=(ports,),
                name="port-keeper",
                daemon=False
            )
            self._thread.start()
        return ports

    def _run(self, ports: List[int]) -> None:
        try:
            self.manager.reserve_all(ports)

            with self._state_lock:
                if self._state is KeeperState.INITIALIZING:
                    self._state = KeeperState.RUNNING

            while not self._stop_event.is_set():
                self.manager.retry_pending()
                self._stop_event.wait(self.interval)
        except Exception as e:
            self.error = e
            logger.exception("Keeper loop failed")
        finally:
            self.manager.release_all()
            logger.debug("Keeper loop exited")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop retrying and release every held port

        Blocks until the keeper thread has released all sockets. Calling
        stop() more than once is harmless.

        Args:
            timeout: Maximum seconds to wait for the keeper thread
        """
        with self._state_lock:
            if self._state in (KeeperState.STOPPING, KeeperState.STOPPED):
                already_stopping = True
            else:
                already_stopping = False
                self._state = KeeperState.STOPPING

        if not already_stopping:
            logger.debug("Stopping port keeper")
            self._stop_event.set()
            self.manager.clear_pending()

        self.wait(timeout)

        with self._state_lock:
            if self._thread is None or not self._thread.is_alive():
                self._state = KeeperState.STOPPED

    @property
    def failed(self) -> bool:
        """True if the keeper thread ended without being asked to stop"""
        if self._thread is None or self.state not in (KeeperState.INITIALIZING, KeeperState.RUNNING):
            return False
        return self.wait(0)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the keeper thread to finish

        Returns:
            True if the thread has exited (or was never started)
        """
        thread = self._thread
        if thread is None:
            return True
        if thread is threading.current_thread():
            return False
        thread.join(timeout)
        return not thread.is_alive()

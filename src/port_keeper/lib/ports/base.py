"""
Base types for port reservations
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

class ReservationState(Enum):
    """Lifecycle state of a single port reservation"""
    PENDING = "pending"
    BOUND = "bound"
    RELEASED = "released"

class EventType(Enum):
    """Kinds of reservation notifications"""
    BOUND = "bound"
    UNBOUND = "unbound"
    BIND_FAILED = "bind_failed"
    RELEASE_FAILED = "release_failed"

@dataclass(frozen=True)
class ReservationEvent:
    """Reservation notification data"""
    type: EventType
    port: int
    reason: Optional[str] = None

    def render(self) -> str:
        """
        Render the event as a console line

        Returns:
            '+ <port>', '- <port>' or 'E <port> : <reason>'
        """
        if self.type is EventType.BOUND:
            return f"+ {self.port}"
        if self.type is EventType.UNBOUND:
            return f"- {self.port}"
        return f"E {self.port} : {self.reason}"

    @property
    def is_error(self) -> bool:
        return self.type in (EventType.BIND_FAILED, EventType.RELEASE_FAILED)

class ReservationListener(ABC):
    """Abstract base class for reservation event consumers"""

    @abstractmethod
    def notify(self, event: ReservationEvent) -> None:
        """
        Handle a reservation event

        Called on the keeper thread; implementations must not block.

        Args:
            event: ReservationEvent object
        """
        pass

class CollectingListener(ReservationListener):
    """Listener that keeps every event it receives, in order"""

    def __init__(self):
        self.events = []

    def notify(self, event: ReservationEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list:
        return [event for event in self.events if event.type is event_type]

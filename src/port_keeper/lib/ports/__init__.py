"""
Port reservation package
"""
from .base import (
    ReservationState,
    EventType,
    ReservationEvent,
    ReservationListener,
    CollectingListener
)
from .resolver import resolve, parse_range, validate_port, InvalidSpecification
from .reservation import Reservation, BindFailed, ReleaseFailed
from .manager import ReservationManager

__all__ = [
    "ReservationState",
    "EventType",
    "ReservationEvent",
    "ReservationListener",
    "CollectingListener",
    "resolve",
    "parse_range",
    "validate_port",
    "InvalidSpecification",
    "Reservation",
    "BindFailed",
    "ReleaseFailed",
    "ReservationManager"
]

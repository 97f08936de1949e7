"""
parkledger - parking occupancy and billing engine

Typical use:

    from parkledger import ServiceFactory, EngineSettings

    service = ServiceFactory.create_parking_service(EngineSettings())
    zone_id = service.create_zone("Level A", "5.00", "USD")
"""

from .config import EngineSettings, setup_logging
from .application.parking_service import ParkingService
from .infrastructure.factories import ServiceFactory
from .domain.exceptions import (
    ParkingEngineError, ValidationError, NotFoundError, ZoneNotFound,
    SpotNotFound, RecordNotFound, ConflictError, SpotAlreadyOccupied,
    SpotOccupied, RecordAlreadyExited, DuplicateSpot, InvalidInterval,
    StoreUnavailable
)
from .domain.strategies import compute_fee

__version__ = "1.0.0"

__all__ = [
    "EngineSettings", "setup_logging", "ParkingService", "ServiceFactory",
    "ParkingEngineError", "ValidationError", "NotFoundError", "ZoneNotFound",
    "SpotNotFound", "RecordNotFound", "ConflictError", "SpotAlreadyOccupied",
    "SpotOccupied", "RecordAlreadyExited", "DuplicateSpot", "InvalidInterval",
    "StoreUnavailable", "compute_fee",
]

# File: src/parkledger/domain/exceptions.py
"""
Error taxonomy for the parking occupancy and billing engine

Every failure raised by the engine is one of these kinds:
1. ValidationError - malformed input, fix and retry
2. NotFoundError variants - unknown zone, spot or record
3. ConflictError variants - precondition lost to another caller or misuse
4. InvalidInterval - clock anomaly, no fee is fabricated
5. StoreUnavailable - transient infrastructure failure, retry with backoff
"""

from typing import Iterable, List, Optional


class ParkingEngineError(Exception):
    """Base exception for parking engine errors"""
    pass


class ValidationError(ParkingEngineError):
    """Exception for malformed input"""
    pass


# ============================================================================
# NOT FOUND
# ============================================================================

class NotFoundError(ParkingEngineError):
    """Base exception for unknown identifiers"""

    entity_name = "Entity"

    def __init__(self, entity_id: str, message: Optional[str] = None):
        self.entity_id = entity_id
        super().__init__(message or f"{self.entity_name} {entity_id} not found")


class ZoneNotFound(NotFoundError):
    entity_name = "Zone"


class SpotNotFound(NotFoundError):
    entity_name = "Spot"


class RecordNotFound(NotFoundError):
    entity_name = "Parking record"


# ============================================================================
# CONFLICTS
# ============================================================================

class ConflictError(ParkingEngineError):
    """Base exception for precondition races and caller misuse"""
    pass


class SpotAlreadyOccupied(ConflictError):
    """Raised when an entry targets a spot that is not vacant"""

    def __init__(self, spot_id: str):
        self.spot_id = spot_id
        super().__init__(f"Spot {spot_id} is already occupied")


class SpotOccupied(ConflictError):
    """Raised when deleting a spot that still hosts a vehicle"""

    def __init__(self, spot_id: str):
        self.spot_id = spot_id
        super().__init__(f"Spot {spot_id} is occupied and cannot be deleted")


class RecordAlreadyExited(ConflictError):
    """Raised when exiting a record that is no longer parked"""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Parking record {record_id} has already exited")


class DuplicateSpot(ConflictError):
    """Raised when spot numbers collide within a zone/level/section"""

    def __init__(self, offenders: Iterable[str]):
        self.offenders: List[str] = list(offenders)
        super().__init__(
            f"The following spot numbers already exist: {', '.join(self.offenders)}"
        )


# ============================================================================
# INFRASTRUCTURE / CLOCK
# ============================================================================

class InvalidInterval(ParkingEngineError):
    """Raised when exit time does not come after entry time"""
    pass


class StoreUnavailable(ParkingEngineError):
    """Raised when the backing store times out or cannot be reached"""
    pass

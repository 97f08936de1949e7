# File: src/parkledger/domain/models.py
"""
Domain Models for the Parking Occupancy and Billing Engine

This module contains:
1. Value Objects: LicensePlate, Money, TimeRange
2. Entities: Zone, Spot, ParkingRecord
3. Enums: RecordStatus
4. Clock: the time source used for entry and exit stamps

Entities validate themselves on construction and on every mutation, and raise
the engine's ValidationError rather than bare ValueError.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Tuple, Union
import re
import uuid

from .exceptions import InvalidInterval, RecordAlreadyExited, ValidationError


DEFAULT_CURRENCY = "USD"
DEFAULT_HOURLY_RATE = Decimal("0.00")
UNKNOWN_ZONE_NAME = "Unknown Zone"

_CURRENCY_PATTERN = re.compile(r'^[A-Z]{3}$')


def to_decimal(value: Union[Decimal, int, float, str], field_name: str = "amount") -> Decimal:
    """Convert a numeric input to Decimal without float artifacts"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field_name} must be a number, got: {value!r}")


def normalize_currency(code: Optional[str]) -> str:
    """Upper-case and validate a 3-letter currency code"""
    if code is None or not str(code).strip():
        raise ValidationError("Currency is required")
    code = str(code).strip().upper()
    if not _CURRENCY_PATTERN.match(code):
        raise ValidationError(f"Currency must be 3-letter code: {code}")
    return code


def as_date(value: Union[date, datetime]) -> date:
    """Reduce a datetime to its calendar date"""
    if isinstance(value, datetime):
        return value.date()
    return value


# ============================================================================
# DOMAIN PRIMITIVES / VALUE OBJECTS
# ============================================================================

@dataclass(frozen=True)
class LicensePlate:
    """
    Value Object: License plate as handed over by the capture pipeline
    Stored verbatim apart from trimming and upper-casing
    """
    value: str

    def __post_init__(self):
        if self.value is None or not str(self.value).strip():
            raise ValidationError("License plate cannot be empty")
        object.__setattr__(self, 'value', str(self.value).strip().upper())

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Money:
    """
    Value Object: Monetary amount with currency
    """
    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        object.__setattr__(self, 'amount', to_decimal(self.amount))
        object.__setattr__(self, 'currency', normalize_currency(self.currency))
        if self.amount < Decimal('0'):
            raise ValidationError("Money amount cannot be negative")

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money amounts (same currency only)"""
        if self.currency != other.currency:
            raise ValidationError(f"Cannot add {self.currency} to {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, multiplier: Union[Decimal, int]) -> 'Money':
        """Multiply money by a non-negative factor"""
        multiplier = to_decimal(multiplier, "multiplier")
        if multiplier < Decimal('0'):
            raise ValidationError("Multiplier cannot be negative")
        return Money(self.amount * multiplier, self.currency)

    def format(self) -> str:
        """Format money for display"""
        return f"{self.amount:.2f} {self.currency}"


@dataclass(frozen=True)
class TimeRange:
    """
    Value Object: Closed time interval [start_time, end_time]
    An interval that does not move forward is a clock anomaly
    """
    start_time: datetime
    end_time: datetime

    def __post_init__(self):
        if self.end_time <= self.start_time:
            raise InvalidInterval(
                f"End time {self.end_time.isoformat()} must be after "
                f"start time {self.start_time.isoformat()}"
            )

    @classmethod
    def for_days(cls, start_day: Union[date, datetime], end_day: Union[date, datetime]) -> 'TimeRange':
        """Range from the start of start_day to the end of end_day, inclusive"""
        start_day, end_day = as_date(start_day), as_date(end_day)
        if end_day < start_day:
            raise ValidationError("End date must not be before start date")
        return cls(datetime.combine(start_day, time.min), datetime.combine(end_day, time.max))

    @classmethod
    def for_day(cls, day: Union[date, datetime]) -> 'TimeRange':
        return cls.for_days(day, day)

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    def contains(self, moment: Optional[datetime]) -> bool:
        """Inclusive membership test"""
        return moment is not None and self.start_time <= moment <= self.end_time

    def __str__(self) -> str:
        start_str = self.start_time.strftime("%Y-%m-%d %H:%M")
        end_str = self.end_time.strftime("%Y-%m-%d %H:%M")
        return f"{start_str} to {end_str}"


# ============================================================================
# ENUMS FOR DOMAIN TYPES
# ============================================================================

class RecordStatus(str, Enum):
    """
    Lifecycle of a parking record: PARKED -> EXITED, never back
    """
    PARKED = "parked"
    EXITED = "exited"

    @classmethod
    def parse(cls, value: Union['RecordStatus', str]) -> 'RecordStatus':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown record status: {value}")


# ============================================================================
# CLOCK
# ============================================================================

class Clock(ABC):
    """Time source for entry and exit stamps"""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    """Wall clock in local time, matching the day boundaries used by reports"""

    def now(self) -> datetime:
        return datetime.now()


# ============================================================================
# DOMAIN ENTITIES
# ============================================================================

class Entity:
    """
    Base class for all domain entities
    Provides identity and audit timestamps
    """

    def __init__(
        self,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        self._id = id or str(uuid.uuid4())
        self.created_at = created_at or datetime.now()
        self.updated_at = updated_at or self.created_at

    @property
    def id(self) -> str:
        return self._id

    def touch(self) -> None:
        self.updated_at = datetime.now()

    def __eq__(self, other: object) -> bool:
        """Entities are equal if they have the same ID and type"""
        if not isinstance(other, Entity):
            return False
        return self.id == other.id and type(self) == type(other)

    def __hash__(self) -> int:
        return hash((self.id, type(self).__name__))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id})"


class Zone(Entity):
    """
    Entity: Billing grouping of spots sharing an hourly rate and currency
    """

    def __init__(
        self,
        name: str,
        hourly_rate: Union[Decimal, int, float, str],
        currency: str = DEFAULT_CURRENCY,
        description: Optional[str] = None,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        super().__init__(id, created_at, updated_at)
        self.name = name
        self.hourly_rate = hourly_rate
        self.currency = currency
        self.description = description
        self._validate()

    def _validate(self) -> None:
        """Validate and normalize zone attributes"""
        if self.name is None or not str(self.name).strip():
            raise ValidationError("Zone name cannot be empty")
        self.name = str(self.name).strip()

        self.hourly_rate = to_decimal(self.hourly_rate, "Hourly rate")
        if self.hourly_rate <= Decimal('0'):
            raise ValidationError(f"Hourly rate must be positive: {self.hourly_rate}")

        self.currency = normalize_currency(self.currency)

        if self.description is not None:
            self.description = str(self.description).strip() or None

    @property
    def rate(self) -> Money:
        return Money(self.hourly_rate, self.currency)

    def update(self, **fields: Any) -> None:
        """
        Apply an edit and re-validate; nothing changes if validation fails
        """
        allowed = {"name", "description", "hourly_rate", "currency"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValidationError(f"Unknown zone fields: {', '.join(sorted(unknown))}")

        snapshot = (self.name, self.description, self.hourly_rate, self.currency)
        for key, value in fields.items():
            setattr(self, key, value)
        try:
            self._validate()
        except ValidationError:
            self.name, self.description, self.hourly_rate, self.currency = snapshot
            raise
        self.touch()

    def __str__(self) -> str:
        return f"{self.name} ({self.rate.format()}/hr)"


class Spot(Entity):
    """
    Entity: Individually addressable parking space within a zone

    The occupied flag is derived state owned by the record ledger.
    """

    def __init__(
        self,
        spot_number: str,
        level: str,
        section: str,
        zone_id: str,
        occupied: bool = False,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        super().__init__(id, created_at, updated_at)
        self.spot_number = spot_number
        self.level = level
        self.section = section
        self.zone_id = zone_id
        self.occupied = occupied
        self._validate()

    def _validate(self) -> None:
        if self.spot_number is None or not str(self.spot_number).strip():
            raise ValidationError("Spot number cannot be empty")
        self.spot_number = str(self.spot_number).strip()
        self.level = "" if self.level is None else str(self.level).strip()
        self.section = "" if self.section is None else str(self.section).strip()
        if not self.zone_id:
            raise ValidationError("Spot must belong to a zone")
        self.occupied = bool(self.occupied)

    @property
    def natural_key(self) -> Tuple[str, str, str, str]:
        """Uniqueness key within the facility"""
        return (self.spot_number, self.level, self.section, self.zone_id)

    @property
    def location_code(self) -> str:
        return f"L{self.level or '-'}-{self.section or '-'}-{self.spot_number}"

    @property
    def display_name(self) -> str:
        return f"Spot {self.spot_number} (Level {self.level}, Section {self.section})"

    def __str__(self) -> str:
        status = "Occupied" if self.occupied else "Vacant"
        return f"{self.display_name} - {status}"


class ParkingRecord(Entity):
    """
    Entity: One vehicle's stay, from entry to (eventually) exit

    Created PARKED; transitions once to EXITED with duration, fee and
    currency set together. Records are never deleted.
    """

    def __init__(
        self,
        license_plate: Union[LicensePlate, str],
        spot_id: str,
        zone_id: str,
        entry_time: datetime,
        entry_hourly_rate: Optional[Union[Decimal, int, float, str]] = None,
        entry_currency: Optional[str] = None,
        status: Union[RecordStatus, str] = RecordStatus.PARKED,
        exit_time: Optional[datetime] = None,
        duration_minutes: Optional[int] = None,
        fee: Optional[Union[Decimal, int, float, str]] = None,
        currency: Optional[str] = None,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        super().__init__(id, created_at, updated_at)
        if not isinstance(license_plate, LicensePlate):
            license_plate = LicensePlate(license_plate)
        self.license_plate = license_plate.value
        self.spot_id = spot_id
        self.zone_id = zone_id
        self.entry_time = entry_time
        self.entry_hourly_rate = (
            to_decimal(entry_hourly_rate, "Entry hourly rate")
            if entry_hourly_rate is not None else None
        )
        self.entry_currency = entry_currency
        self.status = RecordStatus.parse(status)
        self.exit_time = exit_time
        self.duration_minutes = duration_minutes
        self.fee = to_decimal(fee, "Fee") if fee is not None else None
        self.currency = currency
        self._validate_invariants()

    def _validate_invariants(self) -> None:
        if self.status == RecordStatus.PARKED:
            if any(v is not None for v in (self.exit_time, self.duration_minutes, self.fee, self.currency)):
                raise ValidationError("A parked record cannot carry exit data")
        else:
            if self.exit_time is None or self.duration_minutes is None or self.fee is None:
                raise ValidationError("An exited record must carry exit time, duration and fee")

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.PARKED

    @property
    def last_known_rate(self) -> Optional[Money]:
        """Zone rate snapshotted when the vehicle entered"""
        if self.entry_hourly_rate is None:
            return None
        return Money(self.entry_hourly_rate, self.entry_currency or DEFAULT_CURRENCY)

    def complete(self, exit_time: datetime, duration_minutes: int, fee: Money) -> None:
        """
        Transition PARKED -> EXITED
        Raises: RecordAlreadyExited if the record has already been finalized
        """
        if self.status != RecordStatus.PARKED:
            raise RecordAlreadyExited(self.id)
        if exit_time <= self.entry_time:
            raise InvalidInterval("Exit time must be after entry time")

        self.exit_time = exit_time
        self.duration_minutes = duration_minutes
        self.fee = fee.amount
        self.currency = fee.currency
        self.status = RecordStatus.EXITED
        self.touch()

    def __str__(self) -> str:
        return f"{self.license_plate} [{self.status.value}] since {self.entry_time:%Y-%m-%d %H:%M}"

# File: src/parkledger/application/dtos.py
"""
Data Transfer Objects (DTOs) for the Parking Engine

1. Input DTOs - validate operator input before it reaches the domain
2. Query DTOs - history filters and sort order
3. Output DTOs - reports, receipts and bulk creation results

pydantic validation failures never leave this module as pydantic errors:
`build()` re-raises them as the engine's ValidationError.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..domain.exceptions import ValidationError
from ..domain.models import RecordStatus

D = TypeVar('D', bound='BaseDTO')


# ============================================================================
# BASE DTO CLASSES
# ============================================================================

class BaseDTO(BaseModel):
    """Base DTO with common functionality"""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True
    )

    @classmethod
    def build(cls: Type[D], **data: Any) -> D:
        """Validate input, raising the engine's ValidationError on failure"""
        try:
            return cls(**data)
        except PydanticValidationError as e:
            messages = []
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"])
                messages.append(f"{location}: {error['msg']}" if location else error["msg"])
            raise ValidationError("; ".join(messages)) from e

    def to_dict(self, exclude_none: bool = False, **kwargs) -> Dict[str, Any]:
        """Convert DTO to dictionary"""
        return self.model_dump(exclude_none=exclude_none, **kwargs)


# ============================================================================
# ZONE DTOs
# ============================================================================

class ZoneCreateDTO(BaseDTO):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    hourly_rate: Decimal = Field(..., gt=0)
    currency: str = Field(default="USD", pattern=r"^[A-Za-z]{3}$")

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


class ZoneUpdateDTO(BaseDTO):
    """Partial zone edit; only the fields given are changed"""
    model_config = ConfigDict(extra='forbid')

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    hourly_rate: Optional[Decimal] = Field(default=None, gt=0)
    currency: Optional[str] = Field(default=None, pattern=r"^[A-Za-z]{3}$")

    @field_validator('currency')
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v is not None else v

    @model_validator(mode='after')
    def require_changes(self) -> 'ZoneUpdateDTO':
        if not self.model_fields_set:
            raise ValueError("No zone fields to update")
        return self

    def changes(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


# ============================================================================
# SPOT DTOs
# ============================================================================

class SpotCreateDTO(BaseDTO):
    spot_number: str = Field(..., min_length=1)
    level: str = ""
    section: str = ""
    zone_id: str = Field(..., min_length=1)
    initially_occupied: bool = False

    @field_validator('initially_occupied')
    @classmethod
    def vacant_on_creation(cls, v: bool) -> bool:
        # Occupancy is only ever set by a parking record
        if v:
            raise ValueError("A spot cannot be created occupied; record an entry instead")
        return v


class BulkSpotCreateDTO(BaseDTO):
    spot_numbers: List[str]
    level: str = ""
    section: str = ""
    zone_id: str = Field(..., min_length=1)

    @field_validator('spot_numbers')
    @classmethod
    def clean_numbers(cls, v: List[str]) -> List[str]:
        cleaned = [str(n).strip() for n in v if n is not None and str(n).strip()]
        if not cleaned:
            raise ValueError("At least one spot number is required")
        return cleaned


class BulkSpotResultDTO(BaseDTO):
    spot_number: str
    success: bool
    spot_id: Optional[str] = None
    error: Optional[str] = None


# ============================================================================
# LEDGER DTOs
# ============================================================================

class EntryRequestDTO(BaseDTO):
    license_plate: str = Field(..., min_length=1)
    spot_id: str = Field(..., min_length=1)
    zone_id: Optional[str] = None

    @field_validator('license_plate')
    @classmethod
    def normalize_plate(cls, v: str) -> str:
        return v.upper()


class SortField(str, Enum):
    LICENSE_PLATE = "license_plate"
    ZONE = "zone"
    ENTRY_TIME = "entry_time"
    EXIT_TIME = "exit_time"
    DURATION_MINUTES = "duration_minutes"
    FEE = "fee"
    STATUS = "status"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


_CAMEL_SORT_FIELDS = {
    "licensePlate": SortField.LICENSE_PLATE,
    "entryTime": SortField.ENTRY_TIME,
    "exitTime": SortField.EXIT_TIME,
    "durationMinutes": SortField.DURATION_MINUTES,
}


class HistoryQueryDTO(BaseDTO):
    """Filters and ordering for ledger history"""
    start_date: date
    end_date: date
    license_plate: Optional[str] = Field(default=None, description="Case-insensitive substring")
    zone_id: Optional[str] = None
    status: Optional[RecordStatus] = None
    sort_field: SortField = SortField.ENTRY_TIME
    sort_direction: SortDirection = SortDirection.DESC

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def date_only(cls, v: Any) -> Any:
        return v.date() if isinstance(v, datetime) else v

    @field_validator('sort_field', mode='before')
    @classmethod
    def accept_camel_case(cls, v: Any) -> Any:
        return _CAMEL_SORT_FIELDS.get(v, v) if isinstance(v, str) else v

    @field_validator('sort_direction', 'status', mode='before')
    @classmethod
    def lower_enum_value(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator('license_plate', 'zone_id')
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @model_validator(mode='after')
    def check_date_range(self) -> 'HistoryQueryDTO':
        if self.end_date < self.start_date:
            raise ValueError("End date must not be before start date")
        return self


# ============================================================================
# OUTPUT DTOs
# ============================================================================

class OccupancyStatsDTO(BaseDTO):
    total: int = 0
    occupied: int = 0
    vacant: int = 0
    occupancy_rate: float = 0.0

    @classmethod
    def from_counts(cls, total: int, occupied: int, **extra: Any):
        rate = (occupied / total * 100) if total else 0.0
        return cls(total=total, occupied=occupied, vacant=total - occupied,
                   occupancy_rate=rate, **extra)


class ZoneOccupancyDTO(OccupancyStatsDTO):
    zone_id: str
    zone_name: str


class OccupancyReportDTO(OccupancyStatsDTO):
    by_zone: Dict[str, ZoneOccupancyDTO] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=datetime.now)


class DailyRevenueDTO(BaseDTO):
    day: date
    amount: Decimal
    currency: str
    by_currency: Dict[str, Decimal] = Field(default_factory=dict)
    record_count: int = 0


class ReceiptDTO(BaseDTO):
    """What an attendant hands over at exit"""
    record_id: str
    license_plate: str
    zone_name: str
    location_code: Optional[str] = None
    entry_time: datetime
    exit_time: datetime
    duration_minutes: int
    billed_hours: int
    fee: Decimal
    currency: str

    @property
    def formatted_fee(self) -> str:
        return f"{self.fee:.2f} {self.currency}"

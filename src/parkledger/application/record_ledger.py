# File: src/parkledger/application/record_ledger.py
"""
Record Ledger

The append-only collection of parking records and the state machine behind
entry and exit:

    entry:  spot vacant -> occupied, new record PARKED      (one unit of work)
    exit:   record PARKED -> EXITED with fee, spot vacant   (one unit of work)

Both transitions are decided by compare-and-set in the store, so of two
concurrent entries on one spot (or exits on one record) exactly one wins and
the other gets SpotAlreadyOccupied / RecordAlreadyExited.
"""

from datetime import date, datetime
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import logging

from ..domain.exceptions import (
    RecordAlreadyExited, RecordNotFound, SpotAlreadyOccupied, SpotNotFound,
    ValidationError, ZoneNotFound
)
from ..domain.models import (
    DEFAULT_CURRENCY, DEFAULT_HOURLY_RATE, UNKNOWN_ZONE_NAME, Clock, LicensePlate, Money,
    ParkingRecord, RecordStatus, SystemClock, TimeRange
)
from ..domain.strategies import FeeQuote, HourlyPricingStrategy, PricingStrategy
from ..infrastructure.repositories import UnitOfWork, UnitOfWorkFactory
from .dtos import EntryRequestDTO, HistoryQueryDTO, SortDirection, SortField
from .spot_registry import SpotRegistry


# ============================================================================
# HISTORY ORDERING
# ============================================================================

def _compare_absent_last(a: Any, b: Any) -> int:
    """Three-way compare where a missing value is larger than any other"""
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1
    return (a > b) - (a < b)


def sort_records(
    records: List[ParkingRecord],
    field: SortField,
    direction: SortDirection,
    zone_names: Optional[Dict[str, str]] = None
) -> List[ParkingRecord]:
    """
    Order records for history display

    Missing exit time, duration or fee compare as +infinity before the
    direction is applied: last when ascending, first when descending.
    """
    zone_names = zone_names or {}

    def value(record: ParkingRecord) -> Any:
        if field == SortField.ZONE:
            return zone_names.get(record.zone_id, UNKNOWN_ZONE_NAME)
        if field == SortField.STATUS:
            return record.status.value
        return getattr(record, field.value)

    sign = -1 if direction == SortDirection.DESC else 1
    return sorted(
        records,
        key=cmp_to_key(lambda a, b: sign * _compare_absent_last(value(a), value(b)))
    )


# ============================================================================
# LEDGER SERVICE
# ============================================================================

class RecordLedger:
    """
    Entry/exit state machine and ledger queries

    Args:
        uow_factory: creates one unit of work per operation
        spot_registry: owner of the occupancy compare-and-set
        clock: source of entry and exit stamps
        pricing_strategy: billing rule applied at exit
        bill_at_entry_rate: bill at the rate snapshotted on entry instead of
            the zone's current rate
        default_rate: billing rate for a record whose zone is gone and that
            carries no entry rate
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        spot_registry: SpotRegistry,
        clock: Optional[Clock] = None,
        pricing_strategy: Optional[PricingStrategy] = None,
        bill_at_entry_rate: bool = False,
        default_rate: Optional[Money] = None
    ):
        self._uow_factory = uow_factory
        self.spot_registry = spot_registry
        self.clock = clock or SystemClock()
        self.pricing_strategy = pricing_strategy or HourlyPricingStrategy()
        self.bill_at_entry_rate = bill_at_entry_rate
        self.default_rate = default_rate or Money(DEFAULT_HOURLY_RATE, DEFAULT_CURRENCY)
        self.logger = logging.getLogger(self.__class__.__name__)

    def record_entry(
        self,
        license_plate: str,
        spot_id: str,
        zone_id: Optional[str] = None
    ) -> ParkingRecord:
        """
        Park a vehicle on a vacant spot

        The zone is always taken from the spot; a caller-supplied zone_id
        must agree with it.

        Raises: ValidationError, SpotNotFound, ZoneNotFound, SpotAlreadyOccupied
        """
        request = EntryRequestDTO.build(license_plate=license_plate, spot_id=spot_id, zone_id=zone_id)
        plate = LicensePlate(request.license_plate)

        with self._uow_factory() as uow:
            spot = uow.spots.get(request.spot_id)
            if spot is None:
                raise SpotNotFound(request.spot_id)

            if request.zone_id and request.zone_id != spot.zone_id:
                raise ValidationError(
                    f"Spot {spot.id} belongs to zone {spot.zone_id}, not {request.zone_id}"
                )

            zone = uow.zones.get(spot.zone_id)
            if zone is None:
                raise ZoneNotFound(spot.zone_id)

            if not self.spot_registry.set_occupied(spot.id, True, uow):
                self.logger.warning(f"Entry rejected for {plate}: spot {spot.id} already occupied")
                raise SpotAlreadyOccupied(spot.id)

            record = ParkingRecord(
                license_plate=plate,
                spot_id=spot.id,
                zone_id=spot.zone_id,
                entry_time=self.clock.now(),
                entry_hourly_rate=zone.hourly_rate,
                entry_currency=zone.currency
            )
            uow.records.add(record)

        self.logger.info(f"Vehicle {plate} entered spot {spot.location_code} (record {record.id})")
        return record

    def record_exit(self, record_id: str) -> ParkingRecord:
        """
        Finalize a stay and release its spot

        Returns: the exited record carrying duration, fee and currency
        Raises: RecordNotFound, RecordAlreadyExited, InvalidInterval
        """
        record, _ = self.exit_with_quote(record_id)
        return record

    def exit_with_quote(self, record_id: str) -> Tuple[ParkingRecord, FeeQuote]:
        """Like record_exit, also returning the pricing breakdown"""
        with self._uow_factory() as uow:
            record = uow.records.get(record_id)
            if record is None:
                raise RecordNotFound(record_id)
            if not record.is_active:
                self.logger.warning(f"Exit rejected: record {record_id} already exited")
                raise RecordAlreadyExited(record_id)

            exit_time = self.clock.now()
            rate = self._billing_rate(uow, record)
            quote = self.pricing_strategy.quote(record.entry_time, exit_time, rate)
            record.complete(exit_time, quote.duration_minutes, quote.fee)

            if not uow.records.complete(record):
                self.logger.warning(f"Exit rejected: record {record_id} finalized concurrently")
                raise RecordAlreadyExited(record_id)

            if not self.spot_registry.set_occupied(record.spot_id, False, uow):
                self.logger.warning(
                    f"Spot {record.spot_id} was not occupied when record {record_id} exited"
                )

        self.logger.info(
            f"Vehicle {record.license_plate} exited after {quote.duration_minutes} min, "
            f"fee {quote.fee.format()} (record {record_id})"
        )
        return record, quote

    def _billing_rate(self, uow: UnitOfWork, record: ParkingRecord) -> Money:
        snapshot = record.last_known_rate
        if self.bill_at_entry_rate and snapshot is not None:
            return snapshot

        zone = uow.zones.get(record.zone_id)
        if zone is not None:
            return zone.rate

        if snapshot is None:
            self.logger.warning(
                f"Zone {record.zone_id} no longer exists and record {record.id} has no "
                f"entry rate; billing at the default rate {self.default_rate.format()}/hr"
            )
            return self.default_rate

        self.logger.warning(
            f"Zone {record.zone_id} no longer exists; billing record {record.id} "
            f"at its entry rate {snapshot.format()}/hr"
        )
        return snapshot

    def get_record(self, record_id: str) -> ParkingRecord:
        with self._uow_factory() as uow:
            record = uow.records.get(record_id)
        if record is None:
            raise RecordNotFound(record_id)
        return record

    def list_active(self) -> List[ParkingRecord]:
        with self._uow_factory() as uow:
            records = uow.records.find_by_status(RecordStatus.PARKED)
        return sorted(records, key=lambda r: r.entry_time)

    def list_by_license_plate(self, license_plate: str) -> List[ParkingRecord]:
        """All stays of one vehicle, newest entry first"""
        plate = LicensePlate(license_plate)
        with self._uow_factory() as uow:
            records = uow.records.find_by_license_plate(plate.value)
        return sorted(records, key=lambda r: r.entry_time, reverse=True)

    def list_history(
        self,
        start_date: Union[date, datetime],
        end_date: Union[date, datetime],
        license_plate: Optional[str] = None,
        zone_id: Optional[str] = None,
        status: Optional[Union[RecordStatus, str]] = None,
        sort_field: Union[SortField, str] = SortField.ENTRY_TIME,
        sort_direction: Union[SortDirection, str] = SortDirection.DESC
    ) -> List[ParkingRecord]:
        """
        Records that entered between the start of start_date and the end of
        end_date, filtered and ordered
        """
        query = HistoryQueryDTO.build(
            start_date=start_date,
            end_date=end_date,
            license_plate=license_plate,
            zone_id=zone_id,
            status=status,
            sort_field=sort_field,
            sort_direction=sort_direction
        )
        time_range = TimeRange.for_days(query.start_date, query.end_date)

        with self._uow_factory() as uow:
            records = uow.records.find_by_entry_time(time_range)
            zone_names = (
                {z.id: z.name for z in uow.zones.get_all()}
                if query.sort_field == SortField.ZONE else {}
            )

        filters: List[Callable[[ParkingRecord], bool]] = []
        if query.license_plate:
            needle = query.license_plate.upper()
            filters.append(lambda r: needle in r.license_plate.upper())
        if query.zone_id:
            filters.append(lambda r: r.zone_id == query.zone_id)
        if query.status:
            filters.append(lambda r: r.status == query.status)

        matching = [r for r in records if all(f(r) for f in filters)]
        self.logger.debug(f"History {time_range}: {len(matching)} of {len(records)} records match")
        return sort_records(matching, query.sort_field, query.sort_direction, zone_names)

# File: src/parkledger/application/parking_service.py
"""
Parking Engine Application Service

Single entry point for operator-facing callers. The service composes the
zone registry, spot registry, record ledger and reporting aggregator over
one unit-of-work factory and delegates to them; it adds no business rules
of its own apart from assembling receipts.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from ..config import EngineSettings
from ..domain.exceptions import SpotNotFound, ValidationError
from ..domain.models import UNKNOWN_ZONE_NAME, Clock, Money, ParkingRecord, RecordStatus, Spot, Zone
from ..domain.strategies import FeeQuote, HourlyPricingStrategy, PricingStrategy
from ..infrastructure.repositories import UnitOfWorkFactory
from .dtos import (
    BulkSpotResultDTO, DailyRevenueDTO, OccupancyReportDTO, OccupancyStatsDTO,
    ReceiptDTO, SortDirection, SortField
)
from .record_ledger import RecordLedger
from .reporting import ReportingAggregator
from .spot_registry import SpotRegistry
from .zone_registry import ZoneRegistry


class ParkingService:
    """
    Main application service for the parking engine

    Use cases:
    1. Zone and spot administration
    2. Vehicle entry and exit
    3. Active vehicles and history
    4. Occupancy and revenue reports
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        settings: Optional[EngineSettings] = None,
        clock: Optional[Clock] = None,
        pricing_strategy: Optional[PricingStrategy] = None
    ):
        self.settings = settings or EngineSettings()
        self.logger = logging.getLogger(self.__class__.__name__)

        self.pricing_strategy = pricing_strategy or HourlyPricingStrategy()
        self.zones = ZoneRegistry(uow_factory, self.settings.default_currency)
        self.spots = SpotRegistry(uow_factory)
        self.ledger = RecordLedger(
            uow_factory,
            self.spots,
            clock=clock,
            pricing_strategy=self.pricing_strategy,
            bill_at_entry_rate=self.settings.bill_at_entry_rate,
            default_rate=Money(self.settings.default_hourly_rate, self.settings.default_currency)
        )
        self.reports = ReportingAggregator(uow_factory, self.zones, self.settings.default_currency)

        self.logger.info(f"ParkingService initialized ({self.settings.store_backend} store)")

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    def create_zone(
        self,
        name: str,
        hourly_rate: Union[Decimal, int, float, str],
        currency: Optional[str] = None,
        description: Optional[str] = None
    ) -> str:
        return self.zones.create_zone(name, hourly_rate, currency=currency, description=description)

    def update_zone(self, zone_id: str, **fields: Any) -> Zone:
        return self.zones.update_zone(zone_id, **fields)

    def delete_zone(self, zone_id: str) -> None:
        self.zones.delete_zone(zone_id)

    def get_zone(self, zone_id: str) -> Zone:
        return self.zones.get_zone(zone_id)

    def list_zones(self, sort_by_name: bool = False) -> List[Zone]:
        return self.zones.list_zones(sort_by_name)

    # ------------------------------------------------------------------
    # Spots
    # ------------------------------------------------------------------

    def create_spot(
        self,
        spot_number: str,
        level: str,
        section: str,
        zone_id: str,
        initially_occupied: bool = False
    ) -> str:
        return self.spots.create_spot(spot_number, level, section, zone_id, initially_occupied)

    def create_spots_bulk(
        self,
        spot_numbers: Iterable[str],
        level: str,
        section: str,
        zone_id: str
    ) -> List[BulkSpotResultDTO]:
        return self.spots.create_spots_bulk(spot_numbers, level, section, zone_id)

    def delete_spot(self, spot_id: str) -> None:
        self.spots.delete_spot(spot_id)

    def get_spot(self, spot_id: str) -> Spot:
        return self.spots.get_spot(spot_id)

    def list_spots(self, zone_id: Optional[str] = None) -> List[Spot]:
        return self.spots.list_spots(zone_id)

    def spots_summary(self) -> OccupancyStatsDTO:
        return self.spots.spots_summary()

    # ------------------------------------------------------------------
    # Entry / exit
    # ------------------------------------------------------------------

    def park_vehicle(self, license_plate: str, spot_id: str, zone_id: Optional[str] = None) -> ParkingRecord:
        return self.ledger.record_entry(license_plate, spot_id, zone_id)

    def exit_vehicle(self, record_id: str) -> ReceiptDTO:
        """
        Record an exit and build the receipt shown to the driver
        """
        record, quote = self.ledger.exit_with_quote(record_id)
        return self.build_receipt(record, quote)

    def build_receipt(self, record: ParkingRecord, quote: Optional[FeeQuote] = None) -> ReceiptDTO:
        """Receipt for an exited record; billed hours come from the quote when given"""
        if record.status != RecordStatus.EXITED:
            raise ValidationError(f"Record {record.id} has not exited yet")

        zone_name = self.zones.zone_names().get(record.zone_id, UNKNOWN_ZONE_NAME)
        try:
            location_code = self.spots.get_spot(record.spot_id).location_code
        except SpotNotFound:
            location_code = None

        return ReceiptDTO(
            record_id=record.id,
            license_plate=record.license_plate,
            zone_name=zone_name,
            location_code=location_code,
            entry_time=record.entry_time,
            exit_time=record.exit_time,
            duration_minutes=record.duration_minutes,
            billed_hours=(
                quote.billed_hours if quote is not None
                else self.pricing_strategy.billed_hours(record.duration_minutes)
            ),
            fee=record.fee,
            currency=record.currency
        )

    # ------------------------------------------------------------------
    # Ledger queries
    # ------------------------------------------------------------------

    def get_record(self, record_id: str) -> ParkingRecord:
        return self.ledger.get_record(record_id)

    def list_active(self) -> List[ParkingRecord]:
        return self.ledger.list_active()

    def list_by_license_plate(self, license_plate: str) -> List[ParkingRecord]:
        return self.ledger.list_by_license_plate(license_plate)

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
        return self.ledger.list_history(
            start_date, end_date,
            license_plate=license_plate,
            zone_id=zone_id,
            status=status,
            sort_field=sort_field,
            sort_direction=sort_direction
        )

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def occupancy_report(self) -> OccupancyReportDTO:
        return self.reports.occupancy_report()

    def daily_revenue(self, day: Union[date, datetime]) -> DailyRevenueDTO:
        return self.reports.daily_revenue(day)

    def dashboard(self) -> Dict[str, Any]:
        """Today's headline numbers"""
        occupancy = self.occupancy_report()
        revenue = self.daily_revenue(self.ledger.clock.now())
        return {
            "occupancy": occupancy.to_dict(exclude={"by_zone"}),
            "active_vehicles": len(self.list_active()),
            "revenue": revenue.to_dict()
        }

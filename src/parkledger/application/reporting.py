# File: src/parkledger/application/reporting.py
"""
Reporting Aggregator

Read-only views over spots and records. Each report reads what it needs in
one unit of work; different reports are not required to agree on a single
snapshot.
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Union
import logging

from ..domain.models import DEFAULT_CURRENCY, UNKNOWN_ZONE_NAME, TimeRange, as_date
from ..infrastructure.repositories import UnitOfWorkFactory
from .dtos import DailyRevenueDTO, OccupancyReportDTO, ZoneOccupancyDTO
from .zone_registry import ZoneRegistry


class ReportingAggregator:
    """Occupancy and revenue reports"""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        zone_registry: ZoneRegistry,
        default_currency: str = DEFAULT_CURRENCY
    ):
        self._uow_factory = uow_factory
        self.zone_registry = zone_registry
        self.default_currency = default_currency
        self.logger = logging.getLogger(self.__class__.__name__)

    def occupancy_report(self) -> OccupancyReportDTO:
        """
        Facility-wide and per-zone occupancy from a single scan of all spots

        Rates are percentages; an empty facility (or zone) reports 0.
        """
        with self._uow_factory() as uow:
            spots = uow.spots.get_all()
            zone_names = {z.id: z.name for z in uow.zones.get_all()}

        counts: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
        for spot in spots:
            counts[spot.zone_id][0] += 1
            if spot.occupied:
                counts[spot.zone_id][1] += 1

        by_zone = {
            zone_id: ZoneOccupancyDTO.from_counts(
                total,
                occupied,
                zone_id=zone_id,
                zone_name=zone_names.get(zone_id, UNKNOWN_ZONE_NAME)
            )
            for zone_id, (total, occupied) in counts.items()
        }
        total = sum(z.total for z in by_zone.values())
        occupied = sum(z.occupied for z in by_zone.values())

        report = OccupancyReportDTO.from_counts(total, occupied, by_zone=by_zone)
        self.logger.debug(f"Occupancy {occupied}/{total} ({report.occupancy_rate:.1f}%)")
        return report

    def daily_revenue(self, day: Union[date, datetime]) -> DailyRevenueDTO:
        """
        Sum of fees of records that exited during the given day

        The reported currency is the one with the largest summed fee; a day
        without exits falls back to the first zone's currency, then to the
        configured default.
        """
        day = as_date(day)
        time_range = TimeRange.for_day(day)

        with self._uow_factory() as uow:
            records = uow.records.find_exited_between(time_range)

        by_currency: Dict[str, Decimal] = defaultdict(lambda: Decimal('0'))
        for record in records:
            by_currency[record.currency or self.default_currency] += record.fee

        amount = sum(by_currency.values(), Decimal('0'))
        if by_currency:
            currency = max(by_currency.items(), key=lambda item: item[1])[0]
        else:
            zones = self.zone_registry.list_zones()
            currency = zones[0].currency if zones else self.default_currency

        if len(by_currency) > 1:
            self.logger.warning(
                f"Revenue for {day} spans currencies {sorted(by_currency)}; reporting as {currency}"
            )

        return DailyRevenueDTO(
            day=day,
            amount=amount,
            currency=currency,
            by_currency=dict(by_currency),
            record_count=len(records)
        )

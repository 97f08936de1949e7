# File: src/parkledger/application/spot_registry.py
"""
Spot Registry

Creates and removes spots and owns the compare-and-set on the occupied flag.
The flag itself is only ever flipped by the record ledger, inside the same
unit of work that creates or finalizes the backing record.
"""

from typing import Iterable, List, Optional
import logging

from ..domain.exceptions import (
    DuplicateSpot, ParkingEngineError, SpotNotFound, SpotOccupied, ZoneNotFound
)
from ..domain.models import Spot
from ..infrastructure.repositories import UnitOfWork, UnitOfWorkFactory
from .dtos import BulkSpotCreateDTO, BulkSpotResultDTO, OccupancyStatsDTO, SpotCreateDTO


class SpotRegistry:
    """Spot lifecycle and occupancy compare-and-set"""

    def __init__(self, uow_factory: UnitOfWorkFactory):
        self._uow_factory = uow_factory
        self.logger = logging.getLogger(self.__class__.__name__)

    def create_spot(
        self,
        spot_number: str,
        level: str,
        section: str,
        zone_id: str,
        initially_occupied: bool = False
    ) -> str:
        """
        Register one spot, vacant

        Raises: ValidationError, ZoneNotFound, DuplicateSpot
        """
        dto = SpotCreateDTO.build(
            spot_number=spot_number,
            level=level,
            section=section,
            zone_id=zone_id,
            initially_occupied=initially_occupied
        )
        return self._create(dto.spot_number, dto.level, dto.section, dto.zone_id)

    def _create(self, spot_number: str, level: str, section: str, zone_id: str) -> str:
        spot = Spot(spot_number=spot_number, level=level, section=section, zone_id=zone_id)

        with self._uow_factory() as uow:
            if not uow.zones.exists(zone_id):
                raise ZoneNotFound(zone_id)
            uow.spots.add(spot)

        self.logger.info(f"Created spot {spot.id} {spot.location_code} in zone {zone_id}")
        return spot.id

    def create_spots_bulk(
        self,
        spot_numbers: Iterable[str],
        level: str,
        section: str,
        zone_id: str
    ) -> List[BulkSpotResultDTO]:
        """
        Register many spots sharing a level, section and zone

        Duplicates inside the batch, or numbers already taken at that
        placement, reject the whole batch before anything is written.
        After that each spot is created independently and reported on its own.
        """
        dto = BulkSpotCreateDTO.build(
            spot_numbers=list(spot_numbers),
            level=level,
            section=section,
            zone_id=zone_id
        )

        with self._uow_factory() as uow:
            if not uow.zones.exists(dto.zone_id):
                raise ZoneNotFound(dto.zone_id)
            taken = {
                s.spot_number
                for s in uow.spots.find_by_placement(dto.level, dto.section, dto.zone_id)
            }

        seen = set()
        offenders: List[str] = []
        for number in dto.spot_numbers:
            if (number in seen or number in taken) and number not in offenders:
                offenders.append(number)
            seen.add(number)

        if offenders:
            self.logger.warning(f"Bulk create rejected, duplicate spot numbers: {offenders}")
            raise DuplicateSpot(offenders)

        results = []
        for number in dto.spot_numbers:
            try:
                spot_id = self._create(number, dto.level, dto.section, dto.zone_id)
                results.append(BulkSpotResultDTO(spot_number=number, success=True, spot_id=spot_id))
            except ParkingEngineError as e:
                self.logger.warning(f"Bulk create failed for spot {number}: {e}")
                results.append(BulkSpotResultDTO(spot_number=number, success=False, error=str(e)))

        created = sum(1 for r in results if r.success)
        self.logger.info(f"Bulk created {created}/{len(results)} spots in zone {dto.zone_id}")
        return results

    def set_occupied(self, spot_id: str, occupied: bool, uow: UnitOfWork) -> bool:
        """
        Compare-and-set of the occupied flag inside the caller's unit of work

        Returns: True if the flag changed, False if it already had that value
        """
        changed = uow.spots.set_occupied(spot_id, occupied)
        if changed:
            self.logger.debug(f"Spot {spot_id} occupied={occupied}")
        return changed

    def delete_spot(self, spot_id: str) -> None:
        with self._uow_factory() as uow:
            if uow.spots.get(spot_id) is None:
                raise SpotNotFound(spot_id)
            if uow.records.find_active_by_spot(spot_id) or not uow.spots.delete_if_vacant(spot_id):
                self.logger.warning(f"Delete rejected: spot {spot_id} is occupied")
                raise SpotOccupied(spot_id)

        self.logger.info(f"Deleted spot {spot_id}")

    def get_spot(self, spot_id: str) -> Spot:
        with self._uow_factory() as uow:
            spot = uow.spots.get(spot_id)
        if spot is None:
            raise SpotNotFound(spot_id)
        return spot

    def list_spots(self, zone_id: Optional[str] = None) -> List[Spot]:
        with self._uow_factory() as uow:
            if zone_id is None:
                return uow.spots.get_all()
            return uow.spots.find_by_zone(zone_id)

    def spots_summary(self) -> OccupancyStatsDTO:
        spots = self.list_spots()
        occupied = sum(1 for s in spots if s.occupied)
        return OccupancyStatsDTO.from_counts(len(spots), occupied)

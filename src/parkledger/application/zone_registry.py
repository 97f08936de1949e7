# File: src/parkledger/application/zone_registry.py
"""
Zone Registry

Holds the billing configuration of each zone. Deleting a zone never touches
its spots or records; readers resolve a missing zone to UNKNOWN_ZONE_NAME.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union
import logging

from ..domain.exceptions import ZoneNotFound
from ..domain.models import DEFAULT_CURRENCY, Zone
from ..infrastructure.repositories import UnitOfWorkFactory
from .dtos import ZoneCreateDTO, ZoneUpdateDTO


class ZoneRegistry:
    """Create, edit, delete and look up zones"""

    def __init__(self, uow_factory: UnitOfWorkFactory, default_currency: str = DEFAULT_CURRENCY):
        self._uow_factory = uow_factory
        self.default_currency = default_currency
        self.logger = logging.getLogger(self.__class__.__name__)

    def create_zone(
        self,
        name: str,
        hourly_rate: Union[Decimal, int, float, str],
        currency: Optional[str] = None,
        description: Optional[str] = None
    ) -> str:
        """
        Register a new zone

        Returns: the new zone id
        Raises: ValidationError for a blank name, non-positive rate or bad currency
        """
        dto = ZoneCreateDTO.build(
            name=name,
            description=description,
            hourly_rate=hourly_rate,
            currency=currency or self.default_currency
        )
        zone = Zone(
            name=dto.name,
            hourly_rate=dto.hourly_rate,
            currency=dto.currency,
            description=dto.description
        )

        with self._uow_factory() as uow:
            uow.zones.add(zone)

        self.logger.info(f"Created zone {zone.id} '{zone.name}' at {zone.rate.format()}/hr")
        return zone.id

    def update_zone(self, zone_id: str, **fields: Any) -> Zone:
        dto = ZoneUpdateDTO.build(**fields)

        with self._uow_factory() as uow:
            zone = uow.zones.get(zone_id)
            if zone is None:
                self.logger.warning(f"Update rejected: zone {zone_id} not found")
                raise ZoneNotFound(zone_id)
            zone.update(**dto.changes())
            uow.zones.update(zone)

        self.logger.info(f"Updated zone {zone_id}: {', '.join(sorted(dto.changes()))}")
        return zone

    def delete_zone(self, zone_id: str) -> None:
        """Remove the zone only; spots and records keep their zone id"""
        with self._uow_factory() as uow:
            if not uow.zones.delete(zone_id):
                self.logger.warning(f"Delete rejected: zone {zone_id} not found")
                raise ZoneNotFound(zone_id)

        self.logger.info(f"Deleted zone {zone_id}")

    def get_zone(self, zone_id: str) -> Zone:
        with self._uow_factory() as uow:
            zone = uow.zones.get(zone_id)
        if zone is None:
            raise ZoneNotFound(zone_id)
        return zone

    def list_zones(self, sort_by_name: bool = False) -> List[Zone]:
        with self._uow_factory() as uow:
            zones = uow.zones.get_all()
        if sort_by_name:
            zones.sort(key=lambda z: z.name.lower())
        return zones

    def zone_names(self) -> Dict[str, str]:
        return {zone.id: zone.name for zone in self.list_zones()}

# File: src/parkledger/infrastructure/factories.py
"""
Service Factory for the Parking Engine

Wires a ParkingService from EngineSettings: picks the store backend,
builds the unit-of-work factory and hands both to the service.
"""

from typing import Optional
import logging

from ..application.parking_service import ParkingService
from ..config import EngineSettings
from ..domain.models import Clock
from ..domain.strategies import PricingStrategy
from .repositories import InMemoryStore, RepositoryFactory, UnitOfWorkFactory


class ServiceFactory:
    """Factory for creating application services"""

    _logger = logging.getLogger("ServiceFactory")

    @classmethod
    def create_uow_factory(
        cls,
        settings: EngineSettings,
        store: Optional[InMemoryStore] = None
    ) -> UnitOfWorkFactory:
        if settings.store_backend == "sqlalchemy":
            cls._logger.info(f"Using SQLAlchemy store at {settings.database_url}")
            return RepositoryFactory.create_sqlalchemy_uow_factory(
                settings.database_url,
                settings.store_timeout_seconds
            )

        cls._logger.info("Using in-memory store")
        return RepositoryFactory.create_in_memory_uow_factory(
            store,
            settings.store_timeout_seconds
        )

    @classmethod
    def create_parking_service(
        cls,
        settings: Optional[EngineSettings] = None,
        clock: Optional[Clock] = None,
        pricing_strategy: Optional[PricingStrategy] = None,
        store: Optional[InMemoryStore] = None
    ) -> ParkingService:
        """
        Build a fully wired ParkingService

        Args:
            settings: defaults to EngineSettings.from_env()
            clock: time source, the system clock if omitted
            pricing_strategy: billing rule, hourly if omitted
            store: shared in-memory store (memory backend only)
        """
        settings = settings or EngineSettings.from_env()
        uow_factory = cls.create_uow_factory(settings, store)
        return ParkingService(
            uow_factory,
            settings=settings,
            clock=clock,
            pricing_strategy=pricing_strategy
        )

#!/usr/bin/env python3
"""
Unit Tests for settings, logging setup and service wiring
"""

import logging
import os
import tempfile
import unittest
from decimal import Decimal
from unittest.mock import patch

from pydantic import ValidationError as PydanticValidationError

from parkledger.application.parking_service import ParkingService
from parkledger.config import EngineSettings, setup_logging
from parkledger.infrastructure.factories import ServiceFactory
from parkledger.infrastructure.repositories import InMemoryUnitOfWork, SQLAlchemyUnitOfWork


class TestEngineSettings(unittest.TestCase):

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = EngineSettings.from_env()

        self.assertEqual(settings.store_backend, "memory")
        self.assertEqual(settings.default_currency, "USD")
        self.assertEqual(settings.store_timeout_seconds, 5.0)
        self.assertFalse(settings.bill_at_entry_rate)
        self.assertEqual(settings.default_hourly_rate, Decimal("0.00"))
        self.assertIsNone(settings.log_dir)

    def test_from_env(self):
        env = {
            "PARKING_STORE_BACKEND": "sqlalchemy",
            "DATABASE_URL": "sqlite://",
            "PARKING_STORE_TIMEOUT": "2.5",
            "PARKING_DEFAULT_CURRENCY": "eur",
            "PARKING_BILL_AT_ENTRY_RATE": "yes",
            "PARKING_DEFAULT_HOURLY_RATE": "4.50",
            "PARKING_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = EngineSettings.from_env()

        self.assertEqual(settings.store_backend, "sqlalchemy")
        self.assertEqual(settings.database_url, "sqlite://")
        self.assertEqual(settings.store_timeout_seconds, 2.5)
        self.assertEqual(settings.default_currency, "EUR")
        self.assertTrue(settings.bill_at_entry_rate)
        self.assertEqual(settings.default_hourly_rate, Decimal("4.50"))
        self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_settings_rejected(self):
        with self.assertRaises(PydanticValidationError):
            EngineSettings(store_backend="redis")
        with self.assertRaises(PydanticValidationError):
            EngineSettings(store_timeout_seconds=0)
        with self.assertRaises(PydanticValidationError):
            EngineSettings(log_level="LOUD")
        with self.assertRaises(PydanticValidationError):
            EngineSettings(default_hourly_rate="-1")


class TestSetupLogging(unittest.TestCase):

    def test_file_handler_when_log_dir_set(self):
        with tempfile.TemporaryDirectory() as log_dir:
            with patch("parkledger.config.logging.basicConfig") as basic_config:
                logger = setup_logging(EngineSettings(log_dir=log_dir, log_level="WARNING"))

            kwargs = basic_config.call_args.kwargs
            self.assertEqual(kwargs["level"], logging.WARNING)
            self.assertEqual(len(kwargs["handlers"]), 2)
            self.assertIsInstance(kwargs["handlers"][1], logging.FileHandler)
            kwargs["handlers"][1].close()
            self.assertEqual(logger.name, "parkledger")


class TestServiceFactory(unittest.TestCase):

    def test_memory_backend(self):
        service = ServiceFactory.create_parking_service(EngineSettings())

        self.assertIsInstance(service, ParkingService)
        self.assertIsInstance(service.zones._uow_factory(), InMemoryUnitOfWork)

    def test_default_rate_reaches_ledger(self):
        service = ServiceFactory.create_parking_service(
            EngineSettings(default_hourly_rate="2.25", default_currency="gbp")
        )

        self.assertEqual(service.ledger.default_rate.amount, Decimal("2.25"))
        self.assertEqual(service.ledger.default_rate.currency, "GBP")

    def test_sqlalchemy_backend(self):
        settings = EngineSettings(store_backend="sqlalchemy", database_url="sqlite://")
        service = ServiceFactory.create_parking_service(settings)

        self.assertIsInstance(service.zones._uow_factory(), SQLAlchemyUnitOfWork)
        zone_id = service.create_zone("A", "1.00")
        self.assertEqual(service.get_zone(zone_id).name, "A")


if __name__ == '__main__':
    unittest.main()

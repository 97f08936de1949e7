"""
Shared fixtures for unit and integration tests
"""

from datetime import datetime, timedelta
import threading
import unittest

from parkledger.config import EngineSettings
from parkledger.domain.models import Clock
from parkledger.infrastructure.factories import ServiceFactory
from parkledger.infrastructure.repositories import InMemoryStore

T0 = datetime(2024, 3, 15, 9, 0, 0)


class ManualClock(Clock):
    """
    Clock that only moves when told to

    With tick_seconds set, every read also moves it forward, so two reads
    never return the same instant.
    """

    def __init__(self, start: datetime = T0, tick_seconds: int = 0):
        self._now = start
        self.tick_seconds = tick_seconds
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            current = self._now
            self._now += timedelta(seconds=self.tick_seconds)
            return current

    def advance(self, **delta) -> datetime:
        with self._lock:
            self._now += timedelta(**delta)
            return self._now

    def set(self, moment: datetime) -> None:
        with self._lock:
            self._now = moment


class EngineTestBase(unittest.TestCase):
    """Base class wiring a ParkingService over a fresh in-memory store"""

    bill_at_entry_rate = False
    default_hourly_rate = "0.00"

    def setUp(self):
        self.clock = ManualClock()
        self.store = InMemoryStore(timeout_seconds=1.0)
        self.settings = EngineSettings(
            store_backend="memory",
            store_timeout_seconds=1.0,
            bill_at_entry_rate=self.bill_at_entry_rate,
            default_hourly_rate=self.default_hourly_rate
        )
        self.service = ServiceFactory.create_parking_service(
            self.settings, clock=self.clock, store=self.store
        )

    def make_zone(self, name="Zone A", rate="5.00", currency="USD"):
        return self.service.create_zone(name, rate, currency)

    def make_spot(self, zone_id, number="101", level="1", section="A"):
        return self.service.create_spot(number, level, section, zone_id)

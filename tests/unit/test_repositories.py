#!/usr/bin/env python3
"""
Unit Tests for the in-memory repositories and unit of work
"""

import threading
import unittest
from datetime import timedelta

from parkledger.domain.exceptions import DuplicateSpot, StoreUnavailable
from parkledger.domain.models import Money, ParkingRecord, RecordStatus, Spot, TimeRange, Zone
from parkledger.infrastructure.repositories import InMemoryStore, InMemoryUnitOfWork

from tests.support import T0


class InMemoryTestBase(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryStore(timeout_seconds=0.2)
        self.zone = Zone("A", "2.00")
        with self.uow() as uow:
            uow.zones.add(self.zone)

    def uow(self):
        return InMemoryUnitOfWork(self.store)


class TestInMemoryUnitOfWork(InMemoryTestBase):

    def test_commit_on_clean_exit(self):
        spot = Spot("1", "1", "A", self.zone.id)
        with self.uow() as uow:
            uow.spots.add(spot)
            self.assertNotIn(spot.id, self.store.spots)

        self.assertIn(spot.id, self.store.spots)

    def test_rollback_on_exception(self):
        spot = Spot("1", "1", "A", self.zone.id)

        with self.assertRaises(RuntimeError):
            with self.uow() as uow:
                uow.spots.add(spot)
                uow.zones.delete(self.zone.id)
                raise RuntimeError("boom")

        self.assertNotIn(spot.id, self.store.spots)
        self.assertIn(self.zone.id, self.store.zones)

    def test_staged_writes_visible_inside_unit(self):
        with self.uow() as uow:
            uow.zones.delete(self.zone.id)
            self.assertIsNone(uow.zones.get(self.zone.id))
            self.assertEqual(uow.zones.count(), 0)
            self.assertFalse(uow.zones.delete(self.zone.id))

    def test_returned_entities_are_copies(self):
        with self.uow() as uow:
            zone = uow.zones.get(self.zone.id)
            zone.name = "Changed"

        with self.uow() as uow:
            self.assertEqual(uow.zones.get(self.zone.id).name, "A")

    def test_lock_timeout_raises_store_unavailable(self):
        held = threading.Event()
        release = threading.Event()

        def holder():
            with self.uow():
                held.set()
                release.wait(5)

        thread = threading.Thread(target=holder)
        thread.start()
        try:
            held.wait(5)
            with self.assertRaises(StoreUnavailable):
                with self.uow():
                    pass
        finally:
            release.set()
            thread.join(5)


class TestInMemorySpotRepository(InMemoryTestBase):

    def test_duplicate_natural_key_rejected(self):
        with self.uow() as uow:
            uow.spots.add(Spot("1", "1", "A", self.zone.id))

        with self.assertRaises(DuplicateSpot):
            with self.uow() as uow:
                uow.spots.add(Spot("1", "1", "A", self.zone.id))

    def test_set_occupied_compare_and_set(self):
        spot = Spot("1", "1", "A", self.zone.id)
        with self.uow() as uow:
            uow.spots.add(spot)

        with self.uow() as uow:
            self.assertTrue(uow.spots.set_occupied(spot.id, True))
            self.assertFalse(uow.spots.set_occupied(spot.id, True))
            self.assertFalse(uow.spots.set_occupied("missing", True))

        self.assertTrue(self.store.spots[spot.id].occupied)

    def test_delete_if_vacant(self):
        spot = Spot("1", "1", "A", self.zone.id)
        with self.uow() as uow:
            uow.spots.add(spot)
            uow.spots.set_occupied(spot.id, True)

        with self.uow() as uow:
            self.assertFalse(uow.spots.delete_if_vacant(spot.id))
            uow.spots.set_occupied(spot.id, False)
            self.assertTrue(uow.spots.delete_if_vacant(spot.id))

        self.assertNotIn(spot.id, self.store.spots)


class TestInMemoryRecordRepository(InMemoryTestBase):

    def setUp(self):
        super().setUp()
        self.parked = ParkingRecord("AAA111", "s1", self.zone.id, T0)
        self.exited = ParkingRecord("BBB222", "s2", self.zone.id, T0 + timedelta(hours=1))
        self.exited.complete(T0 + timedelta(hours=2), 60, Money("2.00"))
        with self.uow() as uow:
            uow.records.add(self.parked)
            uow.records.add(self.exited)

    def test_queries(self):
        with self.uow() as uow:
            self.assertEqual(uow.records.find_by_status(RecordStatus.PARKED), [self.parked])
            self.assertEqual(uow.records.find_by_license_plate("BBB222"), [self.exited])
            self.assertEqual(uow.records.find_active_by_spot("s1"), [self.parked])
            self.assertEqual(uow.records.find_active_by_spot("s2"), [])

            window = TimeRange(T0 + timedelta(minutes=30), T0 + timedelta(hours=3))
            self.assertEqual(uow.records.find_by_entry_time(window), [self.exited])
            self.assertEqual(uow.records.find_exited_between(window), [self.exited])

    def test_complete_only_while_parked(self):
        with self.uow() as uow:
            record = uow.records.get(self.parked.id)
            record.complete(T0 + timedelta(minutes=5), 5, Money("2.00"))
            self.assertTrue(uow.records.complete(record))
            self.assertFalse(uow.records.complete(record))

        self.assertEqual(self.store.records[self.parked.id].status, RecordStatus.EXITED)


if __name__ == '__main__':
    unittest.main()

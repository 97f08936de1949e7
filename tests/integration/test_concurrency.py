#!/usr/bin/env python3
"""
Integration Tests: several attendants operating on one facility at once
"""

import random
import threading
import unittest
from collections import Counter

from parkledger.domain.exceptions import RecordAlreadyExited, SpotAlreadyOccupied
from parkledger.domain.models import RecordStatus

from tests.support import T0, EngineTestBase


class TestConcurrentAttendants(EngineTestBase):

    WORKERS = 6
    OPERATIONS = 40

    def setUp(self):
        super().setUp()
        self.clock.tick_seconds = 1
        self.zone_id = self.make_zone("Busy", "3.00")
        results = self.service.create_spots_bulk([str(n) for n in range(1, 6)], "1", "A", self.zone_id)
        self.spot_ids = [r.spot_id for r in results]

    def attendant(self, seed, errors):
        rng = random.Random(seed)
        for i in range(self.OPERATIONS):
            self.clock.advance(seconds=rng.randint(1, 600))
            try:
                if rng.random() < 0.6:
                    self.service.park_vehicle(f"W{seed}-{i}", rng.choice(self.spot_ids))
                else:
                    active = self.service.list_active()
                    if active:
                        self.service.ledger.record_exit(rng.choice(active).id)
            except (SpotAlreadyOccupied, RecordAlreadyExited):
                pass
            except Exception as e:
                errors.append(e)

    def test_occupancy_matches_parked_records(self):
        errors = []
        threads = [
            threading.Thread(target=self.attendant, args=(seed, errors))
            for seed in range(self.WORKERS)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        self.assertEqual(errors, [])

        parked_per_spot = Counter(r.spot_id for r in self.service.list_active())
        for spot in self.service.list_spots():
            with self.subTest(spot=spot.spot_number):
                self.assertLessEqual(parked_per_spot[spot.id], 1)
                self.assertEqual(spot.occupied, parked_per_spot[spot.id] == 1)

        report = self.service.occupancy_report()
        self.assertEqual(report.occupied, len(parked_per_spot))

    def test_every_exited_record_carries_fee(self):
        errors = []
        threads = [
            threading.Thread(target=self.attendant, args=(seed, errors))
            for seed in range(self.WORKERS)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        self.assertEqual(errors, [])
        history = self.service.list_history(T0.date(), self.clock.now(), status=RecordStatus.EXITED)
        self.assertTrue(history)
        for record in history:
            self.assertIsNotNone(record.fee)
            self.assertGreater(record.fee, 0)
            self.assertGreaterEqual(record.duration_minutes, 1)


if __name__ == '__main__':
    unittest.main()

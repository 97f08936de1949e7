#!/usr/bin/env python3
"""
Unit Tests for domain value objects and entities
"""

import unittest
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from parkledger.domain.exceptions import (
    DuplicateSpot, InvalidInterval, RecordAlreadyExited, SpotNotFound, ValidationError
)
from parkledger.domain.models import (
    LicensePlate, Money, ParkingRecord, RecordStatus, Spot, TimeRange, Zone
)

from tests.support import T0


# ============================================================================
# VALUE OBJECTS
# ============================================================================

class TestLicensePlate(unittest.TestCase):

    def test_plate_is_trimmed_and_upper_cased(self):
        self.assertEqual(LicensePlate("  abc 123 ").value, "ABC 123")

    def test_blank_plate_rejected(self):
        for raw in ("", "   ", None):
            with self.subTest(raw=raw):
                with self.assertRaises(ValidationError):
                    LicensePlate(raw)


class TestMoney(unittest.TestCase):

    def test_addition_same_currency(self):
        total = Money(Decimal("1.50"), "usd") + Money(Decimal("2.25"), "USD")
        self.assertEqual(total, Money(Decimal("3.75"), "USD"))

    def test_addition_mixed_currency_rejected(self):
        with self.assertRaises(ValidationError):
            Money(Decimal("1"), "USD") + Money(Decimal("1"), "EUR")

    def test_negative_amount_rejected(self):
        with self.assertRaises(ValidationError):
            Money(Decimal("-0.01"))

    def test_bad_currency_rejected(self):
        with self.assertRaises(ValidationError):
            Money(Decimal("1"), "DOLLARS")

    def test_format(self):
        self.assertEqual(Money("7.5", "GBP").format(), "7.50 GBP")


class TestTimeRange(unittest.TestCase):

    def test_end_before_start_is_invalid_interval(self):
        with self.assertRaises(InvalidInterval):
            TimeRange(T0, T0 - timedelta(minutes=1))

    def test_for_days_covers_whole_days_inclusive(self):
        time_range = TimeRange.for_days(date(2024, 3, 1), date(2024, 3, 2))

        self.assertEqual(time_range.start_time, datetime(2024, 3, 1, 0, 0))
        self.assertEqual(time_range.end_time, datetime.combine(date(2024, 3, 2), time.max))
        self.assertTrue(time_range.contains(datetime(2024, 3, 2, 23, 59, 59)))
        self.assertFalse(time_range.contains(datetime(2024, 3, 3, 0, 0)))
        self.assertFalse(time_range.contains(None))

    def test_for_days_rejects_reversed_dates(self):
        with self.assertRaises(ValidationError):
            TimeRange.for_days(date(2024, 3, 2), date(2024, 3, 1))


# ============================================================================
# ENTITIES
# ============================================================================

class TestZone(unittest.TestCase):

    def test_create_normalizes_fields(self):
        zone = Zone(" Garage ", "2.5", "eur", description="  ")

        self.assertEqual(zone.name, "Garage")
        self.assertEqual(zone.hourly_rate, Decimal("2.5"))
        self.assertEqual(zone.currency, "EUR")
        self.assertIsNone(zone.description)

    def test_non_positive_rate_rejected(self):
        for rate in ("0", "-1", 0):
            with self.subTest(rate=rate):
                with self.assertRaises(ValidationError):
                    Zone("A", rate)

    def test_blank_name_rejected(self):
        with self.assertRaises(ValidationError):
            Zone("  ", "1")

    def test_failed_update_leaves_zone_unchanged(self):
        zone = Zone("A", "3")

        with self.assertRaises(ValidationError):
            zone.update(name="B", hourly_rate="-2")

        self.assertEqual(zone.name, "A")
        self.assertEqual(zone.hourly_rate, Decimal("3"))

    def test_update_rejects_unknown_fields(self):
        with self.assertRaises(ValidationError):
            Zone("A", "3").update(colour="red")


class TestSpot(unittest.TestCase):

    def test_location_code(self):
        spot = Spot(" 12 ", " 2 ", "B", "zone-1")
        self.assertEqual(spot.spot_number, "12")
        self.assertEqual(spot.location_code, "L2-B-12")
        self.assertEqual(spot.natural_key, ("12", "2", "B", "zone-1"))

    def test_blank_number_rejected(self):
        with self.assertRaises(ValidationError):
            Spot("  ", "1", "A", "zone-1")


class TestParkingRecord(unittest.TestCase):

    def make_record(self):
        return ParkingRecord("abc123", "spot-1", "zone-1", T0, entry_hourly_rate="4", entry_currency="USD")

    def test_new_record_is_parked_without_exit_data(self):
        record = self.make_record()

        self.assertEqual(record.status, RecordStatus.PARKED)
        self.assertEqual(record.license_plate, "ABC123")
        self.assertIsNone(record.exit_time)
        self.assertIsNone(record.fee)
        self.assertEqual(record.last_known_rate, Money(Decimal("4"), "USD"))

    def test_complete_sets_exit_fields_together(self):
        record = self.make_record()
        record.complete(T0 + timedelta(minutes=30), 30, Money(Decimal("4"), "USD"))

        self.assertEqual(record.status, RecordStatus.EXITED)
        self.assertEqual(record.duration_minutes, 30)
        self.assertEqual(record.fee, Decimal("4"))
        self.assertEqual(record.currency, "USD")

    def test_complete_twice_rejected(self):
        record = self.make_record()
        record.complete(T0 + timedelta(minutes=30), 30, Money(Decimal("4")))

        with self.assertRaises(RecordAlreadyExited):
            record.complete(T0 + timedelta(minutes=40), 40, Money(Decimal("4")))

    def test_complete_before_entry_is_invalid_interval(self):
        with self.assertRaises(InvalidInterval):
            self.make_record().complete(T0, 0, Money(Decimal("4")))

    def test_parked_record_cannot_carry_fee(self):
        with self.assertRaises(ValidationError):
            ParkingRecord("X1", "s", "z", T0, fee="1.00")

    def test_exited_record_requires_exit_data(self):
        with self.assertRaises(ValidationError):
            ParkingRecord("X1", "s", "z", T0, status="exited")


class TestErrors(unittest.TestCase):

    def test_not_found_message(self):
        self.assertEqual(str(SpotNotFound("s-1")), "Spot s-1 not found")

    def test_duplicate_spot_lists_offenders(self):
        error = DuplicateSpot(["101", "102"])
        self.assertEqual(error.offenders, ["101", "102"])
        self.assertIn("101, 102", str(error))


if __name__ == '__main__':
    unittest.main()

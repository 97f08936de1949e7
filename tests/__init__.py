"""Tests for the parking occupancy and billing engine."""

"""Infrastructure layer: record store backends and service wiring."""

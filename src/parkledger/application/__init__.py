"""Application layer: registries, ledger, reporting and DTOs."""

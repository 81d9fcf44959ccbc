"""Importer adapters for donor ingest sources."""

from __future__ import annotations

from .csv_donors import (
    CSVAdapterError,
    CSVHeaderError,
    DonorCSVAdapter,
    DonorCSVRow,
    DonorCSVStatistics,
    HeaderValidationResult,
)

__all__ = [
    "CSVAdapterError",
    "CSVHeaderError",
    "DonorCSVAdapter",
    "DonorCSVRow",
    "DonorCSVStatistics",
    "HeaderValidationResult",
]

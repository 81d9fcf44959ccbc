"""CSV adapter for the admin donor upload.

Validates the header row against the donor contract and streams rows keyed by
canonical field names. Row-level validation is left to the normalizer.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from typing import IO, Iterator, Sequence

from bloodlagbe.importer.contracts import get_donor_upload_headers, missing_headers, resolve_headers


class CSVAdapterError(Exception):
    """Base exception for CSV adapter failures."""


class CSVHeaderError(CSVAdapterError):
    """Raised when the CSV header row does not carry every expected column."""

    def __init__(self, *, missing: Sequence[str] | None = None, duplicates: Sequence[str] | None = None) -> None:
        details: list[str] = []
        if missing:
            details.append(f"Missing required columns: {', '.join(missing)}.")
            details.append(f"Expected columns: {', '.join(get_donor_upload_headers())}.")
        if duplicates:
            details.append(f"Columns given more than once: {', '.join(sorted(duplicates))}.")
        message = "CSV header validation failed. " + " ".join(details) if details else "CSV header validation failed."
        super().__init__(message)
        self.missing = tuple(missing or ())
        self.duplicates = tuple(duplicates or ())


@dataclass(frozen=True)
class HeaderValidationResult:
    raw_headers: tuple[str, ...]
    canonical_headers: tuple[str | None, ...]
    ignored: tuple[str, ...] = ()


@dataclass(frozen=True)
class DonorCSVRow:
    """One data row; ``source_line`` is the physical line number (header is line 1)."""

    sequence_number: int
    source_line: int
    raw: dict[str, object | None]


@dataclass
class DonorCSVStatistics:
    rows_processed: int = 0
    rows_skipped_blank: int = 0


def _sanitize_header(header: str | None) -> str:
    token = (header or "").strip()
    return token.lstrip("\ufeff")


def _validate_headers(raw_headers: Sequence[str]) -> HeaderValidationResult:
    sanitized = tuple(_sanitize_header(header) for header in raw_headers)
    canonical_headers = resolve_headers(sanitized)
    seen: set[str] = set()
    duplicates: list[str] = []
    ignored: list[str] = []

    for header, canonical in zip(sanitized, canonical_headers):
        if canonical is None:
            ignored.append(header)
        elif canonical in seen:
            duplicates.append(canonical)
        else:
            seen.add(canonical)

    missing = missing_headers(sanitized)
    if missing or duplicates:
        raise CSVHeaderError(missing=missing, duplicates=duplicates)

    return HeaderValidationResult(
        raw_headers=sanitized,
        canonical_headers=canonical_headers,
        ignored=tuple(ignored),
    )


def _row_is_blank(row: dict[str, object | None]) -> bool:
    return all((value is None or (isinstance(value, str) and value.strip() == "")) for value in row.values())


class DonorCSVAdapter:
    """CSV reader that enforces the donor upload header set."""

    def __init__(self, file_obj: IO[str], *, skip_blank_rows: bool = True) -> None:
        self._file_obj = file_obj
        self.skip_blank_rows = skip_blank_rows
        self._header_result: HeaderValidationResult | None = None
        self.statistics = DonorCSVStatistics()

    @property
    def header(self) -> HeaderValidationResult | None:
        return self._header_result

    def _prepare_reader(self) -> Iterator[list[str]]:
        reader = csv.reader(self._file_obj)
        try:
            raw_headers = next(reader)
        except StopIteration:
            raise CSVHeaderError(missing=get_donor_upload_headers()) from None
        except csv.Error as exc:
            raise CSVAdapterError(f"Unable to parse CSV header: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise CSVAdapterError("CSV file must be UTF-8 encoded.") from exc
        self._header_result = _validate_headers(raw_headers)
        return reader

    def iter_rows(self) -> Iterator[DonorCSVRow]:
        reader = self._prepare_reader()
        canonical_headers = self._header_result.canonical_headers
        sequence_number = 0
        try:
            for values in reader:
                row: dict[str, object | None] = {}
                for canonical, value in zip(canonical_headers, values):
                    if canonical is not None:
                        row[canonical] = value
                if not values or (self.skip_blank_rows and _row_is_blank(row)):
                    self.statistics.rows_skipped_blank += 1
                    continue
                sequence_number += 1
                self.statistics.rows_processed += 1
                yield DonorCSVRow(sequence_number=sequence_number, source_line=reader.line_num, raw=row)
        except csv.Error as exc:
            raise CSVAdapterError(f"Unable to parse CSV near line {reader.line_num}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise CSVAdapterError("CSV file must be UTF-8 encoded.") from exc

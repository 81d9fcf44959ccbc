"""Canonical ingest contract helpers for importer adapters."""

from __future__ import annotations

from .donor import (
    AFFILIATION_FIELDS,
    CORE_REQUIRED_FIELDS,
    DONOR_CANONICAL_FIELDS,
    FieldSpec,
    canonicalize_row,
    get_donor_alias_map,
    get_donor_upload_headers,
    missing_headers,
    normalize_header,
    resolve_headers,
    strip_client_fields,
)

__all__ = [
    "FieldSpec",
    "DONOR_CANONICAL_FIELDS",
    "CORE_REQUIRED_FIELDS",
    "AFFILIATION_FIELDS",
    "get_donor_upload_headers",
    "get_donor_alias_map",
    "canonicalize_row",
    "missing_headers",
    "normalize_header",
    "resolve_headers",
    "strip_client_fields",
]

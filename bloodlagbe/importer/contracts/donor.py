"""Canonical donor ingest contract definitions.

Both ingest paths (reviewed user submissions and the admin CSV upload) accept
loosely keyed rows. The contract maps every accepted spelling of a column onto
one canonical field name so the normalizer only ever sees canonical keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Sequence, Tuple

Normalizer = Callable[[object | None], object | None]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def _strip_string(value: object | None) -> object | None:
    if isinstance(value, str):
        return value.strip()
    return value


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing a canonical donor field."""

    name: str
    description: str
    required: bool = False
    aliases: Tuple[str, ...] = ()
    upload_header: str | None = None
    normalizer: Normalizer | None = _strip_string

    def headers(self) -> Tuple[str, ...]:
        """Return the canonical header plus aliases for validation."""

        return (self.name, *self.aliases)


DONOR_CANONICAL_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        name="name",
        description="Donor full name.",
        required=True,
        aliases=("full_name", "donor_name"),
        upload_header="name",
    ),
    FieldSpec(
        name="blood_group",
        description="Blood group, e.g. A+, o_negative, AB POSITIVE.",
        required=True,
        aliases=("bloodgroup", "blood_type", "group_type"),
        upload_header="bloodGroup",
    ),
    FieldSpec(
        name="contact_number",
        description="Phone number; the natural dedup key for donors.",
        required=True,
        aliases=("contact", "phone", "phone_number", "mobile", "mobile_number"),
        upload_header="contactNumber",
    ),
    FieldSpec(
        name="email",
        description="Optional email address.",
        aliases=("email_address",),
        upload_header="email",
    ),
    FieldSpec(
        name="district",
        description="Administrative district.",
        required=True,
        upload_header="district",
    ),
    FieldSpec(
        name="city",
        description="City or town.",
        required=True,
        aliases=("town",),
        upload_header="city",
    ),
    FieldSpec(
        name="campus",
        description="Campus name; resolved to a Campus entity on import.",
        aliases=("campus_name", "institution"),
        upload_header="campus",
    ),
    FieldSpec(
        name="group",
        description="Group name; resolved to a Group entity on import.",
        aliases=("group_name", "organization"),
        upload_header="group",
    ),
    FieldSpec(
        name="is_available",
        description="Availability flag (true/yes/1 or false/no/0).",
        aliases=("available", "availability"),
        upload_header="isAvailable",
        normalizer=None,
    ),
    FieldSpec(
        name="tagline",
        description="Optional short tagline shown in the directory.",
        aliases=("bio", "motto"),
        upload_header="tagline",
    ),
)

# Fields that must be non-empty for a row to be importable at all.
CORE_REQUIRED_FIELDS: Tuple[str, ...] = tuple(field.name for field in DONOR_CANONICAL_FIELDS if field.required)
AFFILIATION_FIELDS: Tuple[str, ...] = ("campus", "group")


def normalize_header(header: str) -> str:
    """Normalize a header for comparison (camelCase/case/space/dash agnostic)."""

    token = _CAMEL_BOUNDARY.sub(r"_\1", header.strip()).lower()
    for char in (" ", "-", "."):
        token = token.replace(char, "_")
    return token


def get_donor_upload_headers() -> Tuple[str, ...]:
    """Headers the direct CSV upload expects, in their documented spelling."""

    return tuple(field.upload_header or field.name for field in DONOR_CANONICAL_FIELDS)


def get_donor_alias_map() -> Mapping[str, str]:
    """Map normalized header tokens to canonical names (includes aliases)."""

    mapping: dict[str, str] = {}
    for field in DONOR_CANONICAL_FIELDS:
        for header in (*field.headers(), field.upload_header or field.name):
            mapping[normalize_header(header)] = field.name
    return mapping


def resolve_headers(headers: Sequence[str]) -> Tuple[str | None, ...]:
    """Resolve raw headers to canonical names; unknown headers resolve to None."""

    alias_map = get_donor_alias_map()
    return tuple(alias_map.get(normalize_header(header)) for header in headers)


def canonicalize_row(row: Mapping[str, object]) -> dict[str, object | None]:
    """Rekey a raw row onto canonical field names and apply field normalizers.

    Unknown keys are dropped. When two raw keys map onto the same field, the
    first non-empty value wins.
    """

    alias_map = get_donor_alias_map()
    specs = {field.name: field for field in DONOR_CANONICAL_FIELDS}
    canonical: dict[str, object | None] = {}
    for raw_key, value in row.items():
        if not isinstance(raw_key, str):
            continue
        field_name = alias_map.get(normalize_header(raw_key))
        if field_name is None:
            continue
        normalizer = specs[field_name].normalizer
        value = normalizer(value) if normalizer else value
        if field_name in canonical and (_is_blank(value) or not _is_blank(canonical[field_name])):
            continue
        canonical[field_name] = value
    return canonical


def strip_client_fields(row: Mapping[str, object]) -> dict[str, object]:
    """Drop review-UI bookkeeping keys (those starting with ``_``)."""

    return {key: value for key, value in row.items() if not (isinstance(key, str) and key.startswith("_"))}


def missing_headers(headers: Iterable[str]) -> Tuple[str, ...]:
    """Return upload headers (documented spelling) absent from ``headers``."""

    present = {canonical for canonical in resolve_headers(tuple(headers)) if canonical}
    return tuple(
        field.upload_header or field.name for field in DONOR_CANONICAL_FIELDS if field.name not in present
    )


def _is_blank(value: object | None) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())

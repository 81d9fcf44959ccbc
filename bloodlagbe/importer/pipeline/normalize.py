"""
Row-level validation that turns loosely typed donor rows into import payloads.

Nothing in this module touches the database or raises for bad input: every
problem is reported as a ``RowRejection`` so callers can keep going.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Mapping

from bloodlagbe.importer.contracts import AFFILIATION_FIELDS, CORE_REQUIRED_FIELDS, canonicalize_row
from bloodlagbe.models.directory import BloodGroup

_TRAILING_SIGN = re.compile(r"\s*([+-])$")
_SEPARATORS = re.compile(r"[\s\-]+")

TRUTHY_VALUES = frozenset({"true", "yes", "1"})
FALSY_VALUES = frozenset({"false", "no", "0"})


class DiagnosticCode(str, enum.Enum):
    MISSING_FIELDS = "MISSING_FIELDS"
    INVALID_BLOOD_GROUP = "INVALID_BLOOD_GROUP"
    DUPLICATE_SKIPPED = "DUPLICATE_SKIPPED"
    IMPORT_ERROR = "IMPORT_ERROR"


@dataclass(frozen=True)
class ValidatedDonorRow:
    """Donor payload that passed every row-level check."""

    row_number: int
    name: str
    blood_group: BloodGroup
    contact_number: str
    district: str
    city: str
    email: str | None = None
    campus_name: str | None = None
    group_name: str | None = None
    is_available: bool = True
    tagline: str | None = None


@dataclass(frozen=True)
class RowRejection:
    """Why a row could not be turned into a ``ValidatedDonorRow``."""

    row_number: int
    code: DiagnosticCode
    message: str
    missing_fields: tuple[str, ...] = ()


def parse_blood_group(raw: object | None) -> BloodGroup | None:
    """Map free-form input such as ``O+``, ``o_negative`` or ``AB Positive`` to a ``BloodGroup``."""

    if raw is None or isinstance(raw, bool):
        return None
    token = str(raw).strip().upper()
    if not token:
        return None

    sign = _TRAILING_SIGN.search(token)
    if sign:
        suffix = "_POSITIVE" if sign.group(1) == "+" else "_NEGATIVE"
        token = token[: sign.start()].strip() + suffix
    token = _SEPARATORS.sub("_", token)

    try:
        return BloodGroup(token)
    except ValueError:
        return None


def parse_availability(raw: object | None) -> bool:
    """Interpret an availability flag. Unrecognized or empty values mean available."""

    if isinstance(raw, bool):
        return raw
    if raw is None:
        return True
    token = str(raw).strip().lower()
    if token in TRUTHY_VALUES:
        return True
    if token in FALSY_VALUES:
        return False
    return True


def clean_text(value: object | None) -> str | None:
    """Return the trimmed string form of ``value`` or None when it is blank."""

    if value is None:
        return None
    text = str(value).strip()
    return text or None


def missing_required_fields(row: Mapping[str, object | None], *, require_affiliation: bool = False) -> tuple[str, ...]:
    """List required canonical fields that are absent or blank in ``row``."""

    required = CORE_REQUIRED_FIELDS + (AFFILIATION_FIELDS if require_affiliation else ())
    return tuple(field for field in required if clean_text(row.get(field)) is None)


def describe_row(row_number: int, name: object | None) -> str:
    label = clean_text(name)
    if label:
        return f"Record {row_number} ('{label}')"
    return f"Record {row_number}"


def normalize_row(
    raw: Mapping[str, object] | object,
    *,
    row_number: int,
    require_affiliation: bool = False,
) -> ValidatedDonorRow | RowRejection:
    """Validate one raw row.

    Args:
        raw: Mapping keyed by any spelling the donor contract accepts.
        row_number: Position used in diagnostics.
        require_affiliation: Whether campus and group must be present (CSV upload path).

    Returns:
        A ``ValidatedDonorRow`` or a ``RowRejection`` describing the first failed check.
    """

    if not isinstance(raw, Mapping):
        return RowRejection(
            row_number=row_number,
            code=DiagnosticCode.MISSING_FIELDS,
            message=f"Record {row_number}: Expected an object with donor fields.",
            missing_fields=CORE_REQUIRED_FIELDS,
        )

    row = canonicalize_row(raw)
    missing = missing_required_fields(row, require_affiliation=require_affiliation)
    if missing:
        return RowRejection(
            row_number=row_number,
            code=DiagnosticCode.MISSING_FIELDS,
            message=f"Record {row_number}: Missing required fields ({', '.join(missing)}).",
            missing_fields=missing,
        )

    blood_group = parse_blood_group(row.get("blood_group"))
    if blood_group is None:
        return RowRejection(
            row_number=row_number,
            code=DiagnosticCode.INVALID_BLOOD_GROUP,
            message=f"{describe_row(row_number, row.get('name'))}: Invalid blood group '{row.get('blood_group')}'.",
        )

    return ValidatedDonorRow(
        row_number=row_number,
        name=clean_text(row["name"]),
        blood_group=blood_group,
        contact_number=clean_text(row["contact_number"]),
        district=clean_text(row["district"]),
        city=clean_text(row["city"]),
        email=clean_text(row.get("email")),
        campus_name=clean_text(row.get("campus")),
        group_name=clean_text(row.get("group")),
        is_available=parse_availability(row.get("is_available")),
        tagline=clean_text(row.get("tagline")),
    )

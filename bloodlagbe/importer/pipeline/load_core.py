"""
Create-only loader that turns raw donor rows into directory ``Donor`` records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bloodlagbe.models import Donor

from .normalize import DiagnosticCode, RowRejection, ValidatedDonorRow, describe_row, normalize_row
from .resolve import DirectoryKind, DirectoryResolver


@dataclass(frozen=True)
class RowDiagnostic:
    """One per-row problem reported back to the caller."""

    row_number: int
    code: DiagnosticCode
    message: str
    donor_id: int | None = None
    data: Mapping[str, object] | None = field(default=None, compare=False, repr=False)

    def as_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "row": self.row_number,
            "code": self.code.value,
            "message": self.message,
        }
        if self.donor_id is not None:
            payload["donorId"] = self.donor_id
        return payload


@dataclass
class ImportSummary:
    """Aggregate results from loading one batch of rows."""

    rows_processed: int = 0
    rows_imported: int = 0
    skipped_duplicates: int = 0
    campuses_created: int = 0
    groups_created: int = 0
    donor_ids: list[int] = field(default_factory=list)
    diagnostics: list[RowDiagnostic] = field(default_factory=list)

    @property
    def rows_skipped_or_failed(self) -> int:
        return self.rows_processed - self.rows_imported

    @property
    def messages(self) -> list[str]:
        return [diagnostic.message for diagnostic in self.diagnostics]

    def counts(self) -> dict[str, int]:
        return {
            "recordsProcessed": self.rows_processed,
            "recordsImported": self.rows_imported,
            "recordsSkippedOrFailed": self.rows_skipped_or_failed,
        }


def _persist_donor(session: Session, row: ValidatedDonorRow, *, campus_id: int | None, group_id: int | None) -> Donor:
    donor = Donor(
        name=row.name,
        blood_group=row.blood_group,
        contact_number=row.contact_number,
        email=row.email,
        district=row.district,
        city=row.city,
        is_available=row.is_available,
        tagline=row.tagline,
        campus_id=campus_id,
        group_id=group_id,
    )
    session.add(donor)
    session.flush()
    return donor


def _resolve(session: Session, resolver: DirectoryResolver, kind: DirectoryKind, name: str | None) -> int | None:
    # Own savepoint so a failed create cannot roll back a cached id.
    with session.begin_nested():
        return resolver.resolve(kind, name)


def import_donor_rows(
    rows: Iterable[tuple[int, object]],
    *,
    session: Session,
    resolver: DirectoryResolver,
    require_affiliation: bool = False,
    report_duplicates: bool = True,
) -> ImportSummary:
    """
    Validate and insert donor rows in order, one savepoint per row.

    Per-row validation failures, duplicates and storage faults become
    ``RowDiagnostic`` entries; none of them stop the batch. The caller owns
    the enclosing transaction and decides whether to commit.

    Args:
        rows: ``(row_number, raw_row)`` pairs in source order.
        session: Session bound to the caller's transaction.
        resolver: Per-batch campus/group resolver.
        require_affiliation: Reject rows lacking campus or group.
        report_duplicates: When False, duplicate rows are counted but not reported.
    """

    summary = ImportSummary()
    created_before = dict(resolver.created)

    for row_number, raw in rows:
        summary.rows_processed += 1
        result = normalize_row(raw, row_number=row_number, require_affiliation=require_affiliation)
        if isinstance(result, RowRejection):
            summary.diagnostics.append(
                RowDiagnostic(
                    row_number=row_number,
                    code=result.code,
                    message=result.message,
                    data=raw if isinstance(raw, Mapping) else None,
                )
            )
            continue

        label = describe_row(row_number, result.name)
        try:
            campus_id = _resolve(session, resolver, DirectoryKind.CAMPUS, result.campus_name)
            group_id = _resolve(session, resolver, DirectoryKind.GROUP, result.group_name)

            existing = Donor.find_by_contact_number(result.contact_number, session=session)
            if existing is not None:
                summary.skipped_duplicates += 1
                if report_duplicates:
                    summary.diagnostics.append(
                        RowDiagnostic(
                            row_number=row_number,
                            code=DiagnosticCode.DUPLICATE_SKIPPED,
                            message=(
                                f"{label}: Skipped. Donor with contact number "
                                f"{result.contact_number} already exists (ID: {existing.id})."
                            ),
                            donor_id=existing.id,
                            data=raw,
                        )
                    )
                continue

            with session.begin_nested():
                donor = _persist_donor(session, result, campus_id=campus_id, group_id=group_id)
        except SQLAlchemyError as exc:
            if has_app_context():
                current_app.logger.warning("Failed to import donor row %s: %s", row_number, exc)
            summary.diagnostics.append(
                RowDiagnostic(
                    row_number=row_number,
                    code=DiagnosticCode.IMPORT_ERROR,
                    message=f"{label}: Failed to import. {exc.__class__.__name__}: {_short_error(exc)}",
                    data=raw,
                )
            )
            continue

        summary.rows_imported += 1
        summary.donor_ids.append(donor.id)

    summary.campuses_created = resolver.created[DirectoryKind.CAMPUS] - created_before[DirectoryKind.CAMPUS]
    summary.groups_created = resolver.created[DirectoryKind.GROUP] - created_before[DirectoryKind.GROUP]

    if has_app_context():
        current_app.logger.info(
            "Donor import processed %s rows (imported=%s, skipped_or_failed=%s, duplicates=%s)",
            summary.rows_processed,
            summary.rows_imported,
            summary.rows_skipped_or_failed,
            summary.skipped_duplicates,
        )
    return summary


def _short_error(exc: SQLAlchemyError) -> str:
    original = getattr(exc, "orig", None)
    text = str(original if original is not None else exc)
    return text.splitlines()[0] if text else "storage error"

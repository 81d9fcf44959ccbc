"""
Admin CSV upload that writes donors straight into the directory.

Unlike submissions there is no review stage: rows that pass validation are
inserted immediately and rows whose contact number already exists (in the
directory or earlier in the same file) are skipped without an error entry.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import IO, Any

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bloodlagbe.importer.adapters import CSVAdapterError, DonorCSVAdapter
from bloodlagbe.models import db
from bloodlagbe.utils.permissions import AuthContext, require_admin

from .load_core import import_donor_rows
from .normalize import DiagnosticCode
from .resolve import DirectoryKind, DirectoryResolver


class DonorUploadError(Exception):
    """The upload transaction failed; nothing was saved."""

    status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Donor upload failed and no changes were saved. Please retry."):
        super().__init__(message)
        self.message = message


@dataclass
class UploadSummary:
    rows_processed: int = 0
    success_count: int = 0
    skipped_duplicates: int = 0
    campuses_created: int = 0
    groups_created: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def message(self) -> str:
        return (
            f"Processed {self.rows_processed} rows: {self.success_count} donors added, "
            f"{self.skipped_duplicates} duplicates skipped, {self.error_count} rows with errors."
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "skippedDuplicates": self.skipped_duplicates,
            "campusesCreated": self.campuses_created,
            "groupsCreated": self.groups_created,
            "errors": self.errors,
        }


def _as_text_stream(file_obj: Any) -> IO[str]:
    stream = getattr(file_obj, "stream", file_obj)
    if isinstance(stream, io.TextIOBase):
        return stream
    if hasattr(stream, "seek"):
        stream.seek(0)
    try:
        return io.StringIO(stream.read().decode("utf-8-sig"), newline="")
    except UnicodeDecodeError as exc:
        raise CSVAdapterError("CSV file must be UTF-8 encoded.") from exc


def upload_donors_from_csv(
    file_obj: Any,
    *,
    auth: AuthContext | None,
    session: Session | None = None,
    case_insensitive_names: bool | None = None,
) -> UploadSummary:
    """
    Parse ``file_obj`` and insert every valid, non-duplicate donor row.

    Args:
        file_obj: Binary or text stream, or a Werkzeug ``FileStorage``.
        auth: Caller identity; must be an admin.

    Returns:
        UploadSummary with per-row errors keyed by CSV line number.

    Raises:
        CSVHeaderError, CSVAdapterError: the file is structurally unusable.
        DonorUploadError: the transaction failed.
    """

    require_admin(auth)
    session = session or db.session
    if case_insensitive_names is None:
        case_insensitive_names = current_app.config.get("NAME_MATCH_CASE_INSENSITIVE", True) if has_app_context() else True

    adapter = DonorCSVAdapter(_as_text_stream(file_obj))
    rows = [(row.source_line, row.raw) for row in adapter.iter_rows()]

    resolver = DirectoryResolver(session, case_insensitive=case_insensitive_names)
    try:
        result = import_donor_rows(
            rows,
            session=session,
            resolver=resolver,
            require_affiliation=True,
            report_duplicates=False,
        )
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        if has_app_context():
            current_app.logger.error("Donor CSV upload by admin %s failed", auth.user_id, exc_info=True)
        raise DonorUploadError() from exc

    summary = UploadSummary(
        rows_processed=result.rows_processed,
        success_count=result.rows_imported,
        skipped_duplicates=result.skipped_duplicates,
        campuses_created=resolver.created[DirectoryKind.CAMPUS],
        groups_created=resolver.created[DirectoryKind.GROUP],
        errors=[
            {
                "row": diagnostic.row_number,
                "code": diagnostic.code.value,
                "message": diagnostic.message,
                "data": dict(diagnostic.data) if diagnostic.data is not None else None,
            }
            for diagnostic in result.diagnostics
            if diagnostic.code is not DiagnosticCode.DUPLICATE_SKIPPED
        ],
    )
    if has_app_context():
        current_app.logger.info(
            "Donor CSV upload by admin %s: %s",
            auth.user_id,
            summary.message,
            extra={"upload_success": summary.success_count, "upload_errors": summary.error_count},
        )
    return summary

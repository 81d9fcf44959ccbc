"""Importer pipeline helpers."""

from __future__ import annotations

from .direct_upload import DonorUploadError, UploadSummary, upload_donors_from_csv
from .load_core import ImportSummary, RowDiagnostic, import_donor_rows
from .normalize import (
    DiagnosticCode,
    RowRejection,
    ValidatedDonorRow,
    missing_required_fields,
    normalize_row,
    parse_availability,
    parse_blood_group,
)
from .resolve import DirectoryKind, DirectoryResolver
from .submission_service import (
    ApprovalResult,
    ImportTransactionError,
    InvalidDonorData,
    SubmissionAccessDenied,
    SubmissionError,
    SubmissionNotFound,
    SubmissionNotPending,
    SubmissionNotRevisable,
    SubmissionService,
)

__all__ = [
    "ApprovalResult",
    "DiagnosticCode",
    "DirectoryKind",
    "DirectoryResolver",
    "DonorUploadError",
    "ImportSummary",
    "ImportTransactionError",
    "InvalidDonorData",
    "RowDiagnostic",
    "RowRejection",
    "SubmissionAccessDenied",
    "SubmissionError",
    "SubmissionNotFound",
    "SubmissionNotPending",
    "SubmissionNotRevisable",
    "SubmissionService",
    "UploadSummary",
    "ValidatedDonorRow",
    "import_donor_rows",
    "missing_required_fields",
    "normalize_row",
    "parse_availability",
    "parse_blood_group",
    "upload_donors_from_csv",
]

"""
Lifecycle service for user-submitted donor lists.

Owners create and resubmit lists; admins review them. Approval runs the donor
loader inside a single transaction: either the submission's final state and
every successfully created donor commit together, or nothing does.

Callers pass an explicit ``AuthContext``; this module never reads the request
or the logged-in user.
"""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Mapping, Sequence

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bloodlagbe.importer.contracts import canonicalize_row, strip_client_fields
from bloodlagbe.models import SubmissionStatus, UserSubmittedList, can_transition, db
from bloodlagbe.utils.permissions import AuthContext, require_admin, require_authenticated

from .load_core import ImportSummary, RowDiagnostic, import_donor_rows
from .normalize import clean_text
from .resolve import DirectoryResolver

SUBMISSION_MINIMUM_FIELDS = ("name", "blood_group", "contact_number")
DEFAULT_ADMIN_STATUS = SubmissionStatus.PENDING_REVIEW


class SubmissionError(Exception):
    """Base class for structural failures that abort a lifecycle operation."""

    status = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SubmissionNotFound(SubmissionError):
    status = HTTPStatus.NOT_FOUND

    def __init__(self, submission_id: Any):
        super().__init__(f"Submission {submission_id} not found.")


class SubmissionNotPending(SubmissionError):
    status = HTTPStatus.CONFLICT

    def __init__(self, submission: UserSubmittedList):
        super().__init__(
            f"Submission {submission.id} is {submission.status.value}; only PENDING_REVIEW submissions can be reviewed."
        )


class SubmissionNotRevisable(SubmissionError):
    status = HTTPStatus.FORBIDDEN

    def __init__(self, submission: UserSubmittedList):
        super().__init__(
            f"Submission {submission.id} is {submission.status.value}; only REJECTED submissions can be resubmitted."
        )


class SubmissionAccessDenied(SubmissionError):
    status = HTTPStatus.FORBIDDEN

    def __init__(self, message: str = "You can only modify your own submissions."):
        super().__init__(message)


class InvalidDonorData(SubmissionError):
    status = HTTPStatus.BAD_REQUEST


class ImportTransactionError(SubmissionError):
    status = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, submission_id: Any):
        super().__init__(
            f"Approving submission {submission_id} failed and no changes were saved. Please retry."
        )


@dataclass
class ApprovalResult:
    """Outcome of approving a submission."""

    submission: UserSubmittedList
    summary: ImportSummary

    @property
    def records_processed(self) -> int:
        return self.summary.rows_processed

    @property
    def records_imported(self) -> int:
        return self.summary.rows_imported

    @property
    def records_skipped_or_failed(self) -> int:
        return self.summary.rows_skipped_or_failed

    @property
    def diagnostics(self) -> list[RowDiagnostic]:
        return self.summary.diagnostics

    @property
    def import_errors(self) -> list[str]:
        return self.summary.messages

    @property
    def message(self) -> str:
        return (
            f"List approved and processed. {self.records_imported} of {self.records_processed} "
            f"donors imported; {self.records_skipped_or_failed} skipped or failed."
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "submission": self.submission.to_dict(),
            "importErrors": self.import_errors,
            "diagnostics": [diagnostic.as_dict() for diagnostic in self.diagnostics],
            "counts": self.summary.counts(),
        }


def validate_donor_records(records: Any) -> list[dict[str, Any]]:
    """Check the top-level shape of a submitted record list.

    Only structural problems are rejected here; field-level validation happens
    at approval time so partial data can still be submitted for review.
    """

    if not isinstance(records, list) or not records:
        raise InvalidDonorData("Donor data must be a non-empty list of records.")

    validated: list[dict[str, Any]] = []
    for index, record in enumerate(records, start=1):
        if not isinstance(record, Mapping):
            raise InvalidDonorData(f"Record {index} must be an object.")
        canonical = canonicalize_row(record)
        missing = [field for field in SUBMISSION_MINIMUM_FIELDS if clean_text(canonical.get(field)) is None]
        if missing:
            raise InvalidDonorData(f"Record {index} is missing required fields ({', '.join(missing)}).")
        validated.append(dict(record))
    return validated


def _require_list_name(list_name: Any) -> str:
    name = clean_text(list_name) if isinstance(list_name, str) else None
    if not name:
        raise InvalidDonorData("List name is required.")
    return name


def _coerce_status(value: SubmissionStatus | str | None) -> SubmissionStatus:
    if isinstance(value, SubmissionStatus):
        return value
    if isinstance(value, str):
        try:
            return SubmissionStatus(value.strip().upper())
        except ValueError:
            pass
    return DEFAULT_ADMIN_STATUS


class SubmissionService:
    """Create, review and resubmit donor lists."""

    def __init__(self, session: Session | None = None, *, case_insensitive_names: bool | None = None) -> None:
        self.session = session or db.session
        if case_insensitive_names is None:
            case_insensitive_names = (
                current_app.config.get("NAME_MATCH_CASE_INSENSITIVE", True) if has_app_context() else True
            )
        self.case_insensitive_names = case_insensitive_names

    # ------------------------------------------------------------------
    # Owner operations
    # ------------------------------------------------------------------
    def create(
        self,
        auth: AuthContext | None,
        *,
        list_name: Any,
        notes: Any = None,
        donor_records: Any,
    ) -> UserSubmittedList:
        auth = require_authenticated(auth)
        name = _require_list_name(list_name)
        records = validate_donor_records(donor_records)

        submission = UserSubmittedList(
            list_name=name,
            notes=clean_text(notes),
            donor_data_json=records,
            status=SubmissionStatus.PENDING_REVIEW,
            submitted_by_user_id=auth.user_id,
        )
        self.session.add(submission)
        self.session.commit()
        self._log("Submission %s created by user %s with %s records", submission.id, auth.user_id, len(records))
        return submission

    def resubmit(
        self,
        auth: AuthContext | None,
        submission_id: int,
        *,
        list_name: Any,
        notes: Any = None,
        donor_records: Any,
    ) -> UserSubmittedList:
        """Replace a rejected submission's content and send it back for review."""

        auth = require_authenticated(auth)
        submission = self._load(submission_id)
        if submission.submitted_by_user_id != auth.user_id:
            raise SubmissionAccessDenied()
        if not can_transition(submission.status, SubmissionStatus.PENDING_REVIEW):
            raise SubmissionNotRevisable(submission)

        name = _require_list_name(list_name)
        records = validate_donor_records(donor_records)
        submission.reset_for_resubmission(list_name=name, notes=clean_text(notes), donor_data=records)
        self.session.commit()
        self._log("Submission %s resubmitted by user %s", submission.id, auth.user_id)
        return submission

    def list_for_owner(self, auth: AuthContext | None) -> list[UserSubmittedList]:
        auth = require_authenticated(auth)
        return (
            self.session.query(UserSubmittedList)
            .filter(UserSubmittedList.submitted_by_user_id == auth.user_id)
            .order_by(UserSubmittedList.submitted_at.desc(), UserSubmittedList.id.desc())
            .all()
        )

    # ------------------------------------------------------------------
    # Shared reads
    # ------------------------------------------------------------------
    def get(self, auth: AuthContext | None, submission_id: int) -> UserSubmittedList:
        """Admins may read any submission; owners only their own."""

        auth = require_authenticated(auth)
        submission = self._load(submission_id)
        if not auth.is_admin and submission.submitted_by_user_id != auth.user_id:
            raise SubmissionNotFound(submission_id)
        return submission

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------
    def list_for_admin(
        self, auth: AuthContext | None, status_filter: SubmissionStatus | str | None = None
    ) -> list[UserSubmittedList]:
        require_admin(auth)
        status = _coerce_status(status_filter)
        return (
            self.session.query(UserSubmittedList)
            .filter(UserSubmittedList.status == status)
            .order_by(UserSubmittedList.submitted_at.asc(), UserSubmittedList.id.asc())
            .all()
        )

    def approve(
        self,
        auth: AuthContext | None,
        submission_id: int,
        *,
        admin_notes: str | None = None,
        edited_records: Sequence[Mapping[str, Any]] | None = None,
    ) -> ApprovalResult:
        """
        Import every valid row and mark the submission ``APPROVED_IMPORTED``.

        Args:
            auth: Caller identity; must be an admin.
            submission_id: Submission to approve.
            admin_notes: Review notes; prior notes are kept when omitted or blank.
            edited_records: Reviewer-edited rows replacing the stored ones.

        Returns:
            ApprovalResult with per-row diagnostics. Row-level failures never
            abort the approval.

        Raises:
            SubmissionNotFound, SubmissionNotPending, InvalidDonorData: before any row is touched.
            ImportTransactionError: the transaction itself failed; nothing was saved.
        """

        auth = require_admin(auth)
        session = self.session
        try:
            submission = self._load(submission_id, for_update=True)
            if not can_transition(submission.status, SubmissionStatus.APPROVED_IMPORTED):
                raise SubmissionNotPending(submission)

            if edited_records is not None:
                records = self._clean_edited_records(edited_records)
                submission.donor_data_json = records
            else:
                records = submission.donor_data_json
                if not isinstance(records, list) or not records:
                    raise InvalidDonorData(f"Submission {submission.id} has malformed donor data.")

            resolver = DirectoryResolver(session, case_insensitive=self.case_insensitive_names)
            summary = import_donor_rows(enumerate(records, start=1), session=session, resolver=resolver)

            submission.mark_reviewed(
                SubmissionStatus.APPROVED_IMPORTED,
                admin_id=auth.user_id,
                admin_notes=clean_text(admin_notes) or submission.admin_notes,
            )
            session.commit()
        except SubmissionError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            if has_app_context():
                current_app.logger.error(
                    "Approval of submission %s failed; transaction rolled back", submission_id, exc_info=True
                )
            raise ImportTransactionError(submission_id) from exc
        except Exception:
            session.rollback()
            raise

        self._log(
            "Submission %s approved by admin %s (processed=%s, imported=%s, skipped_or_failed=%s)",
            submission.id,
            auth.user_id,
            summary.rows_processed,
            summary.rows_imported,
            summary.rows_skipped_or_failed,
        )
        return ApprovalResult(submission=submission, summary=summary)

    def reject(self, auth: AuthContext | None, submission_id: int, *, admin_notes: str | None = None) -> UserSubmittedList:
        auth = require_admin(auth)
        session = self.session
        try:
            submission = self._load(submission_id, for_update=True)
            if not can_transition(submission.status, SubmissionStatus.REJECTED):
                raise SubmissionNotPending(submission)
            submission.mark_reviewed(
                SubmissionStatus.REJECTED,
                admin_id=auth.user_id,
                admin_notes=clean_text(admin_notes) or submission.admin_notes,
            )
            session.commit()
        except SubmissionError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            raise ImportTransactionError(submission_id) from exc

        self._log("Submission %s rejected by admin %s", submission.id, auth.user_id)
        return submission

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _load(self, submission_id: Any, *, for_update: bool = False) -> UserSubmittedList:
        try:
            identifier = int(submission_id)
        except (TypeError, ValueError):
            raise SubmissionNotFound(submission_id) from None

        query = self.session.query(UserSubmittedList).filter(UserSubmittedList.id == identifier)
        if for_update:
            query = query.with_for_update()
        submission = query.one_or_none()
        if submission is None:
            raise SubmissionNotFound(identifier)
        return submission

    @staticmethod
    def _clean_edited_records(edited_records: Any) -> list[dict[str, Any]]:
        if not isinstance(edited_records, list):
            raise InvalidDonorData("Edited donor data must be a list of records.")
        if not edited_records:
            raise InvalidDonorData("Edited donor data must contain at least one record.")
        cleaned: list[dict[str, Any]] = []
        for index, record in enumerate(edited_records, start=1):
            if not isinstance(record, Mapping):
                raise InvalidDonorData(f"Record {index} must be an object.")
            cleaned.append(strip_client_fields(record))
        return cleaned

    @staticmethod
    def _log(message: str, *args: Any) -> None:
        if has_app_context():
            current_app.logger.info(message, *args)

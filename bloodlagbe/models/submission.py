"""
Staging model for user-submitted donor lists awaiting admin review.

A submission keeps the raw rows exactly as the owner supplied them. Rows only
become ``Donor`` records when an admin approves the list, at which point the
import engine validates and loads them.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Enum, Index

from .base import BaseModel, db, isoformat, utcnow


class SubmissionStatus(str, enum.Enum):
    """Lifecycle states for a submitted list."""

    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED_IMPORTED = "APPROVED_IMPORTED"
    REJECTED = "REJECTED"
    # Reserved; no transition currently leads here.
    NEEDS_REVISION = "NEEDS_REVISION"


SUBMISSION_TRANSITIONS: dict[SubmissionStatus, frozenset[SubmissionStatus]] = {
    SubmissionStatus.PENDING_REVIEW: frozenset({SubmissionStatus.APPROVED_IMPORTED, SubmissionStatus.REJECTED}),
    SubmissionStatus.REJECTED: frozenset({SubmissionStatus.PENDING_REVIEW}),
    SubmissionStatus.APPROVED_IMPORTED: frozenset(),
    SubmissionStatus.NEEDS_REVISION: frozenset(),
}


def can_transition(current: SubmissionStatus, target: SubmissionStatus) -> bool:
    """Return True when ``current -> target`` is a legal lifecycle step."""

    return target in SUBMISSION_TRANSITIONS.get(current, frozenset())


class UserSubmittedList(BaseModel):
    """One batch of candidate donor rows submitted by a user."""

    __tablename__ = "user_submitted_lists"

    id = db.Column(db.Integer, primary_key=True)
    list_name = db.Column(db.String(200), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    donor_data_json = db.Column(db.JSON, nullable=False)
    status = db.Column(
        Enum(SubmissionStatus, name="submission_status_enum"),
        default=SubmissionStatus.PENDING_REVIEW,
        nullable=False,
        index=True,
    )
    submitted_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    submitted_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    reviewed_by_admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    admin_notes = db.Column(db.Text, nullable=True)

    submitted_by_user = db.relationship("User", foreign_keys=[submitted_by_user_id])
    reviewed_by_admin = db.relationship("User", foreign_keys=[reviewed_by_admin_id])

    __table_args__ = (Index("idx_submission_status_submitted", "status", "submitted_at"),)

    def __repr__(self):
        return f"<UserSubmittedList {self.id} {self.status.value}>"

    @property
    def record_count(self) -> int:
        data = self.donor_data_json
        return len(data) if isinstance(data, list) else 0

    def mark_reviewed(
        self,
        status: SubmissionStatus,
        *,
        admin_id: int,
        admin_notes: str | None,
        reviewed_at: datetime | None = None,
    ) -> None:
        """Finalize the current review cycle. Callers enforce the transition guard."""

        self.status = status
        self.reviewed_by_admin_id = admin_id
        self.reviewed_at = reviewed_at or utcnow()
        self.admin_notes = admin_notes

    def reset_for_resubmission(self, *, list_name: str, notes: str | None, donor_data: list) -> None:
        """Start a fresh review cycle with revised content."""

        self.list_name = list_name
        self.notes = notes
        self.donor_data_json = donor_data
        self.status = SubmissionStatus.PENDING_REVIEW
        self.submitted_at = utcnow()
        self.reviewed_at = None
        self.reviewed_by_admin_id = None
        self.admin_notes = None

    def to_dict(self, *, include_data: bool = True, include_people: bool = True) -> dict:
        payload = {
            "id": self.id,
            "listName": self.list_name,
            "notes": self.notes,
            "status": self.status.value,
            "submittedAt": isoformat(self.submitted_at),
            "submittedByUserId": self.submitted_by_user_id,
            "reviewedByAdminId": self.reviewed_by_admin_id,
            "reviewedAt": isoformat(self.reviewed_at),
            "adminNotes": self.admin_notes,
            "recordCount": self.record_count,
        }
        if include_data:
            payload["donorDataJson"] = self.donor_data_json
        if include_people:
            payload["submittedByUser"] = self.submitted_by_user.to_summary() if self.submitted_by_user else None
            payload["reviewedByAdmin"] = self.reviewed_by_admin.to_summary() if self.reviewed_by_admin else None
        return payload

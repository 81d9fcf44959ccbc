# bloodlagbe/models/feedback.py

import enum

from sqlalchemy import Enum

from .base import BaseModel, db, isoformat, utcnow


class FeedbackType(str, enum.Enum):
    BUG_REPORT = "BUG_REPORT"
    FEATURE_REQUEST = "FEATURE_REQUEST"
    GENERAL_FEEDBACK = "GENERAL_FEEDBACK"
    COMPLIMENT = "COMPLIMENT"


class PlatformFeedback(BaseModel):
    """Feedback left by signed-in users or guests"""

    __tablename__ = "platform_feedback"

    id = db.Column(db.Integer, primary_key=True)
    feedback_type = db.Column(Enum(FeedbackType, name="feedback_type_enum"), nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)
    rating = db.Column(db.Integer, nullable=True)
    submitted_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    guest_name = db.Column(db.String(200), nullable=True)
    guest_email = db.Column(db.String(255), nullable=True)
    is_read_by_admin = db.Column(db.Boolean, default=False, nullable=False, index=True)
    submitted_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    submitted_by_user = db.relationship("User")

    def __repr__(self):
        return f"<PlatformFeedback {self.id} {self.feedback_type.value}>"

    def to_dict(self):
        return {
            "id": self.id,
            "feedbackType": self.feedback_type.value,
            "message": self.message,
            "rating": self.rating,
            "guestName": self.guest_name,
            "guestEmail": self.guest_email,
            "isReadByAdmin": self.is_read_by_admin,
            "submittedAt": isoformat(self.submitted_at),
            "submittedByUser": self.submitted_by_user.to_summary() if self.submitted_by_user else None,
        }

# bloodlagbe/models/__init__.py
"""
Database models package
"""

from .admin import AdminLog
from .base import BaseModel, db
from .directory import BloodGroup, Campus, Donor, Group
from .donation import Donation
from .feedback import FeedbackType, PlatformFeedback
from .submission import SUBMISSION_TRANSITIONS, SubmissionStatus, UserSubmittedList, can_transition
from .user import User, UserRole

__all__ = [
    "db",
    "BaseModel",
    "User",
    "UserRole",
    "AdminLog",
    # Directory models
    "BloodGroup",
    "Campus",
    "Group",
    "Donor",
    "Donation",
    # Submission models
    "UserSubmittedList",
    "SubmissionStatus",
    "SUBMISSION_TRANSITIONS",
    "can_transition",
    # Feedback
    "PlatformFeedback",
    "FeedbackType",
]

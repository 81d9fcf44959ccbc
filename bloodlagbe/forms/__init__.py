# bloodlagbe/forms/__init__.py
"""
WTForms package
"""

from .auth import LoginForm, RegisterForm
from .base import ApiForm
from .directory import DonorUploadForm, NamedEntityForm
from .feedback import FeedbackForm

__all__ = [
    "ApiForm",
    "LoginForm",
    "RegisterForm",
    "NamedEntityForm",
    "DonorUploadForm",
    "FeedbackForm",
]

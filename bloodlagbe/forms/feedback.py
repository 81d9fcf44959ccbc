# bloodlagbe/forms/feedback.py

from wtforms import IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, Optional

from bloodlagbe.models import FeedbackType

from .base import ApiForm


def format_enum_display(enum_value):
    """Format enum value for display (e.g., 'BUG_REPORT' -> 'Bug Report')"""
    return enum_value.replace("_", " ").title()


class FeedbackForm(ApiForm):
    feedback_type = SelectField(
        "Feedback type",
        name="feedbackType",
        choices=[(item.value, format_enum_display(item.value)) for item in FeedbackType],
        validators=[DataRequired(message="Feedback type is required.")],
    )
    message = TextAreaField(
        "Message",
        validators=[
            DataRequired(message="Message is required."),
            Length(max=5000, message="Message must be less than 5000 characters."),
        ],
    )
    rating = IntegerField(
        "Rating",
        validators=[Optional(), NumberRange(min=1, max=5, message="Rating must be between 1 and 5.")],
    )
    guest_name = StringField("Name", name="guestName", validators=[Optional(), Length(max=200)])
    guest_email = StringField("Email", name="guestEmail", validators=[Optional(), Length(max=255)])

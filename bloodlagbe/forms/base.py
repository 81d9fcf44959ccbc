# bloodlagbe/forms/base.py
"""
Base form for JSON and multipart API endpoints
"""

from flask_wtf import FlaskForm


class ApiForm(FlaskForm):
    """FlaskForm that reads JSON bodies and skips CSRF (session-cookie API)"""

    class Meta:
        csrf = False

    def error_message(self):
        """Flatten field errors into one human-readable message"""
        messages = []
        for field_name, errors in self.errors.items():
            label = self[field_name].label.text if field_name in self._fields else field_name
            for error in errors:
                messages.append(f"{label}: {error}")
        return " ".join(messages) or "Invalid request."

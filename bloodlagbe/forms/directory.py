# bloodlagbe/forms/directory.py
"""
Forms for campus/group curation and the donor CSV upload
"""

from flask_wtf.file import FileAllowed, FileField, FileRequired
from wtforms import StringField
from wtforms.validators import DataRequired, Length

from bloodlagbe.importer.utils import CSV_EXTENSIONS

from .base import ApiForm


class NamedEntityForm(ApiForm):
    """Create or rename a campus or group"""

    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Name is required."),
            Length(max=200, message="Name must be less than 200 characters."),
        ],
    )


class DonorUploadForm(ApiForm):
    donor_file = FileField(
        "Donor file",
        name="donorFile",
        validators=[
            FileRequired(message="No file uploaded."),
            FileAllowed(list(CSV_EXTENSIONS), message="Invalid file type. Please upload a CSV file."),
        ],
    )

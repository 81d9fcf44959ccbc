"""
Helpers for validating uploaded donor files.
"""

from __future__ import annotations

import os
from typing import Iterable

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

CSV_EXTENSIONS: tuple[str, ...] = ("csv",)


def allowed_file(filename: str, allowed_extensions: Iterable[str] = CSV_EXTENSIONS) -> bool:
    """
    Validate the uploaded filename extension against the allowed set.
    """

    filename = secure_filename(filename or "")
    if not filename or "." not in filename:
        return False
    extension = filename.rsplit(".", 1)[1].lower()
    return extension in {ext.lower() for ext in allowed_extensions}


def max_upload_bytes(app=None) -> int:
    app = app or current_app
    return int(app.config.get("DONOR_UPLOAD_MAX_MB", 5)) * 1024 * 1024


def upload_size(file_storage: FileStorage) -> int:
    """
    Return the size of an uploaded file in bytes, leaving the stream at the start.
    """

    stream = file_storage.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size

# bloodlagbe/routes/responses.py
"""
JSON response helpers and error translation shared by all API routes
"""

import json
from http import HTTPStatus

from flask import current_app, jsonify, request

from bloodlagbe.importer.adapters import CSVAdapterError
from bloodlagbe.importer.pipeline import DonorUploadError, SubmissionError
from bloodlagbe.models import AdminLog, db
from bloodlagbe.services import DirectoryError
from bloodlagbe.utils.permissions import AuthorizationError


def json_error(message, status, **extra):
    payload = {"message": message}
    payload.update(extra)
    return jsonify(payload), status


def request_json():
    """Return the JSON body as a dict, or None when it is missing or not an object"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def log_admin_action(auth, action, details=None, target_user_id=None):
    AdminLog.log_action(
        admin_user_id=auth.user_id,
        action=action,
        target_user_id=target_user_id,
        details=json.dumps(details) if details is not None else None,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


def register_error_handlers(app):
    """Translate typed service errors into JSON responses"""

    @app.errorhandler(SubmissionError)
    def handle_submission_error(error):
        if error.status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            current_app.logger.error(f"Submission operation failed: {error.message}")
        return json_error(error.message, error.status)

    @app.errorhandler(DirectoryError)
    def handle_directory_error(error):
        return json_error(error.message, error.status)

    @app.errorhandler(AuthorizationError)
    def handle_authorization_error(error):
        return json_error(error.message, error.status)

    @app.errorhandler(CSVAdapterError)
    def handle_csv_error(error):
        db.session.rollback()
        return json_error(str(error), HTTPStatus.BAD_REQUEST)

    @app.errorhandler(DonorUploadError)
    def handle_upload_error(error):
        return json_error(error.message, error.status)

"""
Owner-facing endpoints for submitting donor lists for admin review.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify

from bloodlagbe.importer.pipeline import SubmissionService
from bloodlagbe.utils.permissions import current_auth_context, login_required_json

from .responses import json_error, request_json

submissions_blueprint = Blueprint("submissions", __name__, url_prefix="/api/submissions")


@submissions_blueprint.post("/donor-lists")
@login_required_json
def create_submission():
    payload = request_json()
    if payload is None:
        return json_error("Request body must be a JSON object.", HTTPStatus.BAD_REQUEST)

    submission = SubmissionService().create(
        current_auth_context(),
        list_name=payload.get("listName"),
        notes=payload.get("notes"),
        donor_records=payload.get("donorDataJson"),
    )
    return (
        jsonify({"message": "Donor list submitted for review.", "submission": submission.to_dict()}),
        HTTPStatus.CREATED,
    )


@submissions_blueprint.get("/donor-lists/<int:submission_id>")
@login_required_json
def get_submission(submission_id: int):
    submission = SubmissionService().get(current_auth_context(), submission_id)
    return jsonify(submission.to_dict())


@submissions_blueprint.put("/donor-lists/<int:submission_id>")
@login_required_json
def resubmit_submission(submission_id: int):
    payload = request_json()
    if payload is None:
        return json_error("Request body must be a JSON object.", HTTPStatus.BAD_REQUEST)

    submission = SubmissionService().resubmit(
        current_auth_context(),
        submission_id,
        list_name=payload.get("listName"),
        notes=payload.get("notes"),
        donor_records=payload.get("donorDataJson"),
    )
    return jsonify({"message": "Donor list resubmitted for review.", "submission": submission.to_dict()})

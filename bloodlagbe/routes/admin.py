"""
Admin endpoints: submission review, direct CSV upload, campus/group curation
and feedback triage.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from bloodlagbe.forms import DonorUploadForm, NamedEntityForm
from bloodlagbe.importer.pipeline import DirectoryKind, SubmissionService, upload_donors_from_csv
from bloodlagbe.importer.utils import max_upload_bytes, upload_size
from bloodlagbe.models import PlatformFeedback, db
from bloodlagbe.services import DirectoryService
from bloodlagbe.utils.permissions import admin_required, current_auth_context

from .responses import json_error, log_admin_action, request_json

admin_blueprint = Blueprint("admin_api", __name__, url_prefix="/api/admin")

_ENTITY_KINDS = {"campuses": DirectoryKind.CAMPUS, "groups": DirectoryKind.GROUP}


def _entity_kind(collection: str) -> DirectoryKind | None:
    return _ENTITY_KINDS.get(collection)


# ----------------------------------------------------------------------
# Submission review
# ----------------------------------------------------------------------
@admin_blueprint.get("/submitted-lists")
@admin_required
def list_submissions():
    submissions = SubmissionService().list_for_admin(current_auth_context(), request.args.get("status"))
    return jsonify([submission.to_dict() for submission in submissions])


@admin_blueprint.get("/submitted-lists/<int:submission_id>")
@admin_required
def get_submission(submission_id: int):
    submission = SubmissionService().get(current_auth_context(), submission_id)
    return jsonify(submission.to_dict())


@admin_blueprint.put("/submitted-lists/<int:submission_id>/approve")
@admin_required
def approve_submission(submission_id: int):
    payload = request_json() or {}
    auth = current_auth_context()
    result = SubmissionService().approve(
        auth,
        submission_id,
        admin_notes=payload.get("adminNotes"),
        edited_records=payload.get("donorDataJson"),
    )
    log_admin_action(
        auth,
        "APPROVE_SUBMISSION",
        {"submission_id": submission_id, **result.summary.counts()},
        target_user_id=result.submission.submitted_by_user_id,
    )
    current_app.logger.info(
        "Submission approved",
        extra={"submission_id": submission_id, "admin_id": auth.user_id, **result.summary.counts()},
    )
    return jsonify(result.to_dict())


@admin_blueprint.put("/submitted-lists/<int:submission_id>/reject")
@admin_required
def reject_submission(submission_id: int):
    payload = request_json() or {}
    auth = current_auth_context()
    submission = SubmissionService().reject(auth, submission_id, admin_notes=payload.get("adminNotes"))
    log_admin_action(
        auth,
        "REJECT_SUBMISSION",
        {"submission_id": submission_id},
        target_user_id=submission.submitted_by_user_id,
    )
    return jsonify({"message": "Submission rejected.", "submission": submission.to_dict()})


# ----------------------------------------------------------------------
# Direct CSV upload
# ----------------------------------------------------------------------
@admin_blueprint.post("/upload-donors")
@admin_required
def upload_donors():
    form = DonorUploadForm()
    if not form.validate():
        return json_error(form.error_message(), HTTPStatus.BAD_REQUEST)

    file_storage = form.donor_file.data
    if upload_size(file_storage) > max_upload_bytes():
        return json_error("Upload exceeds maximum size limit.", HTTPStatus.REQUEST_ENTITY_TOO_LARGE)

    auth = current_auth_context()
    summary = upload_donors_from_csv(file_storage, auth=auth)
    log_admin_action(
        auth,
        "UPLOAD_DONORS_CSV",
        {
            "filename": file_storage.filename,
            "success": summary.success_count,
            "errors": summary.error_count,
            "skipped_duplicates": summary.skipped_duplicates,
        },
    )
    return jsonify(summary.to_dict())


# ----------------------------------------------------------------------
# Campus / group curation
# ----------------------------------------------------------------------
@admin_blueprint.get("/<collection>")
@admin_required
def list_entities(collection: str):
    kind = _entity_kind(collection)
    if kind is None:
        return json_error("Not found.", HTTPStatus.NOT_FOUND)
    return jsonify(DirectoryService().list_entities(current_auth_context(), kind))


@admin_blueprint.post("/<collection>")
@admin_required
def create_entity(collection: str):
    kind = _entity_kind(collection)
    if kind is None:
        return json_error("Not found.", HTTPStatus.NOT_FOUND)
    form = NamedEntityForm()
    if not form.validate():
        return json_error(form.error_message(), HTTPStatus.BAD_REQUEST)

    auth = current_auth_context()
    entity = DirectoryService().create_entity(auth, kind, form.name.data)
    log_admin_action(auth, f"CREATE_{kind.name}", {"id": entity.id, "name": entity.name})
    return jsonify(entity.to_dict()), HTTPStatus.CREATED


@admin_blueprint.put("/<collection>/<int:entity_id>")
@admin_required
def rename_entity(collection: str, entity_id: int):
    kind = _entity_kind(collection)
    if kind is None:
        return json_error("Not found.", HTTPStatus.NOT_FOUND)
    form = NamedEntityForm()
    if not form.validate():
        return json_error(form.error_message(), HTTPStatus.BAD_REQUEST)

    auth = current_auth_context()
    entity = DirectoryService().rename_entity(auth, kind, entity_id, form.name.data)
    log_admin_action(auth, f"RENAME_{kind.name}", {"id": entity.id, "name": entity.name})
    return jsonify(entity.to_dict())


@admin_blueprint.delete("/<collection>/<int:entity_id>")
@admin_required
def delete_entity(collection: str, entity_id: int):
    kind = _entity_kind(collection)
    if kind is None:
        return json_error("Not found.", HTTPStatus.NOT_FOUND)

    auth = current_auth_context()
    DirectoryService().delete_entity(auth, kind, entity_id)
    log_admin_action(auth, f"DELETE_{kind.name}", {"id": entity_id})
    return jsonify({"message": f"{kind.value.capitalize()} deleted."})


# ----------------------------------------------------------------------
# Feedback triage
# ----------------------------------------------------------------------
@admin_blueprint.get("/feedback")
@admin_required
def list_feedback():
    entries = PlatformFeedback.query.order_by(PlatformFeedback.submitted_at.desc(), PlatformFeedback.id.desc()).all()
    return jsonify([entry.to_dict() for entry in entries])


@admin_blueprint.put("/feedback/<int:feedback_id>/status")
@admin_required
def update_feedback_status(feedback_id: int):
    payload = request_json() or {}
    is_read = payload.get("isReadByAdmin")
    if not isinstance(is_read, bool):
        return json_error("isReadByAdmin must be a boolean.", HTTPStatus.BAD_REQUEST)

    feedback = db.session.get(PlatformFeedback, feedback_id)
    if feedback is None:
        return json_error("Feedback not found.", HTTPStatus.NOT_FOUND)

    success, error = feedback.safe_update(is_read_by_admin=is_read)
    if not success:
        return json_error(f"Could not update feedback: {error}", HTTPStatus.INTERNAL_SERVER_ERROR)
    return jsonify(feedback.to_dict())

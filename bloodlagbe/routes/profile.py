# bloodlagbe/routes/profile.py

from http import HTTPStatus

from flask import jsonify

from bloodlagbe.importer.pipeline import SubmissionService
from bloodlagbe.models.base import isoformat
from bloodlagbe.services import DirectoryService
from bloodlagbe.utils.permissions import current_auth_context, login_required_json

from .responses import json_error, request_json


def register_profile_routes(app):
    """Register routes acting on the logged-in user's own data"""

    @app.route("/api/user/profile/donor", methods=["GET"])
    @login_required_json
    def get_donor_profile():
        donor = DirectoryService().get_own_profile(current_auth_context())
        return jsonify(donor.to_dict())

    @app.route("/api/user/profile/donor", methods=["POST"])
    @login_required_json
    def upsert_donor_profile():
        payload = request_json()
        if payload is None:
            return json_error("Request body must be a JSON object.", HTTPStatus.BAD_REQUEST)

        donor, created = DirectoryService().upsert_donor_profile(current_auth_context(), payload)
        status = HTTPStatus.CREATED if created else HTTPStatus.OK
        return jsonify({"message": "Donor profile saved.", "donor": donor.to_dict()}), status

    @app.route("/api/user/profile/donor/availability", methods=["PUT"])
    @login_required_json
    def update_availability():
        payload = request_json() or {}
        donor = DirectoryService().set_availability(current_auth_context(), payload.get("isAvailable"))
        return jsonify({"message": "Availability updated.", "isAvailable": donor.is_available})

    @app.route("/api/user/donations", methods=["GET"])
    @login_required_json
    def list_donations():
        donations = DirectoryService().list_own_donations(current_auth_context())
        return jsonify([donation.to_dict() for donation in donations])

    @app.route("/api/user/donations", methods=["POST"])
    @login_required_json
    def record_donation():
        payload = request_json()
        if payload is None:
            return json_error("Request body must be a JSON object.", HTTPStatus.BAD_REQUEST)

        donation = DirectoryService().record_donation(current_auth_context(), payload)
        return jsonify(donation.to_dict()), HTTPStatus.CREATED

    @app.route("/api/user/my-submissions", methods=["GET"])
    @login_required_json
    def my_submissions():
        submissions = SubmissionService().list_for_owner(current_auth_context())
        return jsonify(
            [
                {
                    "id": submission.id,
                    "listName": submission.list_name,
                    "submittedAt": isoformat(submission.submitted_at),
                    "status": submission.status.value,
                    "adminNotes": submission.admin_notes,
                }
                for submission in submissions
            ]
        )

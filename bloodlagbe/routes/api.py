# bloodlagbe/routes/api.py

"""
Public JSON endpoints: donor directory, filter options and feedback
"""

from http import HTTPStatus

from flask import current_app, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from bloodlagbe.forms import FeedbackForm
from bloodlagbe.models import FeedbackType, PlatformFeedback, db
from bloodlagbe.services import DirectoryService, DonorFilters

from .responses import json_error


def register_api_routes(app):
    """Register public API routes"""

    @app.route("/api/donors", methods=["GET"])
    def api_search_donors():
        """
        Search the donor directory.
        Supports bloodGroup, campusId, groupId, city, district, availability, page and limit.
        """
        filters = DonorFilters.coerce(request.args)
        result = DirectoryService().search_donors(filters)
        current_app.logger.debug(
            f"Donor search returned {len(result.donors)} of {result.total_items} (page {filters.page})"
        )
        return jsonify(result.to_dict())

    @app.route("/api/filters/options", methods=["GET"])
    def api_filter_options():
        return jsonify(DirectoryService().filter_options())

    @app.route("/api/feedback", methods=["POST"])
    def api_submit_feedback():
        form = FeedbackForm()
        if not form.validate():
            return json_error(form.error_message(), HTTPStatus.BAD_REQUEST)

        feedback = PlatformFeedback(
            feedback_type=FeedbackType(form.feedback_type.data),
            message=form.message.data.strip(),
            rating=form.rating.data,
        )
        if current_user.is_authenticated:
            feedback.submitted_by_user_id = current_user.id
        else:
            feedback.guest_name = (form.guest_name.data or "").strip() or None
            feedback.guest_email = (form.guest_email.data or "").strip() or None

        try:
            db.session.add(feedback)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error saving feedback: {str(e)}")
            return json_error("Could not save feedback.", HTTPStatus.INTERNAL_SERVER_ERROR)

        return jsonify({"message": "Thank you for your feedback.", "feedback": feedback.to_dict()}), HTTPStatus.CREATED

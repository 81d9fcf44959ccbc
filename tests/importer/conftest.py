from __future__ import annotations

import pytest

from bloodlagbe.models import SubmissionStatus, UserSubmittedList, db


def _donor_record(**overrides):
    record = {
        "name": "Rahim Uddin",
        "bloodGroup": "O+",
        "contactNumber": "01710000001",
        "email": "rahim@example.com",
        "district": "Dhaka",
        "city": "Dhaka",
        "campus": "",
        "group": "",
        "isAvailable": "yes",
        "tagline": "",
    }
    record.update(overrides)
    return record


@pytest.fixture
def donor_record():
    """Factory for raw donor rows in the shape the review UI submits"""
    return _donor_record


@pytest.fixture
def make_submission(test_user):
    def _factory(records, *, status=SubmissionStatus.PENDING_REVIEW, owner=None, list_name="Campus drive"):
        submission = UserSubmittedList(
            list_name=list_name,
            donor_data_json=records,
            status=status,
            submitted_by_user_id=(owner or test_user).id,
        )
        db.session.add(submission)
        db.session.commit()
        return submission

    return _factory

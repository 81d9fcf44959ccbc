"""Shared fixtures for route tests"""

import pytest

from bloodlagbe.models import SubmissionStatus, UserSubmittedList, db


def _row(name, contact, **overrides):
    row = {
        "name": name,
        "bloodGroup": "O+",
        "contactNumber": contact,
        "email": "",
        "district": "Dhaka",
        "city": "Dhaka",
        "campus": "",
        "group": "",
        "isAvailable": "yes",
        "tagline": "",
    }
    row.update(overrides)
    return row


@pytest.fixture
def donor_rows():
    """Three submitted rows; the second one has no name"""
    return [
        _row("Rahim", "01710000001", campus="Dhaka University"),
        _row("", "01710000002", campus="Dhaka University"),
        _row("Karim", "01710000003", campus="Dhaka University"),
    ]


@pytest.fixture
def valid_donor_rows(donor_rows):
    """Submitted rows that each carry name, blood group and contact number"""
    return [row for row in donor_rows if row["name"]]


@pytest.fixture
def pending_submission(test_user, donor_rows):
    submission = UserSubmittedList(
        list_name="Campus drive",
        donor_data_json=donor_rows,
        status=SubmissionStatus.PENDING_REVIEW,
        submitted_by_user_id=test_user.id,
    )
    db.session.add(submission)
    db.session.commit()
    return submission

from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from bloodlagbe.importer.pipeline import (
    DiagnosticCode,
    ImportTransactionError,
    InvalidDonorData,
    SubmissionAccessDenied,
    SubmissionNotFound,
    SubmissionNotPending,
    SubmissionNotRevisable,
    SubmissionService,
)
from bloodlagbe.models import Campus, Donor, SubmissionStatus, UserRole, UserSubmittedList, db
from bloodlagbe.utils.permissions import AuthContext, AuthenticationRequired, AuthorizationError


@pytest.fixture
def service(app):
    return SubmissionService()


class TestCreate:
    def test_create_stores_pending_submission(self, service, user_auth, donor_record):
        submission = service.create(
            user_auth, list_name=" Spring drive ", notes="From the medical camp", donor_records=[donor_record()]
        )

        assert submission.id is not None
        assert submission.status is SubmissionStatus.PENDING_REVIEW
        assert submission.list_name == "Spring drive"
        assert submission.submitted_by_user_id == user_auth.user_id
        assert submission.record_count == 1

    @pytest.mark.parametrize("records", [[], None, "not a list", [["Rahim"]]])
    def test_create_rejects_malformed_record_lists(self, service, user_auth, records):
        with pytest.raises(InvalidDonorData):
            service.create(user_auth, list_name="Drive", donor_records=records)
        assert UserSubmittedList.query.count() == 0

    def test_create_rejects_record_without_contact_number(self, service, user_auth, donor_record):
        with pytest.raises(InvalidDonorData) as excinfo:
            service.create(user_auth, list_name="Drive", donor_records=[donor_record(), donor_record(contactNumber="")])
        assert "Record 2" in excinfo.value.message
        assert "contact_number" in excinfo.value.message

    def test_create_allows_partial_records(self, service, user_auth):
        submission = service.create(
            user_auth, list_name="Drive", donor_records=[{"name": "Rafi", "bloodGroup": "??", "phone": "0191"}]
        )
        assert submission.record_count == 1

    def test_create_requires_list_name(self, service, user_auth, donor_record):
        with pytest.raises(InvalidDonorData):
            service.create(user_auth, list_name="   ", donor_records=[donor_record()])

    def test_create_requires_identity(self, service, donor_record):
        with pytest.raises(AuthenticationRequired):
            service.create(None, list_name="Drive", donor_records=[donor_record()])


class TestReads:
    def test_owner_listing_is_newest_first(self, service, user_auth, make_submission, donor_record):
        older = make_submission([donor_record()], list_name="Older")
        older.submitted_at = datetime(2024, 1, 1)
        newer = make_submission([donor_record()], list_name="Newer")
        db.session.commit()

        assert [s.id for s in service.list_for_owner(user_auth)] == [newer.id, older.id]

    def test_owner_listing_excludes_other_users(self, service, user_auth, other_user, make_submission, donor_record):
        make_submission([donor_record()], owner=other_user)

        assert service.list_for_owner(user_auth) == []

    def test_get_hides_other_users_submissions(self, service, other_user, make_submission, donor_record):
        submission = make_submission([donor_record()])
        other_auth = AuthContext(user_id=other_user.id, role=UserRole.USER)

        with pytest.raises(SubmissionNotFound):
            service.get(other_auth, submission.id)

    def test_admin_can_get_any_submission(self, service, admin_auth, make_submission, donor_record):
        submission = make_submission([donor_record()])

        assert service.get(admin_auth, submission.id).id == submission.id

    def test_admin_listing_filters_by_status_oldest_first(self, service, admin_auth, make_submission, donor_record):
        first = make_submission([donor_record()], list_name="First")
        first.submitted_at = datetime(2024, 1, 1)
        second = make_submission([donor_record()], list_name="Second")
        make_submission([donor_record()], status=SubmissionStatus.REJECTED)
        db.session.commit()

        pending = service.list_for_admin(admin_auth)
        rejected = service.list_for_admin(admin_auth, "rejected")
        fallback = service.list_for_admin(admin_auth, "NOT_A_STATUS")

        assert [s.id for s in pending] == [first.id, second.id]
        assert len(rejected) == 1
        assert [s.id for s in fallback] == [first.id, second.id]

    def test_admin_listing_requires_admin(self, service, user_auth):
        with pytest.raises(AuthorizationError):
            service.list_for_admin(user_auth)

    def test_unknown_id_is_not_found(self, service, admin_auth):
        with pytest.raises(SubmissionNotFound):
            service.get(admin_auth, 9999)
        with pytest.raises(SubmissionNotFound):
            service.get(admin_auth, "abc")


class TestApprove:
    def test_approve_imports_rows_and_shares_created_campus(self, service, admin_auth, make_submission, donor_record):
        submission = make_submission(
            [
                donor_record(name="Rahim", contactNumber="01710000001", campus="Dhaka University"),
                donor_record(name="", contactNumber="01710000002", campus="Dhaka University"),
                donor_record(name="Karim", contactNumber="01710000003", campus="dhaka university"),
            ]
        )

        result = service.approve(admin_auth, submission.id, admin_notes="Looks good")

        assert result.records_processed == 3
        assert result.records_imported == 2
        assert result.records_skipped_or_failed == 1
        assert result.import_errors == ["Record 2: Missing required fields (name)."]
        campus = Campus.query.one()
        assert campus.name == "Dhaka University"
        assert {donor.campus_id for donor in Donor.query.all()} == {campus.id}

        stored = db.session.get(UserSubmittedList, submission.id)
        assert stored.status is SubmissionStatus.APPROVED_IMPORTED
        assert stored.reviewed_by_admin_id == admin_auth.user_id
        assert stored.reviewed_at is not None
        assert stored.admin_notes == "Looks good"

    def test_approve_with_one_invalid_row_still_completes(self, service, admin_auth, make_submission, donor_record):
        records = [donor_record(contactNumber=f"0181000000{index}") for index in range(1, 6)]
        records[2]["bloodGroup"] = "Z+"
        submission = make_submission(records)

        result = service.approve(admin_auth, submission.id)

        assert (result.records_imported, result.records_skipped_or_failed) == (4, 1)
        assert result.diagnostics[0].code is DiagnosticCode.INVALID_BLOOD_GROUP
        assert db.session.get(UserSubmittedList, submission.id).status is SubmissionStatus.APPROVED_IMPORTED

    def test_approve_reports_existing_donor_as_duplicate(
        self, service, admin_auth, make_submission, donor_record
    ):
        first = make_submission([donor_record()])
        service.approve(admin_auth, first.id)
        existing = Donor.query.one()
        second = make_submission([donor_record(name="Same Phone")])

        result = service.approve(admin_auth, second.id)

        assert result.records_imported == 0
        assert result.diagnostics[0].code is DiagnosticCode.DUPLICATE_SKIPPED
        assert f"(ID: {existing.id})" in result.import_errors[0]
        assert Donor.query.count() == 1

    def test_edited_records_replace_stored_data(self, service, admin_auth, make_submission, donor_record):
        submission = make_submission([donor_record(bloodGroup="??")])
        edited = [dict(donor_record(bloodGroup="B-"), _id="row-1", _errors=["bad blood group"])]

        result = service.approve(admin_auth, submission.id, edited_records=edited)

        assert result.records_imported == 1
        stored = db.session.get(UserSubmittedList, submission.id)
        assert all(not key.startswith("_") for key in stored.donor_data_json[0])
        assert stored.donor_data_json[0]["bloodGroup"] == "B-"

    @pytest.mark.parametrize("admin_notes", [None, "", "   "])
    def test_approve_keeps_prior_admin_notes_when_none_given(
        self, service, admin_auth, make_submission, donor_record, admin_notes
    ):
        submission = make_submission([donor_record()])
        submission.admin_notes = "Checked phone numbers"
        db.session.commit()

        service.approve(admin_auth, submission.id, admin_notes=admin_notes)

        assert db.session.get(UserSubmittedList, submission.id).admin_notes == "Checked phone numbers"

    def test_empty_edited_records_abort_approval(self, service, admin_auth, make_submission, donor_record):
        submission = make_submission([donor_record()])
        submission_id = submission.id

        with pytest.raises(InvalidDonorData):
            service.approve(admin_auth, submission_id, edited_records=[])

        stored = db.session.get(UserSubmittedList, submission_id)
        assert stored.status is SubmissionStatus.PENDING_REVIEW
        assert stored.record_count == 1
        assert Donor.query.count() == 0

    def test_non_ascii_campus_is_reused_across_approvals(self, service, admin_auth, make_submission, donor_record):
        first = make_submission([donor_record(campus="ÉCOLE NORMALE")])
        second = make_submission([donor_record(name="Karim", contactNumber="01710000002", campus="ÉCOLE NORMALE")])

        service.approve(admin_auth, first.id)
        result = service.approve(admin_auth, second.id)

        assert result.records_imported == 1
        assert result.import_errors == []
        campus = Campus.query.one()
        assert campus.name == "ÉCOLE NORMALE"
        assert {donor.campus_id for donor in Donor.query.all()} == {campus.id}

    def test_approve_requires_admin(self, service, user_auth, make_submission, donor_record):
        submission = make_submission([donor_record()])

        with pytest.raises(AuthorizationError):
            service.approve(user_auth, submission.id)
        assert Donor.query.count() == 0

    def test_failed_commit_rolls_everything_back(self, service, admin_auth, make_submission, donor_record):
        submission = make_submission([donor_record(campus="Dhaka University")])
        submission_id = submission.id
        failure = OperationalError("COMMIT", {}, Exception("disk I/O error"))

        with patch.object(db.session, "commit", side_effect=failure):
            with pytest.raises(ImportTransactionError) as excinfo:
                service.approve(admin_auth, submission_id)

        assert excinfo.value.status == 500
        assert db.session.get(UserSubmittedList, submission_id).status is SubmissionStatus.PENDING_REVIEW
        assert Donor.query.count() == 0
        assert Campus.query.count() == 0

    @pytest.mark.parametrize("status", [SubmissionStatus.APPROVED_IMPORTED, SubmissionStatus.REJECTED])
    def test_reviewed_submission_cannot_be_reviewed_again(
        self, service, admin_auth, make_submission, donor_record, status
    ):
        submission = make_submission([donor_record()], status=status)
        submission_id = submission.id

        with pytest.raises(SubmissionNotPending):
            service.approve(admin_auth, submission_id)
        with pytest.raises(SubmissionNotPending):
            service.reject(admin_auth, submission_id, admin_notes="again")

        stored = db.session.get(UserSubmittedList, submission_id)
        assert stored.status is status
        assert stored.admin_notes is None
        assert Donor.query.count() == 0


class TestRejectAndResubmit:
    def test_reject_records_review(self, service, admin_auth, make_submission, donor_record):
        submission = make_submission([donor_record()])

        rejected = service.reject(admin_auth, submission.id, admin_notes="Phone numbers look fake")

        assert rejected.status is SubmissionStatus.REJECTED
        assert rejected.admin_notes == "Phone numbers look fake"
        assert rejected.reviewed_by_admin_id == admin_auth.user_id
        assert Donor.query.count() == 0

    def test_reject_with_blank_notes_keeps_prior_notes(self, service, admin_auth, make_submission, donor_record):
        submission = make_submission([donor_record()])
        submission.admin_notes = "Waiting on campus names"
        db.session.commit()

        rejected = service.reject(admin_auth, submission.id, admin_notes="")

        assert rejected.admin_notes == "Waiting on campus names"

    def test_resubmit_resets_review_fields(self, service, user_auth, admin_auth, make_submission, donor_record):
        submission = make_submission([donor_record()])
        submission.submitted_at = datetime(2024, 1, 1)
        db.session.commit()
        service.reject(admin_auth, submission.id, admin_notes="Fix the phone numbers")

        revised = service.resubmit(
            user_auth,
            submission.id,
            list_name="Drive (fixed)",
            notes="Numbers corrected",
            donor_records=[donor_record(contactNumber="01999999999")],
        )

        assert revised.status is SubmissionStatus.PENDING_REVIEW
        assert revised.reviewed_at is None
        assert revised.reviewed_by_admin_id is None
        assert revised.admin_notes is None
        assert revised.list_name == "Drive (fixed)"
        assert revised.donor_data_json[0]["contactNumber"] == "01999999999"
        assert revised.submitted_at.replace(tzinfo=None) > datetime(2024, 1, 1)

    def test_resubmit_requires_rejected_status(self, service, user_auth, make_submission, donor_record):
        submission = make_submission([donor_record()])

        with pytest.raises(SubmissionNotRevisable):
            service.resubmit(user_auth, submission.id, list_name="Drive", donor_records=[donor_record()])

    def test_resubmit_requires_owner(self, service, other_user, make_submission, donor_record):
        submission = make_submission([donor_record()], status=SubmissionStatus.REJECTED)
        other_auth = AuthContext(user_id=other_user.id, role=UserRole.USER)

        with pytest.raises(SubmissionAccessDenied):
            service.resubmit(other_auth, submission.id, list_name="Drive", donor_records=[donor_record()])
        assert db.session.get(UserSubmittedList, submission.id).status is SubmissionStatus.REJECTED

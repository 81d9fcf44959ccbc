from bloodlagbe.models import SubmissionStatus, UserSubmittedList, db


class TestCreateSubmission:
    """POST /api/submissions/donor-lists"""

    def test_requires_login(self, client, donor_rows):
        response = client.post(
            "/api/submissions/donor-lists", json={"listName": "Drive", "donorDataJson": donor_rows}
        )
        assert response.status_code == 401
        assert response.get_json()["message"] == "Authentication required."

    def test_creates_pending_submission(self, logged_in_user, valid_donor_rows):
        client, user = logged_in_user

        response = client.post(
            "/api/submissions/donor-lists",
            json={"listName": "Drive", "notes": "Batch one", "donorDataJson": valid_donor_rows},
        )

        assert response.status_code == 201
        submission = response.get_json()["submission"]
        assert submission["status"] == "PENDING_REVIEW"
        assert submission["submittedByUserId"] == user.id
        assert submission["recordCount"] == 2

    def test_rejects_record_without_name(self, logged_in_user, donor_rows):
        client, _ = logged_in_user

        response = client.post("/api/submissions/donor-lists", json={"listName": "Drive", "donorDataJson": donor_rows})

        assert response.status_code == 400
        assert "Record 2" in response.get_json()["message"]
        assert UserSubmittedList.query.count() == 0

    def test_rejects_empty_record_list(self, logged_in_user):
        client, _ = logged_in_user

        response = client.post("/api/submissions/donor-lists", json={"listName": "Drive", "donorDataJson": []})

        assert response.status_code == 400
        assert UserSubmittedList.query.count() == 0

    def test_rejects_non_object_body(self, logged_in_user):
        client, _ = logged_in_user

        response = client.post("/api/submissions/donor-lists", data="nope", content_type="text/plain")

        assert response.status_code == 400


class TestReadSubmissions:
    """Owner views of submitted lists"""

    def test_owner_can_fetch_submission(self, logged_in_user, pending_submission):
        client, _ = logged_in_user

        response = client.get(f"/api/submissions/donor-lists/{pending_submission.id}")

        assert response.status_code == 200
        assert response.get_json()["donorDataJson"][0]["name"] == "Rahim"

    def test_other_users_submission_is_not_found(self, client, other_user, pending_submission):
        client.post("/api/login", json={"email": other_user.email, "password": "testpass123"})

        response = client.get(f"/api/submissions/donor-lists/{pending_submission.id}")

        assert response.status_code == 404

    def test_my_submissions_summary(self, logged_in_user, pending_submission):
        client, _ = logged_in_user

        response = client.get("/api/user/my-submissions")

        assert response.status_code == 200
        entries = response.get_json()
        assert entries == [
            {
                "id": pending_submission.id,
                "listName": "Campus drive",
                "submittedAt": entries[0]["submittedAt"],
                "status": "PENDING_REVIEW",
                "adminNotes": None,
            }
        ]


class TestResubmit:
    """PUT /api/submissions/donor-lists/<id>"""

    def test_pending_submission_cannot_be_resubmitted(self, logged_in_user, pending_submission, donor_rows):
        client, _ = logged_in_user

        response = client.put(
            f"/api/submissions/donor-lists/{pending_submission.id}",
            json={"listName": "Drive", "donorDataJson": donor_rows},
        )

        assert response.status_code == 403

    def test_rejected_submission_returns_to_review(self, logged_in_user, pending_submission, donor_rows):
        client, _ = logged_in_user
        pending_submission.status = SubmissionStatus.REJECTED
        pending_submission.admin_notes = "Fix names"
        db.session.commit()

        response = client.put(
            f"/api/submissions/donor-lists/{pending_submission.id}",
            json={"listName": "Drive v2", "donorDataJson": donor_rows[:1]},
        )

        assert response.status_code == 200
        body = response.get_json()["submission"]
        assert body["status"] == "PENDING_REVIEW"
        assert body["adminNotes"] is None
        assert body["listName"] == "Drive v2"
        assert body["recordCount"] == 1

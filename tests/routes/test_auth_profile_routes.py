from bloodlagbe.models import Donation, Donor, User


class TestAccountRoutes:
    """Registration, login and logout"""

    def test_register(self, client):
        response = client.post(
            "/api/register", json={"name": "New Donor", "email": "New@Example.com", "password": "secret123"}
        )

        assert response.status_code == 201
        assert response.get_json()["user"]["email"] == "new@example.com"
        assert User.find_by_email("new@example.com") is not None

    def test_register_duplicate_email(self, client, test_user):
        response = client.post(
            "/api/register", json={"name": "Again", "email": test_user.email, "password": "secret123"}
        )

        assert response.status_code == 409

    def test_register_short_password(self, client):
        response = client.post("/api/register", json={"name": "X", "email": "x@example.com", "password": "123"})

        assert response.status_code == 400
        assert "at least 6 characters" in response.get_json()["message"]

    def test_login_with_wrong_password(self, client, test_user):
        response = client.post("/api/login", json={"email": test_user.email, "password": "wrong"})

        assert response.status_code == 401

    def test_me_and_logout(self, logged_in_user):
        client, user = logged_in_user

        assert client.get("/api/me").get_json()["user"]["id"] == user.id
        assert client.post("/api/logout").status_code == 200
        assert client.get("/api/me").status_code == 401


class TestDonorProfileRoutes:
    """/api/user/profile/donor"""

    PROFILE = {
        "name": "Test User",
        "bloodGroup": "B_POSITIVE",
        "contactNumber": "01811111111",
        "district": "Khulna",
        "city": "Khulna",
        "isAvailable": True,
    }

    def test_requires_login(self, client):
        assert client.get("/api/user/profile/donor").status_code == 401

    def test_missing_profile_is_404(self, logged_in_user):
        client, _ = logged_in_user

        assert client.get("/api/user/profile/donor").status_code == 404

    def test_create_update_and_toggle_availability(self, logged_in_user):
        client, user = logged_in_user

        created = client.post("/api/user/profile/donor", json=self.PROFILE)
        assert created.status_code == 201
        assert created.get_json()["donor"]["userId"] == user.id

        updated = client.post("/api/user/profile/donor", json=dict(self.PROFILE, tagline="Call anytime"))
        assert updated.status_code == 200
        assert updated.get_json()["donor"]["tagline"] == "Call anytime"

        toggled = client.put("/api/user/profile/donor/availability", json={"isAvailable": False})
        assert toggled.get_json()["isAvailable"] is False
        assert Donor.query.one().is_available is False

    def test_invalid_profile(self, logged_in_user):
        client, _ = logged_in_user

        response = client.post("/api/user/profile/donor", json=dict(self.PROFILE, bloodGroup="B+"))

        assert response.status_code == 400
        assert Donor.query.count() == 0


class TestDonationRoutes:
    """/api/user/donations"""

    def test_requires_login(self, client):
        assert client.get("/api/user/donations").status_code == 401
        assert client.post("/api/user/donations", json={"donationDate": "2024-01-15"}).status_code == 401

    def test_empty_history_without_profile(self, logged_in_user):
        client, _ = logged_in_user

        response = client.get("/api/user/donations")

        assert response.status_code == 200
        assert response.get_json() == []

    def test_record_requires_donor_profile(self, logged_in_user):
        client, _ = logged_in_user

        response = client.post("/api/user/donations", json={"donationDate": "2024-01-15"})

        assert response.status_code == 404
        assert Donation.query.count() == 0

    def test_record_and_list(self, logged_in_user):
        client, _ = logged_in_user
        client.post("/api/user/profile/donor", json=TestDonorProfileRoutes.PROFILE)

        created = client.post("/api/user/donations", json={"donationDate": "2024-03-10", "location": "Sylhet"})
        assert created.status_code == 201
        assert created.get_json()["location"] == "Sylhet"
        assert created.get_json()["donationDate"].startswith("2024-03-10")

        history = client.get("/api/user/donations").get_json()
        assert [entry["id"] for entry in history] == [created.get_json()["id"]]

    def test_future_date_is_rejected(self, logged_in_user):
        client, _ = logged_in_user
        client.post("/api/user/profile/donor", json=TestDonorProfileRoutes.PROFILE)

        response = client.post("/api/user/donations", json={"donationDate": "2999-01-01"})

        assert response.status_code == 400
        assert response.get_json()["message"] == "Donation date cannot be in the future."

"""
Integration tests for staff login and user management.
"""

TEST_PASSWORD = "correct-horse-battery"  # password of the conftest users


class TestLogin:

    def test_login_returns_token(self, client, staff_user):
        response = client.post(
            "/api/auth/login", json={"email": "Pharmacien@Example.com ", "password": TEST_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["user_id"] == staff_user.id

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200
        assert me.json()["email"] == "pharmacien@example.com"

    def test_wrong_password(self, client, staff_user):
        response = client.post(
            "/api/auth/login", json={"email": staff_user.email, "password": "not-the-password"}
        )
        assert response.status_code == 401

    def test_inactive_user_cannot_log_in(self, client, db_session, staff_user):
        staff_user.is_active = False
        db_session.commit()
        response = client.post(
            "/api/auth/login", json={"email": staff_user.email, "password": TEST_PASSWORD}
        )
        assert response.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401


class TestCreateUser:

    def new_user(self, **overrides):
        payload = {
            "email": "assistant@example.com",
            "password": "long-enough-password",
            "full_name": "Sophie Janssens",
        }
        payload.update(overrides)
        return payload

    def test_admin_creates_staff_user(self, client, admin_headers):
        response = client.post("/api/auth/users", json=self.new_user(), headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["role"] == "staff"

        login = client.post(
            "/api/auth/login", json={"email": "assistant@example.com", "password": "long-enough-password"}
        )
        assert login.status_code == 200

    def test_staff_cannot_create_users(self, client, staff_headers):
        response = client.post("/api/auth/users", json=self.new_user(), headers=staff_headers)
        assert response.status_code == 403

    def test_duplicate_email(self, client, admin_headers, staff_user):
        response = client.post(
            "/api/auth/users", json=self.new_user(email=staff_user.email), headers=admin_headers
        )
        assert response.status_code == 409

    def test_short_password(self, client, admin_headers):
        response = client.post(
            "/api/auth/users", json=self.new_user(password="short"), headers=admin_headers
        )
        assert response.status_code == 400

    def test_unknown_role(self, client, admin_headers):
        response = client.post(
            "/api/auth/users", json=self.new_user(role="owner"), headers=admin_headers
        )
        assert response.status_code == 400

import pytest

from app.errors import StoreError

SIGNUP = {
    "name": "Alice",
    "email": "alice@example.com",
    "password": "s3cret",
    "company_name": "Acme Roofing",
    "industry": "Construction",
    "industry_description": "Commercial roofing and cladding",
}


class TestSignup:
    def test_creates_user_without_password(self, client, store):
        resp = client.post("/api/auth/signup", data=SIGNUP)

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["email"] == "alice@example.com"
        assert body["data"]["logo"] == ""
        assert "password" not in body["data"]
        assert set(body["data"]) == {
            "id", "name", "email", "company_name", "industry", "industry_description", "logo",
        }
        assert store.users[0]["password"] != "s3cret"

    @pytest.mark.parametrize("field", sorted(SIGNUP))
    def test_each_field_required(self, client, store, field):
        data = dict(SIGNUP)
        data[field] = ""
        resp = client.post("/api/auth/signup", data=data)

        assert resp.status_code == 400
        assert resp.json() == {"error": "ValidationError", "message": "All fields are required"}
        assert store.users == []

    def test_absent_field_rejected(self, client):
        data = dict(SIGNUP)
        del data["industry"]
        assert client.post("/api/auth/signup", data=data).status_code == 400

    def test_duplicate_email_conflicts(self, client):
        assert client.post("/api/auth/signup", data=SIGNUP).status_code == 201
        resp = client.post("/api/auth/signup", data=dict(SIGNUP, name="Other"))

        assert resp.status_code == 409
        assert resp.json()["message"] == "User with this email already exists"

    def test_email_match_is_case_sensitive(self, client):
        assert client.post("/api/auth/signup", data=SIGNUP).status_code == 201
        resp = client.post("/api/auth/signup", data=dict(SIGNUP, email="Alice@example.com"))
        assert resp.status_code == 201

    def test_insert_race_reported_as_conflict(self, client, store, monkeypatch):
        async def no_one_found(email):
            return None
        monkeypatch.setattr(store, "get_user_by_email", no_one_found)
        store.users.append({"id": "x", "email": SIGNUP["email"]})

        resp = client.post("/api/auth/signup", data=SIGNUP)
        assert resp.status_code == 409

    def test_logo_removed_when_insert_loses_race(self, client, store, storage, monkeypatch):
        async def no_one_found(email):
            return None
        monkeypatch.setattr(store, "get_user_by_email", no_one_found)
        store.users.append({"id": "x", "email": SIGNUP["email"]})

        resp = client.post(
            "/api/auth/signup",
            data=SIGNUP,
            files={"logo": ("brand.png", b"\x89PNG-bytes", "image/png")},
        )

        assert resp.status_code == 409
        assert storage.files == {}

    def test_logo_removed_when_insert_fails(self, client, store, storage, monkeypatch):
        async def broken(user):
            raise StoreError("write concern failed")
        monkeypatch.setattr(store, "insert_user", broken)

        resp = client.post(
            "/api/auth/signup",
            data=SIGNUP,
            files={"logo": ("brand.png", b"\x89PNG-bytes", "image/png")},
        )

        assert resp.status_code == 500
        assert storage.files == {}

    def test_oversized_logo_rejected(self, client, settings, store, storage):
        settings.MAX_LOGO_BYTES = 4
        resp = client.post(
            "/api/auth/signup",
            data=SIGNUP,
            files={"logo": ("brand.png", b"12345", "image/png")},
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "ValidationError", "message": "Logo must be at most 4 bytes"}
        assert store.users == []
        assert storage.files == {}

    def test_logo_at_size_limit_accepted(self, client, settings, storage):
        settings.MAX_LOGO_BYTES = 4
        resp = client.post(
            "/api/auth/signup",
            data=SIGNUP,
            files={"logo": ("brand.png", b"1234", "image/png")},
        )
        assert resp.status_code == 201
        assert len(storage.files) == 1

    def test_logo_uploaded_under_time_based_path(self, client, storage):
        resp = client.post(
            "/api/auth/signup",
            data=SIGNUP,
            files={"logo": ("brand.png", b"\x89PNG-bytes", "image/png")},
        )

        assert resp.status_code == 201
        (path,) = storage.files
        assert path.startswith("logos/") and path.endswith(".png")
        assert storage.files[path] == (b"\x89PNG-bytes", "image/png")
        assert resp.json()["data"]["logo"] == f"http://testserver/api/files/{path}"

    def test_store_failure_is_server_error(self, client, store, monkeypatch):
        async def broken(email):
            raise StoreError("connection refused")
        monkeypatch.setattr(store, "get_user_by_email", broken)

        resp = client.post("/api/auth/signup", data=SIGNUP)
        assert resp.status_code == 500
        assert resp.json() == {"error": "ServerError", "message": "An unexpected error occurred"}

    def test_development_mode_exposes_details(self, client, settings, store, monkeypatch):
        settings.ENVIRONMENT = "development"

        async def broken(email):
            raise StoreError("connection refused")
        monkeypatch.setattr(store, "get_user_by_email", broken)

        resp = client.post("/api/auth/signup", data=SIGNUP)
        assert resp.status_code == 500
        assert resp.json()["details"] == "connection refused"


class TestLogin:
    @pytest.fixture(autouse=True)
    def alice(self, client):
        assert client.post("/api/auth/signup", data=SIGNUP).status_code == 201

    def test_returns_token(self, client):
        resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "s3cret"})

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert resp.json()["token"].count(".") == 2

    @pytest.mark.parametrize("body", [{}, {"email": "alice@example.com"}, {"password": "s3cret"}])
    def test_missing_fields(self, client, body):
        resp = client.post("/api/auth/login", json=body)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Email and password are required"

    def test_wrong_password_and_unknown_email_are_indistinguishable(self, client):
        wrong_password = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope"})
        unknown_email = client.post("/api/auth/login", json={"email": "bob@example.com", "password": "s3cret"})

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {
            "error": "AuthError",
            "message": "Invalid email or password",
        }

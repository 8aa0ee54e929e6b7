from backoffice.routers.auth import (
    SESSION_COOKIE,
    _hash_password,
    _verify_password,
    create_session_value,
    parse_session_value,
)


class TestPasswords:
    def test_hash_is_salted(self):
        assert _hash_password("secret1") != _hash_password("secret1")

    def test_verify(self):
        stored = _hash_password("secret1")
        assert _verify_password("secret1", stored)
        assert not _verify_password("secret2", stored)
        assert not _verify_password("secret1", "garbage")


class TestSessionValue:
    def test_round_trip(self):
        assert parse_session_value(create_session_value(7)) == 7

    def test_forged_signature(self):
        assert parse_session_value("7:deadbeef") is None
        assert parse_session_value("no-separator") is None


class TestAuthFlow:
    def test_register_login_me_logout(self, anon_client):
        response = anon_client.post("/api/register", json={"username": "carol", "password": "hunter22"})
        assert response.status_code == 201
        assert response.json()["username"] == "carol"

        response = anon_client.post("/login", json={"username": "carol", "password": "hunter22"})
        assert response.status_code == 200
        assert SESSION_COOKIE in response.cookies

        assert anon_client.get("/api/me").json()["username"] == "carol"

        anon_client.post("/logout")
        anon_client.cookies.clear()
        assert anon_client.get("/api/me").status_code == 401

    def test_duplicate_username(self, anon_client):
        anon_client.post("/api/register", json={"username": "carol", "password": "hunter22"})
        response = anon_client.post("/api/register", json={"username": "carol", "password": "other22"})
        assert response.status_code == 400
        assert response.json() == {"error": "Username already exists"}

    def test_short_password(self, anon_client):
        response = anon_client.post("/api/register", json={"username": "carol", "password": "abc"})
        assert response.status_code == 400

    def test_bad_credentials(self, anon_client):
        anon_client.post("/api/register", json={"username": "carol", "password": "hunter22"})
        response = anon_client.post("/login", json={"username": "carol", "password": "wrong"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

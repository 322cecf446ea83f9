"""
Tests for registration, login and the access guard over HTTP.
"""

import pytest

from tournament_api.services import auth_service

REGISTER_URL = "/api/auth/register"
LOGIN_URL = "/api/auth/login"


def register_body(**overrides):
    body = {"username": "newbie", "email": "newbie@example.com", "password": "password123"}
    body.update(overrides)
    return body


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_guest(self, client):
        response = await client.post(REGISTER_URL, json=register_body(email="Newbie@Example.com"))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["data"]["user"]["email"] == "newbie@example.com"
        assert body["data"]["user"]["role"] == "guest"
        assert "password_hash" not in body["data"]["user"]
        assert auth_service.verify_token(body["data"]["token"])["user_id"] == body["data"]["user"]["id"]
        assert f"{auth_service.AUTH_COOKIE_NAME}=" in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"].lower()

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client, guest_user):
        response = await client.post(REGISTER_URL, json=register_body(email="guest@example.com"))

        assert response.status_code == 409
        assert response.json() == {"success": False, "message": "User already exists"}

    @pytest.mark.asyncio
    async def test_first_admin_allowed_second_refused(self, client):
        first = await client.post(REGISTER_URL, json=register_body(role="admin"))
        assert first.status_code == 201
        assert first.json()["data"]["user"]["role"] == "admin"

        second = await client.post(
            REGISTER_URL, json=register_body(username="other", email="other@example.com", role="admin")
        )
        assert second.status_code == 403
        assert second.json()["success"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"email": "not-an-email"},
            {"password": "short"},
            {"role": "superuser"},
            {"username": "   "},
        ],
    )
    async def test_invalid_input(self, client, overrides):
        response = await client.post(REGISTER_URL, json=register_body(**overrides))

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["message"]

    @pytest.mark.asyncio
    async def test_username_is_trimmed(self, client):
        response = await client.post(REGISTER_URL, json=register_body(username="  spaced  "))

        assert response.status_code == 201
        assert response.json()["data"]["user"]["username"] == "spaced"

    @pytest.mark.asyncio
    async def test_missing_field(self, client):
        response = await client.post(REGISTER_URL, json={"email": "a@example.com", "password": "password123"})

        assert response.status_code == 400
        assert "username" in response.json()["message"]


class TestLogin:
    @pytest.mark.asyncio
    async def test_login(self, client, guest_user):
        response = await client.post(LOGIN_URL, json={"email": "GUEST@example.com", "password": "password123"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["id"] == guest_user["id"]
        assert auth_service.verify_token(data["token"])["role"] == "guest"
        assert f"{auth_service.AUTH_COOKIE_NAME}=" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, client, guest_user):
        wrong_password = await client.post(LOGIN_URL, json={"email": "guest@example.com", "password": "nope12345"})
        unknown_email = await client.post(LOGIN_URL, json={"email": "ghost@example.com", "password": "password123"})

        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {
            "success": False,
            "message": "Invalid email or password",
        }

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client):
        response = await client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Logged out successfully"}
        assert f'{auth_service.AUTH_COOKIE_NAME}=""' in response.headers["set-cookie"]


class TestAccessGuard:
    @pytest.mark.asyncio
    async def test_bearer_token(self, client, guest_user, guest_headers):
        response = await client.get("/api/auth/user", headers=guest_headers)

        assert response.status_code == 200
        assert response.json()["data"]["username"] == "guest"
        assert "password_hash" not in response.json()["data"]

    @pytest.mark.asyncio
    async def test_cookie_token(self, client, guest_user):
        response = await client.get(
            "/api/auth/user",
            headers={"Cookie": f"{auth_service.AUTH_COOKIE_NAME}={guest_user['token']}"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["id"] == guest_user["id"]

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/auth/user")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Not authorized, no token"}

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get("/api/auth/user", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, client):
        token = auth_service.create_session_token({"id": 9999, "role": "admin"})
        response = await client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_guest_cannot_reach_admin_route(self, client, guest_headers):
        response = await client.post(
            "/api/tournaments",
            json={"name": "T9", "start_date": "2024-01-01", "end_date": "2024-01-31"},
            headers=guest_headers,
        )

        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "Access denied. Admin privileges required."}

    @pytest.mark.asyncio
    async def test_admin_route_without_token(self, client):
        response = await client.delete("/api/tournaments/1")

        assert response.status_code == 401


class TestAccountRoutes:
    @pytest.mark.asyncio
    async def test_update_profile(self, client, guest_user, guest_headers):
        response = await client.patch("/api/users/me", json={"username": "renamed"}, headers=guest_headers)

        assert response.status_code == 200
        assert response.json()["data"]["username"] == "renamed"

    @pytest.mark.asyncio
    async def test_update_profile_needs_a_field(self, client, guest_headers):
        response = await client.patch("/api/users/me", json={}, headers=guest_headers)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_update_profile_rejects_blank_username(self, client, guest_user, guest_headers):
        response = await client.patch("/api/users/me", json={"username": "  "}, headers=guest_headers)

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_change_password(self, client, guest_user, guest_headers):
        mismatch = await client.post(
            "/api/password/change",
            json={"current_password": "password123", "new_password": "newpass123", "confirm_password": "other123"},
            headers=guest_headers,
        )
        assert mismatch.status_code == 400
        assert mismatch.json()["message"] == "New passwords do not match"

        wrong_current = await client.post(
            "/api/password/change",
            json={"current_password": "wrongpass1", "new_password": "newpass123", "confirm_password": "newpass123"},
            headers=guest_headers,
        )
        assert wrong_current.status_code == 401
        assert wrong_current.json()["message"] == "Current password is incorrect"

        changed = await client.post(
            "/api/password/change",
            json={"current_password": "password123", "new_password": "newpass123", "confirm_password": "newpass123"},
            headers=guest_headers,
        )
        assert changed.status_code == 200

        login = await client.post(LOGIN_URL, json={"email": "guest@example.com", "password": "newpass123"})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_settings(self, client, guest_headers):
        response = await client.get("/api/settings", headers=guest_headers)
        assert response.status_code == 200
        assert response.json()["data"]["appearance"]["theme"] == "system"

        updated = await client.patch("/api/settings/appearance", json={"theme": "dark"}, headers=guest_headers)
        assert updated.status_code == 200
        assert updated.json()["data"] == {"theme": "dark", "language": "en"}
        assert updated.json()["message"] == "Appearance settings updated"

        rejected = await client.patch("/api/settings/appearance", json={"colour": "red"}, headers=guest_headers)
        assert rejected.status_code == 400


class TestAdminRoutes:
    @pytest.mark.asyncio
    async def test_list_users(self, client, admin_user, guest_user, admin_headers):
        response = await client.get("/api/admin/users", params={"page": 1, "limit": 1}, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["data"]["total_pages"] == 2
        assert len(body["data"]["users"]) == 1

    @pytest.mark.asyncio
    async def test_stats(self, client, admin_user, admin_headers):
        response = await client.get("/api/admin/users/stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["total_admins"] == 1

    @pytest.mark.asyncio
    async def test_role_and_delete(self, client, admin_user, guest_user, admin_headers):
        role = await client.put(
            f"/api/admin/users/{guest_user['id']}/role", json={"role": "guest"}, headers=admin_headers
        )
        assert role.status_code == 200

        self_delete = await client.delete(f"/api/admin/users/{admin_user['id']}", headers=admin_headers)
        assert self_delete.status_code == 400

        deleted = await client.delete(f"/api/admin/users/{guest_user['id']}", headers=admin_headers)
        assert deleted.status_code == 200

        missing = await client.delete(f"/api/admin/users/{guest_user['id']}", headers=admin_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_guest_cannot_list_users(self, client, guest_headers):
        response = await client.get("/api/admin/users", headers=guest_headers)

        assert response.status_code == 403

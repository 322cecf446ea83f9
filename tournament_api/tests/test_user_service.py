"""
Tests for user_service and settings_service.
"""

import pytest

from tournament_api.database.models import UserRole
from tournament_api.services import auth_service, settings_service, user_service
from tournament_api.utils.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError


async def make_user(session, username, email, role=UserRole.GUEST):
    return await user_service.create_user(
        session,
        username=username,
        email=email,
        password_hash=auth_service.hash_password("password123"),
        role=role,
    )


class TestUserAccounts:
    @pytest.mark.asyncio
    async def test_create_and_lookup(self, db_session):
        user = await make_user(db_session, "alice", "alice@example.com")
        assert user["role"] == "guest"
        assert user["id"] is not None

        by_email = await user_service.get_user_by_email(db_session, " ALICE@example.com ")
        assert by_email["id"] == user["id"]
        assert auth_service.verify_password("password123", by_email["password_hash"])

        by_id = await user_service.get_user_by_id(db_session, user["id"])
        assert by_id["username"] == "alice"
        assert await user_service.get_user_by_id(db_session, 9999) is None
        assert await user_service.get_user_by_email(db_session, "") is None

    @pytest.mark.asyncio
    async def test_duplicate_email_or_username(self, db_session):
        await make_user(db_session, "alice", "alice@example.com")
        with pytest.raises(ConflictError):
            await make_user(db_session, "alice2", "alice@example.com")
        with pytest.raises(ConflictError):
            await make_user(db_session, "alice", "other@example.com")

    @pytest.mark.asyncio
    async def test_single_admin(self, db_session):
        assert await user_service.admin_exists(db_session) is False
        await make_user(db_session, "boss", "boss@example.com", UserRole.ADMIN)
        assert await user_service.admin_exists(db_session) is True

        with pytest.raises(ForbiddenError):
            await make_user(db_session, "boss2", "boss2@example.com", UserRole.ADMIN)

    @pytest.mark.asyncio
    async def test_public_user_hides_hash(self, db_session):
        user = await make_user(db_session, "alice", "alice@example.com")
        assert "password_hash" in user
        assert "password_hash" not in user_service.public_user(user)

    @pytest.mark.asyncio
    async def test_update_user(self, db_session):
        alice = await make_user(db_session, "alice", "alice@example.com")
        await make_user(db_session, "bob", "bob@example.com")

        updated = await user_service.update_user(db_session, alice["id"], email="New@Example.com")
        assert updated["email"] == "new@example.com"
        assert updated["username"] == "alice"

        with pytest.raises(ConflictError):
            await user_service.update_user(db_session, alice["id"], username="bob")
        with pytest.raises(NotFoundError):
            await user_service.update_user(db_session, 9999, username="ghost")

    @pytest.mark.asyncio
    async def test_update_password(self, db_session):
        alice = await make_user(db_session, "alice", "alice@example.com")
        assert await user_service.update_user_password(
            db_session, alice["id"], auth_service.hash_password("newpassword1")
        ) is True

        stored = await user_service.get_user_by_id(db_session, alice["id"])
        assert auth_service.verify_password("newpassword1", stored["password_hash"])

    @pytest.mark.asyncio
    async def test_record_login(self, db_session):
        alice = await make_user(db_session, "alice", "alice@example.com")
        assert alice["last_login_at"] is None
        await user_service.record_login(db_session, alice["id"])

        stats = await user_service.get_user_stats(db_session)
        assert stats["active_users"] == 1


class TestUserAdministration:
    @pytest.mark.asyncio
    async def test_list_users_pages(self, db_session):
        for i in range(5):
            await make_user(db_session, f"user{i}", f"user{i}@example.com")

        page = await user_service.list_users(db_session, page=2, limit=2)
        assert page["total_users"] == 5
        assert page["total_pages"] == 3
        assert page["current_page"] == 2
        assert len(page["users"]) == 2
        assert all("password_hash" not in u for u in page["users"])

    @pytest.mark.asyncio
    async def test_stats(self, db_session):
        await make_user(db_session, "boss", "boss@example.com", UserRole.ADMIN)
        await make_user(db_session, "alice", "alice@example.com")

        stats = await user_service.get_user_stats(db_session)
        assert stats["total_users"] == 2
        assert stats["total_admins"] == 1
        assert stats["active_users"] == 0
        assert set(stats["user_growth"]) == {"last_30_days", "last_7_days"}

    @pytest.mark.asyncio
    async def test_update_role(self, db_session):
        alice = await make_user(db_session, "alice", "alice@example.com")
        updated = await user_service.update_user_role(db_session, alice["id"], UserRole.ADMIN)
        assert updated["role"] == "admin"
        with pytest.raises(NotFoundError):
            await user_service.update_user_role(db_session, 9999, UserRole.GUEST)

    @pytest.mark.asyncio
    async def test_delete_user(self, db_session):
        boss = await make_user(db_session, "boss", "boss@example.com", UserRole.ADMIN)
        alice = await make_user(db_session, "alice", "alice@example.com")

        with pytest.raises(ValidationError):
            await user_service.delete_user(db_session, boss["id"], acting_user_id=boss["id"])

        await user_service.delete_user(db_session, alice["id"], acting_user_id=boss["id"])
        assert await user_service.get_user_by_id(db_session, alice["id"]) is None

        with pytest.raises(NotFoundError):
            await user_service.delete_user(db_session, alice["id"], acting_user_id=boss["id"])


class TestSettings:
    @pytest.mark.asyncio
    async def test_defaults(self, db_session, guest_user):
        settings = await settings_service.get_settings(db_session, guest_user["id"])
        assert set(settings) == {"profile", "appearance", "notifications"}
        assert settings["appearance"] == {"theme": "system", "language": "en"}
        assert settings["notifications"]["match_reminders"] is True

    @pytest.mark.asyncio
    async def test_update_merges(self, db_session, guest_user):
        updated = await settings_service.update_settings(
            db_session, guest_user["id"], "appearance", {"theme": "dark"}
        )
        assert updated == {"theme": "dark", "language": "en"}

        await settings_service.update_settings(db_session, guest_user["id"], "appearance", {"language": "nb"})
        settings = await settings_service.get_settings(db_session, guest_user["id"])
        assert settings["appearance"] == {"theme": "dark", "language": "nb"}
        # Other categories untouched
        assert settings["notifications"]["result_updates"] is True

    @pytest.mark.asyncio
    async def test_unknown_category(self, db_session, guest_user):
        with pytest.raises(ValidationError):
            await settings_service.update_settings(db_session, guest_user["id"], "billing", {"plan": "pro"})

    @pytest.mark.asyncio
    async def test_unknown_key_and_bad_value(self, db_session, guest_user):
        with pytest.raises(ValidationError):
            await settings_service.update_settings(db_session, guest_user["id"], "appearance", {"font": "big"})
        with pytest.raises(ValidationError):
            await settings_service.update_settings(db_session, guest_user["id"], "appearance", {"theme": "neon"})

    @pytest.mark.asyncio
    async def test_empty_update(self, db_session, guest_user):
        with pytest.raises(ValidationError):
            await settings_service.update_settings(db_session, guest_user["id"], "profile", {})

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await settings_service.get_settings(db_session, 9999)

"""Tests for per-user sharing preferences."""
import pytest
from datetime import timedelta
from src.state import (
    DEFAULT_SHARE_METHODS,
    ForbiddenError,
    ShareMethod,
    SharingPreferences,
    ValidationFailedError,
)
from src.state.preferences import (
    get_preferences,
    load_preferences,
    parse_share_methods,
    require_link_sharing_enabled,
    reset_preferences,
    update_preferences,
)
from src.state.proximity import create_session
from src.state.repositories import PreferencesRepository
from tests.state.conftest import T0


class TestSharingPreferencesModel:
    def test_defaults(self):
        prefs = SharingPreferences(user_id="u1")
        assert prefs.proximity_enabled
        assert prefs.link_sharing_enabled
        assert prefs.push_notifications_enabled
        assert prefs.obfuscate_links
        assert prefs.allowed_share_methods == DEFAULT_SHARE_METHODS == (ShareMethod.WHATSAPP,)

    def test_rejects_empty_methods(self):
        with pytest.raises(ValueError):
            SharingPreferences(user_id="u1", allowed_share_methods=())


class TestParseShareMethods:
    def test_dedupes_in_order(self):
        assert parse_share_methods(["sms", "email", "sms"]) == (ShareMethod.SMS, ShareMethod.EMAIL)

    def test_unknown_method(self):
        with pytest.raises(ValidationFailedError, match="Invalid share method 'fax'"):
            parse_share_methods(["whatsapp", "fax"])

    def test_empty(self):
        with pytest.raises(ValidationFailedError):
            parse_share_methods([])


class TestPreferenceOperations:
    @pytest.mark.asyncio
    async def test_first_read_stores_defaults(self, db, alice):
        async with db.connection() as conn:
            assert await PreferencesRepository(conn).get(alice.user_id) is None
            prefs = await get_preferences(conn, alice.user_id, now=T0)
            stored = await PreferencesRepository(conn).get(alice.user_id)
        assert prefs.updated_at == T0
        assert stored == prefs

    @pytest.mark.asyncio
    async def test_load_never_writes(self, db, alice):
        async with db.connection() as conn:
            prefs = await load_preferences(conn, alice.user_id)
            assert await PreferencesRepository(conn).get(alice.user_id) is None
        assert prefs.updated_at is None

    @pytest.mark.asyncio
    async def test_partial_update(self, db, alice):
        async with db.connection() as conn:
            await get_preferences(conn, alice.user_id, now=T0)
            updated = await update_preferences(
                conn, alice.user_id, push_notifications_enabled=False,
                allowed_share_methods=["telegram", "email"], now=T0 + timedelta(minutes=5),
            )
            stored = await PreferencesRepository(conn).get(alice.user_id)
        assert stored == updated
        assert updated.push_notifications_enabled is False
        assert updated.proximity_enabled is True
        assert updated.allowed_share_methods == (ShareMethod.TELEGRAM, ShareMethod.EMAIL)
        assert updated.updated_at == T0 + timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_update_without_changes_is_noop(self, db, alice):
        async with db.connection() as conn:
            before = await get_preferences(conn, alice.user_id, now=T0)
            after = await update_preferences(conn, alice.user_id, now=T0 + timedelta(hours=1))
        assert after == before

    @pytest.mark.asyncio
    async def test_invalid_update_keeps_stored(self, db, alice):
        async with db.connection() as conn:
            await update_preferences(conn, alice.user_id, obfuscate_links=False)
            with pytest.raises(ValidationFailedError):
                await update_preferences(conn, alice.user_id, allowed_share_methods=[])
            prefs = await get_preferences(conn, alice.user_id)
        assert prefs.obfuscate_links is False
        assert prefs.allowed_share_methods == DEFAULT_SHARE_METHODS

    @pytest.mark.asyncio
    async def test_reset(self, db, alice):
        async with db.connection() as conn:
            await update_preferences(conn, alice.user_id, proximity_enabled=False, obfuscate_links=False)
            prefs = await reset_preferences(conn, alice.user_id, now=T0)
        assert prefs == SharingPreferences(user_id=alice.user_id, updated_at=T0)


class TestPreferenceGates:
    @pytest.mark.asyncio
    async def test_proximity_disabled(self, db, alice):
        async with db.connection() as conn:
            await update_preferences(conn, alice.user_id, proximity_enabled=False)
            with pytest.raises(ForbiddenError, match="Proximity sharing is disabled"):
                await create_session(conn, alice.user_id)
            cursor = await conn.execute("SELECT COUNT(*) FROM proximity_sessions")
            assert (await cursor.fetchone())[0] == 0

    @pytest.mark.asyncio
    async def test_other_users_unaffected(self, db, alice, bob):
        async with db.connection() as conn:
            await update_preferences(conn, alice.user_id, proximity_enabled=False)
            session = await create_session(conn, bob.user_id)
        assert session.initiator_id == bob.user_id

    @pytest.mark.asyncio
    async def test_link_sharing_disabled(self, db, alice):
        async with db.connection() as conn:
            assert (await require_link_sharing_enabled(conn, alice.user_id)).link_sharing_enabled
            await update_preferences(conn, alice.user_id, link_sharing_enabled=False)
            with pytest.raises(ForbiddenError):
                await require_link_sharing_enabled(conn, alice.user_id)

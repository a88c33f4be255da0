"""Tests for user accounts, bearer credentials and push registrations."""
import pytest
from datetime import timedelta
from src.state import (
    ConflictError,
    DELETED_USER_ID,
    ForbiddenError,
    NotFoundError,
    Platform,
    ValidationFailedError,
)
from src.state.accounts import (
    create_user,
    delete_account,
    export_account,
    identify,
    issue_session_token,
    register_push_token,
    remove_push_token,
    user_stats,
)
from src.state.lifecycle import create_message, respond
from src.state.proximity import create_session
from src.state.preferences import update_preferences
from src.state.repositories import MessageRepository, PreferencesRepository, PushTokenRepository
from tests.state.conftest import T0


class TestUsers:
    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, db, alice):
        async with db.connection() as conn:
            with pytest.raises(ConflictError):
                await create_user(conn, "Other Alice", "ALICE@example.com")

    @pytest.mark.asyncio
    async def test_invalid_email(self, db):
        async with db.connection() as conn:
            with pytest.raises(ValidationFailedError):
                await create_user(conn, "Nobody", "not-an-email")

    @pytest.mark.asyncio
    async def test_issue_and_identify(self, db, alice):
        async with db.connection() as conn:
            token = await issue_session_token(conn, alice.user_id)
            assert (await identify(conn, token)).user_id == alice.user_id
            assert await identify(conn, "bogus") is None
            assert await identify(conn, "") is None
            cursor = await conn.execute("SELECT token_hash FROM auth_sessions")
            stored = [row[0] for row in await cursor.fetchall()]
        assert token not in stored

    @pytest.mark.asyncio
    async def test_issue_for_unknown_user(self, db):
        async with db.connection() as conn:
            with pytest.raises(NotFoundError):
                await issue_session_token(conn, "ghost")


class TestStats:
    @pytest.mark.asyncio
    async def test_counts_by_direction(self, db, alice, bob):
        async with db.connection() as conn:
            first = await create_message(conn, alice.user_id, "one", recipient_id=bob.user_id)
            await create_message(conn, alice.user_id, "two", recipient_id=bob.user_id)
            await respond(conn, bob.user_id, first.link_token, "reject")
            sent = await user_stats(conn, alice.user_id)
            received = await user_stats(conn, bob.user_id)
        assert sent["sent"] == {"pending": 1, "accepted": 0, "rejected": 1, "total": 2}
        assert sent["received"]["total"] == 0
        assert received["received"]["rejected"] == 1


class TestDeleteAccount:
    @pytest.mark.asyncio
    async def test_anonymizes_and_removes(self, db, alice, bob):
        async with db.connection() as conn:
            outgoing = await create_message(conn, alice.user_id, "from alice", recipient_id=bob.user_id)
            incoming = await create_message(conn, bob.user_id, "to alice", recipient_id=alice.user_id)
            await create_session(conn, alice.user_id)
            await register_push_token(conn, alice.user_id, "ExponentPushToken[a]", "ios")
            token = await issue_session_token(conn, alice.user_id)

            result = await delete_account(conn, alice.user_id, now=T0)
            assert result.messages_anonymized == 2
            assert result.proximity_sessions_deleted == 1
            assert result.push_tokens_deleted == 1
            assert result.deleted_at == T0

            repo = MessageRepository(conn)
            assert (await repo.get_by_id(outgoing.message_id)).sender_id == DELETED_USER_ID
            kept = await repo.get_by_id(incoming.message_id)
            assert kept.recipient_id == DELETED_USER_ID
            assert kept.content == "to alice"
            assert await identify(conn, token) is None

    @pytest.mark.asyncio
    async def test_removes_preferences(self, db, alice):
        async with db.connection() as conn:
            await update_preferences(conn, alice.user_id, obfuscate_links=False)
            await delete_account(conn, alice.user_id)
            assert await PreferencesRepository(conn).get(alice.user_id) is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, db):
        async with db.connection() as conn:
            with pytest.raises(NotFoundError):
                await delete_account(conn, "ghost")


class TestExportAccount:
    @pytest.mark.asyncio
    async def test_collects_everything(self, db, alice, bob):
        async with db.connection() as conn:
            first = await create_message(conn, alice.user_id, "one", recipient_id=bob.user_id, now=T0)
            await create_message(conn, alice.user_id, "two", now=T0 + timedelta(minutes=1))
            await create_message(conn, bob.user_id, "to alice", recipient_id=alice.user_id, now=T0)
            session = await create_session(conn, alice.user_id, now=T0)
            await create_session(conn, bob.user_id, now=T0)
            await register_push_token(conn, alice.user_id, "device-1", "ios", now=T0)

            export = await export_account(conn, alice.user_id, now=T0 + timedelta(hours=1))

        assert export.user.user_id == alice.user_id
        assert [m.content for m in export.sent] == ["one", "two"]
        assert export.sent[0].message_id == first.message_id
        assert [m.content for m in export.received] == ["to alice"]
        assert [s.session_id for s in export.proximity_sessions] == [session.session_id]
        assert [t.platform for t in export.push_tokens] == [Platform.IOS]
        assert export.exported_at == T0 + timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_empty_account(self, db, carol):
        async with db.connection() as conn:
            export = await export_account(conn, carol.user_id)
        assert export.sent == []
        assert export.received == []
        assert export.proximity_sessions == []
        assert export.push_tokens == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, db):
        async with db.connection() as conn:
            with pytest.raises(NotFoundError):
                await export_account(conn, "ghost")


class TestPushTokens:
    @pytest.mark.asyncio
    async def test_register_outcomes(self, db, alice, bob):
        async with db.connection() as conn:
            created, outcome = await register_push_token(conn, alice.user_id, "device-1", "ios", now=T0)
            assert outcome == "created"
            refreshed, outcome = await register_push_token(
                conn, alice.user_id, "device-1", "ios", now=T0 + timedelta(days=1),
            )
            assert outcome == "refreshed"
            assert refreshed.token_id == created.token_id
            assert refreshed.updated_at == T0 + timedelta(days=1)
            moved, outcome = await register_push_token(conn, bob.user_id, "device-1", "android", now=T0)
        assert outcome == "reassigned"
        assert moved.user_id == bob.user_id
        assert moved.platform == Platform.ANDROID

    @pytest.mark.asyncio
    async def test_register_validation(self, db, alice):
        async with db.connection() as conn:
            with pytest.raises(ValidationFailedError):
                await register_push_token(conn, alice.user_id, "  ", "ios")
            with pytest.raises(ValidationFailedError):
                await register_push_token(conn, alice.user_id, "device-1", "windows")

    @pytest.mark.asyncio
    async def test_remove(self, db, alice, bob):
        async with db.connection() as conn:
            stored, _ = await register_push_token(conn, alice.user_id, "device-1", "ios")
            with pytest.raises(ForbiddenError):
                await remove_push_token(conn, bob.user_id, stored.token_id)
            await remove_push_token(conn, alice.user_id, stored.token_id)
            with pytest.raises(NotFoundError):
                await remove_push_token(conn, alice.user_id, stored.token_id)
            assert await PushTokenRepository(conn).list_for_user(alice.user_id) == []

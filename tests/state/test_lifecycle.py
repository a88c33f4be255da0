"""Tests for the consent message lifecycle."""
import asyncio
import pytest
from datetime import timedelta
from src.state import (
    AlreadyUsedError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    MessageStatus,
    NotFoundError,
    ValidationFailedError,
)
from src.state.lifecycle import (
    create_message,
    ensure_status,
    get_for_participant,
    parse_action,
    resolve_by_token,
    respond,
    respond_by_id,
)
from src.state.repositories import MessageRepository
from tests.state.conftest import T0

HOUR = timedelta(hours=1)


class TestCreate:
    @pytest.mark.asyncio
    async def test_open_message_defaults(self, db, alice):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "Do you accept?", now=T0)
        assert message.status == MessageStatus.PENDING
        assert message.recipient_id is None
        assert message.single_use is True
        assert message.link_used is False
        assert len(message.link_token) == 64
        assert message.link_expires_at == T0 + timedelta(hours=24)

    @pytest.mark.asyncio
    async def test_blank_content_rejected(self, db, alice):
        async with db.connection() as conn:
            with pytest.raises(ValidationFailedError):
                await create_message(conn, alice.user_id, " \n\t ")

    @pytest.mark.asyncio
    async def test_non_positive_lifetime_rejected(self, db, alice):
        async with db.connection() as conn:
            with pytest.raises(ValidationFailedError):
                await create_message(conn, alice.user_id, "hi", link_expires_in=timedelta(0))

    @pytest.mark.asyncio
    async def test_recipient_resolution(self, db, alice, bob, carol):
        async with db.connection() as conn:
            by_email = await create_message(conn, alice.user_id, "hi", recipient_email="Bob@Example.com")
            assert by_email.recipient_id == bob.user_id
            with pytest.raises(NotFoundError):
                await create_message(conn, alice.user_id, "hi", recipient_id="ghost")
            with pytest.raises(NotFoundError):
                await create_message(conn, alice.user_id, "hi", recipient_email="ghost@example.com")
            with pytest.raises(ValidationFailedError):
                await create_message(
                    conn, alice.user_id, "hi",
                    recipient_id=carol.user_id, recipient_email=bob.email,
                )

    @pytest.mark.asyncio
    async def test_token_collision_is_retried(self, db, alice, monkeypatch):
        async with db.connection() as conn:
            first = await create_message(conn, alice.user_id, "one")
        tokens = iter([first.link_token, "f" * 64])
        monkeypatch.setattr("src.state.lifecycle.generate_token", lambda: next(tokens))
        async with db.connection() as conn:
            second = await create_message(conn, alice.user_id, "two")
        assert second.link_token == "f" * 64


class TestResolveByToken:
    @pytest.mark.asyncio
    async def test_resolve_has_no_side_effects(self, db, alice):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "Do you accept?", link_expires_in=HOUR, now=T0)
            first = await resolve_by_token(conn, message.link_token, now=T0 + timedelta(seconds=10))
            second = await resolve_by_token(conn, message.link_token, now=T0 + timedelta(seconds=20))
        assert first.message == second.message == message
        assert first.sender.name == "Alice"

    @pytest.mark.asyncio
    async def test_unknown_token(self, db):
        async with db.connection() as conn:
            with pytest.raises(NotFoundError):
                await resolve_by_token(conn, "missing", now=T0)

    @pytest.mark.asyncio
    async def test_expired_link(self, db, alice):
        async with db.connection() as conn:
            message = await create_message(
                conn, alice.user_id, "Do you accept?", link_expires_in=timedelta(milliseconds=1000), now=T0,
            )
            with pytest.raises(ExpiredError):
                await resolve_by_token(conn, message.link_token, now=T0 + timedelta(seconds=2))

    @pytest.mark.asyncio
    async def test_expiry_boundary_is_inclusive(self, db, alice, bob):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "hi", link_expires_in=HOUR, now=T0)
            await resolve_by_token(conn, message.link_token, now=T0 + HOUR)
            answered = await respond(conn, bob.user_id, message.link_token, "accept", now=T0 + HOUR)
        assert answered.status == MessageStatus.ACCEPTED


class TestRespond:
    @pytest.mark.asyncio
    async def test_single_use_open_link(self, db, alice, bob, carol):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "Do you accept?", link_expires_in=HOUR, now=T0)
            token = message.link_token
            resolved = await resolve_by_token(conn, token, now=T0 + timedelta(seconds=10))
            assert resolved.message.status == MessageStatus.PENDING

            answered = await respond(conn, bob.user_id, token, "accept", now=T0 + timedelta(seconds=20))
            assert answered.status == MessageStatus.ACCEPTED
            assert answered.recipient_id == bob.user_id

            with pytest.raises(AlreadyUsedError):
                await respond(conn, carol.user_id, token, "accept", now=T0 + timedelta(seconds=30))
            with pytest.raises(AlreadyUsedError):
                await resolve_by_token(conn, token, now=T0 + timedelta(seconds=30))

    @pytest.mark.asyncio
    async def test_direct_message_binding(self, db, alice, bob, carol):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "hi", recipient_id=bob.user_id, now=T0)
            with pytest.raises(ForbiddenError):
                await respond(conn, carol.user_id, message.link_token, "accept", now=T0)
            answered = await respond(conn, bob.user_id, message.link_token, "accept", now=T0)
        assert answered.status == MessageStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_status_is_monotonic(self, db, alice, bob):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "hi", single_use=False, now=T0)
            await respond(conn, bob.user_id, message.link_token, "reject", now=T0)
            for action in ("accept", "reject", "accept"):
                with pytest.raises(ConflictError):
                    await respond(conn, bob.user_id, message.link_token, action, now=T0)
            stored = await MessageRepository(conn).get_by_id(message.message_id)
        assert stored.status == MessageStatus.REJECTED

    @pytest.mark.asyncio
    async def test_open_binding_locks_out_others(self, db, alice, bob, carol):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "hi", single_use=False, now=T0)
            await respond(conn, bob.user_id, message.link_token, "accept", now=T0)
            with pytest.raises(ConflictError):
                await respond(conn, carol.user_id, message.link_token, "reject", now=T0)
            stored = await MessageRepository(conn).get_by_id(message.message_id)
        assert stored.recipient_id == bob.user_id
        assert stored.status == MessageStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_expired_wins_over_used(self, db, alice, bob):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "hi", link_expires_in=HOUR, now=T0)
            await respond(conn, bob.user_id, message.link_token, "accept", now=T0)
            with pytest.raises(ExpiredError):
                await respond(conn, bob.user_id, message.link_token, "accept", now=T0 + 2 * HOUR)

    @pytest.mark.asyncio
    async def test_invalid_action(self, db, alice, bob):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "hi", now=T0)
            with pytest.raises(ValidationFailedError):
                await respond(conn, bob.user_id, message.link_token, "maybe", now=T0)
            with pytest.raises(ValidationFailedError):
                parse_action("ACCEPT")

    @pytest.mark.asyncio
    async def test_respond_by_id(self, db, alice, bob):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "hi", now=T0)
            answered = await respond_by_id(conn, bob.user_id, message.message_id, "accept", now=T0)
            with pytest.raises(NotFoundError):
                await respond_by_id(conn, bob.user_id, "missing", "accept", now=T0)
        assert answered.recipient_id == bob.user_id

    @pytest.mark.asyncio
    async def test_concurrent_responses_single_winner(self, db, alice):
        users = []
        async with db.connection() as conn:
            from src.state.accounts import create_user
            for i in range(8):
                users.append(await create_user(conn, f"User {i}", f"user{i}@example.com"))
            message = await create_message(conn, alice.user_id, "first come?", link_expires_in=HOUR)

        async def attempt(user_id: str):
            async with db.connection() as conn:
                return await respond(conn, user_id, message.link_token, "accept")

        results = await asyncio.gather(
            *(attempt(u.user_id) for u in users), return_exceptions=True,
        )
        winners = [r for r in results if not isinstance(r, Exception)]
        losers = [r for r in results if isinstance(r, Exception)]
        assert len(winners) == 1
        assert all(isinstance(e, (AlreadyUsedError, ConflictError)) for e in losers)

        async with db.connection() as conn:
            stored = await MessageRepository(conn).get_by_id(message.message_id)
        assert stored.status == MessageStatus.ACCEPTED
        assert stored.recipient_id == winners[0].recipient_id


class TestQueries:
    @pytest.mark.asyncio
    async def test_participant_visibility(self, db, alice, bob, carol):
        async with db.connection() as conn:
            message = await create_message(conn, alice.user_id, "hi", recipient_id=bob.user_id)
            assert (await get_for_participant(conn, alice.user_id, message.message_id)) == message
            assert (await get_for_participant(conn, bob.user_id, message.message_id)) == message
            with pytest.raises(ForbiddenError):
                await get_for_participant(conn, carol.user_id, message.message_id)

    def test_ensure_status(self):
        assert ensure_status(None) is None
        assert ensure_status("accepted") == MessageStatus.ACCEPTED
        with pytest.raises(ValidationFailedError):
            ensure_status("done")

"""
Songbook Backend: SongStore Tests
=================================

What:  SongStore against a real (in-memory SQLite) database, plus a few
       mocked-session cases for driver behaviour SQLite cannot produce.

What we test:
    ✅ add_song → get_song_by_id round trip, created_at == updated_at
    ✅ edit_song_by_id touches only title/body/tags/updated_at
    ✅ edit/delete of a missing id raise NotFoundError
    ✅ get_songs = owned ∪ granted, deduplicated, nothing else
    ✅ get_users_by_username substring semantics
    ✅ verify_song_owner outcomes
    ✅ Unknown owner → AuthenticationError, deleting a song drops its grants
    ✅ PersistenceInvariantError and DatabaseError wrapping
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from songbook.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    NotFoundError,
    PersistenceInvariantError,
)
from songbook.models import Collaboration
from songbook.services.song_store import SongStore, WriteResult, make_song_id_generator


class TestIdGenerator:

    def test_ids_have_fixed_length(self):
        generate = make_song_id_generator(16)
        ids = {generate() for _ in range(50)}
        assert all(len(song_id) == 16 for song_id in ids)
        assert len(ids) == 50

    def test_rejects_lengths_outside_uuid_hex(self):
        with pytest.raises(ValueError):
            make_song_id_generator(33)


class TestWriteResult:

    def test_matched_reflects_affected_rows(self):
        assert WriteResult(affected=1).matched is True
        assert WriteResult(affected=0).matched is False


class TestAddAndGet:

    @pytest.mark.asyncio
    async def test_add_song_round_trip(self, song_store):
        song_id = await song_store.add_song(
            title="Hallelujah",
            body="I heard there was a secret chord",
            tags=["folk", "cover", "acoustic"],
            owner="user-alice",
        )

        assert song_id
        song = await song_store.get_song_by_id(song_id)
        assert song.id == song_id
        assert song.title == "Hallelujah"
        assert song.body == "I heard there was a secret chord"
        assert song.tags == ["folk", "cover", "acoustic"]
        assert song.owner == "user-alice"
        assert song.created_at == song.updated_at

    @pytest.mark.asyncio
    async def test_get_song_joins_owner_username(self, song_store):
        song_id = await song_store.add_song("Blowin'", "How many roads", [], "user-bob")

        song = await song_store.get_song_by_id(song_id)

        assert song.username == "bob"

    @pytest.mark.asyncio
    async def test_performer_is_optional(self, song_store):
        with_performer = await song_store.add_song(
            "Both Sides Now", "", [], "user-carol", performer="Joni Mitchell"
        )
        without = await song_store.add_song("Untitled", "", [], "user-carol")

        assert (await song_store.get_song_by_id(with_performer)).performer == "Joni Mitchell"
        assert (await song_store.get_song_by_id(without)).performer is None

    @pytest.mark.asyncio
    async def test_uses_injected_id_generator(self, db_session, seeded_users):
        store = SongStore(db_session, id_generator=lambda: "fixed-id-0000001")

        song_id = await store.add_song("Title", "Body", [], "user-alice")

        assert song_id == "fixed-id-0000001"

    @pytest.mark.asyncio
    async def test_unknown_owner_is_rejected(self, song_store, db_session):
        with pytest.raises(AuthenticationError) as exc_info:
            await song_store.add_song("Orphan", "", [], "ghost")

        assert exc_info.value.context == {"owner": "ghost"}
        await db_session.rollback()
        assert await song_store.get_songs("ghost") == []

    @pytest.mark.asyncio
    async def test_timestamps_keep_microseconds_on_whole_seconds(self, song_store):
        # The fake clock starts exactly on a second
        song_id = await song_store.add_song("Tick", "", [], "user-alice")

        song = await song_store.get_song_by_id(song_id)

        assert song.created_at == "2026-01-01T12:00:00.000000+00:00"

    @pytest.mark.asyncio
    async def test_get_missing_song_raises_not_found(self, song_store):
        with pytest.raises(NotFoundError) as exc_info:
            await song_store.get_song_by_id("does-not-exist")

        assert exc_info.value.resource_id == "does-not-exist"


class TestEdit:

    @pytest.mark.asyncio
    async def test_edit_updates_only_editable_fields(self, song_store):
        song_id = await song_store.add_song("Draft", "v1", ["wip"], "user-alice")
        before = await song_store.get_song_by_id(song_id)

        await song_store.edit_song_by_id(song_id, title="Final", body="v2", tags=["done", "pop"])
        after = await song_store.get_song_by_id(song_id)

        assert after.title == "Final"
        assert after.body == "v2"
        assert after.tags == ["done", "pop"]
        assert after.id == before.id
        assert after.owner == before.owner
        assert after.created_at == before.created_at
        assert after.updated_at > before.updated_at

    @pytest.mark.asyncio
    async def test_edit_missing_song_raises_not_found(self, song_store):
        with pytest.raises(NotFoundError):
            await song_store.edit_song_by_id("nope", title="t", body="b", tags=[])


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_removes_song(self, song_store):
        song_id = await song_store.add_song("Gone", "", [], "user-alice")

        await song_store.delete_song_by_id(song_id)

        with pytest.raises(NotFoundError):
            await song_store.get_song_by_id(song_id)

    @pytest.mark.asyncio
    async def test_delete_missing_song_raises_not_found(self, song_store):
        with pytest.raises(NotFoundError):
            await song_store.delete_song_by_id("nope")

    @pytest.mark.asyncio
    async def test_delete_drops_collaborations(self, song_store, db_session, grant_collaboration):
        song_id = await song_store.add_song("Shared", "", [], "user-alice")
        await grant_collaboration(song_id, "user-bob")

        await song_store.delete_song_by_id(song_id)

        remaining = await db_session.scalar(
            select(func.count()).select_from(Collaboration).where(Collaboration.song_id == song_id)
        )
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_second_delete_raises_not_found(self, song_store):
        song_id = await song_store.add_song("Once", "", [], "user-alice")
        await song_store.delete_song_by_id(song_id)

        with pytest.raises(NotFoundError):
            await song_store.delete_song_by_id(song_id)


class TestGetSongs:

    @pytest.mark.asyncio
    async def test_owned_and_granted_songs_are_listed(self, song_store, grant_collaboration):
        own = await song_store.add_song("Alice's song", "", [], "user-alice")
        shared = await song_store.add_song("Bob's shared", "", [], "user-bob")
        private = await song_store.add_song("Bob's private", "", [], "user-bob")
        await grant_collaboration(shared, "user-alice")

        songs = await song_store.get_songs("user-alice")

        ids = [song.id for song in songs]
        assert ids == [own, shared]
        assert private not in ids

    @pytest.mark.asyncio
    async def test_owned_and_granted_song_appears_once(self, song_store, grant_collaboration):
        song_id = await song_store.add_song("Mine and shared", "", [], "user-alice")
        await grant_collaboration(song_id, "user-alice")

        songs = await song_store.get_songs("user-alice")

        assert [song.id for song in songs] == [song_id]

    @pytest.mark.asyncio
    async def test_song_with_many_collaborators_appears_once_for_owner(
        self, song_store, grant_collaboration
    ):
        song_id = await song_store.add_song("Popular", "", [], "user-alice")
        await grant_collaboration(song_id, "user-bob")
        await grant_collaboration(song_id, "user-carol")

        songs = await song_store.get_songs("user-alice")

        assert [song.id for song in songs] == [song_id]

    @pytest.mark.asyncio
    async def test_summary_projects_id_title_performer(self, song_store):
        await song_store.add_song("Jolene", "body", ["country"], "user-carol", performer="Dolly")

        songs = await song_store.get_songs("user-carol")

        assert songs[0].model_dump() == {
            "id": songs[0].id,
            "title": "Jolene",
            "performer": "Dolly",
        }

    @pytest.mark.asyncio
    async def test_user_without_songs_gets_empty_list(self, song_store):
        await song_store.add_song("Someone else's", "", [], "user-bob")

        assert await song_store.get_songs("user-carol") == []


class TestOwnership:

    @pytest.mark.asyncio
    async def test_owner_passes(self, song_store):
        song_id = await song_store.add_song("Mine", "", [], "user-alice")

        await song_store.verify_song_owner(song_id, "user-alice")

    @pytest.mark.asyncio
    async def test_non_owner_raises_authorization_error(self, song_store):
        song_id = await song_store.add_song("Mine", "", [], "user-alice")

        with pytest.raises(AuthorizationError):
            await song_store.verify_song_owner(song_id, "user-bob")

    @pytest.mark.asyncio
    async def test_missing_song_raises_not_found(self, song_store):
        with pytest.raises(NotFoundError):
            await song_store.verify_song_owner("nope", "user-alice")


class TestUserSearch:

    @pytest.mark.asyncio
    async def test_fragment_matches_anywhere_in_username(self, song_store):
        users = await song_store.get_users_by_username("ana")

        assert [user.username for user in users] == ["banana_fan"]

    @pytest.mark.asyncio
    async def test_match_is_case_sensitive(self, song_store):
        users = await song_store.get_users_by_username("Ana")

        assert [user.username for user in users] == ["Anaïs"]

    @pytest.mark.asyncio
    async def test_underscore_matches_literally(self, song_store):
        users = await song_store.get_users_by_username("_")

        assert [user.username for user in users] == ["banana_fan"]

    @pytest.mark.asyncio
    async def test_returns_id_username_fullname(self, song_store):
        users = await song_store.get_users_by_username("bob")

        assert users[0].model_dump() == {
            "id": "user-bob",
            "username": "bob",
            "fullname": "Bob Dylan",
        }

    @pytest.mark.asyncio
    async def test_no_match_returns_empty_list(self, song_store):
        assert await song_store.get_users_by_username("zzz") == []


class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_insert_without_returned_id_raises_invariant_error(self, mock_db_session):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = result
        store = SongStore(mock_db_session)

        with pytest.raises(PersistenceInvariantError):
            await store.add_song("Title", "Body", [], "user-alice")

    @pytest.mark.asyncio
    async def test_zero_rowcount_on_update_raises_not_found(self, mock_db_session):
        result = MagicMock()
        result.rowcount = 0
        mock_db_session.execute.return_value = result
        store = SongStore(mock_db_session)

        with pytest.raises(NotFoundError):
            await store.edit_song_by_id("any", title="t", body="b", tags=[])

    @pytest.mark.asyncio
    async def test_driver_errors_are_wrapped(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection reset"))
        )
        store = SongStore(mock_db_session)

        with pytest.raises(DatabaseError) as exc_info:
            await store.get_songs("user-alice")

        assert exc_info.value.context["operation"] == "get_songs"

    @pytest.mark.asyncio
    async def test_non_foreign_key_integrity_error_is_a_database_error(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: songs.id"))
        )
        store = SongStore(mock_db_session)

        with pytest.raises(DatabaseError) as exc_info:
            await store.add_song("Title", "Body", [], "user-alice")

        assert exc_info.value.context == {"operation": "add_song", "original_error": "IntegrityError"}

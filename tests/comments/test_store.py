"""Tests for the Cassandra comment store."""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch
from uuid import UUID, uuid4

import pytest
from cassandra import OperationTimedOut
from cassandra.cluster import NoHostAvailable, Session

from campaign_comments.comments.models import Comment, create_comment
from campaign_comments.comments.store import CassandraCommentStore, parse_comment_id
from campaign_comments.core.exceptions import PersistenceFailure


def make_row(**overrides) -> SimpleNamespace:
    """Row shaped like the driver's named tuples (naive UTC timestamps)."""
    values = {
        "comment_id": uuid4(),
        "campaign_id": 5,
        "citizen_id": 42,
        "content": "Great initiative",
        "publication_date": datetime(2024, 5, 1, 12, 0, 0),
        "last_modified_date": None,
        "created_at": datetime(2024, 5, 1, 12, 0, 0),
        "updated_at": datetime(2024, 5, 1, 12, 0, 0),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def mock_session():
    """Mock Cassandra session."""
    session = Mock(spec=Session)
    # Each prepared statement remembers its CQL so tests can tell them apart
    session.prepare = Mock(side_effect=lambda cql: Mock(cql=cql))
    # Make aexecute awaitable (cassandra-asyncio-driver)
    session.aexecute = AsyncMock(return_value=Mock())
    session.is_shutdown = False
    return session


@pytest.fixture
def store(mock_session) -> CassandraCommentStore:
    return CassandraCommentStore(session=mock_session, keyspace="test_keyspace")


@pytest.fixture
def mock_batch():
    """Patch BatchStatement so added statements can be inspected."""
    with patch("campaign_comments.comments.store.BatchStatement") as batch_cls:
        yield batch_cls.return_value


class TestParseCommentId:
    def test_uuid_passthrough(self) -> None:
        value = uuid4()
        assert parse_comment_id(value) is value

    def test_string_uuid(self) -> None:
        value = uuid4()
        assert parse_comment_id(str(value)) == value

    @pytest.mark.parametrize("value", ["", "abc", "12345", "not-a-uuid"])
    def test_invalid(self, value: str) -> None:
        assert parse_comment_id(value) is None


class TestStatements:
    def test_statements_use_keyspace(self, mock_session, store) -> None:
        prepared = [call.args[0] for call in mock_session.prepare.call_args_list]
        assert prepared
        assert all("test_keyspace." in cql for cql in prepared)
        assert any("comments_by_campaign" in cql for cql in prepared)


class TestInsert:
    @pytest.mark.asyncio
    async def test_writes_both_tables_in_one_batch(
        self, store, mock_session, mock_batch
    ) -> None:
        comment = create_comment(
            content="hello",
            campaign_id=5,
            citizen_id=42,
            publication_date=datetime(2024, 5, 1, tzinfo=UTC),
        )

        comment_id = await store.insert(comment)

        assert isinstance(comment_id, UUID)
        assert mock_batch.add.call_count == 2
        first, second = mock_batch.add.call_args_list
        assert "INSERT INTO test_keyspace.comments\n" in first.args[0].cql
        assert first.args[1][:4] == [comment_id, 5, 42, "hello"]
        assert "comments_by_campaign" in second.args[0].cql
        assert second.args[1][:3] == [5, comment_id, 42]
        mock_session.aexecute.assert_awaited_once_with(mock_batch, None)

    @pytest.mark.asyncio
    async def test_assigns_fresh_ids(self, store, mock_batch) -> None:
        comment = create_comment("a", 1, 1, datetime.now(UTC))
        assert await store.insert(comment) != await store.insert(comment)


class TestFind:
    @pytest.mark.asyncio
    async def test_find_by_id(self, store, mock_session) -> None:
        row = make_row()
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=row))

        comment = await store.find_by_id(str(row.comment_id))

        assert isinstance(comment, Comment)
        assert comment.comment_id == row.comment_id
        assert comment.publication_date.tzinfo is UTC
        assert comment.last_modified_date is None
        assert mock_session.aexecute.await_args.args[1] == [row.comment_id]

    @pytest.mark.asyncio
    async def test_find_by_id_absent(self, store, mock_session) -> None:
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=None))
        assert await store.find_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_find_by_id_invalid_does_not_query(self, store, mock_session) -> None:
        assert await store.find_by_id("not-a-uuid") is None
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_find_all(self, store, mock_session) -> None:
        rows = [make_row(), make_row(campaign_id=6)]
        mock_session.aexecute.return_value = rows

        comments = await store.find_all()

        assert [c.comment_id for c in comments] == [r.comment_id for r in rows]

    @pytest.mark.asyncio
    async def test_find_by_campaign(self, store, mock_session) -> None:
        mock_session.aexecute.return_value = [make_row(campaign_id=6)]

        comments = await store.find_by_campaign(6)

        assert [c.campaign_id for c in comments] == [6]
        statement, params = mock_session.aexecute.await_args.args
        assert "comments_by_campaign" in statement.cql
        assert params == [6]


class TestReplaceAndDelete:
    @pytest.mark.asyncio
    async def test_replace_updates_both_tables(self, store, mock_session) -> None:
        row = make_row()
        mock_session.aexecute.return_value = Mock(was_applied=True)
        modified = datetime(2024, 5, 2, tzinfo=UTC)
        updated = Comment.from_row(row)
        updated.content = "edited"
        updated.last_modified_date = modified

        assert await store.replace(str(row.comment_id), updated) is True

        first, second = mock_session.aexecute.await_args_list
        statement, params = first.args
        assert "UPDATE test_keyspace.comments\n" in statement.cql
        assert "IF EXISTS" in statement.cql
        assert params[0:2] == ["edited", modified]
        assert params[-1] == row.comment_id
        statement, params = second.args
        assert "comments_by_campaign" in statement.cql
        assert "IF EXISTS" in statement.cql
        assert params[-2:] == [row.campaign_id, row.comment_id]

    @pytest.mark.asyncio
    async def test_replace_does_not_read_first(self, store, mock_session) -> None:
        mock_session.aexecute.return_value = Mock(was_applied=True)
        comment = Comment.from_row(make_row())

        await store.replace(comment.comment_id, comment)

        assert all(
            "UPDATE" in call.args[0].cql
            for call in mock_session.aexecute.await_args_list
        )

    @pytest.mark.asyncio
    async def test_replace_row_deleted_before_write(
        self, store, mock_session, mock_batch
    ) -> None:
        """A row gone at write time is reported absent and nothing is upserted."""
        mock_session.aexecute.return_value = Mock(was_applied=False)
        comment = Comment.from_row(make_row())

        assert await store.replace(comment.comment_id, comment) is False
        mock_session.aexecute.assert_awaited_once()
        mock_batch.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_replace_campaign_row_deleted_concurrently(
        self, store, mock_session
    ) -> None:
        mock_session.aexecute.side_effect = [
            Mock(was_applied=True),
            Mock(was_applied=False),
        ]
        comment = Comment.from_row(make_row())

        assert await store.replace(comment.comment_id, comment) is True
        assert mock_session.aexecute.await_count == 2

    @pytest.mark.asyncio
    async def test_replace_invalid_id(self, store, mock_session) -> None:
        comment = Comment.from_row(make_row())

        assert await store.replace("not-a-uuid", comment) is False
        mock_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_removes_both_rows(
        self, store, mock_session, mock_batch
    ) -> None:
        row = make_row()
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=row))

        assert await store.delete_by_id(str(row.comment_id)) is True

        first, second = mock_batch.add.call_args_list
        assert first.args[1] == [row.comment_id]
        assert second.args[1] == [row.campaign_id, row.comment_id]

    @pytest.mark.asyncio
    async def test_delete_absent(self, store, mock_session, mock_batch) -> None:
        mock_session.aexecute.return_value = Mock(one=Mock(return_value=None))
        assert await store.delete_by_id(uuid4()) is False
        mock_batch.add.assert_not_called()


class TestErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [OperationTimedOut("timeout"), NoHostAvailable("down", {})],
    )
    async def test_driver_errors_become_persistence_failure(
        self, store, mock_session, error
    ) -> None:
        mock_session.aexecute.side_effect = error
        with pytest.raises(PersistenceFailure):
            await store.find_all()

    @pytest.mark.asyncio
    async def test_is_ready_follows_session(self, store, mock_session) -> None:
        assert await store.is_ready() is True
        mock_session.is_shutdown = True
        assert await store.is_ready() is False

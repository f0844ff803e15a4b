"""Tests for the Cassandra user store and role parsing."""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from edumarket.auth.models import User
from edumarket.auth.permissions import DEFAULT_ROLE, UserRole, is_admin, parse_role
from edumarket.auth.store import CassandraUserStore, DuplicateEmailError
from edumarket.core.errors import StoreError


def make_row(**overrides) -> SimpleNamespace:
    values = {
        "id": "user-1",
        "full_name": "Alice",
        "email": "Alice@Example.com",
        "password_hash": "ab" * 64,
        "password_salt": "cd" * 16,
        "role": "consumer",
        "is_active": True,
        "created_at": None,
        "updated_at": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def mock_session() -> Mock:
    """Cassandra session whose prepare returns distinct statement objects."""
    session = Mock()
    session.prepare.side_effect = lambda cql: Mock(query=cql)
    return session


@pytest.fixture
def store(mock_session: Mock) -> CassandraUserStore:
    return CassandraUserStore(mock_session, "edumarket")


class TestRoles:
    """Tests for role parsing."""

    def test_default_role(self) -> None:
        assert parse_role(None) == DEFAULT_ROLE == UserRole.CONSUMER

    def test_known_roles(self) -> None:
        assert parse_role("admin") == UserRole.ADMIN
        assert parse_role(UserRole.CONSUMER) == UserRole.CONSUMER

    def test_unknown_role(self) -> None:
        assert parse_role("instructor") is None
        assert parse_role("ADMIN") is None

    def test_is_admin(self) -> None:
        assert is_admin("admin")
        assert is_admin(UserRole.ADMIN)
        assert not is_admin("consumer")


class TestCassandraUserStore:
    """Tests for CassandraUserStore against a mocked session."""

    def test_find_by_id(self, store: CassandraUserStore, mock_session: Mock) -> None:
        mock_session.execute.return_value.one.return_value = make_row()

        user = store.find_by_id("user-1")

        assert user.email == "Alice@Example.com"
        assert user.created_at.tzinfo is not None
        statement, params = mock_session.execute.call_args.args
        assert "FROM edumarket.users WHERE id = ?" in statement.query
        assert params == ["user-1"]

    def test_find_by_id_missing(
        self, store: CassandraUserStore, mock_session: Mock
    ) -> None:
        mock_session.execute.return_value.one.return_value = None
        assert store.find_by_id("nope") is None

    def test_find_by_email_uses_claim_table(
        self, store: CassandraUserStore, mock_session: Mock
    ) -> None:
        claim = Mock()
        claim.one.return_value = SimpleNamespace(user_id="user-1")
        user_row = Mock()
        user_row.one.return_value = make_row()
        mock_session.execute.side_effect = [claim, user_row]

        user = store.find_by_email("Alice@Example.com")

        assert user.id == "user-1"
        first_statement, first_params = mock_session.execute.call_args_list[0].args
        assert "users_by_email" in first_statement.query
        assert first_params == ["Alice@Example.com"]

    def test_find_by_email_missing(
        self, store: CassandraUserStore, mock_session: Mock
    ) -> None:
        mock_session.execute.return_value.one.return_value = None
        assert store.find_by_email("ghost@example.com") is None
        assert mock_session.execute.call_count == 1

    def test_insert_claims_email_then_writes_user(
        self, store: CassandraUserStore, mock_session: Mock
    ) -> None:
        mock_session.execute.return_value.was_applied = True
        user = User(id="user-1", full_name="Alice", email="alice@example.com")

        store.insert(user)

        claim_statement, claim_params = mock_session.execute.call_args_list[0].args
        assert "IF NOT EXISTS" in claim_statement.query
        assert claim_params == ["alice@example.com", "user-1"]
        insert_statement, insert_params = mock_session.execute.call_args_list[1].args
        assert "INSERT INTO edumarket.users" in insert_statement.query
        assert insert_params[-1] == user.updated_at
        assert user.updated_at is not None

    def test_insert_duplicate_email(
        self, store: CassandraUserStore, mock_session: Mock
    ) -> None:
        mock_session.execute.return_value.was_applied = False
        user = User(id="user-2", full_name="Bob", email="alice@example.com")

        with pytest.raises(DuplicateEmailError):
            store.insert(user)

        assert mock_session.execute.call_count == 1

    def test_insert_failure_releases_claim(
        self, store: CassandraUserStore, mock_session: Mock
    ) -> None:
        applied = Mock(was_applied=True)
        mock_session.execute.side_effect = [applied, RuntimeError("timeout"), Mock()]
        user = User(id="user-1", full_name="Alice", email="alice@example.com")

        with pytest.raises(StoreError):
            store.insert(user)

        release_statement, release_params = mock_session.execute.call_args_list[2].args
        assert "DELETE FROM edumarket.users_by_email" in release_statement.query
        assert release_params == ["alice@example.com", "user-1"]

    def test_update_stamps_updated_at(
        self, store: CassandraUserStore, mock_session: Mock
    ) -> None:
        user = User(id="user-1", full_name="Alice", email="a@example.com")
        user.is_active = False

        store.update(user)

        _, params = mock_session.execute.call_args.args
        assert params == ["Alice", "consumer", False, user.updated_at, "user-1"]
        assert user.updated_at is not None

    def test_driver_errors_become_store_errors(
        self, store: CassandraUserStore, mock_session: Mock
    ) -> None:
        mock_session.execute.side_effect = ConnectionError("no host available")

        with pytest.raises(StoreError) as exc_info:
            store.find_by_id("user-1")

        assert isinstance(exc_info.value.__cause__, ConnectionError)

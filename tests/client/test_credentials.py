"""Tests for credential persistence."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from chatsync.client.credentials import CredentialStore, CredentialStoreError
from chatsync.client.session import Session


@pytest.fixture
def store(tmp_path: Path) -> CredentialStore:
    """Create a credential store in a temporary directory."""
    return CredentialStore(tmp_path / "session.json")


class TestCredentialStore:
    """Tests for CredentialStore."""

    def test_load_missing_file_returns_none(self, store: CredentialStore) -> None:
        """Should treat a missing file as no stored session."""
        assert store.exists() is False
        assert store.load() is None

    def test_save_then_load_round_trip(self, store: CredentialStore) -> None:
        """Should reproduce the four persisted fields exactly."""
        session = Session(
            server_url="https://example.org",
            timeout=45.5,
            access_token="syt_token",
            next_batch="s72594_4483_1934",
        )

        store.save(session)
        data = store.load()

        assert data == {
            "server_url": "https://example.org",
            "timeout": 45.5,
            "access_token": "syt_token",
            "next_batch": "s72594_4483_1934",
        }

    def test_round_trip_with_absent_token_and_cursor(self, store: CredentialStore) -> None:
        """Should keep None values for a session that never logged in."""
        store.save(Session(server_url="https://example.org"))

        data = store.load()

        assert data is not None
        assert data["access_token"] is None
        assert data["next_batch"] is None

    def test_save_creates_parent_dirs(self, tmp_path: Path) -> None:
        """Should create missing parent directories."""
        store = CredentialStore(tmp_path / "nested" / "dir" / "session.json")
        store.save(Session(server_url="https://example.org"))
        assert store.exists()

    def test_save_writes_only_four_fields(self, store: CredentialStore) -> None:
        """The record should not include runtime-only state."""
        store.save(Session(server_url="https://example.org", access_token="t"))

        record = json.loads(store.path.read_text())

        assert set(record) == {"server_url", "timeout", "access_token", "next_batch"}

    def test_save_leaves_no_temporary_file(self, store: CredentialStore) -> None:
        """The temporary file should be renamed over the target."""
        store.save(Session(server_url="https://example.org"))
        assert [p.name for p in store.path.parent.iterdir()] == ["session.json"]

    def test_save_overwrites_previous_record(self, store: CredentialStore) -> None:
        """Should replace the previous record as a whole."""
        store.save(Session(server_url="https://example.org", next_batch="s1"))
        store.save(Session(server_url="https://example.org", next_batch="s2"))

        data = store.load()

        assert data is not None
        assert data["next_batch"] == "s2"

    def test_load_corrupt_file_raises(self, store: CredentialStore) -> None:
        """Should raise CredentialStoreError for invalid JSON."""
        store.path.write_text("{not json")
        with pytest.raises(CredentialStoreError):
            store.load()

    def test_load_non_object_raises(self, store: CredentialStore) -> None:
        """Should raise CredentialStoreError when the record is not an object."""
        store.path.write_text("[1, 2, 3]")
        with pytest.raises(CredentialStoreError):
            store.load()

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("timeout", "thirty"),
            ("timeout", True),
            ("server_url", 42),
            ("access_token", ["tok"]),
            ("next_batch", {"s": 1}),
        ],
    )
    def test_load_wrong_field_type_raises(
        self, store: CredentialStore, field: str, value: object
    ) -> None:
        """Should raise CredentialStoreError for a hand-edited field of the wrong type."""
        record = {"server_url": "https://x", "timeout": 30.0, "access_token": "tok", "next_batch": "s1"}
        record[field] = value
        store.path.write_text(json.dumps(record))

        with pytest.raises(CredentialStoreError, match=field):
            store.load()

    def test_load_accepts_integer_timeout(self, store: CredentialStore) -> None:
        store.path.write_text(json.dumps({"server_url": "https://x", "timeout": 20}))

        data = store.load()

        assert data is not None
        assert Session.from_credentials(data).timeout == 20.0

    def test_load_ignores_unknown_fields(self, store: CredentialStore) -> None:
        """Should only return the persisted fields."""
        store.path.write_text(json.dumps({"server_url": "https://x", "extra": 1}))

        data = store.load()

        assert data == {
            "server_url": "https://x",
            "timeout": None,
            "access_token": None,
            "next_batch": None,
        }

    def test_save_failure_raises(self, tmp_path: Path) -> None:
        """Should raise CredentialStoreError when the target is a directory."""
        target = tmp_path / "session.json"
        target.mkdir()
        store = CredentialStore(target)

        with pytest.raises(CredentialStoreError):
            store.save(Session(server_url="https://example.org"))


class TestSessionFromCredentials:
    """Tests for building a Session from stored fields."""

    def test_no_stored_data_uses_defaults(self) -> None:
        """Should fall back to caller defaults when nothing is stored."""
        session = Session.from_credentials(None, server_url="https://d", timeout=12)

        assert session.server_url == "https://d"
        assert session.timeout == 12.0
        assert session.access_token is None
        assert session.next_batch is None

    def test_stored_data_wins(self) -> None:
        """Stored fields should override the defaults."""
        session = Session.from_credentials(
            {
                "server_url": "https://stored",
                "timeout": 5,
                "access_token": "tok",
                "next_batch": "s9",
            },
            server_url="https://d",
            timeout=12,
        )

        assert session.server_url == "https://stored"
        assert session.timeout == 5.0
        assert session.logged_in is True
        assert session.next_batch == "s9"

    def test_to_credentials(self) -> None:
        """Should expose exactly the persisted fields."""
        session = Session(server_url="https://x", access_token="t", next_batch="s")
        assert session.to_credentials() == {
            "server_url": "https://x",
            "timeout": 30.0,
            "access_token": "t",
            "next_batch": "s",
        }

    def test_sessions_own_their_transaction_ids(self) -> None:
        """Each session should get its own counter."""
        first = Session(server_url="https://x")
        second = Session(server_url="https://x")
        first.txn_ids.next()
        assert first.txn_ids is not second.txn_ids
        assert second.txn_ids.counter == 0

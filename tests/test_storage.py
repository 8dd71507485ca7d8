"""Tests for the storage module.

Tests cover:
- Storage configuration functions and environment overrides
- Parametrized integration tests to verify both backends pass identical tests
"""

import pytest

from tribes.services import new_game
from tribes.storage.config import (
    DEFAULT_TURN_TIMEOUT,
    StorageBackend,
    get_game_repository,
    get_storage_backend,
    get_turn_timeout,
)
from tribes.storage.file_repo import FileGameStateRepository
from tribes.storage.sqlite_repo import SQLiteGameStateRepository


# ============================================================================
# Config Tests
# ============================================================================


class TestStorageConfig:
    """Tests for storage configuration functions."""

    def test_default_backend_is_file(self, monkeypatch):
        monkeypatch.delenv("TRIBES_STORAGE_BACKEND", raising=False)
        assert get_storage_backend() == StorageBackend.FILE

    def test_sqlite_backend_from_env(self, monkeypatch):
        monkeypatch.setenv("TRIBES_STORAGE_BACKEND", "SQLite")
        assert get_storage_backend() == StorageBackend.SQLITE

    def test_factory_builds_configured_repository(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TRIBES_GAMES_PATH", str(tmp_path / "games"))
        monkeypatch.setenv("TRIBES_DATABASE_URI", str(tmp_path / "db" / "tribes.db"))
        assert isinstance(get_game_repository(StorageBackend.FILE), FileGameStateRepository)
        assert isinstance(get_game_repository(StorageBackend.SQLITE), SQLiteGameStateRepository)

    def test_turn_timeout(self, monkeypatch):
        monkeypatch.delenv("TRIBES_TURN_TIMEOUT", raising=False)
        assert get_turn_timeout() == DEFAULT_TURN_TIMEOUT
        monkeypatch.setenv("TRIBES_TURN_TIMEOUT", "2.5")
        assert get_turn_timeout() == 2.5

    def test_bad_turn_timeout_raises(self, monkeypatch):
        monkeypatch.setenv("TRIBES_TURN_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="TRIBES_TURN_TIMEOUT") as exc:
            get_turn_timeout()
        assert exc.value.__cause__ is None
        assert exc.value.__suppress_context__


# ============================================================================
# Parametrized Integration Tests - Both Backends
# ============================================================================


@pytest.fixture(params=["file", "sqlite"])
def repo(request, tmp_path):
    """Parametrized fixture that yields both repository types."""
    if request.param == "file":
        return FileGameStateRepository(tmp_path / "games")
    return SQLiteGameStateRepository(str(tmp_path / "test.db"))


class TestGameStateRepositoryIntegration:
    """Tests that run against both File and SQLite implementations."""

    def test_save_and_load(self, repo):
        state = new_game(["Ravagers", "Dustwalkers"], radius=3, seed=4)
        repo.save_game("demo", state)
        assert repo.load_game("demo") == state

    def test_load_missing_returns_none(self, repo):
        assert repo.load_game("nonexistent") is None

    def test_save_overwrites(self, repo):
        state = new_game(["Ravagers", "Dustwalkers"], radius=3)
        repo.save_game("demo", state)
        later = state.model_copy(deep=True)
        later.turn = 4
        repo.save_game("demo", later)
        assert repo.load_game("demo").turn == 4

    def test_list_games(self, repo):
        repo.save_game("one", new_game(["A", "B"], radius=2))
        repo.save_game("two", new_game(["A", "B", "C"], radius=2))
        games = {g["id"]: g for g in repo.list_games()}
        assert set(games) == {"one", "two"}
        assert games["two"]["tribes"] == 3
        assert games["one"]["turn"] == 1

    def test_delete_game(self, repo):
        repo.save_game("demo", new_game(["A", "B"], radius=2))
        assert repo.delete_game("demo") is True
        assert repo.load_game("demo") is None
        assert repo.delete_game("demo") is False

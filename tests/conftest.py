"""Pytest fixtures for record store tests."""

import pytest

from record_store import Collection, MemoryPersistenceStrategy, Record
from record_store import log


class User(Record):
    name: str = ""
    role: str = ""


class Users(Collection[User]):
    record_class = User


@pytest.fixture(autouse=True)
def isolated_log(tmp_path, monkeypatch):
    """Send store_log output to a per-test file instead of the user's home."""
    log_file = tmp_path / "logs" / "record_store.log"
    monkeypatch.setattr(log, "LOG", True)
    monkeypatch.setattr(log, "LOG_TO_STDERR", False)
    monkeypatch.setattr(log, "LOG_FILE", log_file)
    monkeypatch.setattr(log, "first_line", True)
    yield log_file


@pytest.fixture
def users():
    return Users()


@pytest.fixture
def remote():
    return MemoryPersistenceStrategy({
        1: {"id": 1, "name": "ada", "role": "admin"},
        2: {"id": 2, "name": "bob", "role": "member"},
        3: {"id": 3, "name": "cyd", "role": "admin"},
    })

"""Pytest configuration and shared fixtures.

Ensure the project root is on sys.path so tests can import the package
without requiring PYTHONPATH to be set externally.
"""
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    # Insert repo root (one level up from tests/) to sys.path
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def memory_store():
    from hypha_lib.session import KeyedLockProvider, SessionStore
    from hypha_lib.storage import MemoryStorage

    return SessionStore(MemoryStorage(), KeyedLockProvider())


@pytest.fixture
def file_store(tmp_path):
    from hypha_lib.session import FileLockProvider, SessionStore
    from hypha_lib.storage import FileStorageBackend

    return SessionStore(FileStorageBackend(data_dir=tmp_path / "data"), FileLockProvider(tmp_path / "locks"))


@pytest.fixture(params=["memory", "file"])
def store(request):
    """A SessionStore over each backend/lock provider pairing."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def app(tmp_path):
    from hypha_lib.main import create_app, Config
    from tests.helpers import add_session_routes

    app = create_app(Config(data_dir=str(tmp_path / "data"), storage_backend="memory"))
    add_session_routes(app)
    return app


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app, raise_server_exceptions=False)

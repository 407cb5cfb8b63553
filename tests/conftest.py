"""Pytest configuration and shared fixtures."""

import pytest

from profiledb.backends import register_backend, unregister_backend
from profiledb.core.connection import DatabaseConnection
from profiledb.manager import DatabaseManager
from profiledb.profiles import DatabaseProfile


APP_NAME = "shop-ui"


class FakeClock:
    """Manually advanced clock in seconds."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingBackend:
    """Provider and actions fake that records every call in order."""

    def __init__(self, **_options):
        self.events = []
        self.search_result = "[]"

    def connect(self, profile):
        self.events.append(("connect", profile.name))
        return DatabaseConnection(profile_name=profile.name, native=object(), provider=self)

    def disconnect(self, connection):
        self.events.append(("disconnect", connection.profile_name))
        connection.closed = True

    def read_as_json(self, connection, entity_name, statement):
        self.events.append(("search", connection.profile_name, entity_name, statement))
        return self.search_result

    def update(self, connection, entity_name, statement):
        self.events.append(("update", connection.profile_name, entity_name, statement))

    def delete(self, connection, entity_name, statement):
        self.events.append(("delete", connection.profile_name, entity_name, statement))

    def insert(self, connection, entity_name, statement):
        self.events.append(("insert", connection.profile_name, entity_name, statement))

    def insert_batch(self, connection, entity_name, statements):
        self.events.append(("insert_batch", connection.profile_name, entity_name, list(statements)))

    def create(self, connection, entity_name, statement):
        self.events.append(("create", connection.profile_name, entity_name, statement))

    def drop(self, connection, entity_name, statement):
        self.events.append(("drop", connection.profile_name, entity_name, statement))

    def count(self, kind):
        return sum(1 for event in self.events if event[0] == kind)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_backend():
    return RecordingBackend()


@pytest.fixture
def fake_manager(recording_backend):
    """Manager with two profiles whose provider is the shared recording backend."""
    register_backend("fake", lambda **_options: recording_backend)
    manager = DatabaseManager(session_expiry_seconds=60)
    manager.register_profile(APP_NAME, DatabaseProfile(name="qa", backend="fake"))
    manager.register_profile(APP_NAME, DatabaseProfile(name="staging", backend="fake"))
    yield manager
    unregister_backend("fake")


@pytest.fixture
def sqlite_profiles_file(tmp_path):
    """Profiles YAML with a file-backed SQLite profile."""
    db_path = tmp_path / "shop.db"
    path = tmp_path / "profiles.yaml"
    path.write_text(
        f"""
apps:
  {APP_NAME}:
    profiles:
      - name: local
        backend: sqlite
        database: "{db_path.as_posix()}"
      - name: scratch
        backend: sqlite
        database: "{(tmp_path / 'scratch.db').as_posix()}"
        target_servers: [ci]
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def sqlite_manager(sqlite_profiles_file):
    return DatabaseManager.from_file(sqlite_profiles_file, session_expiry_seconds=60)

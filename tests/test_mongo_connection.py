"""
Tests for MongoDB connection retries (no server needed: the client is faked).
"""

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from invoice_dashboard.core.config import Settings
from invoice_dashboard.services.storage.mongo import MongoConnection, MongoConnectionError


class FakeAdmin:
    def __init__(self, fail):
        self.fail = fail

    def command(self, name):
        if self.fail:
            raise ServerSelectionTimeoutError("no servers found")
        return {"ok": 1}


class FakeDatabase:
    def __init__(self, name):
        self.name = name


class FakeClient:
    def __init__(self, fail):
        self.admin = FakeAdmin(fail)
        self.closed = False

    def __getitem__(self, name):
        return FakeDatabase(name)

    def get_default_database(self, default=None):
        return FakeDatabase(default)

    def close(self):
        self.closed = True


class ClientFactory:
    """Fails the first `failures` connection attempts"""

    def __init__(self, failures):
        self.failures = failures
        self.clients = []
        self.kwargs = None

    def __call__(self, uri, **kwargs):
        self.kwargs = kwargs
        client = FakeClient(fail=len(self.clients) < self.failures)
        self.clients.append(client)
        return client


def _settings(**overrides):
    return Settings(_env_file=None, MONGO_CONNECT_RETRIES=5, MONGO_RETRY_DELAY_SECONDS=5, **overrides)


def test_connects_after_transient_failures():
    factory = ClientFactory(failures=2)
    sleeps = []
    connection = MongoConnection(_settings(MONGODB_DB="invoices-test"), client_factory=factory, sleep=sleeps.append)

    db = connection.connect()

    assert db.name == "invoices-test"
    assert len(factory.clients) == 3
    assert sleeps == [5.0, 5.0]
    assert factory.clients[0].closed and factory.clients[1].closed
    assert factory.kwargs["maxPoolSize"] == 10
    assert factory.kwargs["minPoolSize"] == 5


def test_gives_up_after_retries():
    factory = ClientFactory(failures=100)
    sleeps = []
    connection = MongoConnection(_settings(), client_factory=factory, sleep=sleeps.append)

    with pytest.raises(MongoConnectionError, match="after 6 attempts"):
        connection.connect()

    assert len(factory.clients) == 6
    assert len(sleeps) == 5


def test_default_database_from_uri():
    connection = MongoConnection(_settings(), client_factory=ClientFactory(failures=0), sleep=lambda s: None)
    assert connection.connect().name == "pdf-dashboard"


def test_close_releases_client_and_next_connect_starts_fresh():
    factory = ClientFactory(failures=0)
    connection = MongoConnection(_settings(), client_factory=factory, sleep=lambda s: None)

    first = connection.connect()
    assert connection.connect() is first
    connection.close()

    assert factory.clients[0].closed
    connection.connect()
    assert len(factory.clients) == 2
    assert not factory.clients[1].closed

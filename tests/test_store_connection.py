import asyncio
from dataclasses import replace
from types import SimpleNamespace

import pytest
from pymongo.errors import ConnectionFailure

from report_dashboard.config import load_settings
from report_dashboard.services.store_connection import StoreConnection


class _Admin:
    def __init__(self, fail: bool) -> None:
        self.fail = fail

    async def command(self, name):
        if self.fail:
            raise ConnectionFailure("connection refused")
        return {"ok": 1}


class _Client(dict):
    def __init__(self, fail: bool = False) -> None:
        super().__init__(reports={"files": SimpleNamespace(name="files")})
        self.admin = _Admin(fail)
        self.closed = False

    async def close(self):
        self.closed = True


@pytest.fixture
def store_settings():
    settings = load_settings(env={"MONGODB_DATABASE": "reports"})
    return settings.store


def test_disabled_store_never_connects(store_settings):
    connection = StoreConnection(replace(store_settings, enabled=False), client=_Client())
    assert asyncio.run(connection.connect()) is False
    assert not connection.connected


def test_collection_requires_client(store_settings):
    with pytest.raises(RuntimeError):
        StoreConnection(store_settings).collection


def test_connect_and_close(store_settings):
    client = _Client()
    connection = StoreConnection(store_settings, client=client)
    assert asyncio.run(connection.connect()) is True
    assert connection.connected
    assert connection.collection.name == "files"

    asyncio.run(connection.close())
    assert client.closed
    assert not connection.connected


def test_failed_ping_leaves_store_disconnected(store_settings):
    connection = StoreConnection(store_settings, client=_Client(fail=True))
    assert asyncio.run(connection.connect()) is False
    assert not connection.connected

import logging

import pytest

from cmsinstaller.errors import InstallerError
from cmsinstaller.services.filesystem import FileSystemService
from cmsinstaller.services.runtime import ApplicationRuntime


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeConnection:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def _runtime(tmp_path, connections):
    def fake_connect(**kwargs):
        connection = FakeConnection()
        connections.append((kwargs, connection))
        return connection

    logger = logging.getLogger("cmsinstaller.tests")
    return ApplicationRuntime(
        environment="dev",
        debug=True,
        install_root=str(tmp_path),
        database_params={"username": "cms", "password": "pw", "dbname": "cms", "host": "db", "port": 3306},
        filesystem_service=FileSystemService(logger=logger, console=DummyConsole()),
        logger=logger,
        connect=fake_connect,
    )


def test_container_requires_boot(tmp_path):
    runtime = _runtime(tmp_path, [])

    with pytest.raises(InstallerError, match="not been booted"):
        runtime.container


def test_boot_opens_single_connection(tmp_path):
    connections = []
    runtime = _runtime(tmp_path, connections)

    runtime.boot()
    runtime.boot()

    assert len(connections) == 1
    kwargs, connection = connections[0]
    assert kwargs["user"] == "cms"
    assert kwargs["autocommit"] is False
    assert runtime.container.connection is connection


def test_clear_cache_recreates_environment_cache_dir(tmp_path):
    runtime = _runtime(tmp_path, [])
    runtime.boot()
    stale = tmp_path / "var" / "cache" / "dev" / "container.cache"
    stale.parent.mkdir(parents=True)
    stale.write_text("stale", encoding="utf-8")

    runtime.container.clear_cache()

    assert (tmp_path / "var" / "cache" / "dev").is_dir()
    assert not stale.exists()


def test_shutdown_closes_connection(tmp_path):
    connections = []
    runtime = _runtime(tmp_path, connections)
    runtime.boot()

    runtime.shutdown()

    assert connections[0][1].closed is True
    assert runtime.booted is False

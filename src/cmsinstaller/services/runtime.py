"""Application runtime booted during installation."""

import logging
import os
from typing import Any, Callable, Dict, Optional

import pymysql

from cmsinstaller.constants import CACHE_DIR, DIR_MODE
from cmsinstaller.errors import InstallerError
from cmsinstaller.services.database import connection_kwargs


class RuntimeContainer:
    """Services exposed by a booted runtime."""

    def __init__(self, connection, cache_dir: str, filesystem_service):
        self.connection = connection
        self.cache_dir = cache_dir
        self.filesystem_service = filesystem_service

    def clear_cache(self):
        self.filesystem_service.cleanup_dir(self.cache_dir)
        self.filesystem_service.ensure_dir(self.cache_dir, DIR_MODE)


class ApplicationRuntime:
    """Owns the long-lived database connection used by schema and seed steps."""

    def __init__(
        self,
        environment: str,
        debug: bool,
        install_root: str,
        database_params: Dict[str, Any],
        filesystem_service,
        logger: Optional[logging.Logger] = None,
        connect: Callable[..., Any] = pymysql.connect,
    ):
        self.environment = environment
        self.debug = debug
        self.install_root = install_root
        self.database_params = dict(database_params)
        self.filesystem_service = filesystem_service
        self.logger = logger or logging.getLogger("cmsinstaller")
        self.connect = connect
        self._container: Optional[RuntimeContainer] = None

    @property
    def booted(self) -> bool:
        return self._container is not None

    @property
    def container(self) -> RuntimeContainer:
        if self._container is None:
            raise InstallerError("Runtime has not been booted.")
        return self._container

    @property
    def cache_dir(self) -> str:
        return os.path.join(self.install_root, CACHE_DIR, self.environment)

    def boot(self):
        if self._container is not None:
            return

        self.logger.info("Booting runtime (environment=%s, debug=%s)", self.environment, self.debug)
        kwargs = connection_kwargs(self.database_params)
        kwargs["autocommit"] = False
        connection = self.connect(**kwargs)
        self._container = RuntimeContainer(
            connection=connection,
            cache_dir=self.cache_dir,
            filesystem_service=self.filesystem_service,
        )

    def shutdown(self):
        if self._container is None:
            return

        try:
            self._container.connection.close()
        except pymysql.MySQLError as exc:
            self.logger.warning("Could not close runtime connection: %s", exc)
        self._container = None

"""Schema creation and content seeding for a fresh installation."""

import base64
import hashlib
import hmac
import os
import secrets
from pathlib import Path
from typing import Any, Dict, Optional

import pymysql
import yaml

from cmsinstaller.constants import SECRET_FILE_MODE, SYSTEM_CONFIG_PATH
from cmsinstaller.errors import InstallerError
from cmsinstaller.services.database import split_statements

SCHEMA_FILE = Path(__file__).resolve().parent.parent / "resources" / "install.sql"

PASSWORD_ITERATIONS = 260000


def hash_password(password: str, salt: Optional[str] = None, iterations: int = PASSWORD_ITERATIONS) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    encoded = base64.b64encode(digest).decode("ascii")
    return f"pbkdf2_sha256${iterations}${salt}${encoded}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt, _ = password_hash.split("$", 3)
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    return hmac.compare_digest(hash_password(password, salt, int(iterations)), password_hash)


class SetupService:
    """Schema and seed operations executed against a booted runtime."""

    def __init__(self, runtime, install_root: str, filesystem_service, logger, schema_file=SCHEMA_FILE):
        self.runtime = runtime
        self.install_root = install_root
        self.filesystem_service = filesystem_service
        self.logger = logger
        self.schema_file = Path(schema_file)
        self.settings: Dict[str, Any] = {}

    @property
    def config_file(self) -> str:
        return os.path.join(self.install_root, SYSTEM_CONFIG_PATH)

    def config(self, settings: Dict[str, Any]):
        """Persists system settings so the installed application can read them."""
        self.settings = dict(settings)
        os.makedirs(os.path.dirname(self.config_file), exist_ok=True)
        fd = os.open(self.config_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SECRET_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
            yaml.safe_dump(self.settings, file_obj, default_flow_style=False, sort_keys=True)
        self.filesystem_service.set_permissions(self.config_file, SECRET_FILE_MODE)
        self.logger.debug("Wrote system config to %s", self.config_file)

    def database(self):
        self.logger.info("Creating database schema...")
        self._execute_file(self.schema_file)

    def insert_dump(self, dump_file: str):
        if not os.path.isfile(dump_file):
            raise InstallerError(f"Database dump not found: {dump_file}")
        self._execute_file(Path(dump_file))

    def contents(self, credentials: Dict[str, str]):
        """Creates the root elements of an empty installation and the admin user."""
        self._execute(
            [
                (
                    "INSERT INTO documents (id, parent_id, type, name, path, published) "
                    "VALUES (1, 0, 'page', '', '/', 1)",
                    None,
                ),
                (
                    "INSERT INTO assets (id, parent_id, type, filename, path) "
                    "VALUES (1, 0, 'folder', '', '/')",
                    None,
                ),
                (
                    "INSERT INTO objects (id, parent_id, type, name, path) "
                    "VALUES (1, 0, 'folder', '', '/')",
                    None,
                ),
            ]
        )
        self.create_or_update_user(credentials)

    def create_or_update_user(self, credentials: Dict[str, str]):
        username = credentials["username"]
        password_hash = hash_password(credentials["password"])
        self.logger.info("Creating admin user %s", username)
        self._execute(
            [
                (
                    "INSERT INTO users (name, password, admin, active) VALUES (%s, %s, 1, 1) "
                    "ON DUPLICATE KEY UPDATE password = VALUES(password), admin = 1, active = 1",
                    (username, password_hash),
                )
            ]
        )

    def _execute_file(self, path: Path):
        try:
            sql = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InstallerError(f"Could not read SQL file '{path}': {exc}") from exc

        self._execute([(statement, None) for statement in split_statements(sql)])

    def _execute(self, statements):
        connection = self.runtime.container.connection
        try:
            with connection.cursor() as cursor:
                for statement, args in statements:
                    cursor.execute(statement, args)
            connection.commit()
        except Exception:
            try:
                connection.rollback()
            except pymysql.MySQLError as exc:
                self.logger.warning("Rollback failed: %s", exc)
            raise

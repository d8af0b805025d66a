"""MySQL connection helpers for cmsinstaller."""

import contextlib
from typing import Any, Callable, Dict, Iterator, List, Optional

import pymysql

from cmsinstaller.constants import DEFAULT_MYSQL_PORT, SUPPORTED_CHARSETS
from cmsinstaller.models import ErrorKind, InstallIssue


def connection_kwargs(db_config: Dict[str, Any]) -> Dict[str, Any]:
    """Translates an install DB config into PyMySQL keyword arguments."""
    kwargs: Dict[str, Any] = {
        "user": db_config.get("user", db_config.get("username")),
        "password": db_config.get("password") or "",
        "database": db_config.get("dbname"),
        "charset": "utf8mb4",
    }

    if db_config.get("unix_socket"):
        kwargs["unix_socket"] = db_config["unix_socket"]
    else:
        kwargs["host"] = db_config.get("host") or "localhost"
        kwargs["port"] = int(db_config.get("port") or DEFAULT_MYSQL_PORT)

    return kwargs


_QUOTES = ("'", '"', "`")


def _line_comment_at(sql: str, index: int) -> bool:
    if sql[index] == "#":
        return True
    if not sql.startswith("--", index):
        return False
    return index + 2 == len(sql) or sql[index + 2].isspace()


def split_statements(sql: str) -> List[str]:
    """Splits a SQL dump into statements on `;` outside quotes and comments.

    Quoted strings and identifiers are copied verbatim. `--` and `#` comments
    and plain `/* */` blocks are dropped, while MySQL conditional comments
    (`/*! ... */`) are kept since the server executes them.
    """
    statements: List[str] = []
    buffer: List[str] = []
    quote: Optional[str] = None
    index = 0
    length = len(sql)

    def flush():
        statement = "".join(buffer).strip()
        if statement:
            statements.append(statement)
        buffer.clear()

    while index < length:
        char = sql[index]

        if quote:
            buffer.append(char)
            if char == "\\" and quote != "`" and index + 1 < length:
                buffer.append(sql[index + 1])
                index += 2
                continue
            if char == quote:
                quote = None
            index += 1
            continue

        if char in _QUOTES:
            quote = char
            buffer.append(char)
            index += 1
        elif _line_comment_at(sql, index):
            end = sql.find("\n", index)
            index = length if end == -1 else end
        elif sql.startswith("/*", index):
            end = sql.find("*/", index + 2)
            end = length if end == -1 else end + 2
            buffer.append(sql[index:end] if sql.startswith("/*!", index) else " ")
            index = end
        elif char == ";":
            flush()
            index += 1
        else:
            buffer.append(char)
            index += 1

    flush()
    return statements


class DatabaseService:
    """Opens short-lived verification connections."""

    def __init__(self, logger, connect: Callable[..., Any] = pymysql.connect):
        self.logger = logger
        self.connect = connect

    @contextlib.contextmanager
    def verification_connection(self, db_config: Dict[str, Any]) -> Iterator[Any]:
        connection = self.connect(**connection_kwargs(db_config))
        try:
            yield connection
        finally:
            connection.close()
            self.logger.debug("Closed verification connection")

    def fetch_database_charset(self, connection) -> Optional[str]:
        with connection.cursor() as cursor:
            cursor.execute("SHOW VARIABLES LIKE 'character\\_set\\_database'")
            row = cursor.fetchone()

        if not row:
            return None
        return row[1]

    def verify(self, db_config: Dict[str, Any]) -> List[InstallIssue]:
        issues: List[InstallIssue] = []
        try:
            with self.verification_connection(db_config) as connection:
                charset = self.fetch_database_charset(connection)
                if charset not in SUPPORTED_CHARSETS:
                    issues.append(
                        InstallIssue(ErrorKind.CONNECTION, "Database charset is not utf8mb4")
                    )
        except Exception as exc:
            self.logger.debug("MySQL verification failed", exc_info=True)
            issues.append(
                InstallIssue(
                    ErrorKind.CONNECTION,
                    f"Couldn't establish connection to MySQL: {exc}",
                )
            )
        return issues

"""Shared domain models for cmsinstaller."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONNECTION = "connection"
    PROFILE = "profile"
    FILES = "files"
    SEEDING = "seeding"
    EXECUTION = "execution"


@dataclass(frozen=True)
class InstallIssue:
    """A single failure reported by an install attempt."""

    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class AdminCredentials:
    username: str
    password: str

    def as_dict(self):
        return {"username": self.username, "password": self.password}


@dataclass(frozen=True)
class Profile:
    """Installation flavor loaded from a profile manifest."""

    id: str
    name: str
    path: Path
    db_data_files: Tuple[str, ...] = field(default_factory=tuple)
    files_to_add: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RequirementCheck:
    """Outcome of a single environment check."""

    STATE_OK = "ok"
    STATE_WARNING = "warning"
    STATE_ERROR = "error"

    name: str
    state: str
    message: str
    link: Optional[str] = None

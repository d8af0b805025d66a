"""Actionable error catalog for cmsinstaller."""

from typing import Dict, Union

from cmsinstaller.models import ErrorKind

_NEXT_STEPS: Dict[str, str] = {
    ErrorKind.VALIDATION.value: "Choose an admin username and password with at least 4 characters.",
    ErrorKind.CONNECTION.value: (
        "Check the MySQL credentials, host or socket and make sure the database uses utf8mb4."
    ),
    ErrorKind.PROFILE.value: "Run with `--profile` set to one of the available install profiles.",
    ErrorKind.FILES.value: "Remove the conflicting files or rerun with `--overwrite-existing-files`.",
    ErrorKind.SEEDING.value: "Inspect the log output, drop the database and rerun the installation.",
    ErrorKind.EXECUTION.value: "Inspect the log output (use `--log-file` for details) and retry.",
}


def suggested_action(kind: Union[ErrorKind, str]) -> str:
    key = getattr(kind, "value", kind)
    if key not in _NEXT_STEPS:
        raise KeyError(f"Unknown error catalog key: {key}")
    return _NEXT_STEPS[key]


def actionable_error(kind: Union[ErrorKind, str], message: str) -> str:
    return f"{message} Suggested action: {suggested_action(kind)}"

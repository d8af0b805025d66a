"""Filesystem helpers for cmsinstaller."""

import logging
import os
import shutil
import sys

from rich.console import Console


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def ensure_dir(self, path: str, mode: int):
        os.makedirs(path, exist_ok=True)
        self.set_permissions(path, mode)

    def copy_file(self, source: str, target: str, symlink: bool = False):
        os.makedirs(os.path.dirname(target) or ".", exist_ok=True)
        if os.path.lexists(target):
            if os.path.isdir(target) and not os.path.islink(target):
                shutil.rmtree(target)
            else:
                os.remove(target)

        if symlink:
            os.symlink(os.path.abspath(source), target)
            self.logger.debug("Linked %s -> %s", target, source)
        else:
            shutil.copy2(source, target)
            self.logger.debug("Copied %s -> %s", source, target)

    def cleanup_dir(self, path: str):
        if os.path.exists(path):
            try:
                shutil.rmtree(path)
                self.logger.debug("Removed directory: %s", path)
            except OSError as exc:
                message = f"Warning: Could not remove {path}: {exc}"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)

    def is_writable(self, path: str) -> bool:
        """Existing paths must be writable, missing ones need a writable ancestor."""
        candidate = os.path.abspath(path)
        while not os.path.exists(candidate):
            parent = os.path.dirname(candidate)
            if parent == candidate:
                return False
            candidate = parent
        return os.access(candidate, os.W_OK)

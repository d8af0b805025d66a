"""Copies profile files into the target installation."""

import os
from pathlib import Path
from typing import List

from cmsinstaller.models import Profile


class FileInstaller:
    """Installs the `files_to_add` of a profile below the install root."""

    def __init__(self, install_root: str, filesystem_service, logger):
        self.install_root = install_root
        self.filesystem_service = filesystem_service
        self.logger = logger

    def install_files(self, profile: Profile, overwrite: bool = True, symlink: bool = False) -> List[str]:
        errors: List[str] = []

        for relative_path in self.collect_files(profile):
            source = os.path.join(str(profile.path), relative_path)
            target = os.path.join(self.install_root, relative_path)

            if os.path.lexists(target) and not overwrite:
                errors.append(f'File "{target}" already exists')
                continue

            try:
                self.filesystem_service.copy_file(source, target, symlink=symlink)
            except OSError as exc:
                self.logger.error("Failed to install %s: %s", target, exc)
                errors.append(f'Could not install file "{target}": {exc}')

        return errors

    def collect_files(self, profile: Profile) -> List[str]:
        """Files matched by the profile patterns, relative to the profile directory."""
        base = Path(profile.path)
        matched: List[str] = []

        for pattern in profile.files_to_add:
            hits = sorted(base.glob(pattern))
            if not hits:
                self.logger.warning("Profile %s: pattern '%s' matched no files", profile.id, pattern)
            for hit in hits:
                candidates = sorted(p for p in hit.rglob("*") if p.is_file()) if hit.is_dir() else [hit]
                for candidate in candidates:
                    relative = candidate.relative_to(base).as_posix()
                    if relative not in matched:
                        matched.append(relative)

        return matched

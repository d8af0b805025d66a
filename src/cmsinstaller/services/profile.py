"""Install profile discovery for cmsinstaller."""

import os
from pathlib import Path
from typing import List, Sequence

import yaml

from cmsinstaller.constants import PROFILE_MANIFEST
from cmsinstaller.errors import InstallerError, ProfileNotFoundError
from cmsinstaller.models import Profile

DEFAULT_PROFILES_DIR = Path(__file__).resolve().parent.parent / "resources" / "profiles"


class ProfileLocator:
    """Resolves install profiles from `<profiles_dir>/<id>/manifest.yml`."""

    def __init__(self, profiles_dir=DEFAULT_PROFILES_DIR, logger=None):
        self.profiles_dir = Path(profiles_dir)
        self.logger = logger

    def get_profile(self, profile_id: str) -> Profile:
        if not profile_id or profile_id in (".", "..") or any(
            sep in profile_id for sep in ("/", "\\", os.sep)
        ):
            raise ProfileNotFoundError(f'Profile "{profile_id}" does not exist')

        profile_path = self.profiles_dir / profile_id
        manifest_file = profile_path / PROFILE_MANIFEST
        if not manifest_file.is_file():
            raise ProfileNotFoundError(f'Profile "{profile_id}" does not exist')

        return self._load(profile_id, profile_path, manifest_file)

    def get_profiles(self) -> List[Profile]:
        if not self.profiles_dir.is_dir():
            return []

        profiles = []
        for candidate in sorted(self.profiles_dir.iterdir()):
            if not (candidate / PROFILE_MANIFEST).is_file():
                continue
            try:
                profiles.append(self.get_profile(candidate.name))
            except InstallerError as exc:
                if self.logger:
                    self.logger.warning("Skipping invalid profile %s: %s", candidate.name, exc)
        return profiles

    def _load(self, profile_id: str, profile_path: Path, manifest_file: Path) -> Profile:
        try:
            data = yaml.safe_load(manifest_file.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise InstallerError(f"Invalid profile manifest '{manifest_file}': {exc}") from exc
        except OSError as exc:
            raise InstallerError(f"Could not read profile manifest '{manifest_file}': {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InstallerError(f"Profile manifest '{manifest_file}' must define a mapping.")

        name = data.get("name", profile_id)
        if not isinstance(name, str) or not name.strip():
            raise InstallerError(f"Profile manifest '{manifest_file}' must define a non-empty 'name'.")

        db_data_files = self._string_list(manifest_file, data, "db_data_files")
        files_to_add = self._string_list(manifest_file, data, "files_to_add")

        return Profile(
            id=profile_id,
            name=name.strip(),
            path=profile_path,
            db_data_files=tuple(str(profile_path / item) for item in db_data_files),
            files_to_add=tuple(files_to_add),
        )

    @staticmethod
    def _string_list(manifest_file: Path, data: dict, key: str) -> Sequence[str]:
        values = data.get(key) or []
        if not isinstance(values, (list, tuple)) or not all(
            isinstance(value, str) and value.strip() for value in values
        ):
            raise InstallerError(
                f"Profile manifest '{manifest_file}' has invalid '{key}'. It must be a list of paths."
            )
        return [value.strip() for value in values]

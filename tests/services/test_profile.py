import pytest

from cmsinstaller.errors import InstallerError, ProfileNotFoundError
from cmsinstaller.services.profile import DEFAULT_PROFILES_DIR, ProfileLocator


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def warning(self, *args, **_kwargs):
        self.warnings.append(args)


def _write_profile(root, profile_id, manifest):
    profile_dir = root / profile_id
    profile_dir.mkdir(parents=True)
    (profile_dir / "manifest.yml").write_text(manifest, encoding="utf-8")
    return profile_dir


def test_get_profile_loads_manifest(tmp_path):
    profile_dir = _write_profile(
        tmp_path,
        "demo",
        "name: Demo content\n"
        "db_data_files:\n"
        "  - data/a.sql\n"
        "  - data/b.sql\n"
        "files_to_add:\n"
        "  - app/config/*.yml\n",
    )

    profile = ProfileLocator(tmp_path).get_profile("demo")

    assert profile.id == "demo"
    assert profile.name == "Demo content"
    assert profile.path == profile_dir
    assert profile.db_data_files == (
        str(profile_dir / "data" / "a.sql"),
        str(profile_dir / "data" / "b.sql"),
    )
    assert profile.files_to_add == ("app/config/*.yml",)


def test_get_profile_defaults_name_to_id(tmp_path):
    _write_profile(tmp_path, "bare", "")

    profile = ProfileLocator(tmp_path).get_profile("bare")

    assert profile.name == "bare"
    assert profile.db_data_files == ()


@pytest.mark.parametrize("profile_id", ["missing", "../demo", "."])
def test_get_profile_rejects_unknown_ids(tmp_path, profile_id):
    _write_profile(tmp_path, "demo", "name: Demo\n")

    with pytest.raises(ProfileNotFoundError, match="does not exist"):
        ProfileLocator(tmp_path).get_profile(profile_id)


def test_get_profile_rejects_invalid_data_files(tmp_path):
    _write_profile(tmp_path, "broken", "name: Broken\ndb_data_files: dump.sql\n")

    with pytest.raises(InstallerError, match="db_data_files"):
        ProfileLocator(tmp_path).get_profile("broken")


def test_get_profiles_skips_invalid_manifests(tmp_path):
    _write_profile(tmp_path, "good", "name: Good\n")
    _write_profile(tmp_path, "broken", "- not\n- a mapping\n")
    (tmp_path / "not-a-profile").mkdir()
    logger = DummyLogger()

    profiles = ProfileLocator(tmp_path, logger=logger).get_profiles()

    assert [profile.id for profile in profiles] == ["good"]
    assert len(logger.warnings) == 1


def test_bundled_profiles_are_valid():
    profiles = {profile.id: profile for profile in ProfileLocator(DEFAULT_PROFILES_DIR).get_profiles()}

    assert set(profiles) == {"demo", "empty"}
    assert profiles["empty"].db_data_files == ()
    for data_file in profiles["demo"].db_data_files:
        assert data_file.endswith(".sql")

from click.testing import CliRunner

import cmsinstaller.cli as cli_module
from cmsinstaller.models import ErrorKind, InstallIssue, RequirementCheck


def _fake_installer(captured, issues=None, prerequisite_errors=None):
    class FakeInstaller:
        def __init__(self, **kwargs):
            captured["init"] = kwargs
            captured["installer"] = self
            self.profile = None
            self.db_credentials = {}
            self.flags = {}

        def set_profile(self, profile=None):
            self.profile = profile

        def set_db_credentials(self, credentials=None):
            self.db_credentials = dict(credentials or {})

        def set_copy_profile_files(self, value):
            self.flags["copy_profile_files"] = value

        def set_overwrite_existing_files(self, value):
            self.flags["overwrite_existing_files"] = value

        def set_symlink(self, value):
            self.flags["symlink"] = value

        def needs_db_credentials(self):
            return not self.db_credentials

        def check_prerequisites(self):
            return list(prerequisite_errors or [])

        def install(self, params):
            captured["params"] = params
            return list(issues or [])

    return FakeInstaller


def test_install_uses_config_and_allows_cli_override(tmp_path, monkeypatch):
    config_file = tmp_path / ".cmsinstaller.yml"
    config_file.write_text(
        "profile: empty\n"
        "environment: dev\n"
        "mysql_username: config_user\n"
        "mysql_database: cms\n"
        "mysql_host_socket: db\n"
        "admin_username: admin\n"
        "admin_password: abcd1234\n"
        "symlink: true\n",
        encoding="utf-8",
    )
    captured = {}
    monkeypatch.setattr(cli_module, "Installer", _fake_installer(captured))

    result = CliRunner().invoke(
        cli_module.main,
        [
            "install",
            "--config",
            str(config_file),
            "--profile",
            "demo",
            "--mysql-username",
            "cli_user",
            "--mysql-port",
            "3307",
            "--no-overwrite-existing-files",
            "--no-interaction",
        ],
    )

    assert result.exit_code == 0, result.output
    installer = captured["installer"]
    assert captured["init"]["environment"] == "dev"
    assert installer.profile == "demo"
    assert installer.flags == {
        "copy_profile_files": True,
        "overwrite_existing_files": False,
        "symlink": True,
    }
    assert captured["params"]["mysql_username"] == "cli_user"
    assert captured["params"]["mysql_database"] == "cms"
    assert captured["params"]["mysql_port"] == 3307
    assert captured["params"]["admin_password"] == "abcd1234"


def test_install_uses_default_config_file_when_present(tmp_path, monkeypatch):
    (tmp_path / ".cmsinstaller.yml").write_text(
        "db_credentials:\n  user: cms\n  dbname: cms\n",
        encoding="utf-8",
    )
    captured = {}
    monkeypatch.setattr(cli_module, "Installer", _fake_installer(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        cli_module.main,
        ["install", "--admin-username", "admin", "--admin-password", "abcd1234"],
    )

    assert result.exit_code == 0, result.output
    assert captured["installer"].db_credentials == {"user": "cms", "dbname": "cms"}
    assert captured["params"]["mysql_username"] is None


def test_install_prompts_for_missing_values(tmp_path, monkeypatch):
    captured = {}
    monkeypatch.setattr(cli_module, "Installer", _fake_installer(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        cli_module.main,
        ["install", "--mysql-password", "secret"],
        input="cms\ncms_db\n\n\nadmin\nabcd1234\n",
    )

    assert result.exit_code == 0, result.output
    params = captured["params"]
    assert params["mysql_username"] == "cms"
    assert params["mysql_password"] == "secret"
    assert params["mysql_database"] == "cms_db"
    assert params["mysql_host_socket"] == "localhost"
    assert params["mysql_port"] == 3306
    assert params["admin_username"] == "admin"
    assert params["admin_password"] == "abcd1234"


def test_install_accepts_empty_mysql_password_at_prompt(tmp_path, monkeypatch):
    captured = {}
    monkeypatch.setattr(cli_module, "Installer", _fake_installer(captured))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        cli_module.main,
        ["install"],
        input="cms\n\ncms_db\n\n\nadmin\nabcd1234\n",
    )

    assert result.exit_code == 0, result.output
    params = captured["params"]
    assert params["mysql_username"] == "cms"
    assert params["mysql_password"] == ""
    assert params["mysql_database"] == "cms_db"
    assert params["admin_username"] == "admin"


def test_install_reports_issues_and_fails(tmp_path, monkeypatch):
    captured = {}
    issues = [InstallIssue(ErrorKind.PROFILE, "Invalid profile ID")]
    monkeypatch.setattr(cli_module, "Installer", _fake_installer(captured, issues=issues))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["install", "--profile", "", "--no-interaction"])

    assert result.exit_code == 1
    assert "Invalid profile ID" in result.output
    assert "Suggested action" in result.output


def test_install_stops_on_failed_prerequisites(tmp_path, monkeypatch):
    captured = {}
    monkeypatch.setattr(
        cli_module,
        "Installer",
        _fake_installer(captured, prerequisite_errors=["var needs to be writable"]),
    )
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["install", "--no-interaction"])

    assert result.exit_code == 1
    assert "var needs to be writable" in result.output
    assert "params" not in captured


def test_install_rejects_unknown_config_keys(tmp_path, monkeypatch):
    config_file = tmp_path / "bad.yml"
    config_file.write_text("source: x\n", encoding="utf-8")
    monkeypatch.setattr(cli_module, "Installer", _fake_installer({}))

    result = CliRunner().invoke(cli_module.main, ["install", "--config", str(config_file)])

    assert result.exit_code == 1
    assert "Unknown configuration keys" in result.output


def test_requirements_command_exits_non_zero_on_errors(tmp_path, monkeypatch):
    class FakeRequirements:
        def check_all(self):
            return [
                RequirementCheck("var writable", RequirementCheck.STATE_ERROR, "var needs to be writable"),
                RequirementCheck("ffmpeg", RequirementCheck.STATE_WARNING, "`ffmpeg` not found on PATH."),
            ]

        def errors(self, checks):
            return [check for check in checks if check.state == RequirementCheck.STATE_ERROR]

    class FakeInstaller:
        def __init__(self, **_kwargs):
            self.requirements_service = FakeRequirements()

    monkeypatch.setattr(cli_module, "Installer", FakeInstaller)

    result = CliRunner().invoke(cli_module.main, ["requirements", "--install-root", str(tmp_path)])

    assert result.exit_code == 1
    assert "ffmpeg" in result.output

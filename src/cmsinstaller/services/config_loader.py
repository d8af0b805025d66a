"""Configuration loader for cmsinstaller."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cmsinstaller.errors import InstallerError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "profile",
        "db_credentials",
        "copy_profile_files",
        "overwrite_existing_files",
        "symlink",
        "install_root",
        "profiles_dir",
        "environment",
        "mysql_username",
        "mysql_password",
        "mysql_database",
        "mysql_host_socket",
        "mysql_port",
        "admin_username",
        "admin_password",
        "verbose",
        "log_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise InstallerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise InstallerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise InstallerError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise InstallerError(f"Unknown configuration keys: {unknown_list}")

        credentials = parsed.get("db_credentials")
        if credentials is not None and not isinstance(credentials, dict):
            raise InstallerError("`db_credentials` must be a mapping of connection parameters.")

        return parsed

"""Shared constants for cmsinstaller."""

DIR_MODE = 0o755
SECRET_FILE_MODE = 0o600

DEFAULT_PROFILE = "empty"
DEFAULT_ENVIRONMENT = "prod"
DEFAULT_MYSQL_PORT = 3306

MIN_CREDENTIAL_LENGTH = 4
SUPPORTED_CHARSETS = ("utf8mb4",)

DB_DRIVER = "pymysql"
DB_WRAPPER_CLASS = "cmsinstaller.services.runtime.ApplicationRuntime"

PROFILE_MANIFEST = "manifest.yml"
SYSTEM_CONFIG_PATH = "var/config/system.yml"
CACHE_DIR = "var/cache"

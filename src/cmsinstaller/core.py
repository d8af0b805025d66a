import html
import logging
import os
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from rich.console import Console

from .constants import (
    DB_DRIVER,
    DB_WRAPPER_CLASS,
    DEFAULT_ENVIRONMENT,
    DEFAULT_MYSQL_PORT,
    DEFAULT_PROFILE,
    MIN_CREDENTIAL_LENGTH,
)
from .errors import InstallerError
from .models import AdminCredentials, ErrorKind, InstallIssue, Profile, RequirementCheck
from .services.database import DatabaseService
from .services.file_installer import FileInstaller
from .services.filesystem import FileSystemService
from .services.profile import DEFAULT_PROFILES_DIR, ProfileLocator
from .services.requirements import RequirementsService
from .services.runtime import ApplicationRuntime
from .services.setup_service import SetupService

console = Console()
logger = logging.getLogger("cmsinstaller")


def _escape_entities(text: str) -> str:
    """HTML-escapes text with quotes encoded as `&quot;` and `&#039;`."""
    return html.escape(text, quote=True).replace("&#x27;", "&#039;")


class Installer:
    def __init__(
        self,
        install_root: Optional[str] = None,
        profiles_dir: Optional[str] = None,
        environment: str = DEFAULT_ENVIRONMENT,
        profile_locator: Optional[ProfileLocator] = None,
        file_installer: Optional[FileInstaller] = None,
        requirements_service: Optional[RequirementsService] = None,
        database_service: Optional[DatabaseService] = None,
        runtime_factory: Optional[Callable[..., Any]] = None,
        setup_factory: Optional[Callable[..., Any]] = None,
    ):
        self.install_root = os.path.abspath(install_root or os.getcwd())
        self.environment = environment

        # If false, profile files won't be copied
        self.copy_profile_files = True
        self.overwrite_existing_files = True
        self.symlink = False
        # Predefined profile and DB credentials from config
        self.profile: Optional[str] = None
        self.db_credentials: Dict[str, Any] = {}

        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.profile_locator = profile_locator or ProfileLocator(
            profiles_dir=profiles_dir or DEFAULT_PROFILES_DIR,
            logger=logger,
        )
        self.file_installer = file_installer or FileInstaller(
            install_root=self.install_root,
            filesystem_service=self.filesystem_service,
            logger=logger,
        )
        self.requirements_service = requirements_service or RequirementsService(
            install_root=self.install_root,
            filesystem_service=self.filesystem_service,
        )
        self.database_service = database_service or DatabaseService(logger=logger)
        self.runtime_factory = runtime_factory or partial(
            ApplicationRuntime,
            install_root=self.install_root,
            filesystem_service=self.filesystem_service,
            logger=logger,
        )
        self.setup_factory = setup_factory or partial(
            SetupService,
            install_root=self.install_root,
            filesystem_service=self.filesystem_service,
            logger=logger,
        )

    def set_copy_profile_files(self, copy_profile: bool):
        self.copy_profile_files = copy_profile

    def set_profile(self, profile: Optional[str] = None):
        self.profile = profile

    def set_db_credentials(self, db_credentials: Optional[Dict[str, Any]] = None):
        self.db_credentials = dict(db_credentials or {})

    def set_overwrite_existing_files(self, overwrite_existing_files: bool):
        self.overwrite_existing_files = overwrite_existing_files

    def set_symlink(self, symlink: bool):
        self.symlink = symlink

    def needs_profile(self) -> bool:
        return self.profile is None

    def needs_db_credentials(self) -> bool:
        return not self.db_credentials

    def check_prerequisites(self, markup: bool = False) -> List[str]:
        """Returns a message for every failed filesystem or runtime check."""
        checks = self.requirements_service.check_filesystem() + self.requirements_service.check_runtime()

        errors = []
        for check in checks:
            if check.state != RequirementCheck.STATE_ERROR:
                continue

            if not check.link:
                errors.append(check.message)
            elif markup:
                errors.append(
                    '<a href="{}" target="_blank">{}</a>'.format(
                        _escape_entities(check.link),
                        _escape_entities(check.message),
                    )
                )
            else:
                errors.append(f"{check.message} (see {check.link})")

        return errors

    def resolve_db_config(self, params: Dict[str, Any]) -> Dict[str, Any]:
        db_config: Dict[str, Any] = {
            "driver": DB_DRIVER,
            "wrapper_class": DB_WRAPPER_CLASS,
        }

        # do not handle parameters if db credentials are set via config
        if self.db_credentials:
            db_config.update(self.db_credentials)
            return db_config

        db_config.update(
            {
                "user": params.get("mysql_username"),
                "password": params.get("mysql_password"),
                "dbname": params.get("mysql_database"),
            }
        )

        host_socket = params.get("mysql_host_socket") or ""
        if host_socket and os.path.exists(host_socket):
            db_config["unix_socket"] = host_socket
        else:
            db_config["host"] = host_socket
            db_config["port"] = params.get("mysql_port") or DEFAULT_MYSQL_PORT

        return db_config

    def install(self, params: Dict[str, Any]) -> List[InstallIssue]:
        db_config = self.resolve_db_config(params)

        errors: List[InstallIssue] = list(self.database_service.verify(db_config))

        credentials = AdminCredentials(
            username=str(params.get("admin_username") or ""),
            password=str(params.get("admin_password") or ""),
        )
        if (
            len(credentials.username) < MIN_CREDENTIAL_LENGTH
            or len(credentials.password) < MIN_CREDENTIAL_LENGTH
        ):
            errors.append(
                InstallIssue(
                    ErrorKind.VALIDATION,
                    f"Username and password should have at least {MIN_CREDENTIAL_LENGTH} characters",
                )
            )

        if self.profile is not None:
            profile_id = self.profile
        else:
            profile_id = params.get("profile")
            if profile_id is None:
                profile_id = DEFAULT_PROFILE

        if not profile_id:
            errors.append(InstallIssue(ErrorKind.PROFILE, "Invalid profile ID"))
            return errors

        try:
            profile = self.profile_locator.get_profile(profile_id)
        except Exception as exc:
            errors.append(InstallIssue(ErrorKind.PROFILE, _escape_entities(str(exc))))
            return errors

        if errors:
            return errors

        try:
            return self._run_install(profile, db_config, credentials)
        except Exception as exc:
            logger.exception("Installation failed")
            return [InstallIssue(ErrorKind.EXECUTION, str(exc))]

    def _run_install(
        self,
        profile: Profile,
        db_config: Dict[str, Any],
        credentials: AdminCredentials,
    ) -> List[InstallIssue]:
        logger.info("Running installation with profile %s", profile.name)

        if self.copy_profile_files:
            console.print("[blue]Copying profile files...[/blue]")
            file_errors = self.file_installer.install_files(
                profile,
                self.overwrite_existing_files,
                self.symlink,
            )
            if file_errors:
                return [InstallIssue(ErrorKind.FILES, message) for message in file_errors]

        db_params = self.normalize_db_params(db_config)

        runtime = self.runtime_factory(environment=self.environment, debug=True, database_params=db_params)
        setup = self.setup_factory(runtime=runtime)
        setup.config({"database": {"params": db_params}})

        try:
            runtime.boot()
            console.print("[blue]Creating database schema...[/blue]")
            setup.database()

            errors = self._setup_profile_database(setup, profile, credentials)

            runtime.container.clear_cache()
        finally:
            runtime.shutdown()

        if not errors:
            console.print("[green]Installation complete.[/green]")
        return errors

    @staticmethod
    def normalize_db_params(db_config: Dict[str, Any]) -> Dict[str, Any]:
        """Key names expected by the schema service, without driver metadata."""
        params = dict(db_config)
        if "user" in params:
            params["username"] = params.pop("user")
        params.pop("driver", None)
        params.pop("wrapper_class", None)
        return params

    def _setup_profile_database(
        self,
        setup,
        profile: Profile,
        credentials: AdminCredentials,
    ) -> List[InstallIssue]:
        errors: List[InstallIssue] = []
        try:
            if not profile.db_data_files:
                # empty installation
                setup.contents(credentials.as_dict())
            else:
                for db_file in profile.db_data_files:
                    logger.info("Importing DB file %s", db_file)
                    setup.insert_dump(db_file)

                setup.create_or_update_user(credentials.as_dict())
        except Exception as exc:
            logger.exception("Seeding the database failed")
            errors.append(InstallIssue(ErrorKind.SEEDING, str(exc)))

        return errors


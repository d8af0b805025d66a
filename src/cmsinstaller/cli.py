import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .constants import DEFAULT_ENVIRONMENT, DEFAULT_MYSQL_PORT
from .core import Installer, InstallerError
from .errors_catalog import suggested_action
from .models import RequirementCheck
from .services.config_loader import ConfigLoader

DEFAULT_CONFIG_FILE = ".cmsinstaller.yml"

console = Console()

MYSQL_PROMPTS = (
    ("mysql_username", "MySQL username", False, None),
    ("mysql_password", "MySQL password", True, ""),
    ("mysql_database", "MySQL database name", False, None),
    ("mysql_host_socket", "MySQL host or socket path", False, "localhost"),
    ("mysql_port", "MySQL port", False, DEFAULT_MYSQL_PORT),
)

ADMIN_PROMPTS = (
    ("admin_username", "Admin username", False, None),
    ("admin_password", "Admin password", True, None),
)


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _load_config(config_path):
    config_loader = ConfigLoader()
    resolved_config = config_path
    if resolved_config is None:
        default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
        if os.path.exists(default_config_path):
            resolved_config = default_config_path

    try:
        return config_loader.load(resolved_config)
    except InstallerError as exc:
        raise click.ClickException(str(exc)) from exc


def _configure_logging(verbose, log_file):
    logger = logging.getLogger("cmsinstaller")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


def _prompt_missing(params, prompts):
    for key, label, hide_input, default in prompts:
        if params.get(key) in (None, ""):
            params[key] = click.prompt(
                label,
                hide_input=hide_input,
                default=default,
                show_default=not hide_input,
            )


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.group()
def main():
    """Install the CMS database and file profile."""


@main.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--profile", required=False, help="Install profile ID (default: empty).")
@click.option("--install-root", required=False, type=click.Path(), help="Target installation directory.")
@click.option("--profiles-dir", required=False, type=click.Path(), help="Directory containing install profiles.")
@click.option(
    "--environment",
    required=False,
    envvar="CMSINSTALLER_ENV",
    help=f"Runtime environment to boot (default: {DEFAULT_ENVIRONMENT}).",
)
@click.option("--mysql-username", required=False, help="MySQL username.")
@click.option("--mysql-password", required=False, help="MySQL password.")
@click.option("--mysql-database", required=False, help="MySQL database name.")
@click.option(
    "--mysql-host-socket",
    required=False,
    help="MySQL host or path to a unix socket.",
)
@click.option("--mysql-port", required=False, type=int, default=None, help="MySQL port (default: 3306).")
@click.option("--admin-username", required=False, help="Username of the admin user.")
@click.option("--admin-password", required=False, help="Password of the admin user.")
@click.option(
    "--copy-profile-files/--no-copy-profile-files",
    default=None,
    help="Copy the files of the install profile into the installation.",
)
@click.option(
    "--overwrite-existing-files/--no-overwrite-existing-files",
    default=None,
    help="Overwrite files that already exist in the installation.",
)
@click.option("--symlink", is_flag=True, default=None, help="Symlink profile files instead of copying them.")
@click.option("--no-interaction", is_flag=True, default=False, help="Never prompt for missing values.")
@click.option("--ignore-requirements", is_flag=True, default=False, help="Install even if requirement checks fail.")
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def install(
    config,
    profile,
    install_root,
    profiles_dir,
    environment,
    mysql_username,
    mysql_password,
    mysql_database,
    mysql_host_socket,
    mysql_port,
    admin_username,
    admin_password,
    copy_profile_files,
    overwrite_existing_files,
    symlink,
    no_interaction,
    ignore_requirements,
    verbose,
    log_file,
):
    """Run the first-time installation."""
    config_values = _load_config(config)

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    try:
        installer = Installer(
            install_root=_resolve_option(install_root, config_values, "install_root"),
            profiles_dir=_resolve_option(profiles_dir, config_values, "profiles_dir"),
            environment=str(
                _resolve_option(environment, config_values, "environment", default=DEFAULT_ENVIRONMENT)
            ),
        )
    except InstallerError as exc:
        raise click.ClickException(str(exc)) from exc

    installer.set_profile(_resolve_option(profile, config_values, "profile"))
    installer.set_db_credentials(config_values.get("db_credentials"))
    installer.set_copy_profile_files(
        bool(_resolve_option(copy_profile_files, config_values, "copy_profile_files", default=True))
    )
    installer.set_overwrite_existing_files(
        bool(
            _resolve_option(
                overwrite_existing_files,
                config_values,
                "overwrite_existing_files",
                default=True,
            )
        )
    )
    installer.set_symlink(bool(_resolve_option(symlink, config_values, "symlink", default=False)))

    if not ignore_requirements:
        prerequisite_errors = installer.check_prerequisites()
        if prerequisite_errors:
            console.print("[bold red]Requirement checks failed:[/bold red]")
            for message in prerequisite_errors:
                console.print(f"  - {message}", markup=False, highlight=False)
            raise SystemExit(1)

    params = {
        "mysql_username": _resolve_option(mysql_username, config_values, "mysql_username"),
        "mysql_password": _resolve_option(mysql_password, config_values, "mysql_password"),
        "mysql_database": _resolve_option(mysql_database, config_values, "mysql_database"),
        "mysql_host_socket": _resolve_option(mysql_host_socket, config_values, "mysql_host_socket"),
        "mysql_port": _resolve_option(mysql_port, config_values, "mysql_port"),
        "admin_username": _resolve_option(admin_username, config_values, "admin_username"),
        "admin_password": _resolve_option(admin_password, config_values, "admin_password"),
    }

    if not no_interaction:
        if installer.needs_db_credentials():
            _prompt_missing(params, MYSQL_PROMPTS)
        _prompt_missing(params, ADMIN_PROMPTS)

    issues = installer.install(params)
    if issues:
        console.print("[bold red]Installation failed:[/bold red]")
        for issue in issues:
            console.print(f"  - {issue}", markup=False, highlight=False)
        for kind in dict.fromkeys(issue.kind for issue in issues):
            console.print(f"[yellow]Suggested action:[/yellow] {suggested_action(kind)}")
        raise SystemExit(1)

    console.print("[bold green]The installation was successful.[/bold green]")
    raise SystemExit(0)


@main.command()
@click.option("--install-root", required=False, type=click.Path(), help="Target installation directory.")
def requirements(install_root):
    """Show filesystem, runtime and external tool checks."""
    installer = Installer(install_root=install_root)
    checks = installer.requirements_service.check_all()

    styles = {
        RequirementCheck.STATE_OK: "green",
        RequirementCheck.STATE_WARNING: "yellow",
        RequirementCheck.STATE_ERROR: "red",
    }
    table = Table(title="Requirements")
    table.add_column("Check")
    table.add_column("State")
    table.add_column("Details")
    for check in checks:
        style = styles.get(check.state, "white")
        details = f"{check.message} ({check.link})" if check.link else check.message
        table.add_row(escape(check.name), f"[{style}]{check.state}[/{style}]", escape(details))
    console.print(table)

    raise SystemExit(1 if installer.requirements_service.errors(checks) else 0)


if __name__ == "__main__":
    main()

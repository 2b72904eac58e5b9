import logging
import os

import click
from rich.logging import RichHandler

from .constants import (
    ADMIN_PASSWORD_ENV,
    CONNECT_PASSWORD_ENV,
    DB_PASSWORD_ENV,
    DEFAULT_ADMIN_USER,
    DEFAULT_CONFIG_FILE,
    DEFAULT_PORT,
    DEFAULT_SERVICE,
)
from .core import ProvisioningError, XStreamProvisioner
from .models import ConnectionSettings, ProvisioningSettings
from .services.config_loader import ConfigLoader
from .services.step_catalog import MASKED_PASSWORD


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _resolve_password(value, label, prompt_allowed):
    if value:
        return value
    if not prompt_allowed:
        return MASKED_PASSWORD
    return click.prompt(f"{label} password", hide_input=True)


def _build_settings(config, pdb, server_name, schemas, admin_password, connect_password):
    overrides = {}
    for key in (
        "root_container",
        "tablespace",
        "root_datafile",
        "pdb_datafile",
        "datafile_size",
        "xstream_admin",
        "connect_user",
        "outbound_view",
    ):
        if key in config:
            overrides[key] = str(config[key])
    for key in ("admin_privileges", "optional_admin_roles", "connect_privileges"):
        if key in config:
            overrides[key] = tuple(str(item) for item in config[key])

    pdb_name = _resolve_option(pdb, config, "pdb_name")
    if pdb_name:
        overrides["pdb_name"] = str(pdb_name)
    resolved_server = _resolve_option(server_name, config, "server_name")
    if resolved_server:
        overrides["server_name"] = str(resolved_server)
    resolved_schemas = list(schemas) or config.get("schemas")
    if resolved_schemas:
        overrides["schemas"] = tuple(str(item).upper() for item in resolved_schemas)

    return ProvisioningSettings(
        admin_password=admin_password,
        connect_password=connect_password,
        **overrides,
    )


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option("--host", required=False, help="Database host name or IP address.")
@click.option("--port", required=False, type=int, default=None, help=f"Listener port (default: {DEFAULT_PORT}).")
@click.option(
    "--service",
    "service_name",
    required=False,
    help=f"Service name of the root container (default: {DEFAULT_SERVICE}).",
)
@click.option("--user", required=False, help=f"Administrative user (default: {DEFAULT_ADMIN_USER}).")
@click.option(
    "--password",
    required=False,
    envvar=DB_PASSWORD_ENV,
    help=f"Administrative password. Read from {DB_PASSWORD_ENV} or prompted when omitted.",
)
@click.option("--sysdba/--no-sysdba", default=None, help="Connect with SYSDBA privileges (default: on).")
@click.option(
    "--admin-password",
    required=False,
    envvar=ADMIN_PASSWORD_ENV,
    help=f"Password for the XStream administrator. Read from {ADMIN_PASSWORD_ENV} or prompted.",
)
@click.option(
    "--connect-password",
    required=False,
    envvar=CONNECT_PASSWORD_ENV,
    help=f"Password for the XStream connect user. Read from {CONNECT_PASSWORD_ENV} or prompted.",
)
@click.option("--pdb", required=False, help="Pluggable database to capture from (default: FREEPDB1).")
@click.option("--server-name", required=False, help="XStream outbound server name (default: XOUT1).")
@click.option("--schema", "schemas", multiple=True, help="Schema to capture. Repeat for several schemas.")
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Print the provisioning plan without connecting to the database.",
)
@click.option(
    "--verify-only",
    is_flag=True,
    default=None,
    help="Only run the read-only verification queries.",
)
@click.option("--skip-verify", is_flag=True, default=None, help="Do not run verification queries after provisioning.")
@click.option("--report-file", type=click.Path(), help="Write a JSON run report to this path.")
@click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option("--log-file", type=click.Path(), help="Path to log file")
def main(
    config,
    host,
    port,
    service_name,
    user,
    password,
    sysdba,
    admin_password,
    connect_password,
    pdb,
    server_name,
    schemas,
    dry_run,
    verify_only,
    skip_verify,
    report_file,
    verbose,
    log_file,
):
    """Configure an Oracle database for XStream change capture by the Snowflake connector."""
    logger = logging.getLogger("xstreamprov")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except ProvisioningError as exc:
        raise click.ClickException(str(exc)) from exc

    host = _resolve_option(host, config_values, "host")
    port = int(_resolve_option(port, config_values, "port", default=DEFAULT_PORT))
    service_name = _resolve_option(service_name, config_values, "service_name", default=DEFAULT_SERVICE)
    user = _resolve_option(user, config_values, "user", default=DEFAULT_ADMIN_USER)
    sysdba = bool(_resolve_option(sysdba, config_values, "sysdba", default=True))
    dry_run = bool(dry_run)
    verify_only = bool(verify_only)
    skip_verify = bool(_resolve_option(skip_verify, config_values, "skip_verify", default=False))
    report_file = _resolve_option(report_file, config_values, "report_file")
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")

    if dry_run and verify_only:
        raise click.ClickException("--dry-run and --verify-only cannot be used together.")
    if not dry_run and not host:
        raise click.ClickException("Missing required option '--host' (or provide it in config).")

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

    connection = None
    if not dry_run:
        connection = ConnectionSettings(
            host=str(host),
            port=port,
            service_name=str(service_name),
            user=str(user),
            password=_resolve_password(password, f"Administrative user {user}", prompt_allowed=True),
            sysdba=sysdba,
        )

    needs_user_passwords = not (dry_run or verify_only)
    admin_password = _resolve_password(admin_password, "XStream administrator", needs_user_passwords)
    connect_password = _resolve_password(connect_password, "XStream connect user", needs_user_passwords)

    try:
        settings = _build_settings(
            config_values,
            pdb=pdb,
            server_name=server_name,
            schemas=schemas,
            admin_password=admin_password,
            connect_password=connect_password,
        )
        provisioner = XStreamProvisioner(
            connection=connection,
            settings=settings,
            dry_run=dry_run,
            verify_only=verify_only,
            skip_verify=skip_verify,
            report_file=report_file,
        )
    except ProvisioningError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(provisioner.run())


if __name__ == "__main__":
    main()

"""Identifier and credential validation for XStreamProv."""

import re
from typing import Iterable

from xstreamprov.errors import ProvisioningError
from xstreamprov.errors_catalog import actionable_error
from xstreamprov.models import ConnectionSettings, ProvisioningSettings


class ValidationService:
    """Validates every value that ends up interpolated into DDL."""

    IDENTIFIER_PATTERN = re.compile(r"^(c##)?[A-Za-z][A-Za-z0-9_$#]{0,127}$", re.IGNORECASE)
    PRIVILEGE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_$#]*( [A-Za-z][A-Za-z0-9_$#]*)*$")
    SIZE_PATTERN = re.compile(r"^\d+[KMGT]?$", re.IGNORECASE)

    def ensure_identifier(self, value: str, label: str):
        if not value or not self.IDENTIFIER_PATTERN.match(value):
            raise ProvisioningError(actionable_error("invalid_identifier", label=label, value=value))

    def ensure_identifiers(self, values: Iterable[str], label: str):
        values = list(values)
        if not values:
            raise ProvisioningError(f"At least one {label} is required.")
        for value in values:
            self.ensure_identifier(value, label)

    def ensure_privileges(self, values: Iterable[str], label: str):
        for value in values:
            if not self.PRIVILEGE_PATTERN.match(value or ""):
                raise ProvisioningError(actionable_error("invalid_identifier", label=label, value=value))

    def ensure_password(self, value: str, label: str):
        if not value or '"' in value:
            raise ProvisioningError(actionable_error("invalid_password", label=label))

    def ensure_datafile(self, value: str, label: str):
        if not value or "'" in value:
            raise ProvisioningError(f"Invalid datafile path for {label}: {value!r}")

    def validate_connection(self, settings: ConnectionSettings):
        if not settings.host:
            raise ProvisioningError("Missing database host (use --host or `host` in config).")
        if not 0 < int(settings.port) < 65536:
            raise ProvisioningError(f"Invalid database port: {settings.port}")
        if not settings.service_name:
            raise ProvisioningError("Missing database service name (use --service or `service_name` in config).")
        if not settings.user:
            raise ProvisioningError("Missing administrative user (use --user or `user` in config).")
        if not settings.password:
            raise ProvisioningError("Missing administrative password.")

    def validate_settings(self, settings: ProvisioningSettings):
        self.ensure_identifier(settings.root_container, "root container")
        self.ensure_identifier(settings.pdb_name, "pluggable database")
        self.ensure_identifier(settings.tablespace, "tablespace")
        self.ensure_identifier(settings.xstream_admin, "XStream administrator")
        self.ensure_identifier(settings.connect_user, "connect user")
        self.ensure_identifier(settings.server_name, "outbound server")
        self.ensure_identifier(settings.outbound_view, "outbound view")
        self.ensure_identifiers(settings.schemas, "schema")
        self.ensure_privileges(settings.admin_privileges, "administrator privilege")
        self.ensure_privileges(settings.optional_admin_roles, "optional role")
        self.ensure_privileges(settings.connect_privileges, "connect user privilege")
        self.ensure_datafile(settings.root_datafile, "root container")
        self.ensure_datafile(settings.pdb_datafile, "pluggable database")
        self.ensure_password(settings.admin_password, "XStream administrator")
        self.ensure_password(settings.connect_password, "connect user")

        if not self.SIZE_PATTERN.match(settings.datafile_size or ""):
            raise ProvisioningError(f"Invalid datafile size: {settings.datafile_size!r}")
        if settings.xstream_admin.upper() == settings.connect_user.upper():
            raise ProvisioningError("The XStream administrator and connect user must be different accounts.")

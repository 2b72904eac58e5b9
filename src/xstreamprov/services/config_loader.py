"""Configuration loader for XStreamProv."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from xstreamprov.errors import ProvisioningError
from xstreamprov.errors_catalog import actionable_error


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "host",
        "port",
        "service_name",
        "user",
        "sysdba",
        "root_container",
        "pdb_name",
        "tablespace",
        "root_datafile",
        "pdb_datafile",
        "datafile_size",
        "xstream_admin",
        "connect_user",
        "admin_privileges",
        "optional_admin_roles",
        "connect_privileges",
        "server_name",
        "schemas",
        "outbound_view",
        "report_file",
        "skip_verify",
        "verbose",
        "log_file",
    }
    SECRET_KEYS = {"password", "admin_password", "connect_password"}
    LIST_KEYS = {"admin_privileges", "optional_admin_roles", "connect_privileges", "schemas"}

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ProvisioningError(actionable_error("config_not_found", path=config_path))

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ProvisioningError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ProvisioningError("Config file must contain a YAML mapping at the root.")

        secrets = sorted(set(parsed.keys()) & self.SECRET_KEYS)
        if secrets:
            raise ProvisioningError(
                f"Passwords are not read from config files ({', '.join(secrets)}). "
                "Use the command line options or XSTREAMPROV_* environment variables."
            )

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ProvisioningError(f"Unknown configuration keys: {unknown_list}")

        for key in self.LIST_KEYS & set(parsed.keys()):
            value = parsed[key]
            if isinstance(value, str):
                parsed[key] = [item.strip() for item in value.split(",") if item.strip()]
            elif not isinstance(value, list):
                raise ProvisioningError(f"Configuration key '{key}' must be a list.")

        return parsed

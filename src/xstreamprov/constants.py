"""Shared constants for XStreamProv."""

DEFAULT_CONFIG_FILE = ".xstreamprov.yml"
DEFAULT_PORT = 1521
DEFAULT_SERVICE = "FREE"
DEFAULT_ADMIN_USER = "sys"

DB_PASSWORD_ENV = "XSTREAMPROV_DB_PASSWORD"
ADMIN_PASSWORD_ENV = "XSTREAMPROV_ADMIN_PASSWORD"
CONNECT_PASSWORD_ENV = "XSTREAMPROV_CONNECT_PASSWORD"

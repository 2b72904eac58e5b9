"""Administrative Oracle session used for a single provisioning run."""

from typing import Any, Dict, List, Mapping, Optional, Tuple

import oracledb

from xstreamprov.errors import ProvisioningError
from xstreamprov.errors_catalog import actionable_error
from xstreamprov.models import ConnectionSettings


class ConnectionContext:
    """Owns one authenticated session plus its active container.

    The active container is tracked explicitly so that the runner, and only the
    runner, moves the session between ``CDB$ROOT`` and the pluggable database.
    """

    def __init__(self, connection, logger, active_container: Optional[str] = None):
        self.connection = connection
        self.logger = logger
        self.active_container = active_container

    @classmethod
    def open(cls, settings: ConnectionSettings, logger, oracledb_module=oracledb) -> "ConnectionContext":
        params: Dict[str, Any] = {
            "user": settings.user,
            "password": settings.password,
            "dsn": settings.dsn,
        }
        if settings.sysdba:
            params["mode"] = oracledb_module.AUTH_MODE_SYSDBA

        logger.info("Connecting to %s as %s%s", settings.dsn, settings.user, " (SYSDBA)" if settings.sysdba else "")
        try:
            connection = oracledb_module.connect(**params)
        except oracledb_module.Error as exc:
            raise ProvisioningError(
                actionable_error("connection_failed", dsn=settings.dsn, detail=str(exc).strip())
            ) from exc

        context = cls(connection, logger)
        try:
            context.active_container = context._current_container()
        except oracledb_module.Error as exc:
            context.close()
            raise ProvisioningError(
                actionable_error("connection_failed", dsn=settings.dsn, detail=str(exc).strip())
            ) from exc
        logger.debug("Session container is %s", context.active_container)
        return context

    def __enter__(self) -> "ConnectionContext":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        if self.connection is None:
            return
        try:
            self.connection.close()
        except oracledb.Error as exc:
            self.logger.warning("Could not close database connection cleanly: %s", exc)
        self.connection = None

    def switch_container(self, container: str):
        if self.active_container and self.active_container.upper() == container.upper():
            return
        self.logger.debug("Switching container: %s -> %s", self.active_container, container)
        self.execute(f"ALTER SESSION SET CONTAINER = {container}")
        self.active_container = container

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None):
        self.logger.debug("Executing: %s", sql)
        with self.connection.cursor() as cursor:
            if params:
                cursor.execute(sql, dict(params))
            else:
                cursor.execute(sql)

    def fetch_one(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Optional[Tuple[Any, ...]]:
        with self.connection.cursor() as cursor:
            cursor.execute(sql, dict(params or {}))
            row = cursor.fetchone()
        return tuple(row) if row is not None else None

    def fetch_all(
        self, sql: str, params: Optional[Mapping[str, Any]] = None
    ) -> Tuple[List[str], List[Tuple[Any, ...]]]:
        with self.connection.cursor() as cursor:
            cursor.execute(sql, dict(params or {}))
            columns = [column[0] for column in (cursor.description or [])]
            rows = [tuple(row) for row in cursor.fetchall()]
        return columns, rows

    def callproc(self, name: str, keyword_parameters: Mapping[str, Any]):
        self.logger.debug("Calling %s(%s)", name, ", ".join(sorted(keyword_parameters)))
        with self.connection.cursor() as cursor:
            cursor.callproc(name, keyword_parameters=dict(keyword_parameters))

    def _current_container(self) -> Optional[str]:
        row = self.fetch_one("SELECT SYS_CONTEXT('USERENV', 'CON_NAME') FROM DUAL")
        return str(row[0]) if row and row[0] else None

import re
from types import SimpleNamespace

import oracledb
from oracledb import errors as oracledb_errors
import pytest


def driver_error(message: str, code: int) -> oracledb.Error:
    error = oracledb_errors._Error(message, code=code)
    exc_type = getattr(error, "exc_type", None) or oracledb.DatabaseError
    return exc_type(error)


def ora_error(code: int, text: str = "simulated failure") -> oracledb.DatabaseError:
    full_code = f"ORA-{code:05d}"
    return oracledb.DatabaseError(
        SimpleNamespace(code=code, full_code=full_code, message=f"{full_code}: {text}")
    )


class FakeOracle:
    """In-memory stand-in for an administrative session on a CDB."""

    GRANT_PATTERN = re.compile(r"^GRANT (.+) TO (\S+) CONTAINER=ALL$")

    def __init__(self):
        self.active_container = "CDB$ROOT"
        self.goldengate = False
        self.supplemental_all = False
        self.tablespaces = {}
        self.users = set()
        self.privileges = {}
        self.local_privileges = {}
        self.missing_roles = set()
        self.outbound = {}
        self.failures = []
        self.executed = []
        self.switches = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    def fail_on(self, fragment: str, error: Exception):
        self.failures.append((fragment, error))

    def _maybe_fail(self, sql: str):
        for fragment, error in self.failures:
            if fragment in sql:
                raise error

    def switch_container(self, container: str):
        self.switches.append(container)
        self.active_container = container

    def execute(self, sql, params=None):
        self._maybe_fail(sql)
        self.executed.append((self.active_container, sql, dict(params or {})))
        upper = sql.upper()

        if upper.startswith("ALTER SYSTEM SET ENABLE_GOLDENGATE_REPLICATION"):
            self.goldengate = True
        elif "ADD SUPPLEMENTAL LOG DATA (ALL) COLUMNS" in upper:
            self.supplemental_all = True
        elif upper.startswith("CREATE TABLESPACE"):
            name = sql.split()[2].upper()
            existing = self.tablespaces.setdefault(self.active_container, set())
            if name in existing:
                raise ora_error(1543, f"tablespace '{name}' already exists")
            existing.add(name)
        elif upper.startswith("CREATE USER"):
            name = sql.split()[2].upper()
            if name in self.users:
                raise ora_error(1920, f"user name '{name}' conflicts with another user or role name")
            self.users.add(name)
            self.privileges[name] = set()
        elif upper.startswith("GRANT"):
            match = self.GRANT_PATTERN.match(sql)
            privilege, grantee = match.group(1).upper(), match.group(2).upper()
            if privilege in self.missing_roles:
                raise ora_error(1919, f"role '{privilege}' does not exist")
            if grantee not in self.users:
                raise ora_error(1917, f"user or role '{grantee}' does not exist")
            self.privileges[grantee].add(privilege)
        elif "DBMS_XSTREAM_ADM.CREATE_OUTBOUND" in upper:
            name = params["server_name"].upper()
            if name in self.outbound:
                raise ora_error(26665, f"STREAMS process {name} already exists")
            schemas = [value for key, value in sorted(params.items()) if key.startswith("schema_")]
            self.outbound[name] = {
                "container": params["source_container"],
                "schemas": schemas,
                "connect_user": None,
                "capture_user": None,
            }

    def callproc(self, name, keyword_parameters):
        self._maybe_fail(name)
        self.executed.append((self.active_container, name, dict(keyword_parameters)))
        server = self.outbound[keyword_parameters["server_name"].upper()]
        for key in ("connect_user", "capture_user"):
            if key in keyword_parameters:
                server[key] = keyword_parameters[key].upper()

    def fetch_one(self, sql, params=None):
        self._maybe_fail(sql)
        params = params or {}
        if "v$parameter" in sql:
            return ("TRUE" if self.goldengate else "FALSE",)
        if "supplemental_log_data_all FROM v$database" in sql:
            return ("YES" if self.supplemental_all else "NO",)
        if "dba_tablespaces" in sql:
            existing = self.tablespaces.get(self.active_container, set())
            return (1,) if params["name"] in existing else None
        if "dba_users" in sql:
            return (1,) if params["username"] in self.users else None
        if "xstream_outbound" in sql:
            server = self.outbound.get(params["server_name"])
            if server is None:
                return None
            return (server["connect_user"], server["capture_user"])
        raise AssertionError(f"Unexpected query: {sql}")

    def fetch_all(self, sql, params=None):
        self._maybe_fail(sql)
        params = params or {}
        if "dba_sys_privs" in sql:
            held = set(self.privileges.get(params["grantee"], set()))
            if "common = 'YES'" not in sql:
                held |= self.local_privileges.get(params["grantee"], set())
            return ["PRIVILEGE"], [(privilege,) for privilege in sorted(held)]
        return ["VALUE"], [("ok",)]


@pytest.fixture
def fake_db():
    return FakeOracle()


@pytest.fixture
def make_ora_error():
    return ora_error


@pytest.fixture
def make_driver_error():
    return driver_error

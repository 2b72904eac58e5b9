from types import SimpleNamespace

import oracledb
import pytest

from xstreamprov.errors import ProvisioningError
from xstreamprov.models import ConnectionSettings
from xstreamprov.services.connection import ConnectionContext


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class FakeCursor:
    def __init__(self, connection):
        self.connection = connection
        self.description = [("COLUMN_A",), ("COLUMN_B",)]
        self._rows = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        self.connection.statements.append((sql, params))
        if "SYS_CONTEXT" in sql:
            self._rows = [("CDB$ROOT",)]
        else:
            self._rows = list(self.connection.rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def callproc(self, name, keyword_parameters=None):
        self.connection.procedures.append((name, keyword_parameters))


class FakeConnection:
    def __init__(self):
        self.statements = []
        self.procedures = []
        self.rows = []
        self.closed = False

    def cursor(self):
        return FakeCursor(self)

    def close(self):
        self.closed = True


def _settings(**overrides):
    values = {
        "host": "db.example.com",
        "port": 1521,
        "service_name": "FREE",
        "user": "sys",
        "password": "secret",
    }
    values.update(overrides)
    return ConnectionSettings(**values)


def _fake_module(connection, captured, error=None):
    def connect(**kwargs):
        captured.update(kwargs)
        if error is not None:
            raise error
        return connection

    return SimpleNamespace(AUTH_MODE_SYSDBA="sysdba", connect=connect, Error=oracledb.Error)


def test_open_connects_as_sysdba_and_reads_container():
    connection = FakeConnection()
    captured = {}

    context = ConnectionContext.open(_settings(), DummyLogger(), oracledb_module=_fake_module(connection, captured))

    assert captured == {
        "user": "sys",
        "password": "secret",
        "dsn": "db.example.com:1521/FREE",
        "mode": "sysdba",
    }
    assert context.active_container == "CDB$ROOT"


def test_open_without_sysdba_omits_mode():
    captured = {}

    ConnectionContext.open(
        _settings(sysdba=False),
        DummyLogger(),
        oracledb_module=_fake_module(FakeConnection(), captured),
    )

    assert "mode" not in captured


def test_open_wraps_driver_errors():
    module = _fake_module(FakeConnection(), {}, error=oracledb.DatabaseError("ORA-12541: no listener"))

    with pytest.raises(ProvisioningError, match="Could not connect to db.example.com:1521/FREE"):
        ConnectionContext.open(_settings(), DummyLogger(), oracledb_module=module)


def test_switch_container_is_a_no_op_when_already_active():
    connection = FakeConnection()
    context = ConnectionContext(connection, DummyLogger(), active_container="CDB$ROOT")

    context.switch_container("cdb$root")
    context.switch_container("FREEPDB1")

    assert connection.statements == [("ALTER SESSION SET CONTAINER = FREEPDB1", None)]
    assert context.active_container == "FREEPDB1"


def test_fetch_all_returns_columns_and_rows():
    connection = FakeConnection()
    connection.rows = [("a", 1), ("b", 2)]
    context = ConnectionContext(connection, DummyLogger())

    columns, rows = context.fetch_all("SELECT a, b FROM t WHERE x = :x", {"x": 1})

    assert columns == ["COLUMN_A", "COLUMN_B"]
    assert rows == [("a", 1), ("b", 2)]
    assert connection.statements[-1] == ("SELECT a, b FROM t WHERE x = :x", {"x": 1})


def test_callproc_uses_keyword_parameters():
    connection = FakeConnection()
    context = ConnectionContext(connection, DummyLogger())

    context.callproc("DBMS_XSTREAM_ADM.ALTER_OUTBOUND", {"server_name": "XOUT1", "connect_user": "c##u"})

    assert connection.procedures == [
        ("DBMS_XSTREAM_ADM.ALTER_OUTBOUND", {"server_name": "XOUT1", "connect_user": "c##u"})
    ]


def test_context_manager_closes_connection_once():
    connection = FakeConnection()

    with ConnectionContext(connection, DummyLogger()) as context:
        pass
    context.close()

    assert connection.closed is True
    assert context.connection is None


def test_open_closes_connection_when_container_lookup_fails():
    class FailingCursor(FakeCursor):
        def execute(self, sql, params=None):
            raise oracledb.DatabaseError("ORA-01033: ORACLE initialization or shutdown in progress")

    class FailingConnection(FakeConnection):
        def cursor(self):
            return FailingCursor(self)

    connection = FailingConnection()

    with pytest.raises(ProvisioningError, match="Could not connect to db.example.com:1521/FREE"):
        ConnectionContext.open(_settings(), DummyLogger(), oracledb_module=_fake_module(connection, {}))

    assert connection.closed is True

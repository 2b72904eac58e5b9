"""Shared domain models for XStreamProv."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple


class OnFailure(str, Enum):
    ABORT = "abort"
    WARN_AND_CONTINUE = "warn-and-continue"


class Outcome(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped-already-satisfied"
    FAILED = "failed"


class RunState(str, Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class ErrorCategory(str, Enum):
    OBJECT_ALREADY_EXISTS = "object-already-exists"
    UNSUPPORTED_FEATURE = "unsupported-feature"
    PRIVILEGE_DENIED = "privilege-denied"
    INVALID_STATE = "invalid-state"
    CONNECTIVITY = "connectivity"


@dataclass(frozen=True)
class ProvisioningStep:
    """One idempotent "ensure" operation of the provisioning catalog."""

    name: str
    description: str
    action: Callable[[Any], None]
    check: Optional[Callable[[Any], bool]] = None
    on_failure: OnFailure = OnFailure.ABORT
    container: Optional[str] = None
    statements: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RunResult:
    step: str
    outcome: Outcome
    error: Optional[str] = None
    category: Optional[ErrorCategory] = None


@dataclass
class RunReport:
    """Ordered step results plus the terminal state of a run."""

    results: List[RunResult] = field(default_factory=list)
    state: RunState = RunState.NOT_STARTED

    @property
    def succeeded(self) -> bool:
        return self.state == RunState.COMPLETED

    @property
    def failed_step(self) -> Optional[RunResult]:
        if self.state != RunState.ABORTED:
            return None
        for result in reversed(self.results):
            if result.outcome == Outcome.FAILED:
                return result
        return None

    def counts(self) -> Dict[str, int]:
        totals = {outcome.value: 0 for outcome in Outcome}
        for result in self.results:
            totals[result.outcome.value] += 1
        return totals


@dataclass(frozen=True)
class ConnectionSettings:
    """Administrative connection parameters."""

    host: str
    port: int
    service_name: str
    user: str
    password: str
    sysdba: bool = True

    @property
    def dsn(self) -> str:
        return f"{self.host}:{self.port}/{self.service_name}"


@dataclass(frozen=True)
class ProvisioningSettings:
    """Identifiers and parameters used by the step catalog."""

    admin_password: str
    connect_password: str
    root_container: str = "CDB$ROOT"
    pdb_name: str = "FREEPDB1"
    tablespace: str = "xstream_adm_tbs"
    root_datafile: str = "/opt/oracle/oradata/FREE/xstream_adm_tbs.dbf"
    pdb_datafile: str = "/opt/oracle/oradata/FREE/FREEPDB1/xstream_adm_tbs.dbf"
    datafile_size: str = "25M"
    xstream_admin: str = "c##xstreamadmin"
    connect_user: str = "c##connectuser"
    admin_privileges: Tuple[str, ...] = (
        "CREATE SESSION",
        "SET CONTAINER",
        "EXECUTE ANY PROCEDURE",
        "LOGMINING",
        "XSTREAM_CAPTURE",
        "SELECT ANY TABLE",
        "FLASHBACK ANY TABLE",
        "SELECT ANY TRANSACTION",
    )
    optional_admin_roles: Tuple[str, ...] = ("XSTREAM_ADMIN",)
    connect_privileges: Tuple[str, ...] = (
        "CREATE SESSION",
        "SELECT_CATALOG_ROLE",
        "SELECT ANY TABLE",
        "LOCK ANY TABLE",
    )
    server_name: str = "XOUT1"
    schemas: Tuple[str, ...] = ("HR", "CO")
    outbound_view: str = "dba_xstream_outbound"


@dataclass(frozen=True)
class VerificationResult:
    """Rows returned by one read-only verification query."""

    title: str
    columns: Tuple[str, ...] = ()
    rows: Tuple[Tuple[Any, ...], ...] = ()
    error: Optional[str] = None

"""Ordered catalog of idempotent XStream provisioning steps."""

from typing import List, Optional, Sequence, Set

from xstreamprov.models import OnFailure, ProvisioningSettings, ProvisioningStep

MASKED_PASSWORD = "********"


class StepCatalog:
    """Builds the provisioning steps for one set of identifiers.

    Every step pairs a postcondition query with the DDL or PL/SQL that makes it
    true, so re-running the catalog against a provisioned database only skips.
    """

    def __init__(self, settings: ProvisioningSettings):
        self.settings = settings

    def build(self) -> List[ProvisioningStep]:
        s = self.settings
        root = s.root_container
        return [
            ProvisioningStep(
                name="enable_goldengate_replication",
                description="Enable the GoldenGate replication parameter required by XStream",
                check=self.replication_enabled,
                action=self.enable_replication,
                container=root,
                statements=(self._replication_sql(),),
            ),
            ProvisioningStep(
                name="enable_supplemental_logging",
                description="Enable supplemental logging for all columns",
                check=self.supplemental_logging_enabled,
                action=self.enable_supplemental_logging,
                container=root,
                statements=(self._supplemental_logging_sql(),),
            ),
            ProvisioningStep(
                name="create_root_tablespace",
                description=f"Create tablespace {s.tablespace} in {root}",
                check=self.tablespace_exists,
                action=lambda context: self.create_tablespace(context, s.root_datafile),
                container=root,
                statements=(self._tablespace_sql(s.root_datafile),),
            ),
            ProvisioningStep(
                name="create_pdb_tablespace",
                description=f"Create tablespace {s.tablespace} in {s.pdb_name}",
                check=self.tablespace_exists,
                action=lambda context: self.create_tablespace(context, s.pdb_datafile),
                container=s.pdb_name,
                statements=(self._tablespace_sql(s.pdb_datafile),),
            ),
            ProvisioningStep(
                name="create_xstream_admin",
                description=f"Create XStream administrator {s.xstream_admin}",
                check=lambda context: self.user_exists(context, s.xstream_admin),
                action=self.create_xstream_admin,
                container=root,
                statements=(self._admin_user_sql(MASKED_PASSWORD),),
            ),
            ProvisioningStep(
                name="grant_xstream_admin_privileges",
                description=f"Grant capture privileges to {s.xstream_admin}",
                check=lambda context: self.privileges_held(context, s.xstream_admin, s.admin_privileges),
                action=lambda context: self.grant_privileges(context, s.xstream_admin, s.admin_privileges),
                container=root,
                statements=tuple(self._grant_sql(s.xstream_admin, p) for p in s.admin_privileges),
            ),
            ProvisioningStep(
                name="grant_xstream_admin_optional_roles",
                description=f"Grant optional roles to {s.xstream_admin}",
                check=lambda context: self.privileges_held(context, s.xstream_admin, s.optional_admin_roles),
                action=lambda context: self.grant_privileges(context, s.xstream_admin, s.optional_admin_roles),
                on_failure=OnFailure.WARN_AND_CONTINUE,
                container=root,
                statements=tuple(self._grant_sql(s.xstream_admin, r) for r in s.optional_admin_roles),
            ),
            ProvisioningStep(
                name="create_connect_user",
                description=f"Create XStream connect user {s.connect_user}",
                check=lambda context: self.user_exists(context, s.connect_user),
                action=self.create_connect_user,
                container=root,
                statements=(self._connect_user_sql(MASKED_PASSWORD),),
            ),
            ProvisioningStep(
                name="grant_connect_user_privileges",
                description=f"Grant read and lock privileges to {s.connect_user}",
                check=lambda context: self.privileges_held(context, s.connect_user, s.connect_privileges),
                action=lambda context: self.grant_privileges(context, s.connect_user, s.connect_privileges),
                container=root,
                statements=tuple(self._grant_sql(s.connect_user, p) for p in s.connect_privileges),
            ),
            ProvisioningStep(
                name="create_outbound_server",
                description=f"Create outbound server {s.server_name} for {', '.join(s.schemas)} in {s.pdb_name}",
                check=self.outbound_server_exists,
                action=self.create_outbound_server,
                container=root,
                statements=(self._create_outbound_plsql(),),
            ),
            ProvisioningStep(
                name="bind_outbound_users",
                description=f"Set connect and capture users on {s.server_name}",
                check=self.outbound_users_bound,
                action=self.bind_outbound_users,
                container=root,
                statements=(
                    f"DBMS_XSTREAM_ADM.ALTER_OUTBOUND(server_name => '{s.server_name}', "
                    f"connect_user => '{s.connect_user}')",
                    f"DBMS_XSTREAM_ADM.ALTER_OUTBOUND(server_name => '{s.server_name}', "
                    f"capture_user => '{s.xstream_admin}')",
                ),
            ),
        ]

    # Postcondition checks

    def replication_enabled(self, context) -> bool:
        row = context.fetch_one(
            "SELECT value FROM v$parameter WHERE name = 'enable_goldengate_replication'"
        )
        return bool(row) and str(row[0]).upper() == "TRUE"

    def supplemental_logging_enabled(self, context) -> bool:
        row = context.fetch_one("SELECT supplemental_log_data_all FROM v$database")
        return bool(row) and str(row[0]).upper() == "YES"

    def tablespace_exists(self, context) -> bool:
        row = context.fetch_one(
            "SELECT 1 FROM dba_tablespaces WHERE tablespace_name = :name",
            {"name": self.settings.tablespace.upper()},
        )
        return row is not None

    def user_exists(self, context, username: str) -> bool:
        row = context.fetch_one(
            "SELECT 1 FROM dba_users WHERE username = :username",
            {"username": username.upper()},
        )
        return row is not None

    def held_privileges(self, context, grantee: str) -> Set[str]:
        _, rows = context.fetch_all(
            "SELECT privilege FROM dba_sys_privs WHERE grantee = :grantee AND common = 'YES' "
            "UNION "
            "SELECT granted_role FROM dba_role_privs WHERE grantee = :grantee AND common = 'YES'",
            {"grantee": grantee.upper()},
        )
        return {str(row[0]).upper() for row in rows}

    def privileges_held(self, context, grantee: str, privileges: Sequence[str]) -> bool:
        held = self.held_privileges(context, grantee)
        return all(privilege.upper() in held for privilege in privileges)

    def outbound_server_exists(self, context) -> bool:
        return self._outbound_row(context) is not None

    def outbound_users_bound(self, context) -> bool:
        row = self._outbound_row(context)
        if row is None:
            return False
        connect_user, capture_user = row
        return self._same_user(connect_user, self.settings.connect_user) and self._same_user(
            capture_user, self.settings.xstream_admin
        )

    # Actions

    def enable_replication(self, context):
        context.execute(self._replication_sql())

    def enable_supplemental_logging(self, context):
        context.execute(self._supplemental_logging_sql())

    def create_tablespace(self, context, datafile: str):
        context.execute(self._tablespace_sql(datafile))

    def create_xstream_admin(self, context):
        context.execute(self._admin_user_sql(self.settings.admin_password))

    def create_connect_user(self, context):
        context.execute(self._connect_user_sql(self.settings.connect_password))

    def grant_privileges(self, context, grantee: str, privileges: Sequence[str]):
        held = self.held_privileges(context, grantee)
        for privilege in privileges:
            if privilege.upper() in held:
                continue
            context.execute(self._grant_sql(grantee, privilege))

    def create_outbound_server(self, context):
        params = {
            "server_name": self.settings.server_name,
            "source_container": self.settings.pdb_name,
        }
        for index, schema in enumerate(self.settings.schemas, start=1):
            params[f"schema_{index}"] = schema.upper()
        context.execute(self._create_outbound_plsql(), params)

    def bind_outbound_users(self, context):
        row = self._outbound_row(context)
        connect_user, capture_user = row if row is not None else (None, None)
        if not self._same_user(connect_user, self.settings.connect_user):
            context.callproc(
                "DBMS_XSTREAM_ADM.ALTER_OUTBOUND",
                {"server_name": self.settings.server_name, "connect_user": self.settings.connect_user},
            )
        if not self._same_user(capture_user, self.settings.xstream_admin):
            context.callproc(
                "DBMS_XSTREAM_ADM.ALTER_OUTBOUND",
                {"server_name": self.settings.server_name, "capture_user": self.settings.xstream_admin},
            )

    # SQL builders

    @staticmethod
    def _replication_sql() -> str:
        return "ALTER SYSTEM SET enable_goldengate_replication=TRUE SCOPE=BOTH"

    @staticmethod
    def _supplemental_logging_sql() -> str:
        return "ALTER DATABASE ADD SUPPLEMENTAL LOG DATA (ALL) COLUMNS"

    def _tablespace_sql(self, datafile: str) -> str:
        return (
            f"CREATE TABLESPACE {self.settings.tablespace} DATAFILE '{datafile}' "
            f"SIZE {self.settings.datafile_size} REUSE AUTOEXTEND ON MAXSIZE UNLIMITED"
        )

    def _admin_user_sql(self, password: str) -> str:
        s = self.settings
        return (
            f'CREATE USER {s.xstream_admin} IDENTIFIED BY "{password}" '
            f"DEFAULT TABLESPACE {s.tablespace} "
            f"QUOTA UNLIMITED ON {s.tablespace} "
            "CONTAINER=ALL"
        )

    def _connect_user_sql(self, password: str) -> str:
        return f'CREATE USER {self.settings.connect_user} IDENTIFIED BY "{password}" CONTAINER=ALL'

    @staticmethod
    def _grant_sql(grantee: str, privilege: str) -> str:
        return f"GRANT {privilege} TO {grantee} CONTAINER=ALL"

    def _create_outbound_plsql(self) -> str:
        assignments = "\n".join(
            f"    schemas({index}) := :schema_{index};"
            for index in range(1, len(self.settings.schemas) + 1)
        )
        return (
            "DECLARE\n"
            "    tables  DBMS_UTILITY.UNCL_ARRAY;\n"
            "    schemas DBMS_UTILITY.UNCL_ARRAY;\n"
            "BEGIN\n"
            "    tables(1) := NULL;\n"
            f"{assignments}\n"
            "    DBMS_XSTREAM_ADM.CREATE_OUTBOUND(\n"
            "        server_name => :server_name,\n"
            "        table_names => tables,\n"
            "        schema_names => schemas,\n"
            "        source_container_name => :source_container);\n"
            "END;"
        )

    def _outbound_row(self, context):
        return context.fetch_one(
            f"SELECT connect_user, capture_user FROM {self.settings.outbound_view} "
            "WHERE server_name = :server_name",
            {"server_name": self.settings.server_name.upper()},
        )

    @staticmethod
    def _same_user(actual: Optional[str], expected: str) -> bool:
        return bool(actual) and str(actual).upper() == expected.upper()


def build_step_catalog(settings: ProvisioningSettings) -> List[ProvisioningStep]:
    return StepCatalog(settings).build()

"""Read-only verification queries for an XStream setup."""

from typing import Any, Dict, List, Tuple

import oracledb

from xstreamprov.models import ProvisioningSettings, VerificationResult
from xstreamprov.services.error_classifier import ErrorClassifier


class VerificationService:
    """Reports the current replication state for the operator.

    Queries run in the root container so that ``cdb_*`` views cover every
    container. A failing query is recorded and the remaining ones still run.
    """

    def __init__(self, settings: ProvisioningSettings, logger):
        self.settings = settings
        self.logger = logger

    def queries(self) -> List[Tuple[str, str, Dict[str, Any]]]:
        users = {
            "admin_user": self.settings.xstream_admin.upper(),
            "connect_user": self.settings.connect_user.upper(),
        }
        return [
            (
                "GoldenGate replication",
                "SELECT name, value FROM v$parameter WHERE name = 'enable_goldengate_replication'",
                {},
            ),
            ("Database log mode", "SELECT log_mode FROM v$database", {}),
            (
                "Supplemental logging",
                "SELECT supplemental_log_data_min, supplemental_log_data_pk, supplemental_log_data_all "
                "FROM v$database",
                {},
            ),
            (
                "Outbound servers",
                f"SELECT server_name, status, connect_user, capture_user FROM {self.settings.outbound_view}",
                {},
            ),
            (
                "XStream users",
                "SELECT con_id, username, account_status FROM cdb_users "
                "WHERE username IN (:admin_user, :connect_user) ORDER BY con_id, username",
                users,
            ),
            (
                "Tablespace quotas",
                "SELECT con_id, username, tablespace_name, max_bytes FROM cdb_ts_quotas "
                "WHERE username IN (:admin_user, :connect_user) ORDER BY con_id, username",
                users,
            ),
            (
                "Capture processes",
                "SELECT capture_name, state, total_messages_captured, total_messages_enqueued "
                "FROM v$xstream_capture",
                {},
            ),
            (
                "XStream rules",
                "SELECT streams_name, streams_type, rule_type, schema_name, object_name, rule_name "
                "FROM all_xstream_rules ORDER BY streams_name, rule_name",
                {},
            ),
        ]

    def run(self, context) -> List[VerificationResult]:
        context.switch_container(self.settings.root_container)
        results: List[VerificationResult] = []
        for title, sql, params in self.queries():
            try:
                columns, rows = context.fetch_all(sql, params)
            except oracledb.Error as exc:
                detail = ErrorClassifier.describe(exc)
                self.logger.warning("Verification query '%s' failed: %s", title, detail)
                results.append(VerificationResult(title=title, error=detail))
                continue
            results.append(VerificationResult(title=title, columns=tuple(columns), rows=tuple(rows)))
        return results

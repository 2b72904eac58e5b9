import logging
import uuid
from dataclasses import asdict
from typing import Any, Dict, List, Optional

import oracledb
from rich.console import Console

from .errors import ProvisioningError
from .models import ConnectionSettings, ProvisioningSettings, ProvisioningStep, RunReport
from .services.connection import ConnectionContext
from .services.report import ReportService
from .services.runner import ProvisioningRunner
from .services.step_catalog import build_step_catalog
from .services.summary import SummaryService
from .services.validation import ValidationService
from .services.verification import VerificationService

console = Console()
logger = logging.getLogger("xstreamprov")


class XStreamProvisioner:
    """Prepares an Oracle CDB/PDB pair for XStream change capture."""

    def __init__(
        self,
        connection: Optional[ConnectionSettings],
        settings: ProvisioningSettings,
        dry_run: bool = False,
        verify_only: bool = False,
        skip_verify: bool = False,
        report_file: Optional[str] = None,
        oracledb_module=oracledb,
    ):
        self.connection = connection
        self.settings = settings
        self.dry_run = dry_run
        self.verify_only = verify_only
        self.skip_verify = skip_verify
        self.oracledb_module = oracledb_module
        self.run_id = uuid.uuid4().hex[:10]

        self.validation_service = ValidationService()
        self.report_service = ReportService(report_file=report_file, logger=logger)
        self.summary_service = SummaryService(console=console)
        self.verification_service = VerificationService(settings=settings, logger=logger)
        self.runner = ProvisioningRunner(
            logger=logger,
            on_step_started=self.report_service.step_started,
            on_step_finished=self.report_service.step_finished,
        )

        self.validation_service.validate_settings(settings)
        if not dry_run:
            if connection is None:
                raise ProvisioningError("A database connection is required unless --dry-run is used.")
            self.validation_service.validate_connection(connection)

    def build_steps(self) -> List[ProvisioningStep]:
        return build_step_catalog(self.settings)

    def open_context(self) -> ConnectionContext:
        return ConnectionContext.open(self.connection, logger=logger, oracledb_module=self.oracledb_module)

    def _report_metadata(self) -> Dict[str, Any]:
        metadata = asdict(self.settings)
        metadata.pop("admin_password", None)
        metadata.pop("connect_password", None)
        if self.connection is not None:
            metadata["dsn"] = self.connection.dsn
            metadata["admin_user"] = self.connection.user
        return metadata

    def provision(self, context) -> RunReport:
        steps = self.build_steps()
        return self.runner.run(steps, context)

    def verify(self, context):
        console.print("[blue]Running verification queries...[/blue]")
        results = self.verification_service.run(context)
        self.summary_service.print_verification(results)
        return results

    def run(self) -> int:
        if self.dry_run:
            logger.info("Dry run: no database connection will be opened.")
            self.summary_service.print_plan(self.build_steps())
            return 0

        report: Optional[RunReport] = None
        report_error: Optional[str] = None
        try:
            logger.info("Starting XStream provisioning run %s", self.run_id)
            if not self.verify_only:
                self.report_service.start_run(self.run_id, metadata=self._report_metadata())

            with self.open_context() as context:
                if self.verify_only:
                    self.verify(context)
                    return 0

                report = self.provision(context)
                self.summary_service.print_results(report)

                if not report.succeeded:
                    failed = report.failed_step
                    report_error = failed.error if failed else "Run aborted."
                    return 1

                if not self.skip_verify:
                    self.verify(context)

            self.summary_service.print_summary(self.settings, self.connection)
            return 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            report_error = "Operation cancelled by user."
            report = None
            return 1
        except ProvisioningError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            report_error = str(exc)
            report = None
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            report_error = str(exc)
            report = None
            return 1
        finally:
            if not self.verify_only and (report is not None or report_error is not None):
                self.report_service.finalize(report, error=report_error)

"""Operator-facing console output for provisioning runs."""

from typing import Iterable, List, Optional

from rich.markup import escape
from rich.table import Table

from xstreamprov.errors_catalog import actionable_error
from xstreamprov.models import (
    ConnectionSettings,
    Outcome,
    ProvisioningSettings,
    ProvisioningStep,
    RunReport,
    VerificationResult,
)

OUTCOME_STYLES = {
    Outcome.SUCCEEDED: "green",
    Outcome.SKIPPED: "blue",
    Outcome.FAILED: "red",
}


class SummaryService:
    """Renders plans, step results, verification tables and the final summary."""

    def __init__(self, console):
        self.console = console

    def print_plan(self, steps: Iterable[ProvisioningStep]):
        self.console.print("[bold blue]Provisioning plan (dry run)[/bold blue]")
        for index, step in enumerate(steps, start=1):
            container = step.container or "<current>"
            self.console.print(
                f"[bold]{index}. {step.name}[/bold] [dim]({container}, on failure: {step.on_failure.value})[/dim]"
            )
            self.console.print(f"   {step.description}")
            for statement in step.statements:
                for line in statement.splitlines():
                    self.console.print(f"     {line}", markup=False, highlight=False)

    def print_results(self, report: RunReport):
        table = Table(title="Provisioning results")
        table.add_column("#", justify="right")
        table.add_column("Step")
        table.add_column("Outcome")
        table.add_column("Detail")
        for index, result in enumerate(report.results, start=1):
            style = OUTCOME_STYLES[result.outcome]
            detail = result.error or ""
            if result.category is not None:
                detail = f"[{result.category.value}] {detail}"
            table.add_row(
                str(index), escape(result.step), f"[{style}]{result.outcome.value}[/{style}]", escape(detail)
            )
        self.console.print(table)

        counts = report.counts()
        self.console.print(
            f"Run {report.state.value}: "
            f"{counts[Outcome.SUCCEEDED.value]} succeeded, "
            f"{counts[Outcome.SKIPPED.value]} skipped, "
            f"{counts[Outcome.FAILED.value]} failed"
        )

        failed = report.failed_step
        if failed is not None and failed.category is not None:
            self.console.print(
                "[bold red]Error:[/bold red] "
                + escape(actionable_error(failed.category.value, step=failed.step, detail=failed.error or "")),
                highlight=False,
            )

    def print_verification(self, results: List[VerificationResult]):
        for result in results:
            if result.error:
                self.console.print(f"[yellow]{result.title}: query failed ({escape(result.error)})[/yellow]")
                continue
            if not result.rows:
                self.console.print(f"[dim]{result.title}: no rows[/dim]")
                continue
            table = Table(title=result.title)
            for column in result.columns:
                table.add_column(column)
            for row in result.rows:
                table.add_row(*["" if value is None else escape(str(value)) for value in row])
            self.console.print(table)

    def summary_lines(
        self, settings: ProvisioningSettings, connection: Optional[ConnectionSettings] = None
    ) -> List[str]:
        lines = [
            "XStream users created:",
            f"- {settings.xstream_admin} (XStream administrator)",
            f"- {settings.connect_user} (XStream connect user)",
            "",
            f"XStream outbound server: {settings.server_name}",
            f"Source container: {settings.pdb_name}",
            f"Schemas configured: {', '.join(settings.schemas)}",
            "",
        ]
        if connection is not None:
            lines.extend(
                [
                    "Connection parameters for Snowflake:",
                    f"Host: {connection.host}",
                    f"Port: {connection.port}",
                    f"Service: {settings.pdb_name}",
                    f"Username: {settings.connect_user}",
                    "",
                ]
            )
        lines.extend(
            [
                "Supplemental logging enabled for all columns",
                "GoldenGate replication enabled",
            ]
        )
        return lines

    def print_summary(self, settings: ProvisioningSettings, connection: Optional[ConnectionSettings] = None):
        self.console.print("[bold green]Snowflake Oracle connector setup completed![/bold green]")
        for line in self.summary_lines(settings, connection):
            self.console.print(line, markup=False, highlight=False)

"""JSON run report for provisioning runs."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from xstreamprov.models import ProvisioningStep, RunReport, RunResult


class ReportService:
    """Collects per-step timings and outcomes and writes them as JSON."""

    def __init__(self, report_file: Optional[str], logger):
        self.report_file = report_file
        self.logger = logger
        self.report: Dict[str, Any] = {
            "run_id": None,
            "status": "not-started",
            "started_at": None,
            "finished_at": None,
            "duration_seconds": None,
            "metadata": {},
            "steps": [],
            "error": None,
        }

    def start_run(self, run_id: str, metadata: Dict[str, Any]):
        self.report["run_id"] = run_id
        self.report["status"] = "running"
        self.report["started_at"] = self._now()
        self.report["metadata"] = metadata
        self.write()

    def step_started(self, step: ProvisioningStep):
        self.report["steps"].append(
            {
                "name": step.name,
                "description": step.description,
                "container": step.container,
                "on_failure": step.on_failure.value,
                "outcome": "running",
                "started_at": self._now(),
                "finished_at": None,
                "duration_seconds": None,
                "error": None,
                "category": None,
            }
        )
        self.write()

    def step_finished(self, step: ProvisioningStep, result: RunResult):
        for entry in reversed(self.report["steps"]):
            if entry["name"] == step.name and entry["outcome"] == "running":
                entry["outcome"] = result.outcome.value
                entry["finished_at"] = self._now()
                entry["error"] = result.error
                entry["category"] = result.category.value if result.category else None
                started_at = datetime.fromisoformat(entry["started_at"])
                finished_at = datetime.fromisoformat(entry["finished_at"])
                entry["duration_seconds"] = (finished_at - started_at).total_seconds()
                break
        self.write()

    def finalize(self, report: Optional[RunReport], error: Optional[str] = None):
        if report is not None:
            self.report["status"] = report.state.value
            self.report["counts"] = report.counts()
        else:
            self.report["status"] = "aborted"
        self.report["finished_at"] = self._now()
        if self.report.get("started_at"):
            started_at = datetime.fromisoformat(self.report["started_at"])
            finished_at = datetime.fromisoformat(self.report["finished_at"])
            self.report["duration_seconds"] = (finished_at - started_at).total_seconds()
        self.report["error"] = error
        self.write()

    def write(self):
        if not self.report_file:
            return

        os.makedirs(os.path.dirname(self.report_file) or ".", exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            prefix="run-report-", suffix=".json", dir=os.path.dirname(self.report_file) or "."
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(self.report, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.report_file)
        except OSError as exc:
            self.logger.warning("Could not write report file '%s': %s", self.report_file, exc)
            try:
                os.remove(temp_path)
            except OSError:
                pass

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

"""Sequential executor for provisioning steps."""

from typing import Callable, List, Optional, Sequence

import oracledb

from xstreamprov.errors import ProvisioningError
from xstreamprov.errors_catalog import actionable_error
from xstreamprov.models import (
    ErrorCategory,
    OnFailure,
    Outcome,
    ProvisioningStep,
    RunReport,
    RunResult,
    RunState,
)
from xstreamprov.services.error_classifier import ErrorClassifier

StepStartedCallback = Callable[[ProvisioningStep], None]
StepFinishedCallback = Callable[[ProvisioningStep, RunResult], None]


class ProvisioningRunner:
    """Runs steps strictly in declared order against one connection context.

    Database errors never escape ``run``: they are classified and recorded on
    the step's ``RunResult``. A failure under the ``abort`` policy (and any
    connectivity failure) ends the run; ``warn-and-continue`` steps record the
    failure and let the run go on.
    """

    def __init__(
        self,
        logger,
        classifier: Optional[ErrorClassifier] = None,
        on_step_started: Optional[StepStartedCallback] = None,
        on_step_finished: Optional[StepFinishedCallback] = None,
    ):
        self.logger = logger
        self.classifier = classifier or ErrorClassifier()
        self.on_step_started = on_step_started
        self.on_step_finished = on_step_finished
        self.state = RunState.NOT_STARTED

    def run(self, steps: Sequence[ProvisioningStep], context) -> RunReport:
        self._ensure_unique_names(steps)
        report = RunReport(state=RunState.RUNNING)
        self.state = RunState.RUNNING

        for index, step in enumerate(steps, start=1):
            self.logger.info("[%s/%s] %s", index, len(steps), step.description)
            if self.on_step_started:
                self.on_step_started(step)

            try:
                result = self._run_step(step, context)
            except Exception:
                self.state = RunState.ABORTED
                report.state = RunState.ABORTED
                self.logger.exception("Unexpected error in step '%s'", step.name)
                raise

            report.results.append(result)
            if self.on_step_finished:
                self.on_step_finished(step, result)

            if result.outcome == Outcome.FAILED and self._is_fatal(step, result):
                self.logger.error(
                    actionable_error(result.category.value, step=step.name, detail=result.error or "")
                )
                self.state = RunState.ABORTED
                report.state = RunState.ABORTED
                return report

        self.state = RunState.COMPLETED
        report.state = RunState.COMPLETED
        return report

    def _run_step(self, step: ProvisioningStep, context) -> RunResult:
        try:
            if step.container:
                context.switch_container(step.container)

            if step.check is not None and step.check(context):
                self.logger.info("Already satisfied, skipping: %s", step.name)
                return RunResult(step=step.name, outcome=Outcome.SKIPPED)

            step.action(context)
        except oracledb.Error as exc:
            return self._failure_result(step, exc)

        self.logger.info("Completed: %s", step.name)
        return RunResult(step=step.name, outcome=Outcome.SUCCEEDED)

    def _failure_result(self, step: ProvisioningStep, exc: oracledb.Error) -> RunResult:
        category = self.classifier.classify(exc)
        detail = self.classifier.describe(exc)

        if category == ErrorCategory.OBJECT_ALREADY_EXISTS:
            self.logger.info("Object already present, skipping: %s (%s)", step.name, detail)
            return RunResult(step=step.name, outcome=Outcome.SKIPPED)

        if step.on_failure == OnFailure.WARN_AND_CONTINUE and category != ErrorCategory.CONNECTIVITY:
            self.logger.warning("Step '%s' failed, continuing: %s", step.name, detail)
        else:
            self.logger.debug("Step '%s' failed with %s: %s", step.name, category.value, detail)

        return RunResult(step=step.name, outcome=Outcome.FAILED, error=detail, category=category)

    @staticmethod
    def _is_fatal(step: ProvisioningStep, result: RunResult) -> bool:
        if result.category == ErrorCategory.CONNECTIVITY:
            return True
        return step.on_failure == OnFailure.ABORT

    @staticmethod
    def _ensure_unique_names(steps: Sequence[ProvisioningStep]):
        seen: List[str] = []
        duplicates = []
        for step in steps:
            if step.name in seen and step.name not in duplicates:
                duplicates.append(step.name)
            seen.append(step.name)
        if duplicates:
            raise ProvisioningError(f"Duplicate step names: {', '.join(duplicates)}")

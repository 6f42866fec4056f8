"""Report aggregation: normalize outcomes, build the rule catalog, decide the verdict.

The aggregator is single-writer. Outcomes are folded in one at a time with
add_outcome(); build() then freezes everything into a Report. Scanner content
problems never raise out of add_outcome(): they become issues or
notifications on the outcome's invocation.

Provides:
- ReportAggregator: Builds a Report from ScanOutcomes
- AggregationError: Contract violation by the caller
"""

import structlog

from scanfold.core.issue import Issue, Severity
from scanfold.core.outcome import ScanOutcome
from scanfold.normalizers import (
    EXECUTION_FAILURE_ID,
    UNPARSEABLE_OUTPUT_ID,
    OutputParseError,
    get_normalizer,
    is_supported,
)

from .models import Invocation, Notification, OutcomeState, Report, Result, Rule, ScanRun

logger = structlog.get_logger()

# Cap on stderr echoed into a notification message
STDERR_EXCERPT_CHARS = 500

# Notification descriptor for outcomes without a registered normalizer
UNSUPPORTED_SCANNER_ID = "unsupported-scanner"


class AggregationError(RuntimeError):
    """Aggregator used out of contract (e.g. building an empty report)."""


class ReportAggregator:
    """Fold ScanOutcomes into a single Report.

    For each outcome the matching normalizer turns raw records into Issues.
    An outcome's execution is successful when no uncovered fault was recorded
    and either the scanner passed on its own or every issue it produced is
    suppressed. The report passes when every required outcome succeeded.

    Example:
        >>> aggregator = ReportAggregator(project_name="shop")
        >>> aggregator.add_outcome(npm_outcome)
        >>> aggregator.add_outcome(brakeman_outcome, required=False)
        >>> report = aggregator.build()
        >>> report.passed
        False
    """

    def __init__(self, project_name: str = "project"):
        self.project_name = project_name
        self._rules: dict[str, Rule] = {}
        self._rule_index: dict[str, int] = {}
        self._runs: list[ScanRun] = []
        self._report: Report | None = None
        self.log = logger.bind(project=project_name)

    @property
    def runs(self) -> list[ScanRun]:
        return list(self._runs)

    def add_outcome(self, outcome: ScanOutcome, required: bool | None = None) -> ScanRun:
        """Normalize one outcome and record its invocation.

        Args:
            outcome: Completed scanner run
            required: Overrides outcome.required when given

        Returns:
            The ScanRun recorded for this outcome

        Raises:
            AggregationError: If the report was already built
        """
        if self._report is not None:
            raise AggregationError("Cannot add outcomes after the report was built")

        required = outcome.required if required is None else required
        log = self.log.bind(scanner=outcome.scanner_name)
        log.debug(
            "outcome_state_changed",
            previous=OutcomeState.PENDING.value,
            state=OutcomeState.NORMALIZING.value,
            exit_status=outcome.exit_status,
        )

        notifications = self._execution_faults(outcome)
        supported = is_supported(outcome.scanner_name)
        issues: list[Issue] = []
        unsuppressed = 0
        help_uri = None

        if supported:
            normalizer = get_normalizer(outcome.scanner_name)(outcome)
            help_uri = normalizer.help_uri
            try:
                records = normalizer.load_records()
            except OutputParseError as e:
                records = []
                notifications.append(self._fault(outcome, UNPARSEABLE_OUTPUT_ID, str(e)))
            issues = normalizer.normalize_all(records)
            unsuppressed = normalizer.results
        else:
            notifications.append(Notification(
                id=UNSUPPORTED_SCANNER_ID,
                level=Severity.NOTE,
                message=f"Normalized results are not available for scanner {outcome.scanner_name}",
            ))

        uncovered = [n for n in notifications if n.level == Severity.ERROR and not n.suppressed]
        if supported:
            successful = not uncovered and (outcome.passed or unsuppressed == 0)
        else:
            successful = not uncovered and outcome.passed

        state = OutcomeState.SUCCEEDED if successful else OutcomeState.FAILED
        run = ScanRun(
            scanner_name=outcome.scanner_name,
            scanner_version=outcome.scanner_version,
            help_uri=help_uri,
            required=required,
            supported=supported,
            state=state,
            running_time=outcome.running_time,
            invocation=Invocation(
                scanner_name=outcome.scanner_name,
                execution_successful=successful,
                notifications=tuple(notifications),
            ),
            results=tuple(Result(issue=issue, rule_index=self._catalog(issue)) for issue in issues),
        )
        self._runs.append(run)

        log.info(
            "outcome_normalized",
            previous=OutcomeState.NORMALIZING.value,
            state=state.value,
            required=required,
            issues=len(issues),
            unsuppressed=unsuppressed,
            notifications=len(notifications),
        )
        return run

    def build(self) -> Report:
        """Freeze all added outcomes into a Report.

        Raises:
            AggregationError: If no outcome was ever added
        """
        if self._report is not None:
            return self._report
        if not self._runs:
            raise AggregationError("Cannot build a report without any scan outcomes")

        passed = all(
            run.invocation.execution_successful for run in self._runs if run.required
        )
        self._report = Report(
            project_name=self.project_name,
            runs=tuple(self._runs),
            rules=tuple(self._rules.values()),
            passed=passed,
        )
        self.log.info(
            "report_built",
            passed=passed,
            runs=len(self._runs),
            rules=len(self._rules),
        )
        return self._report

    def _catalog(self, issue: Issue) -> int:
        if issue.id not in self._rules:
            self._rule_index[issue.id] = len(self._rules)
            self._rules[issue.id] = Rule(
                id=issue.id,
                name=issue.title,
                full_description=issue.details,
                help_uri=issue.help_url,
            )
        return self._rule_index[issue.id]

    def _execution_faults(self, outcome: ScanOutcome) -> list[Notification]:
        faults = [
            self._fault(outcome, EXECUTION_FAILURE_ID, error) for error in outcome.errors
        ]
        if not outcome.has_output and outcome.exit_status != 0 and not outcome.errors:
            message = (
                f"{outcome.scanner_name} exited with an unexpected exit status "
                f"{outcome.exit_status}"
            )
            stderr = outcome.stderr_text.strip()
            if stderr:
                message = f"{message}: {stderr[:STDERR_EXCERPT_CHARS]}"
            faults.append(self._fault(outcome, EXECUTION_FAILURE_ID, message))
        return faults

    def _fault(self, outcome: ScanOutcome, fault_id: str, message: str) -> Notification:
        suppressed = fault_id in outcome.declared_exceptions
        self.log.warning(
            "scanner_fault",
            scanner=outcome.scanner_name,
            fault_id=fault_id,
            suppressed=suppressed,
            message=message,
        )
        return Notification(id=fault_id, message=message, suppressed=suppressed)

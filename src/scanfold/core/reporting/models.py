"""Report document model produced by the aggregator.

Provides:
- OutcomeState: Per-outcome aggregation state
- Rule: Rule catalog entry (first-seen definition of an issue id)
- Result: Issue placed in the report, with its rule catalog index
- Notification: Tool execution notification on an invocation
- Invocation: Execution record of one scanner run
- ScanRun: One outcome's contribution to the report
- Report: The complete, immutable document
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from scanfold.core.issue import Issue, Severity


class OutcomeState(str, Enum):
    """Aggregation state of one outcome.

    PENDING -> NORMALIZING -> SUCCEEDED | FAILED. Terminal states are final.
    """

    PENDING = "pending"
    NORMALIZING = "normalizing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Rule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    full_description: str = ""
    help_uri: str | None = None


class Result(BaseModel):
    model_config = ConfigDict(frozen=True)

    issue: Issue
    rule_index: int

    @property
    def level(self) -> str:
        return self.issue.severity.value


class Notification(BaseModel):
    """Scanner execution problem attached to an invocation.

    Attributes:
        id: Reserved descriptor id (unparseable output, execution failure, ...)
        level: Notification level
        message: Human readable description
        suppressed: True when the id is covered by the outcome's declared exceptions
    """

    model_config = ConfigDict(frozen=True)

    id: str
    level: Severity = Severity.ERROR
    message: str
    suppressed: bool = False


class Invocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    scanner_name: str
    execution_successful: bool
    notifications: tuple[Notification, ...] = ()


class ScanRun(BaseModel):
    """Everything the report knows about one scanner outcome."""

    model_config = ConfigDict(frozen=True)

    scanner_name: str
    scanner_version: str = ""
    help_uri: str | None = None
    required: bool = True
    supported: bool = True
    state: OutcomeState
    running_time: float = 0.0
    invocation: Invocation
    results: tuple[Result, ...] = ()

    @property
    def issues(self) -> list[Issue]:
        return [result.issue for result in self.results]

    @property
    def failing_issues(self) -> list[Issue]:
        return [issue for issue in self.issues if not issue.suppressed]

    @property
    def suppressed_issues(self) -> list[Issue]:
        return [issue for issue in self.issues if issue.suppressed]


class Report(BaseModel):
    """Aggregated, read-only report over all scanner outcomes.

    Attributes:
        project_name: Name of the scanned project
        runs: One ScanRun per outcome, in the order outcomes were added
        rules: Rule catalog, ordered by first appearance across runs
        passed: Overall verdict over required runs
    """

    model_config = ConfigDict(frozen=True)

    project_name: str
    runs: tuple[ScanRun, ...]
    rules: tuple[Rule, ...]
    passed: bool

    def rule(self, rule_id: str) -> Rule:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        raise KeyError(rule_id)

    def run(self, scanner_name: str) -> ScanRun:
        for run in self.runs:
            if run.scanner_name == scanner_name:
                return run
        raise KeyError(scanner_name)

    @property
    def results(self) -> list[Result]:
        return [result for run in self.runs for result in run.results]

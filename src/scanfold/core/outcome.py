"""Immutable capture of one scanner run.

A ScanOutcome is what the process runner hands to the aggregation engine:
raw output, exit status, timing, and the caller's policy for this scan
(declared exceptions and whether the scan is required).
"""

from pydantic import BaseModel, ConfigDict, Field


def _decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


class ScanOutcome(BaseModel):
    """Result of a single scanner invocation.

    Attributes:
        scanner_name: Scanner kind, used to select a normalizer (e.g. "NPMAudit")
        scanner_version: Version string reported by the scanner
        passed: The scanner's own judgment, independent of suppression policy
        raw_stdout: Scanner stdout as captured
        raw_stderr: Scanner stderr as captured
        exit_status: Process exit status (-1 when the runner killed it)
        declared_exceptions: Issue ids pre-approved as suppressed
        required: Whether failure of this scan fails the overall report
        running_time: Wall clock seconds spent running the scanner
        errors: Execution errors recorded by the runner itself
    """

    model_config = ConfigDict(frozen=True)

    scanner_name: str
    scanner_version: str = ""
    passed: bool = False
    raw_stdout: str | bytes = ""
    raw_stderr: str | bytes = ""
    exit_status: int = 0
    declared_exceptions: frozenset[str] = Field(default_factory=frozenset)
    required: bool = True
    running_time: float = 0.0
    errors: tuple[str, ...] = ()

    @property
    def stdout_text(self) -> str:
        return _decode(self.raw_stdout)

    @property
    def stderr_text(self) -> str:
        return _decode(self.raw_stderr)

    @property
    def has_output(self) -> bool:
        """False for empty or whitespace-only stdout."""
        return bool(self.stdout_text.strip())

    @classmethod
    def from_json(cls, text: str | bytes) -> "ScanOutcome":
        """Load an outcome serialized with ``model_dump_json``."""
        return cls.model_validate_json(text)

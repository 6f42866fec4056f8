"""Base normalizer and registry for per-scanner adapters.

Provides:
- IssueNormalizer: Abstract adapter from raw scanner records to Issue
- OutputParseError: Raised when scanner output cannot be parsed at all
- register_normalizer / get_normalizer / is_supported / supported_scanners: registry
- Reserved issue ids for synthetic findings and execution notifications
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

import structlog

from scanfold.core.issue import Issue, Location, Severity
from scanfold.core.outcome import ScanOutcome
from scanfold.core.severity import SeverityMapper

logger = structlog.get_logger()

# Reserved id namespace. Scanners never emit ids with this prefix.
MALFORMED_RECORD_ID = "SF0001"
SCANNER_ERROR_ID = "SF0002"
UNPARSEABLE_OUTPUT_ID = "SF0003"
EXECUTION_FAILURE_ID = "SF0004"

# Ids of issues synthesized from scanner content rather than findings
SYNTHETIC_IDS = frozenset({MALFORMED_RECORD_ID, SCANNER_ERROR_ID})


class OutputParseError(ValueError):
    """Scanner output is present but cannot be parsed."""


def coerce_text(value: Any) -> str:
    """String-coerce a raw field value. None becomes "", lists are joined."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple, set)):
        return ", ".join(coerce_text(item) for item in value)
    return str(value)


def coerce_int(value: Any) -> int | None:
    """Best-effort integer from a raw field ("27", 27, "27-29" -> 27)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip().split("-", 1)[0]
    try:
        return int(text)
    except ValueError:
        return None


class IssueNormalizer(ABC):
    """Adapter turning one scanner's raw records into canonical Issues.

    An instance is scoped to a single ScanOutcome: it owns the de-duplication
    set and the results counter for that outcome's normalization pass.

    Subclasses provide:
    - scanner_name: Registry key
    - message_keys: Fixed set of message field names for this scanner kind
    - severity_mapper: Default native vocabulary table
    - default_uri: Location used when a record names no artifact
    - extract_records(document): Raw records from parsed output
    - extract(record): Field dict for a single finding record
    - scanner error records (optional): is_error_record / extract_error
    """

    scanner_name: ClassVar[str]
    message_keys: ClassVar[tuple[str, ...]] = ()
    severity_mapper: ClassVar[SeverityMapper] = SeverityMapper({})
    default_uri: ClassVar[str] = ""
    help_uri: ClassVar[str | None] = None

    def __init__(
        self,
        outcome: ScanOutcome,
        severity_mapper: SeverityMapper | None = None,
    ):
        self.outcome = outcome
        self.exceptions = frozenset(outcome.declared_exceptions)
        if severity_mapper is not None:
            self.severity_mapper = severity_mapper
        self.seen_ids: set[str] = set()
        self.anomalies: dict[str, list[str]] = {}
        self.results = 0
        self.log = logger.bind(scanner=self.scanner_name)

    # Parsing

    def load_records(self) -> list[Any]:
        """Parse the outcome's stdout into raw records.

        Returns:
            Raw records in scanner order (empty for blank output)

        Raises:
            OutputParseError: If stdout is present but unparseable
        """
        text = self.outcome.stdout_text
        if not text.strip():
            return []
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise OutputParseError(
                f"Could not parse {self.scanner_name} output as JSON: {e}"
            ) from e
        if not isinstance(document, dict):
            raise OutputParseError(
                f"Unexpected {self.scanner_name} output: expected an object, "
                f"got {type(document).__name__}"
            )
        try:
            return list(self.extract_records(document))
        except (AttributeError, TypeError, ValueError) as e:
            raise OutputParseError(
                f"Unexpected {self.scanner_name} output structure: {e}"
            ) from e

    @abstractmethod
    def extract_records(self, document: dict) -> list[Any]:
        """Pull raw finding (and error) records out of the parsed document."""

    # Per-record normalization

    @abstractmethod
    def extract(self, record: Mapping) -> dict[str, Any]:
        """Extract Issue fields from a finding record.

        Returns a dict with keys id, title, details, level (native severity),
        message_fields, location, help_url. Missing keys take defaults.
        """

    def is_error_record(self, record: Mapping) -> bool:
        return False

    def extract_error(self, record: Mapping) -> dict[str, Any]:
        """Details and location of a scanner error record."""
        return {
            "details": coerce_text(record.get("error")),
            "location": Location(uri=coerce_text(record.get("location")) or self.default_uri),
        }

    def normalize(self, record: Any) -> Issue | None:
        """Normalize one raw record.

        Returns None when the record's id was already normalized in this
        pass. Malformed records and scanner errors become synthetic issues
        in the reserved id namespace; nothing here raises for bad content.
        """
        if not isinstance(record, Mapping):
            fields = self._malformed(f"Expected a finding object, got {type(record).__name__}")
        elif self.is_error_record(record):
            fields = self._scanner_error(record)
        else:
            try:
                fields = self.extract(record)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                fields = self._malformed(f"Could not read finding record: {e}")
            if not fields.get("id"):
                fields = self._malformed("Finding record has no identifier")

        issue_id = str(fields["id"])
        if issue_id in SYNTHETIC_IDS:
            self.anomalies.setdefault(issue_id, []).append(coerce_text(fields.get("details")))
        if issue_id in self.seen_ids:
            self.log.debug("duplicate_issue_dropped", issue_id=issue_id)
            return None
        self.seen_ids.add(issue_id)

        suppressed = issue_id in self.exceptions
        if not suppressed:
            self.results += 1

        severity = fields.get("severity")
        if severity is None:
            severity = self.severity_mapper.map(fields.get("level"))

        return Issue(
            id=issue_id,
            title=coerce_text(fields.get("title")),
            details=coerce_text(fields.get("details")),
            severity=severity,
            message_fields=self._message_fields(fields.get("message_fields") or {}),
            location=fields.get("location") or Location(uri=self.default_uri),
            help_url=coerce_text(fields.get("help_url")) or None,
            suppressed=suppressed,
        )

    def normalize_all(self, records: list[Any]) -> list[Issue]:
        """Normalize records in order.

        Synthetic issues keep a single id per outcome, so every later
        scanner error or malformed record is folded into the details of
        the first one.
        """
        issues = []
        for record in records:
            issue = self.normalize(record)
            if issue is not None:
                issues.append(issue)
        return [self._fold_anomalies(issue) for issue in issues]

    def _fold_anomalies(self, issue: Issue) -> Issue:
        details = self.anomalies.get(issue.id, [])
        if len(details) < 2:
            return issue
        self.log.info("anomalies_folded", issue_id=issue.id, count=len(details))
        return issue.model_copy(update={"details": "\n".join(details)})

    # Helpers

    def _message_fields(self, raw: Mapping[str, Any]) -> dict[str, str]:
        return {key: coerce_text(raw.get(key)) for key in self.message_keys}

    def _scanner_error(self, record: Mapping) -> dict[str, Any]:
        fields = self.extract_error(record)
        fields.update(
            id=SCANNER_ERROR_ID,
            title=f"{self.scanner_name} Error",
            severity=Severity.ERROR,
        )
        self.log.warning("scanner_reported_error", details=fields.get("details"))
        return fields

    def _malformed(self, reason: str) -> dict[str, Any]:
        self.log.warning("malformed_record", reason=reason)
        return {
            "id": MALFORMED_RECORD_ID,
            "title": f"Malformed {self.scanner_name} Finding",
            "details": reason,
            "severity": Severity.ERROR,
            "location": Location(uri=self.default_uri),
        }


_REGISTRY: dict[str, type[IssueNormalizer]] = {}


def register_normalizer(cls: type[IssueNormalizer]) -> type[IssueNormalizer]:
    """Class decorator adding a normalizer to the registry under its scanner_name."""
    if not (isinstance(cls, type) and issubclass(cls, IssueNormalizer)):
        raise TypeError(f"{cls!r} is not an IssueNormalizer subclass")
    _REGISTRY[cls.scanner_name.lower()] = cls
    return cls


def get_normalizer(scanner_name: str) -> type[IssueNormalizer]:
    """Look up the normalizer class for a scanner (case-insensitive).

    Raises:
        KeyError: If no normalizer is registered for the scanner
    """
    try:
        return _REGISTRY[scanner_name.lower()]
    except KeyError:
        raise KeyError(f"No normalizer registered for scanner {scanner_name!r}") from None


def is_supported(scanner_name: str) -> bool:
    return scanner_name.lower() in _REGISTRY


def supported_scanners() -> list[str]:
    return sorted(cls.scanner_name for cls in _REGISTRY.values())

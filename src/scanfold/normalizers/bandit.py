"""Bandit normalizer for ``bandit -f json`` output."""

from collections.abc import Mapping
from typing import Any

from scanfold.core.issue import Location, Severity
from scanfold.core.severity import SeverityMapper

from .base import IssueNormalizer, coerce_int, coerce_text, register_normalizer


@register_normalizer
class BanditNormalizer(IssueNormalizer):
    """Normalizer for Bandit results.

    Bandit reports 0-based column offsets; locations carry them 1-based.
    """

    scanner_name = "Bandit"
    help_uri = "https://bandit.readthedocs.io/"
    message_keys = ("severity", "confidence", "cwe", "test_name")
    severity_mapper = SeverityMapper({
        "HIGH": Severity.ERROR,
        "MEDIUM": Severity.WARNING,
        "LOW": Severity.NOTE,
    })

    def extract_records(self, document: dict) -> list[Any]:
        results = document.get("results") or []
        errors = document.get("errors") or []
        return [*results, *errors]

    def is_error_record(self, record: Mapping) -> bool:
        return "reason" in record and "test_id" not in record

    def extract_error(self, record: Mapping) -> dict[str, Any]:
        return {
            "details": coerce_text(record.get("reason")),
            "location": Location(uri=coerce_text(record.get("filename"))),
        }

    def extract(self, record: Mapping) -> dict[str, Any]:
        cwe = record.get("issue_cwe")
        if isinstance(cwe, Mapping):
            cwe = cwe.get("id")
        column = coerce_int(record.get("col_offset"))
        snippet = record.get("code")
        return {
            "id": coerce_text(record.get("test_id")),
            "title": record.get("test_name"),
            "details": record.get("issue_text"),
            "level": record.get("issue_severity"),
            "message_fields": {
                "severity": record.get("issue_severity"),
                "confidence": record.get("issue_confidence"),
                "cwe": cwe,
                "test_name": record.get("test_name"),
            },
            "location": Location(
                uri=coerce_text(record.get("filename")),
                start_line=coerce_int(record.get("line_number")),
                start_column=column + 1 if column is not None else None,
                snippet=coerce_text(snippet) if snippet is not None else None,
            ),
            "help_url": record.get("more_info"),
        }

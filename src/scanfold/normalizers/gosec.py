"""gosec normalizer for ``gosec -fmt=json`` output.

gosec reports lines as strings and sometimes as ranges ("27-29"); the first
line of a range is used. Compilation problems are listed under
``Golang errors`` keyed by file and become scanner error issues.
"""

from collections.abc import Mapping
from typing import Any

from scanfold.core.issue import Location, Severity
from scanfold.core.severity import SeverityMapper

from .base import IssueNormalizer, coerce_int, coerce_text, register_normalizer


@register_normalizer
class GosecNormalizer(IssueNormalizer):
    """Normalizer for gosec issues."""

    scanner_name = "Gosec"
    help_uri = "https://github.com/securego/gosec"
    message_keys = ("severity", "confidence", "cwe")
    severity_mapper = SeverityMapper({
        "HIGH": Severity.ERROR,
        "MEDIUM": Severity.WARNING,
        "LOW": Severity.NOTE,
    })

    def extract_records(self, document: dict) -> list[Any]:
        records = list(document.get("Issues") or [])
        golang_errors = document.get("Golang errors") or {}
        if isinstance(golang_errors, Mapping):
            for path, errors in golang_errors.items():
                for error in errors or []:
                    if isinstance(error, Mapping):
                        records.append({**error, "location": path})
                    else:
                        records.append({"error": error, "location": path})
        return records

    def is_error_record(self, record: Mapping) -> bool:
        return "error" in record and "rule_id" not in record

    def extract_error(self, record: Mapping) -> dict[str, Any]:
        return {
            "details": coerce_text(record.get("error")),
            "location": Location(
                uri=coerce_text(record.get("location")),
                start_line=coerce_int(record.get("line")),
                start_column=coerce_int(record.get("column")),
            ),
        }

    def extract(self, record: Mapping) -> dict[str, Any]:
        cwe = record.get("cwe") or {}
        if not isinstance(cwe, Mapping):
            cwe = {"id": cwe}
        snippet = record.get("code")
        return {
            "id": coerce_text(record.get("rule_id")),
            "title": record.get("details"),
            "details": record.get("details"),
            "level": record.get("severity"),
            "message_fields": {
                "severity": record.get("severity"),
                "confidence": record.get("confidence"),
                "cwe": cwe.get("id"),
            },
            "location": Location(
                uri=coerce_text(record.get("file")),
                start_line=coerce_int(record.get("line")),
                start_column=coerce_int(record.get("column")),
                snippet=coerce_text(snippet) if snippet else None,
            ),
            "help_url": cwe.get("url"),
        }

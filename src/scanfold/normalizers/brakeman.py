"""Brakeman normalizer.

Brakeman grades warnings by confidence rather than severity, so the native
level is the warning's confidence (HIGH/MEDIUM/LOW/WEAK). Entries of the
``errors`` array (parse failures of individual files, missing Rails app)
become scanner error issues.
"""

from collections.abc import Mapping
from typing import Any

from scanfold.core.issue import Location, Severity
from scanfold.core.severity import SeverityMapper

from .base import IssueNormalizer, coerce_int, coerce_text, register_normalizer


@register_normalizer
class BrakemanNormalizer(IssueNormalizer):
    """Normalizer for ``brakeman -f json`` output."""

    scanner_name = "Brakeman"
    help_uri = "https://github.com/presidentbeef/brakeman"
    message_keys = ("confidence", "title", "type", "warning_code", "fingerprint")
    severity_mapper = SeverityMapper({
        "HIGH": Severity.ERROR,
        "MEDIUM": Severity.ERROR,
        "LOW": Severity.WARNING,
        "WEAK": Severity.NOTE,
    })

    def extract_records(self, document: dict) -> list[Any]:
        warnings = document.get("warnings") or []
        errors = document.get("errors") or []
        return [*warnings, *errors]

    def is_error_record(self, record: Mapping) -> bool:
        return "error" in record

    def extract(self, record: Mapping) -> dict[str, Any]:
        check_name = coerce_text(record.get("check_name"))
        warning_type = coerce_text(record.get("warning_type"))
        snippet = record.get("code")
        return {
            "id": coerce_text(record.get("warning_code")),
            "title": f"{check_name}/{warning_type}",
            "details": record.get("message"),
            "level": coerce_text(record.get("confidence")).upper(),
            "message_fields": {
                "confidence": record.get("confidence"),
                "title": check_name,
                "type": warning_type,
                "warning_code": record.get("warning_code"),
                "fingerprint": record.get("fingerprint"),
            },
            "location": Location(
                uri=coerce_text(record.get("file")),
                start_line=coerce_int(record.get("line")),
                start_column=1,
                snippet=coerce_text(snippet) if snippet is not None else None,
            ),
            "help_url": record.get("link"),
        }

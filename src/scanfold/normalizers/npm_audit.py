"""npm audit normalizer.

Reads ``npm audit --json`` (advisories format) and maps advisory severities
LOW/MODERATE/HIGH/CRITICAL onto the canonical scale. Findings always point at
package-lock.json since npm audit reports on the lockfile.
"""

from collections.abc import Mapping
from typing import Any

from scanfold.core.issue import Location, Severity
from scanfold.core.severity import SeverityMapper

from .base import IssueNormalizer, coerce_text, register_normalizer


@register_normalizer
class NPMAuditNormalizer(IssueNormalizer):
    """Normalizer for npm audit advisories."""

    scanner_name = "NPMAudit"
    help_uri = "https://docs.npmjs.com/cli/v7/commands/npm-audit"
    default_uri = "package-lock.json"
    message_keys = (
        "package",
        "severity",
        "patched_versions",
        "cwe",
        "recommendation",
        "vulnerable_versions",
    )
    severity_mapper = SeverityMapper({
        "LOW": Severity.NOTE,
        "MODERATE": Severity.WARNING,
        "HIGH": Severity.ERROR,
        "CRITICAL": Severity.ERROR,
    })

    def extract_records(self, document: dict) -> list[Any]:
        records: list[Any] = []
        # npm reports registry/lockfile problems as a top-level error object
        if document.get("error"):
            records.append({"error": document["error"]})
        advisories = document.get("advisories")
        if isinstance(advisories, Mapping):
            records.extend(advisories.values())
        return records

    def is_error_record(self, record: Mapping) -> bool:
        return "error" in record and "id" not in record

    def extract_error(self, record: Mapping) -> dict[str, Any]:
        error = record.get("error")
        if isinstance(error, Mapping):
            details = " ".join(
                part for part in (coerce_text(error.get("summary")), coerce_text(error.get("detail")))
                if part
            )
        else:
            details = coerce_text(error)
        return {"details": details, "location": Location(uri=self.default_uri)}

    def extract(self, record: Mapping) -> dict[str, Any]:
        severity = coerce_text(record.get("severity"))
        return {
            "id": coerce_text(record.get("id")),
            "title": record.get("title"),
            "details": record.get("overview"),
            "level": severity.upper(),
            "message_fields": {
                "package": record.get("module_name"),
                "severity": severity,
                "patched_versions": record.get("patched_versions"),
                "cwe": record.get("cwe"),
                "recommendation": record.get("recommendation"),
                "vulnerable_versions": record.get("vulnerable_versions"),
            },
            "location": Location(uri=self.default_uri),
            "help_url": record.get("url"),
        }

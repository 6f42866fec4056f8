"""cargo audit normalizer.

RustSec advisories carry a CVSS v3 vector instead of a severity word, so the
native level is the vector's qualitative rating. Advisories without a vector
(informational, unmaintained) fall through to the default level.
"""

from collections.abc import Mapping
from typing import Any

from scanfold.core.issue import Location, Severity
from scanfold.core.severity import SeverityMapper, cvss_rating

from .base import IssueNormalizer, coerce_text, register_normalizer


@register_normalizer
class CargoAuditNormalizer(IssueNormalizer):
    """Normalizer for ``cargo audit --json`` vulnerabilities."""

    scanner_name = "CargoAudit"
    help_uri = "https://rustsec.org/"
    default_uri = "Cargo.lock"
    message_keys = ("package", "version", "patched_versions", "cvss", "date")
    severity_mapper = SeverityMapper({
        "CRITICAL": Severity.ERROR,
        "HIGH": Severity.ERROR,
        "MEDIUM": Severity.WARNING,
        "LOW": Severity.NOTE,
    })

    def extract_records(self, document: dict) -> list[Any]:
        vulnerabilities = document.get("vulnerabilities") or {}
        if not isinstance(vulnerabilities, Mapping):
            return []
        return list(vulnerabilities.get("list") or [])

    def extract(self, record: Mapping) -> dict[str, Any]:
        advisory = record.get("advisory") or {}
        package = record.get("package") or {}
        versions = record.get("versions") or {}
        vector = advisory.get("cvss")
        return {
            "id": coerce_text(advisory.get("id")),
            "title": advisory.get("title"),
            "details": advisory.get("description"),
            "level": cvss_rating(vector),
            "message_fields": {
                "package": package.get("name") or advisory.get("package"),
                "version": package.get("version"),
                "patched_versions": versions.get("patched"),
                "cvss": vector,
                "date": advisory.get("date"),
            },
            "location": Location(uri=self.default_uri),
            "help_url": advisory.get("url"),
        }

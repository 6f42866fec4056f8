"""Severity mapping from native scanner vocabularies.

Each scanner grades findings in its own words (LOW/MODERATE/HIGH/CRITICAL,
HIGH/MEDIUM/LOW/WEAK, CVSS ratings, ...). A SeverityMapper turns one such
vocabulary into the canonical Severity scale. Mapping is total: anything the
table does not know resolves to the default.

Provides:
- SeverityMapper: Per-scanner lookup table with a default
- cvss_rating: Qualitative CVSS v3 rating from a vector string
"""

from collections.abc import Mapping

from cvss import CVSS3
from cvss.exceptions import CVSS3Error

from scanfold.core.issue import Severity


class SeverityMapper:
    """Map a scanner's native severity vocabulary onto Severity.

    Keys are matched case-insensitively after trimming whitespace.

    Example:
        >>> mapper = SeverityMapper({"HIGH": Severity.ERROR, "LOW": Severity.NOTE})
        >>> mapper.map("high")
        <Severity.ERROR: 'error'>
        >>> mapper.map("bogus")
        <Severity.NOTE: 'note'>
    """

    def __init__(
        self,
        table: Mapping[str, Severity],
        default: Severity = Severity.NOTE,
    ):
        self._table = {key.strip().upper(): Severity(value) for key, value in table.items()}
        self.default = default

    def map(self, native: object) -> Severity:
        """Resolve a native level. Never raises."""
        if native is None:
            return self.default
        return self._table.get(str(native).strip().upper(), self.default)

    def __contains__(self, native: object) -> bool:
        return native is not None and str(native).strip().upper() in self._table

    def __repr__(self) -> str:
        return f"SeverityMapper({self._table!r}, default={self.default!r})"


def cvss_rating(vector: str | None) -> str:
    """Rate a CVSS v3 vector with the qualitative severity scale.

    Args:
        vector: CVSS v3.x vector string (e.g. "CVSS:3.1/AV:N/AC:L/...")

    Returns:
        Upper-case rating ("NONE", "LOW", "MEDIUM", "HIGH", "CRITICAL"),
        or "" when the vector is missing or cannot be parsed
    """
    if not vector:
        return ""
    try:
        base_rating = CVSS3(str(vector).strip()).severities()[0]
    except CVSS3Error:
        return ""
    return base_rating.upper()

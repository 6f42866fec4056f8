"""Core scanfold types.

Provides:
- Canonical issue model (Issue, Location, Severity)
- ScanOutcome capture of a scanner run
- SeverityMapper for native severity vocabularies
- Config loaded from environment
"""

from .config import Config, load_config
from .issue import Issue, Location, Severity
from .outcome import ScanOutcome
from .severity import SeverityMapper, cvss_rating

__all__ = [
    "Config",
    "load_config",
    "Issue",
    "Location",
    "Severity",
    "ScanOutcome",
    "SeverityMapper",
    "cvss_rating",
]

"""Per-scanner adapters from native findings to canonical Issues.

Provides:
- IssueNormalizer base class and normalizer registry
- NPMAuditNormalizer: npm audit advisories
- BrakemanNormalizer: Brakeman warnings (Rails)
- BanditNormalizer: Bandit results (Python)
- GosecNormalizer: gosec issues (Go)
- CargoAuditNormalizer: cargo audit vulnerabilities (Rust)
"""

from .base import (
    EXECUTION_FAILURE_ID,
    MALFORMED_RECORD_ID,
    SCANNER_ERROR_ID,
    UNPARSEABLE_OUTPUT_ID,
    IssueNormalizer,
    OutputParseError,
    get_normalizer,
    is_supported,
    register_normalizer,
    supported_scanners,
)
from .npm_audit import NPMAuditNormalizer
from .brakeman import BrakemanNormalizer
from .bandit import BanditNormalizer
from .gosec import GosecNormalizer
from .cargo_audit import CargoAuditNormalizer

__all__ = [
    "EXECUTION_FAILURE_ID",
    "MALFORMED_RECORD_ID",
    "SCANNER_ERROR_ID",
    "UNPARSEABLE_OUTPUT_ID",
    "IssueNormalizer",
    "OutputParseError",
    "get_normalizer",
    "is_supported",
    "register_normalizer",
    "supported_scanners",
    "NPMAuditNormalizer",
    "BrakemanNormalizer",
    "BanditNormalizer",
    "GosecNormalizer",
    "CargoAuditNormalizer",
]

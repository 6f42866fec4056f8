"""Scanner process execution.

Provides:
- Subprocess helpers (check_binary, run_subprocess)
- ScannerCommand, run_scanner, run_scanners for concurrent scanner runs
- ConcurrentAggregator: lock-guarded outcome folding
"""

from .base import SubprocessTimeout, check_binary, run_subprocess
from .runner import ConcurrentAggregator, ScannerCommand, run_scanner, run_scanners

__all__ = [
    "SubprocessTimeout",
    "check_binary",
    "run_subprocess",
    "ConcurrentAggregator",
    "ScannerCommand",
    "run_scanner",
    "run_scanners",
]

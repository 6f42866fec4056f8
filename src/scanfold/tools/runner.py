"""Concurrent scanner execution folded into one report.

Each scanner runs as its own asyncio task and produces an independent
ScanOutcome. Finished outcomes are folded into a shared ReportAggregator
under a single lock, so aggregation stays single-writer while scanners run
in parallel.

Provides:
- ScannerCommand: How to run one scanner and the policy for its outcome
- run_scanner: Execute one scanner into a ScanOutcome (never raises for process problems)
- ConcurrentAggregator: Lock-guarded wrapper around ReportAggregator
- run_scanners: Run many scanners concurrently and build the Report
"""

import asyncio
import time

import structlog
from pydantic import BaseModel, Field

from scanfold.core.outcome import ScanOutcome
from scanfold.core.reporting import Report, ReportAggregator, ScanRun

from .base import SubprocessTimeout, check_binary, run_subprocess

logger = structlog.get_logger()


class ScannerCommand(BaseModel):
    """Scanner invocation and the policy applied to its outcome.

    Attributes:
        name: Scanner kind, selects the normalizer (e.g. "Bandit")
        command: Command and arguments, executed without a shell
        version: Scanner version recorded on the outcome
        required: Whether failure of this scan fails the report
        declared_exceptions: Issue ids accepted as suppressed
        pass_exit_codes: Exit codes the scanner uses for "no findings"
        cwd: Working directory (the repository under scan)
    """

    name: str
    command: list[str] = Field(min_length=1)
    version: str = ""
    required: bool = True
    declared_exceptions: list[str] = Field(default_factory=list)
    pass_exit_codes: list[int] = Field(default_factory=lambda: [0])
    cwd: str | None = None


async def run_scanner(scanner: ScannerCommand, timeout: int = 300) -> ScanOutcome:
    """Run one scanner and capture its outcome.

    Missing binaries, OS errors and timeouts are recorded on the outcome's
    errors instead of raised, so one broken scanner never takes down the
    others.

    Args:
        scanner: Scanner to run
        timeout: Timeout in seconds for the scanner process

    Returns:
        ScanOutcome for this run
    """
    log = logger.bind(scanner=scanner.name)
    start_time = time.time()
    stdout, stderr, exit_status = "", "", 0
    errors: list[str] = []

    binary = scanner.command[0]
    if not check_binary(binary):
        log.warning("binary_not_found", binary=binary)
        errors.append(f"{binary} not installed")
        exit_status = 127
    else:
        log.info("scanner_start", cmd=scanner.command)
        try:
            stdout, stderr, exit_status = await run_subprocess(
                scanner.command, timeout=timeout, cwd=scanner.cwd
            )
        except SubprocessTimeout as e:
            stdout, stderr, exit_status = e.stdout, e.stderr, -1
            errors.append(f"{scanner.name} {e}")
        except OSError as e:
            log.error("scanner_exec_failed", error=str(e))
            errors.append(f"{scanner.name} could not be executed: {e}")
            exit_status = 126

    duration = time.time() - start_time
    passed = not errors and exit_status in scanner.pass_exit_codes
    log.info("scanner_complete", exit_status=exit_status, passed=passed, duration=duration)

    return ScanOutcome(
        scanner_name=scanner.name,
        scanner_version=scanner.version,
        passed=passed,
        raw_stdout=stdout,
        raw_stderr=stderr,
        exit_status=exit_status,
        declared_exceptions=frozenset(scanner.declared_exceptions),
        required=scanner.required,
        running_time=duration,
        errors=tuple(errors),
    )


class ConcurrentAggregator:
    """Serialize add_outcome calls from concurrent scanner tasks."""

    def __init__(self, aggregator: ReportAggregator):
        self.aggregator = aggregator
        self._lock = asyncio.Lock()

    async def add_outcome(self, outcome: ScanOutcome, required: bool | None = None) -> ScanRun:
        async with self._lock:
            return self.aggregator.add_outcome(outcome, required=required)

    async def build(self) -> Report:
        async with self._lock:
            return self.aggregator.build()


async def run_scanners(
    scanners: list[ScannerCommand],
    aggregator: ReportAggregator,
    timeout: int = 300,
    max_concurrent: int = 4,
) -> Report:
    """Run scanners concurrently and fold each outcome as it finishes.

    Args:
        scanners: Scanners to run
        aggregator: Aggregator receiving the outcomes
        timeout: Per-scanner timeout in seconds
        max_concurrent: Maximum scanner processes running at once

    Returns:
        The built Report
    """
    semaphore = asyncio.Semaphore(max_concurrent)
    shared = ConcurrentAggregator(aggregator)

    async def run_one(scanner: ScannerCommand) -> None:
        async with semaphore:
            outcome = await run_scanner(scanner, timeout=timeout)
        await shared.add_outcome(outcome)

    await asyncio.gather(*(run_one(scanner) for scanner in scanners))
    return await shared.build()

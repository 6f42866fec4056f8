"""Subprocess helpers for running scanner binaries.

Provides:
- check_binary: Whether a binary is on PATH
- run_subprocess: Run a command without a shell, with a timeout
- SubprocessTimeout: Raised when a command exceeds its timeout
"""

import asyncio
import shutil

import structlog

logger = structlog.get_logger()


class SubprocessTimeout(Exception):
    """Command exceeded its timeout and was killed.

    Attributes:
        stdout: Output drained after the kill (may be partial or empty)
        stderr: Error output drained after the kill
        timeout: Timeout in seconds that was exceeded
    """

    def __init__(self, timeout: int, stdout: str = "", stderr: str = ""):
        super().__init__(f"timed out after {timeout}s")
        self.timeout = timeout
        self.stdout = stdout
        self.stderr = stderr


def check_binary(binary_name: str) -> bool:
    """Check if binary exists on PATH.

    Args:
        binary_name: Name of binary to check (e.g., "brakeman", "bandit")

    Returns:
        True if binary is available, False otherwise
    """
    return shutil.which(binary_name) is not None


async def run_subprocess(
    cmd: list[str],
    timeout: int = 300,
    cwd: str | None = None,
) -> tuple[str, str, int]:
    """Run command via subprocess with timeout.

    Uses asyncio.create_subprocess_exec (NEVER shell=True) for safe execution.
    Kills process on timeout and ensures cleanup. Failed commands are not
    retried.

    Args:
        cmd: Command and arguments as list (e.g., ["bandit", "-r", ".", "-f", "json"])
        timeout: Timeout in seconds (default: 300)
        cwd: Working directory for the command

    Returns:
        Tuple of (stdout, stderr, returncode)

    Raises:
        SubprocessTimeout: If command exceeds timeout
        OSError: If the binary cannot be executed
    """
    log = logger.bind(cmd=cmd[0], timeout=timeout)

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
    )
    log.debug("subprocess_started", pid=process.pid)

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        log.warning("subprocess_timeout", pid=process.pid)
        process.kill()
        # Wait for process to actually terminate
        stdout_bytes, stderr_bytes = await process.communicate()
        raise SubprocessTimeout(
            timeout,
            stdout=(stdout_bytes or b"").decode("utf-8", errors="replace"),
            stderr=(stderr_bytes or b"").decode("utf-8", errors="replace"),
        ) from None

    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")
    returncode = process.returncode or 0

    log.debug(
        "subprocess_completed",
        returncode=returncode,
        stdout_len=len(stdout),
        stderr_len=len(stderr)
    )
    return stdout, stderr, returncode

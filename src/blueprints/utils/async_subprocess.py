"""Async subprocess utilities for non-blocking command execution.

Add-ons deploy concurrently on one event loop, so every kubectl and helm
invocation goes through here instead of subprocess.run().
"""

import asyncio
import logging
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class AsyncCompletedProcess:
    """Async version of subprocess.CompletedProcess.

    Mirrors the interface of subprocess.CompletedProcess for compatibility
    with code that expects returncode, stdout, stderr attributes.
    """

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""


async def run_async(
    cmd: list[str],
    env: dict[str, str] | None = None,
    timeout: int | None = None,
    check: bool = False,
    input_text: str | None = None,
) -> AsyncCompletedProcess:
    """Run a command asynchronously without blocking the event loop.

    Args:
        cmd: Command and arguments as a list
        env: Optional environment variables
        timeout: Optional timeout in seconds
        check: If True, raise CalledProcessError on non-zero exit
        input_text: Optional text written to the process stdin

    Returns:
        AsyncCompletedProcess with returncode, stdout, stderr

    Raises:
        TimeoutError: If command times out
        FileNotFoundError: If the executable does not exist
        subprocess.CalledProcessError: If check=True and command fails

    Example:
        result = await run_async(["kubectl", "apply", "-f", "-"], input_text=manifest)
        if result.returncode == 0:
            print(result.stdout)
    """
    logger.debug(f"Running async command: {' '.join(cmd)}")

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE if input_text is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
    except FileNotFoundError:
        logger.error(f"Command not found: {cmd[0]}")
        raise

    stdin_bytes = input_text.encode("utf-8") if input_text is not None else None
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(stdin_bytes), timeout=timeout
        )
    except TimeoutError:
        # Kill the process on timeout
        process.kill()
        await process.wait()
        logger.error(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        raise

    stdout = stdout_bytes.decode("utf-8") if stdout_bytes else ""
    stderr = stderr_bytes.decode("utf-8") if stderr_bytes else ""

    result = AsyncCompletedProcess(
        args=cmd, returncode=process.returncode or 0, stdout=stdout, stderr=stderr
    )

    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(
            returncode=result.returncode,
            cmd=cmd,
            output=stdout,
            stderr=stderr,
        )

    logger.debug(
        f"Command completed: returncode={result.returncode}, "
        f"stdout_len={len(stdout)}, stderr_len={len(stderr)}"
    )

    return result

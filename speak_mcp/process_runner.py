from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence

from speak_mcp.logging_utils import get_logger


logger = get_logger(__name__)


@dataclass
class ProcessResult:
    argv: tuple[str, ...]
    returncode: int
    stdout: bytes
    stderr: bytes

    def stderr_tail(self, limit: int = 200) -> str:
        text = self.stderr.decode("utf-8", errors="ignore").strip()
        return text[-limit:]


async def run_process(
    argv: Sequence[str],
    *,
    timeout: float,
    input: Optional[bytes] = None,
) -> ProcessResult:
    """Run ``argv`` without a shell and wait for it under ``timeout``.

    The child is killed and reaped before this returns or raises, on every
    path: normal exit, timeout (``asyncio.TimeoutError``) or cancellation
    of the calling task. Spawn failures surface as ``OSError``.
    """

    argv = tuple(argv)
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    logger.debug("[SPAWN] pid=%s argv0=%s", proc.pid, argv[0])

    try:
        stdout, stderr = await asyncio.wait_for(
            proc.communicate(input=input),
            timeout=max(0.0, timeout),
        )
    finally:
        if proc.returncode is None:
            await _kill(proc)

    return ProcessResult(
        argv=argv,
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout or b"",
        stderr=stderr or b"",
    )


async def _kill(proc: asyncio.subprocess.Process) -> None:
    logger.warning("Killing pid=%s after timeout/cancellation", proc.pid)
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    await proc.wait()

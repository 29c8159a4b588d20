"""
External command runner with line-by-line output streaming.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Callable, List, Mapping, Optional

logger = logging.getLogger(__name__)

STDOUT = "stdout"
STDERR = "stderr"

# Bytes requested from a pipe per read; lines may span any number of reads.
CHUNK_SIZE = 64 * 1024

LineSink = Callable[[str, str], None]


class ProcessRunner:
    """
    Runs a command and forwards its output to a sink as it arrives.

    The sink is called as ``sink(stream, line)`` where stream is ``"stdout"``
    or ``"stderr"``. Lines keep their order within a stream; the two streams
    are read concurrently so their relative order is not preserved. Line
    length is unbounded.
    """

    def __init__(self, sink: LineSink) -> None:
        self.sink = sink

    def _emit(self, stream: str, raw: bytes) -> None:
        self.sink(stream, raw.decode("utf-8", errors="replace").rstrip("\r"))

    async def _pump(self, reader: asyncio.StreamReader, stream: str) -> None:
        pending = b""
        while True:
            chunk = await reader.read(CHUNK_SIZE)
            if not chunk:
                break
            *lines, pending = (pending + chunk).split(b"\n")
            for raw in lines:
                self._emit(stream, raw)
        if pending:
            self._emit(stream, pending)

    async def run(
            self,
            command: str,
            args: List[str],
            *,
            cwd: Optional[str] = None,
            env: Optional[Mapping[str, str]] = None
        ) -> int:
        """
        Run a command to completion.

        A non-zero status is returned, not raised; the caller decides whether
        it is fatal. A process killed by a signal reports a negative status.

        Args:
            command: Executable to run
            args: Arguments
            cwd: Working directory
            env: Full environment for the child; None inherits ours

        Returns:
            Exit status, available once both output streams have closed
        """
        logger.debug("Spawning %s %s (cwd=%s)", command, args, cwd)
        proc = await asyncio.create_subprocess_exec(
            command,
            *args,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            await asyncio.gather(
                self._pump(proc.stdout, STDOUT),
                self._pump(proc.stderr, STDERR),
            )
        finally:
            status = await proc.wait()
        return status

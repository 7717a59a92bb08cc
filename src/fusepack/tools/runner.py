"""Run an external tool, stream its output, and wait for it to exit.

:func:`run_tool` is the one place fusepack starts child processes. The
child's stdout and stderr are forwarded line by line to our own stdout and
stderr as they arrive, so a long lint or test run shows progress instead of
a wall of text at the end. The call blocks until the child exits and returns
its exit status; interpreting the status is left to the caller.

An optional timeout kills the child, together with anything it started, and
raises :class:`~fusepack.exceptions.ToolTimeoutError`. With no timeout a hung tool
hangs the task, exactly as it would from a shell.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shlex
import shutil
import signal
import subprocess
import sys
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import IO, Optional

from fusepack.exceptions import ToolMissingError, ToolTimeoutError

logger = logging.getLogger(__name__)

# Seconds to keep forwarding output after a timed-out tool is killed.
_DRAIN_TIMEOUT = 2.0


def find_tool(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Locate *name* on ``PATH`` (from *environ* when given)."""
    search_path = (environ if environ is not None else os.environ).get("PATH")
    return shutil.which(name, path=search_path)


def _kill(proc: subprocess.Popen, own_group: bool) -> None:
    """Kill *proc*, and with *own_group* every process in its process group."""
    if own_group:
        with contextlib.suppress(ProcessLookupError):
            os.killpg(proc.pid, signal.SIGKILL)
    else:
        proc.kill()
    proc.wait()


def _forward(stream: IO[str], sink: IO[str]) -> None:
    for line in iter(stream.readline, ""):
        sink.write(line)
        sink.flush()
    stream.close()


def run_tool(
    argv: Sequence[str],
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> int:
    """Run *argv*, streaming its output, and return the exit status.

    Args:
        argv: Command and arguments. ``argv[0]`` is looked up on ``PATH``.
        cwd: Working directory for the child.
        env: Complete environment for the child. Defaults to ours.
        timeout: Seconds to wait before killing the child. ``None`` waits
            forever.

    Returns:
        The child's exit status.

    Raises:
        ToolMissingError: If ``argv[0]`` cannot be found.
        ToolTimeoutError: If the child outlives *timeout*.
    """
    if not argv:
        raise ValueError("argv must not be empty")
    executable = find_tool(argv[0], env)
    if executable is None:
        raise ToolMissingError(argv[0])

    own_group = timeout is not None and os.name == "posix"
    logger.debug("Running %s (cwd=%s)", shlex.join(argv), cwd or ".")
    proc = subprocess.Popen(
        [executable, *argv[1:]],
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        bufsize=1,
        start_new_session=own_group,
    )
    pumps = [
        threading.Thread(target=_forward, args=(proc.stdout, sys.stdout), daemon=True),
        threading.Thread(target=_forward, args=(proc.stderr, sys.stderr), daemon=True),
    ]
    for pump in pumps:
        pump.start()

    try:
        returncode = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill(proc, own_group)
        for pump in pumps:
            pump.join(_DRAIN_TIMEOUT)
        raise ToolTimeoutError(
            f"'{argv[0]}' did not finish within {timeout:g} seconds and was killed"
        ) from None
    except KeyboardInterrupt:
        _kill(proc, own_group)
        raise

    for pump in pumps:
        pump.join()
    logger.debug("%s exited with status %d", argv[0], returncode)
    return returncode

"""
Base interfaces and dataclasses for execution runtimes.

All concrete executors should inherit from :class:`CodeExecutor` and
implement the :meth:`execute` method.  An executor receives a run
directory that already contains the source file named by the language's
:class:`~compilespace.profiles.ContainerProfile`, runs it in a container
and returns the cleaned output as an :class:`ExecutionResult`.

Executors own the lifetime of whatever they start: the wall-clock
timeout is enforced here, and containers are torn down on success,
failure and timeout alike.
"""

from __future__ import annotations

import abc
import logging
import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from ..profiles import ContainerProfile

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = -9
RUNTIME_FAILURE_EXIT_CODE = -1


@dataclass
class ExecutionResult:
    """Result of running a submitted program.

    Attributes
    ----------
    stdout: str
        Cleaned standard output of the program.
    stderr: str
        Cleaned standard error of the program, or the runtime's
        diagnostic text if the container could not be started.
    exit_code: int
        Exit status.  Zero indicates success, ``-9`` a timeout and
        ``-1`` a failure of the container runtime itself.
    duration_ms: int
        Wall-clock execution time in milliseconds.
    timed_out: bool
        Whether the run was terminated because it hit the deadline.
    """

    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int
    timed_out: bool = False


def timeout_notice(timeout: int) -> str:
    return f"Execution timed out after {timeout} seconds."


def append_line(text: str, line: str) -> str:
    return f"{text}\n{line}" if text else line


class CodeExecutor(abc.ABC):
    """
    Abstract base class defining the interface for execution runtimes.
    """

    def __init__(self, timeout: int = 30, max_memory_mb: int = 256) -> None:
        """
        Parameters
        ----------
        timeout: int, optional
            Maximum wall-clock time (in seconds) to allow a run.  When
            exceeded the run is forcibly terminated and the result
            reports a timeout.
        max_memory_mb: int, optional
            Memory limit handed to the container runtime.
        """
        self.timeout = timeout
        self.max_memory_mb = max_memory_mb

    @abc.abstractmethod
    def execute(self, profile: ContainerProfile, run_dir: Path, run_id: str) -> ExecutionResult:
        """Run the source file in ``run_dir`` with the given profile.

        Parameters
        ----------
        profile: ContainerProfile
            Language profile naming the source file and container.
        run_dir: Path
            Directory holding ``profile.filename``.  It is mounted into
            the container as its working directory.
        run_id: str
            Identifier of this request, used to name the containers so
            that concurrent runs never collide.

        Returns
        -------
        ExecutionResult
            Cleaned stdout and stderr, exit status and duration.
        """
        raise NotImplementedError

    def _run_subprocess(
        self,
        args: list[str],
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> ExecutionResult:
        """
        Helper to invoke a subprocess with a wall-clock deadline and capture
        its raw output.

        The process runs in its own session; if it outlives
        :attr:`timeout` its whole process group is killed from a timer
        thread.  Output is returned unprocessed; callers clean it
        and decide how to report a timeout.

        Raises
        ------
        OSError
            If the command cannot be spawned.
        """
        start_time = time.perf_counter()
        process = subprocess.Popen(
            args,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=True,
        )

        timed_out = False

        def kill_proc() -> None:
            nonlocal timed_out
            timed_out = True
            # The whole group: `docker compose` runs its plugin as a child
            # that holds the output pipes open
            try:
                os.killpg(process.pid, signal.SIGKILL)
            except OSError as exc:
                logger.warning("Unable to kill pid %s after timeout: %s", process.pid, exc)

        timer = threading.Timer(self.timeout, kill_proc)
        timer.start()

        try:
            stdout, stderr = process.communicate()
        finally:
            timer.cancel()
            duration = int((time.perf_counter() - start_time) * 1000)
        exit_code = process.returncode if process.returncode is not None else RUNTIME_FAILURE_EXIT_CODE
        if timed_out:
            exit_code = TIMEOUT_EXIT_CODE
        return ExecutionResult(stdout or "", stderr or "", exit_code, duration, timed_out)

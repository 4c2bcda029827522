"""
Executor that runs a language's Compose service.

Each run uses its own Compose project (``compilespace-<run_id>``), so the
service container is created fresh for the request and never shared with
another one.  The run directory reaches the service through the
``COMPILESPACE_CODE_DIR`` variable interpolated by ``docker-compose.yml``.

Compose gives no per-service output channel: everything the service prints
arrives on Compose's own streams, prefixed with ``<service>-<n> |`` and
mixed with Compose's progress messages.  The service's lines are recovered
with :mod:`compilespace.demux`.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from ..demux import clean_stream
from ..profiles import ContainerProfile
from .base import RUNTIME_FAILURE_EXIT_CODE, CodeExecutor, ExecutionResult, append_line, timeout_notice

logger = logging.getLogger(__name__)

TEARDOWN_TIMEOUT_SECONDS = 60


def project_name(run_id: str) -> str:
    return f"compilespace-{run_id}"


class ComposeExecutor(CodeExecutor):
    """Run a profile's service with ``docker compose up`` under a per-run project."""

    def __init__(
        self,
        compose_file: str | Path = "docker-compose.yml",
        compose_command: Optional[Sequence[str]] = None,
        timeout: int = 30,
        max_memory_mb: int = 256,
    ) -> None:
        super().__init__(timeout, max_memory_mb)
        self.compose_file = Path(compose_file).resolve()
        self.compose_command = list(compose_command or ["docker", "compose"])

    def _base_args(self, run_id: str) -> List[str]:
        return [*self.compose_command, "-f", str(self.compose_file), "-p", project_name(run_id)]

    def up_args(self, profile: ContainerProfile, run_id: str) -> List[str]:
        return [
            *self._base_args(run_id),
            "up",
            "--force-recreate",
            "--exit-code-from",
            profile.service,
            profile.service,
        ]

    def down_args(self, run_id: str) -> List[str]:
        return [*self._base_args(run_id), "down", "--volumes", "--remove-orphans", "--timeout", "0"]

    def _environment(self, run_dir: Path) -> dict:
        env = dict(os.environ)
        env["COMPILESPACE_CODE_DIR"] = str(run_dir.resolve())
        env["COMPILESPACE_MAX_MEMORY_MB"] = str(self.max_memory_mb)
        return env

    def execute(self, profile: ContainerProfile, run_dir: Path, run_id: str) -> ExecutionResult:
        args = self.up_args(profile, run_id)
        logger.info("Starting service %s in project %s", profile.service, project_name(run_id))
        try:
            raw = self._run_subprocess(args, cwd=self.compose_file.parent, env=self._environment(run_dir))
        except OSError as exc:
            logger.error("Unable to launch %s: %s", args[0], exc)
            return ExecutionResult("", str(exc), RUNTIME_FAILURE_EXIT_CODE, 0)
        finally:
            self.teardown(run_id)

        stdout = clean_stream(raw.stdout, profile.service)
        stderr = clean_stream(raw.stderr, profile.service)
        if raw.timed_out:
            logger.warning("Project %s timed out after %ss", project_name(run_id), self.timeout)
            stderr = append_line(stderr, timeout_notice(self.timeout))
        return ExecutionResult(stdout, stderr, raw.exit_code, raw.duration_ms, raw.timed_out)

    def teardown(self, run_id: str) -> None:
        """Stop and remove every container of the run's Compose project."""
        args = self.down_args(run_id)
        try:
            completed = subprocess.run(
                args,
                cwd=str(self.compose_file.parent),
                capture_output=True,
                text=True,
                timeout=TEARDOWN_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("Teardown of project %s failed: %s", project_name(run_id), exc)
            return
        if completed.returncode != 0:
            logger.warning(
                "Teardown of project %s exited with %s: %s",
                project_name(run_id),
                completed.returncode,
                completed.stderr.strip(),
            )

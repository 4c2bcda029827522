"""
Executor that talks to the Docker Engine API directly.

Every run starts one disposable container from the profile's image with the
run directory mounted at ``/app``.  Because the Engine API returns the
container's stdout and stderr separately and scoped to that container, no
log demultiplexing is needed; only terminal control sequences are removed.
The container is removed on every exit path.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import docker
from docker.errors import APIError, DockerException
import requests

from ..demux import strip_ansi
from ..profiles import ContainerProfile
from .base import (
    RUNTIME_FAILURE_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    CodeExecutor,
    ExecutionResult,
    append_line,
    timeout_notice,
)

logger = logging.getLogger(__name__)

CONTAINER_WORKDIR = "/app"
RUN_ID_LABEL = "compilespace.run_id"


def _decode(data: Optional[bytes]) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


class DockerExecutor(CodeExecutor):
    """Run a profile's image in a fresh container per request."""

    def __init__(
        self,
        client: Optional[docker.DockerClient] = None,
        timeout: int = 30,
        max_memory_mb: int = 256,
        disable_network: bool = True,
    ) -> None:
        super().__init__(timeout, max_memory_mb)
        self._client = client
        self.disable_network = disable_network

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    def execute(self, profile: ContainerProfile, run_dir: Path, run_id: str) -> ExecutionResult:
        start_time = time.perf_counter()
        container = None
        timed_out = False
        try:
            container = self.client.containers.run(
                image=profile.image,
                command=list(profile.command),
                name=f"compilespace-{profile.language}-{run_id}",
                labels={RUN_ID_LABEL: run_id},
                working_dir=CONTAINER_WORKDIR,
                volumes={str(run_dir.resolve()): {"bind": CONTAINER_WORKDIR, "mode": "rw"}},
                mem_limit=f"{self.max_memory_mb}m",
                network_disabled=self.disable_network,
                detach=True,
            )
            logger.info("Started container %s for %s", container.name, profile.language)
            wait_start = time.perf_counter()
            try:
                status = container.wait(timeout=self.timeout)
                exit_code = status.get("StatusCode", RUNTIME_FAILURE_EXIT_CODE)
            except (requests.exceptions.ReadTimeout, requests.exceptions.ConnectionError) as exc:
                if (
                    isinstance(exc, requests.exceptions.ConnectionError)
                    and self._elapsed(wait_start) < self.timeout * 1000
                ):
                    logger.error("Lost connection to Docker while waiting for %s: %s", container.name, exc)
                    return ExecutionResult("", str(exc), RUNTIME_FAILURE_EXIT_CODE, self._elapsed(start_time))
                timed_out = True
                exit_code = TIMEOUT_EXIT_CODE
                logger.warning("Container %s timed out after %ss", container.name, self.timeout)
                self._kill(container)
            stdout = strip_ansi(_decode(container.logs(stdout=True, stderr=False))).strip()
            stderr = strip_ansi(_decode(container.logs(stdout=False, stderr=True))).strip()
        except DockerException as exc:
            logger.error("Docker failed to run %s: %s", profile.image, exc)
            return ExecutionResult("", str(exc), RUNTIME_FAILURE_EXIT_CODE, self._elapsed(start_time))
        finally:
            if container is not None:
                self._remove(container)

        if timed_out:
            stderr = append_line(stderr, timeout_notice(self.timeout))
        return ExecutionResult(stdout, stderr, exit_code, self._elapsed(start_time), timed_out)

    @staticmethod
    def _elapsed(start_time: float) -> int:
        return int((time.perf_counter() - start_time) * 1000)

    @staticmethod
    def _kill(container) -> None:
        try:
            container.kill()
        except APIError as exc:
            # Already exited between the deadline and the kill
            logger.info("Kill of container %s skipped: %s", container.name, exc)

    @staticmethod
    def _remove(container) -> None:
        try:
            container.remove(force=True)
        except DockerException as exc:
            logger.warning("Unable to remove container %s: %s", container.name, exc)

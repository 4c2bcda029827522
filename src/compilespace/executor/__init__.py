"""
Execution runtimes for submitted programs.

This package exposes the executors the service can delegate to.  The
API selects one based on ``COMPILESPACE_RUNTIME``.  Each executor runs
the source file a handler wrote into a run directory, enforces the
wall-clock timeout, removes whatever containers it started and returns
the cleaned output.  Additional runtimes can be added by implementing
the ``CodeExecutor`` interface from ``base.py``.
"""

from ..config import Config
from .base import CodeExecutor, ExecutionResult
from .compose_executor import ComposeExecutor
from .docker_executor import DockerExecutor

__all__ = [
    "ExecutionResult",
    "CodeExecutor",
    "ComposeExecutor",
    "DockerExecutor",
    "build_executor",
]


def build_executor(config: Config) -> CodeExecutor:
    """Instantiate the executor selected by ``config.runtime``."""
    if config.runtime == "docker":
        return DockerExecutor(
            timeout=config.max_execution_seconds,
            max_memory_mb=config.max_memory_mb,
            disable_network=config.disable_network,
        )
    return ComposeExecutor(
        compose_file=config.compose_file,
        compose_command=config.compose_command,
        timeout=config.max_execution_seconds,
        max_memory_mb=config.max_memory_mb,
    )

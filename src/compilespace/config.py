"""Configuration loader.

The execution service reads its configuration from environment variables so
that the same image can run next to the editor in docker-compose or on a
standalone host.  Reasonable defaults are provided so that local development
works out of the box.

Environment variables:

``COMPILESPACE_API_KEY``
    Shared secret clients must send in the ``x-api-key`` header.  Empty
    (the default) disables the check.

``COMPILESPACE_RUNTIME``
    Selects the executor.  Supported values are ``compose`` and ``docker``.
    Defaults to ``compose``.

``COMPILESPACE_WORK_DIR``
    Base directory under which a working directory is created for every
    request.  Defaults to ``/tmp/compilespace``.  When the service itself
    runs in a container this must be a path the Docker host can bind-mount.

``COMPILESPACE_COMPOSE_FILE``
    Compose file defining the ``<language>_executor`` services.  Defaults to
    ``docker-compose.yml``.

``COMPILESPACE_COMPOSE_COMMAND``
    Command used to invoke Compose, split like a shell would.  Defaults to
    ``docker compose``; set to ``docker-compose`` for the standalone binary.

``COMPILESPACE_ALLOWED_LANGS``
    Comma-separated list of languages permitted for execution.  Defaults to
    ``cpp,java,js,python``.

``COMPILESPACE_MAX_EXECUTION_SECONDS``
    Wall-clock timeout (in seconds) for a single run.  Default is 30.

``COMPILESPACE_MAX_MEMORY_MB``
    Memory limit (in megabytes) applied to the execution container.
    Default is 256.

``COMPILESPACE_DISABLE_NETWORK``
    If ``true``, containers started by the ``docker`` runtime get no network.
    Defaults to ``true``.

``COMPILESPACE_CORS_ORIGINS``
    Comma-separated list of origins allowed to call the API.  Defaults to
    ``*``.

``PORT``
    The port on which the API server listens.  Defaults to 5000.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from typing import List

from .profiles import PROFILES


RUNTIMES = {"compose", "docker"}


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y"}


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Config:
    """Centralised configuration object."""

    api_key: str
    runtime: str
    work_dir: str
    compose_file: str
    compose_command: List[str]
    allowed_langs: List[str]
    max_execution_seconds: int
    max_memory_mb: int
    disable_network: bool
    cors_origins: List[str]
    port: int

    @classmethod
    def load(cls) -> "Config":
        api_key = os.getenv("COMPILESPACE_API_KEY", "")

        runtime = os.getenv("COMPILESPACE_RUNTIME", "compose").lower()
        if runtime not in RUNTIMES:
            raise ValueError(
                f"Invalid COMPILESPACE_RUNTIME: {runtime}. Use 'compose' or 'docker'."
            )

        work_dir = os.getenv("COMPILESPACE_WORK_DIR", "/tmp/compilespace")
        compose_file = os.getenv("COMPILESPACE_COMPOSE_FILE", "docker-compose.yml")
        compose_command = shlex.split(os.getenv("COMPILESPACE_COMPOSE_COMMAND", "docker compose"))
        if not compose_command:
            raise ValueError("COMPILESPACE_COMPOSE_COMMAND must not be empty")

        allowed_langs = [
            lang.lower() for lang in _parse_list(os.getenv("COMPILESPACE_ALLOWED_LANGS", ",".join(PROFILES)))
        ]
        unknown = sorted(set(allowed_langs) - set(PROFILES))
        if unknown:
            raise ValueError(f"Invalid COMPILESPACE_ALLOWED_LANGS entries: {', '.join(unknown)}")

        def _int_var(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None:
                return default
            try:
                parsed = int(val)
            except ValueError:
                raise ValueError(f"Invalid integer for {name}: {val}")
            if parsed <= 0:
                raise ValueError(f"{name} must be positive, got {parsed}")
            return parsed

        max_execution_seconds = _int_var("COMPILESPACE_MAX_EXECUTION_SECONDS", 30)
        max_memory_mb = _int_var("COMPILESPACE_MAX_MEMORY_MB", 256)
        disable_network = _parse_bool(os.getenv("COMPILESPACE_DISABLE_NETWORK"), True)
        cors_origins = _parse_list(os.getenv("COMPILESPACE_CORS_ORIGINS", "*"))
        port = _int_var("PORT", 5000)

        return cls(
            api_key=api_key,
            runtime=runtime,
            work_dir=work_dir,
            compose_file=compose_file,
            compose_command=compose_command,
            allowed_langs=allowed_langs,
            max_execution_seconds=max_execution_seconds,
            max_memory_mb=max_memory_mb,
            disable_network=disable_network,
            cors_origins=cors_origins,
            port=port,
        )

    @classmethod
    def from_env(cls) -> "Config":
        """
        Alternate constructor used by the API to load configuration.

        This wrapper calls :meth:`load` to construct the configuration.
        It exists to provide a more intuitive name when consumed in
        application code.
        """
        return cls.load()

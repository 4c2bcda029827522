"""Execution request handling.

:class:`ExecutionHandler` turns one ``(language, code)`` pair into either an
:class:`ExecutionOutcome` or an exception.  It validates the language before
doing anything else, writes the source into a run directory of its own,
hands the directory to the configured executor and interprets the result.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from .executor import CodeExecutor
from .profiles import PROFILES, ContainerProfile, get_profile
from .workspace import Workspace

logger = logging.getLogger(__name__)

NO_OUTPUT = "No output generated"


class ExecutionServiceError(Exception):
    """Base class for errors reported back to the caller."""


class UnsupportedLanguageError(ExecutionServiceError, ValueError):
    def __init__(self, language: str) -> None:
        super().__init__(f"Unsupported language: {language}")
        self.language = language


class ExecutionFailedError(ExecutionServiceError):
    """The program, its compiler or the container runtime exited nonzero."""

    def __init__(self, details: str, exit_code: int) -> None:
        super().__init__(details)
        self.details = details
        self.exit_code = exit_code


@dataclass
class ExecutionOutcome:
    output: str
    error: Optional[str]


class ExecutionHandler:
    def __init__(
        self,
        executor: CodeExecutor,
        workspace: Workspace,
        allowed_langs: Optional[Iterable[str]] = None,
    ) -> None:
        self.executor = executor
        self.workspace = workspace
        self.allowed_langs = set(allowed_langs) if allowed_langs is not None else set(PROFILES)

    def resolve(self, language: str) -> ContainerProfile:
        profile = get_profile(language)
        if profile is None or language not in self.allowed_langs:
            raise UnsupportedLanguageError(language)
        return profile

    def execute(self, language: str, code: str) -> ExecutionOutcome:
        """Run ``code`` as ``language`` and return its cleaned output.

        Raises
        ------
        UnsupportedLanguageError
            If ``language`` is unknown or disabled.  Nothing has been
            written or started at that point.
        ExecutionFailedError
            If the run exited nonzero or timed out.  ``details`` holds the
            cleaned stderr, or the cleaned stdout when stderr is empty.
        OSError
            If the source file could not be written.
        """
        profile = self.resolve(language)
        run_id = uuid.uuid4().hex

        with self.workspace.run(run_id) as run_dir:
            self.workspace.write_source(run_dir, profile.filename, code)
            logger.info("Run %s: executing %s (%d bytes)", run_id, language, len(code.encode("utf-8")))
            result = self.executor.execute(profile, run_dir, run_id)

        logger.info(
            "Run %s finished: exit_code=%s, duration_ms=%s, timed_out=%s",
            run_id,
            result.exit_code,
            result.duration_ms,
            result.timed_out,
        )

        if result.exit_code != 0:
            raise ExecutionFailedError(result.stderr or result.stdout, result.exit_code)

        return ExecutionOutcome(output=result.stdout or NO_OUTPUT, error=result.stderr or None)

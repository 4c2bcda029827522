from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pytest

from compilespace.executor import CodeExecutor, ExecutionResult
from compilespace.profiles import ContainerProfile
from compilespace.workspace import Workspace


class RecordingExecutor(CodeExecutor):
    """Executor double that records what it was asked to run."""

    def __init__(self, result: ExecutionResult | None = None) -> None:
        super().__init__(timeout=5)
        self.result = result or ExecutionResult("", "", 0, 1)
        self.calls: List[Tuple[ContainerProfile, Path, str]] = []
        self.sources: List[bytes] = []

    def execute(self, profile: ContainerProfile, run_dir: Path, run_id: str) -> ExecutionResult:
        self.calls.append((profile, run_dir, run_id))
        self.sources.append((run_dir / profile.filename).read_bytes())
        return self.result


@pytest.fixture
def workspace(tmp_path) -> Workspace:
    return Workspace(tmp_path / "runs")


@pytest.fixture
def recording_executor() -> RecordingExecutor:
    return RecordingExecutor()

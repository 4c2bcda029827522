"""Per-request working directories.

Every execution gets its own directory ``<base_dir>/<run_id>`` holding the
single source file for its language.  The directory is bind-mounted into the
execution container and removed once the run finishes, so concurrent
requests never share a file.

Workspaces are not thread-safe as objects, but distinct run ids never touch
the same path.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


class Workspace:
    """Create, fill and remove run directories on the local filesystem."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _run_dir(self, run_id: str) -> Path:
        return self.base_dir / run_id

    def create(self, run_id: str) -> Path:
        run_dir = self._run_dir(run_id)
        # exist_ok=False: a run id is never reused
        run_dir.mkdir(parents=True, exist_ok=False)
        return run_dir

    def write_source(self, run_dir: Path, filename: str, code: str) -> Path:
        """Write ``code`` to ``run_dir/filename`` exactly as received."""
        dest = run_dir / filename
        dest.write_bytes(code.encode("utf-8"))
        return dest

    def remove(self, run_id: str) -> None:
        run_dir = self._run_dir(run_id)
        if not run_dir.exists():
            return
        try:
            shutil.rmtree(run_dir)
        except OSError as exc:
            # Containers may leave root-owned build artefacts behind
            logger.warning("Unable to remove run dir %s: %s", run_dir, exc)

    @contextmanager
    def run(self, run_id: str) -> Iterator[Path]:
        """Yield a fresh run directory and remove it afterwards."""
        run_dir = self.create(run_id)
        try:
            yield run_dir
        finally:
            self.remove(run_id)

"""Clean up the combined output of a ``docker compose up`` invocation.

Compose writes the log lines of every attached service to its own stdout,
each prefixed with ``<service>-<index> | ``, and mixes in its own progress
messages and terminal control sequences.  The helpers here remove the
control sequences and keep only the lines that belong to one service.
"""

from __future__ import annotations

import re
from typing import Optional, Pattern

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")


def strip_ansi(text: Optional[str]) -> str:
    """Remove ANSI control sequences such as ``\\x1b[K`` or ``\\x1b[32m``."""
    if not text:
        return ""
    return ANSI_ESCAPE.sub("", text)


def service_line_pattern(service: str) -> Pattern[str]:
    """Match the ``<service>-<n> |`` prefix Compose puts on a service's lines."""
    return re.compile(rf"^{re.escape(service)}-\d+\s+\|\s*", re.IGNORECASE)


def demultiplex(text: Optional[str], service: str) -> str:
    """Return the lines logged by ``service`` with their prefix removed.

    Lines from other services and from Compose itself are dropped.  Order is
    preserved.  An empty string means the service printed nothing.
    """
    if not text:
        return ""
    pattern = service_line_pattern(service)
    kept = [
        pattern.sub("", line, count=1).strip()
        for line in text.split("\n")
        if pattern.match(line)
    ]
    return "\n".join(kept).strip()


def clean_stream(text: Optional[str], service: str) -> str:
    return demultiplex(strip_ansi(text), service)

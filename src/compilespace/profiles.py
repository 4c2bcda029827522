"""Container profiles for the supported languages.

A profile ties a language tag to the file its source is written to, the
Compose service that runs it, and the image and command the ``docker``
runtime uses to run the same thing without Compose.  The table is fixed at
import time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class ContainerProfile:
    language: str
    filename: str
    service: str
    image: str
    command: Tuple[str, ...]


PROFILES: Dict[str, ContainerProfile] = {
    "cpp": ContainerProfile(
        language="cpp",
        filename="main.cpp",
        service="cpp_executor",
        image="gcc:latest",
        command=("sh", "-c", "g++ main.cpp -o main.out && ./main.out"),
    ),
    "java": ContainerProfile(
        language="java",
        filename="Main.java",
        service="java_executor",
        image="openjdk:latest",
        command=("sh", "-c", "javac Main.java && java Main"),
    ),
    "js": ContainerProfile(
        language="js",
        filename="main.js",
        service="js_executor",
        image="node:20-alpine",
        command=("node", "main.js"),
    ),
    "python": ContainerProfile(
        language="python",
        filename="main.py",
        service="python_executor",
        image="python:3.12-alpine",
        command=("python", "main.py"),
    ),
}


def get_profile(language: str) -> Optional[ContainerProfile]:
    """Return the profile for ``language`` or ``None`` if it is unknown."""
    return PROFILES.get(language)

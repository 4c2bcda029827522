"""Execution service package for the CompileSpace editor.

The editor submits a language tag and source text; this package writes the
source into a per-request directory, runs it in a container for that
language and returns the cleaned output.

The top-level modules include:

* ``config`` – configuration handling for environment variables.
* ``profiles`` – the fixed language to container mapping.
* ``models`` – Pydantic models defining request and response schemas.
* ``workspace`` – per-request working directories.
* ``demux`` – cleaning of Compose's multiplexed output.
* ``executor`` – container runtimes (Compose CLI and Docker Engine API).
* ``handler`` – validation and interpretation of a single run.
* ``api`` – FastAPI application exposing HTTP endpoints.
"""

"""Pydantic models for request and response bodies.

These models describe the JSON exchanged with the editor front end:
one request shape for ``POST /execute``, the success body and the body
used for every error the service reports itself.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ExecuteRequest(BaseModel):
    """Request body for running a program."""

    language: str = Field(
        ...,
        description="Language of the source. Supported: 'cpp', 'java', 'js', 'python'.",
    )
    code: str = Field(..., description="Source code to run, written to disk verbatim.")


class ExecuteResponse(BaseModel):
    """Response body for a run that exited successfully."""

    output: str = Field(
        ..., description="Cleaned standard output, or 'No output generated' if empty."
    )
    error: Optional[str] = Field(
        default=None, description="Cleaned standard error, if the program wrote any."
    )


class ErrorResponse(BaseModel):
    """Response body for rejected or failed runs."""

    error: str
    details: Optional[str] = None

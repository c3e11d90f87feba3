"""Document store models."""

from typing import Any

from pydantic import BaseModel, Field


class WriteResult(BaseModel):
    """Successful document write."""

    id: str
    rev: str
    ok: bool = True


class WriteError(BaseModel):
    """Rejected document write."""

    id: str
    error: str
    message: str
    status: int
    conflict: bool = False


class RevisionInfo(BaseModel):
    """Current revision of a stored document."""

    id: str
    rev: str
    deleted: bool = False


class ScanPage(BaseModel):
    """A single page of a collection scan."""

    docs: list[dict[str, Any]] = Field(default_factory=list)
    next_start_key: str | None = None

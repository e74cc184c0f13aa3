"""Baseline version manifest data structures."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BaselineVersion(BaseModel):
    tag: str
    created_at: str  # ISO timestamp
    identities: list[str] = Field(default_factory=list)
    hashes: dict[str, str] = Field(default_factory=dict)  # identity -> SHA-256 hex digest

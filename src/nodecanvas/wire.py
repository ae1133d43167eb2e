"""Base model for payloads that cross a process or service boundary."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class WireModel(BaseModel):
    """Base model for wire types with populate_by_name enabled."""

    model_config = ConfigDict(populate_by_name=True)


class WirePosition(WireModel):
    x: float = 0.0
    y: float = 0.0

"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, cdl.toml only contains overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CompileConfig(BaseModel):
    """[compile] section."""

    model_config = {"frozen": True, "extra": "forbid"}

    allow_modifier_override: bool = False


class OutputConfig(BaseModel):
    """[output] section."""

    model_config = {"frozen": True, "extra": "forbid"}

    show_breadcrumb: bool = True
    width: int = Field(default=100, gt=0)


"""Pydantic base schemas shared by Langfuse DTOs and tool inputs.

Langfuse speaks camelCase JSON while the Python side uses snake_case, so every
model aliases its fields through a snake->camel generator and accepts either
spelling on input.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def _to_camel(s: str) -> str:
    """Convert snake_case to camelCase for JSON aliasing."""
    parts = s.split("_")
    return parts[0] + "".join(p.capitalize() or "_" for p in parts[1:])


class BaseSchema(BaseModel):
    """Strict base for request payloads and tool inputs.

    - Rejects unknown fields
    - Enables populate_by_name for using either snake_case or camelCase
    - Uses a snake->camel alias generator for JSON interop
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        alias_generator=_to_camel,
    )


class ResponseSchema(BaseModel):
    """Lenient base for payloads returned by Langfuse.

    Upstream responses carry more fields than we model; extras are ignored.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        alias_generator=_to_camel,
    )

"""Proto-JSON primitives shared by every module state model.

The chain serializes genesis with its proto-JSON codec: snake_case field
names, 64-bit integers as decimal strings, enums by name. ``ProtoModel``
keeps unknown fields so a load/compose/serialize cycle never drops data
the harness does not model.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

Uint64 = Annotated[
    int,
    Field(ge=0),
    PlainSerializer(lambda v: str(v), return_type=str, when_used="json"),
]


class ProtoModel(BaseModel):
    """Frozen, extra-preserving base for module state models."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Serialize to the chain's proto-JSON shape."""
        return self.model_dump(mode="json", by_alias=True)

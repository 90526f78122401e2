"""Request schemas shared by the set and user routes."""

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class DeltaIn(BaseModel):
    """An update delta: {"$inc": ..., "$push": ..., "$set": ...}."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    inc: dict[str, Union[int, float]] = Field(default_factory=dict, alias="$inc")
    push: dict[str, list[Any]] = Field(default_factory=dict, alias="$push")
    assign: dict[str, Any] = Field(default_factory=dict, alias="$set")

    def to_delta(self) -> dict:
        return self.model_dump(by_alias=True)

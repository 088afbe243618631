"""Reusable, strict base models for all storm data types."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictBaseModel(BaseModel):
    """
    A strict, immutable pydantic base model.

    Field names are converted to camel case when serializing: the field
    `container_ids` is dumped to JSON as `containerIds`.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
        arbitrary_types_allowed=True,
        extra="forbid",
        frozen=True,
        strict=True,
    )

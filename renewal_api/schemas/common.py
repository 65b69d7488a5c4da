"""
Shared base model for the renewal form payloads.

The frontend sends and expects camelCase keys; Python code uses snake_case
attribute names. Responses are serialized by alias.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

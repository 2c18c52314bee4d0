"""
Shared Pydantic base for request and response schemas.

The API speaks camelCase JSON (accountId, balanceAfter, expiresAt) while
the Python side stays snake_case. The alias generator does the mapping;
populate_by_name lets request bodies use either spelling, and FastAPI
serializes responses by alias.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

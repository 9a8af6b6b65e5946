"""
Shared base for API I/O schemas.

The public API speaks camelCase JSON while Python code uses snake_case.
``ApiModel`` generates camelCase aliases, accepts either spelling on input,
and can be built straight from ORM entities.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

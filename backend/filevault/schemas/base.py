"""Base schema classes with camelCase alias generation.

Response schemas inherit from these instead of BaseModel directly.
Python code stays snake_case. API JSON output becomes camelCase.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelORMModel(BaseModel):
    """Base for response schemas. Reads from SQLAlchemy, outputs camelCase."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
        "protected_namespaces": (),
    }

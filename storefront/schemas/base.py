from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Models exchanged with the storefront client: camelCase on the wire,
    snake_case in Python, either accepted on input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

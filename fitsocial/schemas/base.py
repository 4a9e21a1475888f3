from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema for all models.

    JSON keys are camelCase on the wire (``weeklyGoal``); snake_case field
    names are accepted on input as well.
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MessageResponse(BaseSchema):
    """Plain acknowledgement body used by write endpoints."""
    message: str

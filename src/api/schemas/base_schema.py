from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AppBaseModel(BaseModel):
    # Default setup for every schema of the API
    model_config = ConfigDict(
        alias_generator=to_camel,  # firstName on the wire, first_name in Python
        populate_by_name=True,     # accepts both spellings on input
        extra="ignore"
    )

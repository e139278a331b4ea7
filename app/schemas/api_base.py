from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ShopApiModel(BaseModel):
    """Base for payloads exchanged with the shop API (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

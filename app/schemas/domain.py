from pydantic import AliasChoices, BaseModel, Field

from app.core.intervals import DEFAULT_INTERVAL_LABEL


class DomainCreate(BaseModel):
    domain: str
    # Older clients send camelCase
    check_interval: str = Field(
        default=DEFAULT_INTERVAL_LABEL,
        validation_alias=AliasChoices("check_interval", "checkInterval"),
    )

"""Base model for wire payloads."""

from pydantic import BaseModel, ConfigDict


class ApiModel(BaseModel):
    """Base wire model with camelCase aliases enabled."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump using aliases, dropping unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

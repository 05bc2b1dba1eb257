"""Base model configuration for Azure DevOps API payloads."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with standard configuration.

    The Test Management API mixes numeric and string identifiers between
    endpoints, so numbers are accepted wherever a string id is declared.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

"""Base model configuration for all API payloads."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Frozen model that tolerates fields it does not declare."""

    model_config = ConfigDict(frozen=True, extra="ignore")

"""DeleteResult entity - outcome of a mutating operation."""

from pydantic import BaseModel, ConfigDict


class DeleteResult(BaseModel):
    """Confirmation returned by delete operations."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str

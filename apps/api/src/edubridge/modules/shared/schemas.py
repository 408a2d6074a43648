"""Response schemas shared across modules."""

from uuid import UUID

from pydantic import BaseModel


class DeletedResponse(BaseModel):
    """Acknowledgement for delete endpoints."""

    id: UUID
    deleted: bool = True

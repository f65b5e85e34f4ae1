"""Pydantic schemas for participant progress responses."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from hunt_tracker.services.progress_service import ParticipantState


class ProgressResponse(BaseModel):
    """Progress of one participant toward the full component catalog."""

    registration_number: str = Field(..., description="Participant registration number.")
    components: List[str] = Field(
        default_factory=list,
        description="Collected component codes, sorted.",
    )
    count: int = Field(..., ge=0, description="Number of distinct components collected.")
    catalog_size: int = Field(..., ge=1, description="Components needed to finish the hunt.")
    is_complete: bool = Field(..., description="True once every component is collected.")

    @classmethod
    def from_state(cls, state: ParticipantState) -> "ProgressResponse":
        return cls(
            registration_number=state.registration_number,
            components=sorted(state.components),
            count=state.count,
            catalog_size=state.catalog_size,
            is_complete=state.is_complete,
        )


class StoreHealthResponse(BaseModel):
    status: str = Field(..., description="'ok' when the store answered the ping.")
    store: str = Field(..., description="Configured progress store backend.")

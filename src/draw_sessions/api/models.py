"""Pydantic models for session API payloads."""

from pydantic import BaseModel, Field, StrictFloat, StrictInt


class CreateSessionRequest(BaseModel):
    """Body of a create-session request."""

    participant_count: int = Field(alias="participantCount")
    title: str | None = None


class JoinSessionRequest(BaseModel):
    """Body of a join request.

    ``position`` must be a JSON number. Floats are let through so integral
    values like ``2.0`` count as positions and the rest are reported as
    ``INVALID_POSITION``.
    """

    name: str
    position: StrictInt | StrictFloat


class ReadyRequest(BaseModel):
    """Body of a mark-ready request."""

    participant_id: str = Field(alias="participantId")

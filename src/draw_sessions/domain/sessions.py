"""Domain models for draw sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

MAX_PARTICIPANTS = 100


@dataclass
class Participant:
    """A participant holding one position in a draw session."""

    id: str
    name: str
    position: int
    ready: bool = False
    result: str | None = None


@dataclass
class Session:
    """A draw session and everything needed to run it.

    ``participants`` keeps join order, which is the order results are
    handed out in when the draw starts.
    """

    id: str
    participant_count: int
    created_at: datetime
    updated_at: datetime
    title: str = ""
    participants: dict[str, Participant] = field(default_factory=dict)
    selected_positions: set[int] = field(default_factory=set)
    started: bool = False
    results: dict[str, str] = field(default_factory=dict)
    version: int = 1

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= self.participant_count


class JoinFailure(str, Enum):
    """Machine-readable reasons a join is rejected."""

    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    PARTICIPANT_LIMIT_REACHED = "PARTICIPANT_LIMIT_REACHED"
    INVALID_POSITION = "INVALID_POSITION"
    POSITION_ALREADY_TAKEN = "POSITION_ALREADY_TAKEN"


class SessionJoinError(Exception):
    """Raised when a participant cannot join a session."""

    def __init__(self, code: JoinFailure) -> None:
        super().__init__(code.value)
        self.code = code

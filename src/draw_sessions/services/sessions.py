"""Session state machine for draws."""

import asyncio
import logging
import random
import string
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from draw_sessions.domain.records import participant_view
from draw_sessions.domain.sessions import (
    MAX_PARTICIPANTS,
    JoinFailure,
    Participant,
    Session,
    SessionJoinError,
)
from draw_sessions.services.notifications import Notifier
from draw_sessions.services.registry import SessionRegistry, Subscriber
from draw_sessions.services.session_store import SessionStore

SESSION_EXPIRY_SECONDS = 7200

_SESSION_ID_ALPHABET = string.ascii_uppercase + string.digits
_SESSION_ID_LENGTH = 6
_LETTERS = string.ascii_uppercase
_LABEL_PREFIXES = "ABC"
MAX_LABELS = len(_LETTERS) * (len(_LABEL_PREFIXES) + 1)

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionManager:
    """State machine for draw sessions.

    Reads go registry -> durable store -> fallback store. Writes update the
    in-memory session first; persistence failures are logged and never
    change the outcome reported to the caller.
    """

    registry: SessionRegistry
    notifier: Notifier
    store: SessionStore
    fallback_store: SessionStore | None = None
    expiry_seconds: int = SESSION_EXPIRY_SECONDS
    rng: random.Random = field(default_factory=random.SystemRandom)
    clock: Callable[[], datetime] = _utcnow
    heartbeat_save_interval_seconds: int = 300
    _saved_at: dict[str, datetime] = field(
        default_factory=dict, init=False, repr=False
    )
    _background: set[asyncio.Task[bool]] = field(
        default_factory=set, init=False, repr=False
    )

    async def create_session(self, participant_count: int, title: str = "") -> str:
        """Create an empty session and persist it in the background."""
        if not _is_valid_count(participant_count):
            raise ValueError(
                f"participant_count must be between 1 and {MAX_PARTICIPANTS}"
            )
        now = self.clock()
        session = Session(
            id=self._new_session_id(),
            title=(title or "").strip(),
            participant_count=participant_count,
            created_at=now,
            updated_at=now,
        )
        self.registry.add(session)
        self._persist_in_background(session)
        _logger.info(
            "Created session %s for %s participants", session.id, participant_count
        )
        return session.id

    async def get_session(self, session_id: str) -> Session | None:
        """Return a session, loading it from persistence on a registry miss."""
        session = self.registry.get(session_id)
        if session is not None:
            return session
        loaded = await self._load(session_id)
        if loaded is None:
            return None
        # Another request may have loaded it while this one was waiting on I/O.
        current = self.registry.get(session_id)
        if current is not None:
            return current
        self.registry.add(loaded)
        self._saved_at[session_id] = loaded.updated_at
        _logger.info("Restored session %s into memory", session_id)
        return loaded

    async def join_session(self, session_id: str, name: str, position: object) -> str:
        """Claim a position for a new participant and return its id."""
        cleaned_name = name.strip()
        if not cleaned_name:
            raise ValueError("name must not be empty")
        if isinstance(position, float) and position.is_integer():
            position = int(position)
        session = await self.get_session(session_id)
        _logger.info(
            "Join attempt: session=%s exists=%s position=%s",
            session_id,
            session is not None,
            position,
        )
        if session is None or session.started:
            raise _join_failed(session_id, JoinFailure.SESSION_NOT_FOUND)
        if session.is_full:
            raise _join_failed(session_id, JoinFailure.PARTICIPANT_LIMIT_REACHED)
        if not _is_valid_position(position, session.participant_count):
            raise _join_failed(session_id, JoinFailure.INVALID_POSITION)
        if position in session.selected_positions:
            raise _join_failed(session_id, JoinFailure.POSITION_ALREADY_TAKEN)

        participant = Participant(
            id=self._new_participant_id(session),
            name=cleaned_name,
            position=position,
        )
        session.participants[participant.id] = participant
        session.selected_positions.add(position)
        self._mark_updated(session)
        _logger.info(
            "Participant joined: session=%s participant=%s position=%s",
            session_id,
            participant.id,
            position,
        )
        await self._persist(session)
        self.notifier.broadcast(
            session_id,
            "participant-joined",
            {
                "participantId": participant.id,
                "participant": participant_view(participant),
            },
        )
        return participant.id

    async def mark_participant_ready(
        self, session_id: str, participant_id: str
    ) -> bool:
        """Mark a participant ready; repeated calls succeed and re-broadcast."""
        session = await self.get_session(session_id)
        if session is None or session.started:
            return False
        participant = session.participants.get(participant_id)
        if participant is None:
            return False
        participant.ready = True
        self._mark_updated(session)
        await self._persist(session)
        self.notifier.broadcast(
            session_id, "participant-ready", {"participantId": participant_id}
        )
        return True

    async def are_all_participants_ready(self, session_id: str) -> bool:
        session = await self.get_session(session_id)
        return session is not None and _all_ready(session)

    async def start_session(self, session_id: str) -> bool:
        """Run the draw once every seat is taken and every participant is ready."""
        session = await self.get_session(session_id)
        if session is None or session.started or not _all_ready(session):
            return False
        labels = self._shuffled(generate_labels(session.participant_count))
        for participant, label in zip(
            session.participants.values(), labels, strict=False
        ):
            participant.result = label
            session.results[participant.id] = label
        session.started = True
        self._mark_updated(session)
        _logger.info("Started session %s", session_id)
        await self._persist(session)
        self.notifier.broadcast(
            session_id, "session-started", {"results": dict(session.results)}
        )
        return True

    async def heartbeat(self, session_id: str) -> datetime | None:
        """Keep a session alive; return the new timestamp or None if unknown.

        A TTL touch is enough while the persisted ``updatedAt`` is recent.
        Past the save interval the session is re-saved so other instances
        restore it with a live timestamp.
        """
        session = await self.get_session(session_id)
        if session is None:
            _logger.info("Heartbeat for unknown session %s", session_id)
            return None
        now = self.clock()
        session.updated_at = now
        saved_at = self._saved_at.get(session_id)
        save_interval = timedelta(seconds=self.heartbeat_save_interval_seconds)
        if (
            saved_at is not None
            and now - saved_at < save_interval
            and await self._touch(session_id)
        ):
            return now
        self._mark_updated(session)
        await self._persist(session)
        return session.updated_at

    async def delete_session(self, session_id: str) -> bool:
        """Remove a session everywhere; False when it was not found."""
        session = await self.get_session(session_id)
        if session is None:
            return False
        self._forget(session_id)
        await self._delete_persisted(session_id)
        _logger.info("Deleted session %s", session_id)
        return True

    async def sweep_expired(self) -> list[str]:
        """Remove sessions whose last update is older than the expiry window."""
        now = self.clock()
        window = timedelta(seconds=self.expiry_seconds)
        candidates = [
            session_id
            for session_id, session in self.registry.sessions.items()
            if now - session.updated_at > window
        ]
        expired: list[str] = []
        for session_id in candidates:
            # Another instance may have kept the session alive.
            stored = await self._load(session_id)
            session = self.registry.get(session_id)
            if session is None:
                continue
            if stored is not None and stored.updated_at > session.updated_at:
                session.updated_at = stored.updated_at
                self._saved_at[session_id] = stored.updated_at
            if now - session.updated_at <= window:
                _logger.info("Session %s is still active elsewhere", session_id)
                continue
            # Removed before the deletes so in-flight requests see "not found".
            self._forget(session_id)
            expired.append(session_id)
        for session_id in expired:
            await self._delete_persisted(session_id)
            _logger.info("Expired session %s", session_id)
        return expired

    def subscribe(self, session_id: str, callback: Subscriber) -> Callable[[], None]:
        return self.notifier.subscribe(session_id, callback)

    async def drain(self) -> None:
        """Wait for outstanding background saves."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def _load(self, session_id: str) -> Session | None:
        try:
            session = await self.store.load(session_id)
        except Exception:
            _logger.exception("Failed to load session %s from store", session_id)
            session = None
        if session is not None or self.fallback_store is None:
            return session
        try:
            return await self.fallback_store.load(session_id)
        except Exception:
            _logger.exception("Failed to load session %s from fallback", session_id)
            return None

    async def _persist(self, session: Session) -> bool:
        if session.id not in self.registry:
            _logger.info("Skipping save of removed session %s", session.id)
            return False
        try:
            saved = await self.store.save(session)
        except Exception:
            _logger.exception("Failed to persist session %s to store", session.id)
        else:
            if saved:
                self._saved_at[session.id] = session.updated_at
            return saved
        if self.fallback_store is None:
            return False
        _logger.warning("Saving session %s to fallback store", session.id)
        try:
            saved = await self.fallback_store.save(session)
        except Exception:
            _logger.exception("Failed to persist session %s to fallback", session.id)
            return False
        if saved:
            self._saved_at[session.id] = session.updated_at
        return saved

    def _persist_in_background(self, session: Session) -> None:
        task = asyncio.create_task(self._persist(session))
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: "asyncio.Task[bool]") -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Background persistence failed", exc_info=exc)

    async def _touch(self, session_id: str) -> bool:
        try:
            return await self.store.touch(session_id)
        except Exception:
            _logger.exception("Failed to refresh TTL for session %s", session_id)
        if self.fallback_store is None:
            return False
        try:
            return await self.fallback_store.touch(session_id)
        except Exception:
            _logger.exception("Failed to touch fallback copy of %s", session_id)
            return False

    async def _delete_persisted(self, session_id: str) -> None:
        stores = [self.store]
        if self.fallback_store is not None:
            stores.append(self.fallback_store)
        for store in stores:
            try:
                await store.delete(session_id)
            except Exception:
                _logger.exception("Failed to delete persisted session %s", session_id)

    def _forget(self, session_id: str) -> None:
        self.registry.remove(session_id)
        self._saved_at.pop(session_id, None)

    def _mark_updated(self, session: Session) -> None:
        session.updated_at = self.clock()
        session.version += 1

    def _new_session_id(self) -> str:
        while True:
            candidate = "".join(
                self.rng.choice(_SESSION_ID_ALPHABET) for _ in range(_SESSION_ID_LENGTH)
            )
            if candidate not in self.registry:
                return candidate

    def _shuffled(self, labels: list[str]) -> list[str]:
        shuffled = list(labels)
        self.rng.shuffle(shuffled)
        return shuffled

    @staticmethod
    def _new_participant_id(session: Session) -> str:
        while True:
            candidate = uuid4().hex[:8]
            if candidate not in session.participants:
                return candidate


def generate_labels(count: int) -> list[str]:
    """Return draw labels ``A..Z, AA..AZ, BA..BZ, CA..CZ`` up to ``count``."""
    if count > MAX_LABELS:
        raise ValueError(f"at most {MAX_LABELS} labels are supported")
    labels: list[str] = []
    for index in range(count):
        if index < len(_LETTERS):
            labels.append(_LETTERS[index])
            continue
        tier, offset = divmod(index - len(_LETTERS), len(_LETTERS))
        labels.append(_LABEL_PREFIXES[tier] + _LETTERS[offset])
    return labels


def _all_ready(session: Session) -> bool:
    if len(session.participants) != session.participant_count:
        return False
    return all(participant.ready for participant in session.participants.values())


def _is_valid_count(value: object) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and 1 <= value <= MAX_PARTICIPANTS
    )


def _is_valid_position(position: object, participant_count: int) -> bool:
    return (
        isinstance(position, int)
        and not isinstance(position, bool)
        and 1 <= position <= participant_count
    )


def _join_failed(session_id: str, code: JoinFailure) -> SessionJoinError:
    _logger.info("Join failed: session=%s code=%s", session_id, code.value)
    return SessionJoinError(code)

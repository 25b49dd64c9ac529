"""Conversions between sessions, persisted records and client views."""

from datetime import datetime

from draw_sessions.domain.sessions import Participant, Session


def participant_view(participant: Participant) -> dict[str, object]:
    """Return the client-facing shape of a participant."""
    return {
        "id": participant.id,
        "name": participant.name,
        "position": participant.position,
        "ready": participant.ready,
        "result": participant.result,
    }


def session_to_record(session: Session) -> dict[str, object]:
    """Serialize a session into its persisted JSON-compatible record."""
    return {
        "id": session.id,
        "title": session.title,
        "participantCount": session.participant_count,
        "participants": [
            [participant_id, participant_view(participant)]
            for participant_id, participant in session.participants.items()
        ],
        "started": session.started,
        "results": [
            [participant_id, label] for participant_id, label in session.results.items()
        ],
        "selectedPositions": sorted(session.selected_positions),
        "createdAt": session.created_at.isoformat(),
        "updatedAt": session.updated_at.isoformat(),
        "version": session.version,
    }


def session_from_record(record: dict[str, object]) -> Session:
    """Rebuild a session from a persisted record."""
    participants: dict[str, Participant] = {}
    for participant_id, raw in record.get("participants", []):
        participants[participant_id] = Participant(
            id=raw.get("id", participant_id),
            name=raw["name"],
            position=int(raw["position"]),
            ready=bool(raw.get("ready", False)),
            result=raw.get("result"),
        )
    return Session(
        id=str(record["id"]),
        title=str(record.get("title") or ""),
        participant_count=int(record["participantCount"]),
        participants=participants,
        selected_positions={int(p) for p in record.get("selectedPositions", [])},
        started=bool(record.get("started", False)),
        results={
            participant_id: label for participant_id, label in record.get("results", [])
        },
        created_at=datetime.fromisoformat(str(record["createdAt"])),
        updated_at=datetime.fromisoformat(str(record["updatedAt"])),
        version=int(record.get("version", 1)),
    )


def session_view(session: Session) -> dict[str, object]:
    """Return the client-facing snapshot of a session."""
    return {
        "id": session.id,
        "title": session.title,
        "participantCount": session.participant_count,
        "started": session.started,
        "participants": [participant_view(p) for p in session.participants.values()],
        "selectedPositions": sorted(session.selected_positions),
        "results": dict(session.results) if session.started else None,
    }

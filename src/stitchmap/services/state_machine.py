"""Work session lifecycle transitions.

Each transition takes a ``SessionState`` and returns a new one, or raises
``InvalidInputError`` when the session's status does not allow it. Input
states are never modified, so a rejected transition leaves nothing changed.

    ACTIVE --pause--> PAUSED --resume--> ACTIVE
    ACTIVE --advance past the last stitch--> COMPLETED

Abandoning is not a transition here: the session row is simply deleted.
"""
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional

from stitchmap.errors import InvalidInputError
from stitchmap.models.base import utcnow
from stitchmap.models.session_models import SessionState, SessionStatus
from stitchmap.services.navigation import advance, first_position, retreat, stitch_count

# Operation -> statuses it may be applied in
ALLOWED_FROM: Dict[str, FrozenSet[SessionStatus]] = {
    "advance": frozenset({SessionStatus.ACTIVE}),
    "retreat": frozenset({SessionStatus.ACTIVE}),
    "pause": frozenset({SessionStatus.ACTIVE}),
    "resume": frozenset({SessionStatus.PAUSED}),
}


def _require(state: SessionState, operation: str) -> None:
    if state.status not in ALLOWED_FROM[operation]:
        raise InvalidInputError(f"cannot {operation} a {state.status.value} session")


def start_state(pattern: Any) -> SessionState:
    """State of a freshly started session: first stitch, active."""
    if stitch_count(pattern) == 0:
        raise InvalidInputError("pattern has no stitches to track")
    return SessionState(position=first_position(pattern), status=SessionStatus.ACTIVE)


def advance_state(state: SessionState, pattern: Any, now: Optional[datetime] = None) -> SessionState:
    """Move one stitch forward, completing the session after the last stitch.

    A completed session keeps pointing at the last stitch.
    """
    _require(state, "advance")
    position, completed = advance(state.position, pattern)
    if completed:
        return SessionState(
            position=state.position,
            status=SessionStatus.COMPLETED,
            completed_at=now or utcnow(),
        )
    return SessionState(position=position, status=state.status)


def retreat_state(state: SessionState, pattern: Any) -> SessionState:
    """Move one stitch backward; a no-op at the first stitch."""
    _require(state, "retreat")
    position, _ = retreat(state.position, pattern)
    return SessionState(position=position, status=state.status)


def pause_state(state: SessionState) -> SessionState:
    _require(state, "pause")
    return SessionState(position=state.position, status=SessionStatus.PAUSED)


def resume_state(state: SessionState) -> SessionState:
    _require(state, "resume")
    return SessionState(position=state.position, status=SessionStatus.ACTIVE)

"""Work session service: lifecycle, navigation and persistence."""
import logging
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stitchmap.config import settings
from stitchmap.errors import ConflictError, InvalidInputError, NotFoundError, UnauthorizedError
from stitchmap.models.base import as_utc, utcnow
from stitchmap.models.models import Pattern, WorkSession
from stitchmap.models.session_models import ProgressReport, SessionState, SessionStatus, StitchLookup
from stitchmap.monitoring import (
    rejected_transitions,
    session_conflicts,
    session_duration,
    sessions_abandoned,
    sessions_completed,
    sessions_started,
    stitch_steps,
)
from stitchmap.services.pattern_service import PatternService
from stitchmap.services.progress import build_stitch_lookup, compute_progress
from stitchmap.services.state_machine import (
    advance_state,
    pause_state,
    resume_state,
    retreat_state,
    start_state,
)

logger = logging.getLogger(__name__)

OPEN_STATUSES = (SessionStatus.ACTIVE, SessionStatus.PAUSED)


class WorkSessionService:
    """Service for tracking a user's progress through a pattern.

    Every mutating call applies exactly one transition to the session and
    commits it. Sessions carry a version number, so a row changed by another
    request after it was loaded is rejected with ConflictError instead of being
    silently overwritten.
    """

    def __init__(self, db: Session, pattern_service: Optional[PatternService] = None):
        """Initialize the service with a database session."""
        self.db = db
        self.patterns = pattern_service or PatternService(db)

    # Store

    def get_session(self, session_id: int) -> WorkSession:
        """Get a work session by its ID."""
        session = self.db.query(WorkSession).filter(WorkSession.id == session_id).first()
        if not session:
            raise NotFoundError(f"Work session {session_id} not found")
        return session

    def get_active_by_user(self, user_id: int) -> List[WorkSession]:
        """Get the user's active and paused sessions, most recently used first."""
        return (
            self.db.query(WorkSession)
            .filter(
                WorkSession.user_id == user_id,
                WorkSession.status.in_(OPEN_STATUSES),
            )
            .order_by(WorkSession.last_activity_at.desc(), WorkSession.id.desc())
            .all()
        )

    def get_completed_by_user(
        self, user_id: int, limit: Optional[int] = None, offset: int = 0
    ) -> List[WorkSession]:
        """Get one page of the user's completed sessions, newest first."""
        if limit is None:
            limit = settings.session.completed_page_size
        return (
            self.db.query(WorkSession)
            .filter(
                WorkSession.user_id == user_id,
                WorkSession.status == SessionStatus.COMPLETED,
            )
            .order_by(WorkSession.completed_at.desc(), WorkSession.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_completed_by_user(self, user_id: int) -> int:
        """Count the user's completed sessions."""
        return (
            self.db.query(WorkSession)
            .filter(
                WorkSession.user_id == user_id,
                WorkSession.status == SessionStatus.COMPLETED,
            )
            .count()
        )

    def _commit(self, session_id: Optional[int]) -> None:
        try:
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            session_conflicts.inc()
            logger.error(f"Work session {session_id} was modified concurrently: {e}")
            raise ConflictError(f"Work session {session_id} was modified by another request") from e
        except SQLAlchemyError:
            self.db.rollback()
            raise

    # Lifecycle

    def start(self, user_id: int, pattern_id: int) -> WorkSession:
        """Start a new active session at the first stitch of the pattern."""
        pattern = self.patterns.get_owned_pattern(user_id, pattern_id)
        try:
            state = start_state(pattern)
        except InvalidInputError as e:
            rejected_transitions.labels(operation="start").inc()
            logger.warning(f"Cannot start session on pattern {pattern_id}: {e}")
            raise

        now = utcnow()
        session = WorkSession(
            pattern_id=pattern.id,
            user_id=user_id,
            started_at=now,
            last_activity_at=now,
        )
        session.apply_state(state)
        self.db.add(session)
        self._commit(session.id)
        self.db.refresh(session)

        sessions_started.inc()
        logger.info(f"User {user_id} started work session {session.id} on pattern {pattern_id}")
        return session

    def _transition(
        self,
        session: WorkSession,
        operation: str,
        transition: Callable[[SessionState], SessionState],
    ) -> Tuple[SessionState, SessionState]:
        """Apply one transition, persist it and return the states before and after."""
        before = session.state
        try:
            after = transition(before)
        except InvalidInputError as e:
            rejected_transitions.labels(operation=operation).inc()
            logger.warning(f"Rejected {operation} on work session {session.id}: {e}")
            raise

        session.apply_state(after)
        session.last_activity_at = utcnow()
        self._commit(session.id)
        return before, after

    def advance(self, session: WorkSession, pattern: Pattern) -> bool:
        """Move forward one stitch. Returns True when this completes the pattern."""
        before, after = self._transition(
            session, "advance", lambda state: advance_state(state, pattern)
        )
        if after.is_completed:
            sessions_completed.inc()
            session_duration.observe(
                (as_utc(after.completed_at) - as_utc(session.started_at)).total_seconds()
            )
            logger.info(f"Work session {session.id} completed pattern {pattern.id}")
            return True

        stitch_steps.labels(direction="forward").inc()
        logger.debug(f"Work session {session.id} advanced {before.position} -> {after.position}")
        return False

    def retreat(self, session: WorkSession, pattern: Pattern) -> bool:
        """Move back one stitch. Returns False when already at the first stitch."""
        before, after = self._transition(
            session, "retreat", lambda state: retreat_state(state, pattern)
        )
        moved = after.position != before.position
        if moved:
            stitch_steps.labels(direction="backward").inc()
            logger.debug(f"Work session {session.id} retreated {before.position} -> {after.position}")
        return moved

    def pause(self, session: WorkSession) -> None:
        """Pause an active session."""
        self._transition(session, "pause", pause_state)
        logger.info(f"Work session {session.id} paused")

    def resume(self, session: WorkSession) -> None:
        """Resume a paused session."""
        self._transition(session, "resume", resume_state)
        logger.info(f"Work session {session.id} resumed")

    def abandon(self, session_id: int) -> None:
        """Delete a session permanently."""
        session = self.get_session(session_id)
        self.db.delete(session)
        self._commit(session_id)
        sessions_abandoned.inc()
        logger.info(f"Work session {session_id} abandoned")

    # Request flow

    def load_for_user(self, user_id: int, session_id: int) -> Tuple[WorkSession, Pattern]:
        """Load a session owned by the user together with its pattern."""
        session = self.get_session(session_id)
        if session.user_id != user_id:
            logger.warning(f"User {user_id} tried to access work session {session_id} of user {session.user_id}")
            raise UnauthorizedError(f"Work session {session_id} belongs to another user")
        return session, self.patterns.get_pattern(session.pattern_id)

    def progress(
        self,
        session: WorkSession,
        pattern: Pattern,
        stitch_lookup: Optional[StitchLookup] = None,
    ) -> ProgressReport:
        """Compute the progress report, using the pattern's own stitches by default."""
        if stitch_lookup is None:
            stitch_lookup = build_stitch_lookup(pattern)
        return compute_progress(session, pattern, stitch_lookup)

    def view(self, user_id: int, session_id: int, stitch_lookup: Optional[StitchLookup] = None) -> ProgressReport:
        """Progress report of a session without changing it."""
        session, pattern = self.load_for_user(user_id, session_id)
        return self.progress(session, pattern, stitch_lookup)

    def forward(self, user_id: int, session_id: int, stitch_lookup: Optional[StitchLookup] = None) -> ProgressReport:
        """Advance the user's session one stitch and report the new progress."""
        session, pattern = self.load_for_user(user_id, session_id)
        self.advance(session, pattern)
        return self.progress(session, pattern, stitch_lookup)

    def backward(self, user_id: int, session_id: int, stitch_lookup: Optional[StitchLookup] = None) -> ProgressReport:
        """Retreat the user's session one stitch and report the new progress."""
        session, pattern = self.load_for_user(user_id, session_id)
        self.retreat(session, pattern)
        return self.progress(session, pattern, stitch_lookup)

    def pause_for_user(self, user_id: int, session_id: int) -> ProgressReport:
        """Pause the user's session and report its progress."""
        session, pattern = self.load_for_user(user_id, session_id)
        self.pause(session)
        return self.progress(session, pattern)

    def resume_for_user(self, user_id: int, session_id: int) -> ProgressReport:
        """Resume the user's session and report its progress."""
        session, pattern = self.load_for_user(user_id, session_id)
        self.resume(session)
        return self.progress(session, pattern)

    def abandon_for_user(self, user_id: int, session_id: int) -> None:
        """Delete the user's session."""
        self.load_for_user(user_id, session_id)
        self.abandon(session_id)

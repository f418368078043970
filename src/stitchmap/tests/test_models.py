"""Tests for database models."""
import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stitchmap.models.base import get_db
from stitchmap.models.models import (
    InstructionGroup,
    Pattern,
    PatternStitch,
    StitchEntry,
    User,
    WorkSession,
)
from stitchmap.models.session_models import Position, SessionState, SessionStatus

TWO_GROUPS = [
    ("Round 1", 1, [("MR", 1, 1), ("sc", 6, 1)]),
    ("Round 2", 1, [("inc", 1, 6)]),
]


def test_user_creation(db: Session, user: User) -> None:
    """Test user creation."""
    assert user.id is not None
    assert user.email
    assert user.created_at is not None


def test_pattern_creation(db: Session, save_pattern) -> None:
    """Test a pattern is stored with ordered groups and entries."""
    pattern = save_pattern(TWO_GROUPS)

    assert pattern.id is not None
    assert [group.label for group in pattern.instruction_groups] == ["Round 1", "Round 2"]
    entries = pattern.instruction_groups[0].stitch_entries
    assert [entry.pattern_stitch.abbreviation for entry in entries] == ["MR", "sc"]
    assert entries[1].count == 6
    assert pattern.instruction_groups[1].stitch_entries[0].repeat_count == 6
    assert sorted(stitch.abbreviation for stitch in pattern.pattern_stitches) == ["MR", "inc", "sc"]


def test_groups_follow_sort_order(db: Session, user: User) -> None:
    """Test groups load in sort order, not insertion order."""
    pattern = Pattern(user_id=user.id, name="Swatch")
    pattern.instruction_groups = [
        InstructionGroup(label="Row 2", sort_order=1),
        InstructionGroup(label="Row 1", sort_order=0),
    ]
    db.add(pattern)
    db.commit()
    db.expire_all()

    loaded = db.query(Pattern).filter(Pattern.id == pattern.id).one()
    assert [group.label for group in loaded.instruction_groups] == ["Row 1", "Row 2"]
    assert loaded.instruction_groups[0].repeat_count == 1


def test_pattern_stitch_abbreviation_is_unique(db: Session, user: User) -> None:
    """Test a pattern cannot define the same abbreviation twice."""
    pattern = Pattern(user_id=user.id, name="Hat")
    pattern.pattern_stitches = [
        PatternStitch(abbreviation="sc", name="Single Crochet"),
        PatternStitch(abbreviation="sc", name="Single Crochet"),
    ]
    db.add(pattern)
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_work_session_defaults(db: Session, user: User, save_pattern) -> None:
    """Test a new work session starts at the zero position, active."""
    pattern = save_pattern(TWO_GROUPS)
    session = WorkSession(pattern_id=pattern.id, user_id=user.id)
    db.add(session)
    db.commit()
    db.refresh(session)

    assert session.status is SessionStatus.ACTIVE
    assert session.position == Position.zero()
    assert session.started_at is not None
    assert session.last_activity_at is not None
    assert session.completed_at is None
    assert session.version == 1


def test_work_session_state_round_trip(db: Session, user: User, save_pattern) -> None:
    """Test the position columns and state snapshot stay in step."""
    pattern = save_pattern(TWO_GROUPS)
    session = WorkSession(pattern_id=pattern.id, user_id=user.id)
    position = Position(group_index=1, entry_repeat=3)
    session.apply_state(SessionState(position=position, status=SessionStatus.PAUSED))
    db.add(session)
    db.commit()
    db.expire_all()

    loaded = db.query(WorkSession).filter(WorkSession.id == session.id).one()
    assert loaded.current_group_index == 1
    assert loaded.current_entry_repeat == 3
    assert loaded.state == SessionState(position=position, status=SessionStatus.PAUSED)


def test_version_increments_on_update(db: Session, user: User, save_pattern) -> None:
    """Test every update bumps the session version."""
    pattern = save_pattern(TWO_GROUPS)
    session = WorkSession(pattern_id=pattern.id, user_id=user.id)
    db.add(session)
    db.commit()

    session.status = SessionStatus.PAUSED
    db.commit()
    assert session.version == 2


def test_deleting_pattern_removes_its_sessions(db: Session, user: User, save_pattern) -> None:
    """Test sessions do not outlive their pattern."""
    pattern = save_pattern(TWO_GROUPS)
    db.add(WorkSession(pattern_id=pattern.id, user_id=user.id))
    db.commit()

    db.delete(pattern)
    db.commit()

    assert db.query(WorkSession).count() == 0
    assert db.query(StitchEntry).count() == 0
    assert db.query(InstructionGroup).count() == 0


def test_get_db(db: Session, user: User) -> None:
    """Test the session generator yields a working session."""
    sessions = get_db()
    other = next(sessions)
    try:
        assert other is not db
        assert other.query(User).filter(User.id == user.id).one().email == user.email
    finally:
        sessions.close()


if __name__ == "__main__":
    pytest.main([__file__])

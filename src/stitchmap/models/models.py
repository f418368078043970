"""Database models for patterns and work sessions."""
from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from stitchmap.models.base import Base, TimestampMixin, utcnow
from stitchmap.models.session_models import Position, SessionState, SessionStatus


class User(Base, TimestampMixin):
    """User model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    display_name = Column(String, nullable=False)

    # Relationships
    patterns = relationship("Pattern", back_populates="user", cascade="all, delete", passive_deletes=True)
    work_sessions = relationship("WorkSession", back_populates="user", cascade="all, delete", passive_deletes=True)


class Pattern(Base, TimestampMixin):
    """Crochet pattern model."""

    __tablename__ = "patterns"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    pattern_type = Column(String, nullable=False, default="round")  # "round" or "row"
    hook_size = Column(String, default="")
    yarn_weight = Column(String, default="")
    difficulty = Column(String, default="")

    # Relationships
    user = relationship("User", back_populates="patterns")
    instruction_groups = relationship(
        "InstructionGroup",
        back_populates="pattern",
        order_by="InstructionGroup.sort_order",
        cascade="all, delete-orphan",
    )
    pattern_stitches = relationship(
        "PatternStitch", back_populates="pattern", cascade="all, delete-orphan"
    )
    work_sessions = relationship("WorkSession", back_populates="pattern", cascade="all, delete", passive_deletes=True)


class PatternStitch(Base):
    """Pattern-owned copy of a stitch definition."""

    __tablename__ = "pattern_stitches"
    __table_args__ = (UniqueConstraint("pattern_id", "abbreviation"),)

    id = Column(Integer, primary_key=True)
    pattern_id = Column(Integer, ForeignKey("patterns.id", ondelete="CASCADE"), nullable=False, index=True)
    abbreviation = Column(String, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    category = Column(String, default="basic")

    # Relationships
    pattern = relationship("Pattern", back_populates="pattern_stitches")


class InstructionGroup(Base):
    """Ordered instruction block of a pattern, itself repeated."""

    __tablename__ = "instruction_groups"

    id = Column(Integer, primary_key=True)
    pattern_id = Column(Integer, ForeignKey("patterns.id", ondelete="CASCADE"), nullable=False, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    label = Column(String, nullable=False, default="")
    repeat_count = Column(Integer, nullable=False, default=1)
    expected_count = Column(Integer, nullable=True)
    notes = Column(Text, default="")

    # Relationships
    pattern = relationship("Pattern", back_populates="instruction_groups")
    stitch_entries = relationship(
        "StitchEntry",
        back_populates="group",
        order_by="StitchEntry.sort_order",
        cascade="all, delete-orphan",
    )


class StitchEntry(Base):
    """One stitch instruction inside a group, e.g. "6 sc" or "inc x3"."""

    __tablename__ = "stitch_entries"

    id = Column(Integer, primary_key=True)
    instruction_group_id = Column(
        Integer, ForeignKey("instruction_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sort_order = Column(Integer, nullable=False, default=0)
    pattern_stitch_id = Column(Integer, ForeignKey("pattern_stitches.id"), nullable=False)
    count = Column(Integer, nullable=False, default=1)  # stitches per repeat
    into_stitch = Column(String, default="")
    repeat_count = Column(Integer, nullable=False, default=1)

    # Relationships
    group = relationship("InstructionGroup", back_populates="stitch_entries")
    pattern_stitch = relationship("PatternStitch")


class WorkSession(Base):
    """A user's live progress through one pattern."""

    __tablename__ = "work_sessions"

    id = Column(Integer, primary_key=True)
    pattern_id = Column(Integer, ForeignKey("patterns.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    current_group_index = Column(Integer, nullable=False, default=0)
    current_group_repeat = Column(Integer, nullable=False, default=0)
    current_entry_index = Column(Integer, nullable=False, default=0)
    current_entry_repeat = Column(Integer, nullable=False, default=0)
    current_stitch_ordinal = Column(Integer, nullable=False, default=0)
    status = Column(
        Enum(SessionStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=SessionStatus.ACTIVE,
        index=True,
    )
    started_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_activity_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    # Relationships
    user = relationship("User", back_populates="work_sessions")
    pattern = relationship("Pattern", back_populates="work_sessions")

    __mapper_args__ = {"version_id_col": version}

    @property
    def position(self) -> Position:
        return Position(
            group_index=self.current_group_index or 0,
            group_repeat=self.current_group_repeat or 0,
            entry_index=self.current_entry_index or 0,
            entry_repeat=self.current_entry_repeat or 0,
            stitch_ordinal=self.current_stitch_ordinal or 0,
        )

    @position.setter
    def position(self, position: Position) -> None:
        self.current_group_index = position.group_index
        self.current_group_repeat = position.group_repeat
        self.current_entry_index = position.entry_index
        self.current_entry_repeat = position.entry_repeat
        self.current_stitch_ordinal = position.stitch_ordinal

    @property
    def state(self) -> SessionState:
        """Snapshot of the navigation state."""
        return SessionState(position=self.position, status=self.status, completed_at=self.completed_at)

    def apply_state(self, state: SessionState) -> None:
        """Copy a new navigation state onto the row."""
        self.position = state.position
        self.status = state.status
        self.completed_at = state.completed_at

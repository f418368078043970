"""Test configuration."""
import os
from typing import Generator

import pytest
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

# Import after environment setup
from sqlalchemy.orm import Session

from stitchmap.models.base import SessionLocal, drop_db, init_db
from stitchmap.models.models import (
    InstructionGroup,
    Pattern,
    PatternStitch,
    StitchEntry,
    User,
)

fake = Faker()

STITCH_NAMES = {
    "sc": "Single Crochet",
    "inc": "Increase",
    "dec": "Decrease",
    "MR": "Magic Ring",
    "ch": "Chain",
}


def build_pattern(groups, user_id=None, name="Test pattern", assign_ids=True) -> Pattern:
    """Build an unsaved pattern.

    ``groups`` is a list of ``(label, repeat_count, entries)`` where entries
    are ``(abbreviation, count, repeat_count)`` tuples. With ``assign_ids``
    stitches are numbered 1, 2, ... in order of first appearance so the
    pattern can be used without a database.
    """
    stitches = {}
    pattern = Pattern(user_id=user_id, name=name, pattern_type="round")
    for group_order, (label, repeat_count, entries) in enumerate(groups):
        group = InstructionGroup(label=label, repeat_count=repeat_count, sort_order=group_order)
        for entry_order, (abbreviation, count, entry_repeat_count) in enumerate(entries):
            if abbreviation not in stitches:
                stitches[abbreviation] = PatternStitch(
                    id=len(stitches) + 1 if assign_ids else None,
                    abbreviation=abbreviation,
                    name=STITCH_NAMES.get(abbreviation, abbreviation),
                )
            stitch = stitches[abbreviation]
            group.stitch_entries.append(
                StitchEntry(
                    sort_order=entry_order,
                    pattern_stitch=stitch,
                    pattern_stitch_id=stitch.id,
                    count=count,
                    repeat_count=entry_repeat_count,
                )
            )
        pattern.instruction_groups.append(group)
    pattern.pattern_stitches.extend(stitches.values())
    return pattern


@pytest.fixture
def make_pattern():
    """Factory for unsaved patterns, see ``build_pattern``."""
    return build_pattern


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_db()


def _create_user(db: Session) -> User:
    user = User(email=fake.unique.email(), display_name=fake.name())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db: Session) -> User:
    """Create a test user."""
    return _create_user(db)


@pytest.fixture
def other_user(db: Session) -> User:
    """Create a second test user."""
    return _create_user(db)


@pytest.fixture
def save_pattern(db: Session, user: User):
    """Persist a pattern built from ``build_pattern`` groups, owned by the test user by default."""

    def _save(groups, owner: User = None) -> Pattern:
        owner = owner or user
        pattern = build_pattern(
            groups, user_id=owner.id, name=fake.sentence(nb_words=3), assign_ids=False
        )
        db.add(pattern)
        db.commit()
        db.refresh(pattern)
        return pattern

    return _save

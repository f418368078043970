"""Read-only access to patterns for the work session engine."""
import logging
from typing import Dict

from sqlalchemy.orm import Session

from stitchmap.errors import NotFoundError
from stitchmap.models.models import Pattern
from stitchmap.models.session_models import StitchInfo
from stitchmap.services.progress import build_stitch_lookup

logger = logging.getLogger(__name__)


class PatternService:
    """Service for loading patterns and their stitch definitions."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_pattern(self, pattern_id: int) -> Pattern:
        """Get a pattern by its ID."""
        pattern = self.db.query(Pattern).filter(Pattern.id == pattern_id).first()
        if not pattern:
            raise NotFoundError(f"Pattern {pattern_id} not found")
        return pattern

    def get_owned_pattern(self, user_id: int, pattern_id: int) -> Pattern:
        """Get a pattern that belongs to the user.

        Someone else's pattern is reported as missing so its existence is not
        revealed.
        """
        pattern = self.get_pattern(pattern_id)
        if pattern.user_id != user_id:
            logger.warning(f"User {user_id} asked for pattern {pattern_id} owned by user {pattern.user_id}")
            raise NotFoundError(f"Pattern {pattern_id} not found")
        return pattern

    def get_stitch_lookup(self, pattern_id: int) -> Dict[int, StitchInfo]:
        """Get the stitch display lookup for a pattern."""
        return build_stitch_lookup(self.get_pattern(pattern_id))

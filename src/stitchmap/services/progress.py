"""Progress reports for work sessions.

``compute_progress`` is a pure function of the session state, the pattern and
a stitch lookup. It never mutates the session: previous and next stitches are
found by stepping copies of the position.
"""
from typing import Any, Dict, List, Optional, Union

from stitchmap.config import settings
from stitchmap.errors import InvalidInputError
from stitchmap.models.session_models import (
    GroupProgress,
    GroupStatus,
    Position,
    ProgressReport,
    SessionState,
    StitchDisplay,
    StitchInfo,
    StitchLookup,
)
from stitchmap.services.navigation import (
    advance,
    check_position,
    completed_in_group,
    entry_at,
    group_stitch_count,
    position_rank,
    retreat,
    stitch_count,
)


def build_stitch_lookup(pattern: Any) -> Dict[int, StitchInfo]:
    """Lookup of the pattern's own stitch definitions by id."""
    return {
        stitch.id: StitchInfo(abbreviation=stitch.abbreviation, name=stitch.name)
        for stitch in pattern.pattern_stitches
    }


def group_repeat_info(group: Any, group_repeat: int) -> str:
    """Render "repeat i of n" for repeated groups, empty when the group runs once."""
    if group.repeat_count > 1:
        return f"repeat {group_repeat + 1} of {group.repeat_count}"
    return ""


def _display(entry: Optional[Any], stitch_lookup: StitchLookup) -> StitchDisplay:
    if entry is None:
        return StitchDisplay.unresolved()
    info = stitch_lookup.get(entry.pattern_stitch_id)
    if info is None:
        return StitchDisplay.unresolved()
    return StitchDisplay.of(info)


def _is_valid(position: Position, pattern: Any) -> bool:
    try:
        check_position(position, pattern)
    except InvalidInputError:
        return False
    return True


def _previous_display(state: SessionState, pattern: Any, stitch_lookup: StitchLookup) -> StitchDisplay:
    if state.is_completed:
        # The session rests on the last stitch, which has been worked
        return _display(entry_at(state.position, pattern), stitch_lookup)
    previous, moved = retreat(state.position, pattern)
    if not moved:
        return StitchDisplay.none()
    return _display(entry_at(previous, pattern), stitch_lookup)


def _next_display(state: SessionState, pattern: Any, stitch_lookup: StitchLookup, end_marker: str) -> StitchDisplay:
    if state.is_completed:
        return StitchDisplay.end(end_marker)
    following, completes = advance(state.position, pattern)
    if completes:
        return StitchDisplay.end(end_marker)
    return _display(entry_at(following, pattern), stitch_lookup)


def _group_breakdown(state: SessionState, pattern: Any) -> List[GroupProgress]:
    position = state.position
    groups = []
    for gi, group in enumerate(pattern.instruction_groups):
        total_in_group = group_stitch_count(group) * group.repeat_count
        if state.is_completed or gi < position.group_index:
            status, current_repeat, done = GroupStatus.COMPLETED, 0, total_in_group
        elif gi == position.group_index:
            status = GroupStatus.IN_PROGRESS
            current_repeat = position.group_repeat + 1
            done = max(0, min(completed_in_group(position, group), total_in_group))
        else:
            status, current_repeat, done = GroupStatus.NOT_STARTED, 0, 0

        groups.append(
            GroupProgress(
                label=group.label,
                repeat_count=group.repeat_count,
                current_repeat=current_repeat,
                status=status,
                completed_in_group=done,
                total_in_group=total_in_group,
            )
        )
    return groups


def compute_progress(
    session: Union[SessionState, Any],
    pattern: Any,
    stitch_lookup: StitchLookup,
    end_marker: Optional[str] = None,
) -> ProgressReport:
    """Build the progress report for a session.

    Args:
        session: A ``SessionState`` or a ``WorkSession`` row.
        pattern: The pattern the session tracks.
        stitch_lookup: Stitch id -> display names.
        end_marker: Text shown when the next stitch would finish the pattern.
            Defaults to the configured marker.
    """
    state = session if isinstance(session, SessionState) else session.state
    position = state.position
    end_marker = end_marker or settings.session.end_marker
    groups = pattern.instruction_groups

    total = stitch_count(pattern)
    if state.is_completed:
        completed = total
    else:
        completed = max(0, min(position_rank(position, pattern), total))
    percentage = completed / total * 100 if total > 0 else 0.0

    group_label = ""
    repeat_info = ""
    if 0 <= position.group_index < len(groups):
        group = groups[position.group_index]
        group_label = group.label
        repeat_info = group_repeat_info(group, position.group_repeat)

    if state.is_completed:
        current = StitchDisplay.end(end_marker)
    else:
        current = _display(entry_at(position, pattern), stitch_lookup)

    # A position the pattern no longer contains has no neighbours
    if _is_valid(position, pattern):
        previous = _previous_display(state, pattern, stitch_lookup)
        following = _next_display(state, pattern, stitch_lookup, end_marker)
    else:
        previous = StitchDisplay.unresolved()
        following = StitchDisplay.unresolved()

    return ProgressReport(
        status=state.status,
        completed_stitches=completed,
        total_stitches=total,
        percentage=percentage,
        group_label=group_label,
        group_repeat_info=repeat_info,
        current=current,
        previous=previous,
        next=following,
        groups=_group_breakdown(state, pattern),
    )

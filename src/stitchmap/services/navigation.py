"""Stitch-by-stitch navigation through a pattern.

A position inside a pattern is a five-level odometer::

    group_index > group_repeat > entry_index > entry_repeat > stitch_ordinal

Each digit has its own radix taken from the pattern: the number of groups, the
group's ``repeat_count``, the number of entries in the group, the entry's
``repeat_count`` and the entry's ``count``. Advancing carries into the next
outer digit on overflow, retreating borrows from it on underflow.

The functions here are pure: they never mutate the position (positions are
frozen) or the pattern, they only return new positions. Patterns are read
through their ``instruction_groups`` / ``stitch_entries`` attributes, so ORM
rows and plain objects work alike.
"""
from dataclasses import replace
from typing import Any, Optional, Sequence, Tuple

from stitchmap.errors import InvalidInputError
from stitchmap.models.session_models import Position


def group_stitch_count(group: Any) -> int:
    """Stitches in a single repeat of a group."""
    return sum(entry.count * entry.repeat_count for entry in group.stitch_entries)


def stitch_count(pattern: Any) -> int:
    """Total stitches in a pattern, counting entry and group repeats."""
    return sum(group_stitch_count(group) * group.repeat_count for group in pattern.instruction_groups)


def _has_stitches(group: Any) -> bool:
    return group.repeat_count > 0 and group_stitch_count(group) > 0


def _next_group_with_stitches(groups: Sequence[Any], start: int) -> Optional[int]:
    for gi in range(start, len(groups)):
        if _has_stitches(groups[gi]):
            return gi
    return None


def _previous_group_with_stitches(groups: Sequence[Any], start: int) -> Optional[int]:
    for gi in range(start, -1, -1):
        if _has_stitches(groups[gi]):
            return gi
    return None


def _last_stitch_of_repeat(groups: Sequence[Any], group_index: int, group_repeat: int) -> Position:
    entries = groups[group_index].stitch_entries
    last_entry = entries[-1]
    return Position(
        group_index=group_index,
        group_repeat=group_repeat,
        entry_index=len(entries) - 1,
        entry_repeat=last_entry.repeat_count - 1,
        stitch_ordinal=last_entry.count - 1,
    )


def first_position(pattern: Any) -> Position:
    """Position of the first stitch of the pattern.

    This is ``Position.zero()`` unless leading groups have no stitches.
    """
    gi = _next_group_with_stitches(pattern.instruction_groups, 0)
    if gi is None:
        raise InvalidInputError("pattern has no stitches")
    return Position(group_index=gi)


def last_position(pattern: Any) -> Position:
    """Position of the last stitch of the pattern."""
    groups = pattern.instruction_groups
    gi = _previous_group_with_stitches(groups, len(groups) - 1)
    if gi is None:
        raise InvalidInputError("pattern has no stitches")
    return _last_stitch_of_repeat(groups, gi, groups[gi].repeat_count - 1)


def check_position(position: Position, pattern: Any) -> None:
    """Raise InvalidInputError unless every digit is within its radix."""
    groups = pattern.instruction_groups
    valid = 0 <= position.group_index < len(groups)
    if valid:
        group = groups[position.group_index]
        entries = group.stitch_entries
        valid = (
            0 <= position.group_repeat < group.repeat_count
            and 0 <= position.entry_index < len(entries)
        )
        if valid:
            entry = entries[position.entry_index]
            valid = (
                0 <= position.entry_repeat < entry.repeat_count
                and 0 <= position.stitch_ordinal < entry.count
            )
    if not valid:
        raise InvalidInputError(f"{position} is outside the pattern")


def entry_at(position: Position, pattern: Any) -> Optional[Any]:
    """The stitch entry a position points into, or None if it points nowhere."""
    groups = pattern.instruction_groups
    if not 0 <= position.group_index < len(groups):
        return None
    entries = groups[position.group_index].stitch_entries
    if not 0 <= position.entry_index < len(entries):
        return None
    return entries[position.entry_index]


def advance(position: Position, pattern: Any) -> Tuple[Position, bool]:
    """Step one stitch forward.

    Returns ``(new_position, completed)``. When the position is already the
    last stitch, ``completed`` is True and the position is returned unchanged;
    the odometer never represents a position past the end.
    """
    check_position(position, pattern)
    groups = pattern.instruction_groups
    group = groups[position.group_index]
    entries = group.stitch_entries
    entry = entries[position.entry_index]

    stitch_ordinal = position.stitch_ordinal + 1
    if stitch_ordinal < entry.count:
        return replace(position, stitch_ordinal=stitch_ordinal), False

    entry_repeat = position.entry_repeat + 1
    if entry_repeat < entry.repeat_count:
        return replace(position, entry_repeat=entry_repeat, stitch_ordinal=0), False

    entry_index = position.entry_index + 1
    if entry_index < len(entries):
        return replace(position, entry_index=entry_index, entry_repeat=0, stitch_ordinal=0), False

    group_repeat = position.group_repeat + 1
    if group_repeat < group.repeat_count:
        return Position(group_index=position.group_index, group_repeat=group_repeat), False

    group_index = _next_group_with_stitches(groups, position.group_index + 1)
    if group_index is None:
        return position, True
    return Position(group_index=group_index), False


def retreat(position: Position, pattern: Any) -> Tuple[Position, bool]:
    """Step one stitch backward.

    Returns ``(new_position, moved)``. At the first stitch of the pattern this
    is a no-op: the position comes back unchanged with ``moved`` False.
    """
    check_position(position, pattern)
    groups = pattern.instruction_groups

    if position.stitch_ordinal > 0:
        return replace(position, stitch_ordinal=position.stitch_ordinal - 1), True

    entries = groups[position.group_index].stitch_entries
    if position.entry_repeat > 0:
        entry = entries[position.entry_index]
        return replace(
            position,
            entry_repeat=position.entry_repeat - 1,
            stitch_ordinal=entry.count - 1,
        ), True

    if position.entry_index > 0:
        entry = entries[position.entry_index - 1]
        return replace(
            position,
            entry_index=position.entry_index - 1,
            entry_repeat=entry.repeat_count - 1,
            stitch_ordinal=entry.count - 1,
        ), True

    if position.group_repeat > 0:
        return _last_stitch_of_repeat(groups, position.group_index, position.group_repeat - 1), True

    group_index = _previous_group_with_stitches(groups, position.group_index - 1)
    if group_index is None:
        return position, False
    return _last_stitch_of_repeat(groups, group_index, groups[group_index].repeat_count - 1), True


def _rank_in_repeat(group: Any, position: Position) -> int:
    """Stitches before the position within its current group repeat."""
    rank = 0
    for ei, entry in enumerate(group.stitch_entries):
        if ei < position.entry_index:
            rank += entry.count * entry.repeat_count
        elif ei == position.entry_index:
            rank += entry.count * position.entry_repeat + position.stitch_ordinal
            break
    return rank


def position_rank(position: Position, pattern: Any) -> int:
    """Number of stitches strictly before the position in the flattened pattern."""
    rank = 0
    for gi, group in enumerate(pattern.instruction_groups):
        per_repeat = group_stitch_count(group)
        if gi < position.group_index:
            rank += per_repeat * group.repeat_count
            continue
        if gi > position.group_index:
            break
        rank += per_repeat * position.group_repeat + _rank_in_repeat(group, position)
    return rank


def completed_in_group(position: Position, group: Any) -> int:
    """Stitches already worked in the group the position is in."""
    return group_stitch_count(group) * position.group_repeat + _rank_in_repeat(group, position)

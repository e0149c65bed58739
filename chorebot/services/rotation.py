# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Rotation cursor arithmetic. Pure functions, no state access.
"""

from typing import Optional

from chorebot.models.domain import RotationMember


def next_index(current_index: int, size: int) -> int:
    """Cursor position after a normal turn completion."""
    if size <= 0:
        return 0
    return (current_index + 1) % size


def clamp_index(current_index: int, size: int) -> int:
    """Keep the cursor valid after a removal: out of range resets to 0."""
    if size <= 0 or current_index >= size or current_index < 0:
        return 0
    return current_index


def position_of(members: list[RotationMember], member_id: str) -> Optional[int]:
    for index, member in enumerate(members):
        if member.id == member_id:
            return index
    return None


def swap_positions(
    members: list[RotationMember], first_id: str, second_id: str
) -> Optional[tuple[int, int]]:
    """
    Exchange two members in place, looked up by identity.
    Returns the two positions, or None if either member is missing.
    """
    first = position_of(members, first_id)
    second = position_of(members, second_id)
    if first is None or second is None:
        return None
    members[first], members[second] = members[second], members[first]
    return first, second


def upcoming(
    members: list[RotationMember], current_index: int, count: int
) -> list[RotationMember]:
    """The next ``count`` members starting at the cursor, wrapping around."""
    if not members:
        return []
    return [members[(current_index + i) % len(members)] for i in range(count)]

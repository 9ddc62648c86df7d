"""
Picker rotation for StatClash rounds.

Round-robin over the active players only. The active set is recomputed on
every call, so players who became winners drop out of the cycle at once.
"""

from typing import Optional

from src.core.room import Room


def next_picker(room: Room) -> Optional[str]:
    """
    Choose who picks the stat for the next round.

    Args:
        room: Room whose roster and winners drive the rotation

    Returns:
        Session id of the next picker, or None if nobody can pick
    """
    active_players = room.get_active_players()
    if not active_players:
        return None

    current = room.current_picker
    if current is None or current in room.winners:
        return active_players[0]

    # Picker left the room since their turn
    if current not in active_players:
        return active_players[0]

    index = active_players.index(current)
    return active_players[(index + 1) % len(active_players)]

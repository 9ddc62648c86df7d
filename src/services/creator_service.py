"""
Creator lifecycle for StatClash rooms.

Exactly one roster member holds the creator role while the room is not
empty. These helpers move the role around and let the creator remove other
players. Callers hold the room lock.
"""

import logging
from typing import Optional

from src.core.models import Player
from src.core.room import Room

logger = logging.getLogger(__name__)


def transfer_creator(room: Room, current_id: str, target_id: str) -> bool:
    """
    Hand the creator role from current_id to target_id.

    Returns:
        True if the role moved, False if the request was not allowed
    """
    if room.creator != current_id or current_id == target_id:
        return False
    target = room.get_player(target_id)
    if target is None:
        return False

    room.players[current_id].is_creator = False
    target.is_creator = True
    room.creator = target_id
    logger.info(f"Room {room.code}: creator role moved to {target.name}")
    return True


def assign_new_creator(room: Room) -> Optional[str]:
    """
    Give the creator role to the first remaining player if nobody holds it.

    Returns:
        The new creator's session id, or None when nothing changed
    """
    if room.is_empty:
        room.creator = None
        return None
    if room.creator is not None and room.has_player(room.creator):
        return None

    new_creator_id = next(iter(room.players))
    for session_id, player in room.players.items():
        player.is_creator = session_id == new_creator_id
    room.creator = new_creator_id
    logger.info(f"Room {room.code}: {room.players[new_creator_id].name} is now creator")
    return new_creator_id


def kick(room: Room, requester_id: str, target_id: str) -> Optional[Player]:
    """
    Remove target_id from the room on the creator's behalf.

    Returns:
        The removed Player, or None if the kick was not allowed
    """
    if requester_id != room.creator or requester_id == target_id:
        return None
    if not room.has_player(target_id):
        return None

    removed = room.remove_player(target_id)
    assign_new_creator(room)
    logger.info(f"Room {room.code}: {removed.name} was kicked")
    return removed

"""
Room state for StatClash

A Room owns its roster, its settings and its round state. Name reservations
are scoped to the room; the same display name may be used in another room at
the same time. Callers serialize access through the room's lock
(see ConcurrencyControlService); nothing in here locks on its own.
"""

from collections import OrderedDict
from typing import List, Optional, Set

from src.core.errors import NameConflict
from src.core.game_phases import RoomPhase
from src.core.models import Player, RoomSettings


# Upper bound on winners for rooms with more than two players
MAX_WINNERS_CAP = 3


def clamp_max_winners(requested: int, roster_size: int) -> int:
    """Clamp a requested winner count against the current roster size."""
    if roster_size <= 2:
        return 1
    return max(1, min(requested, roster_size - 1, MAX_WINNERS_CAP))


class Room:
    """One isolated game session: roster, settings and round state."""

    def __init__(self, code: str, settings: Optional[RoomSettings] = None):
        self.code = code
        self.players: "OrderedDict[str, Player]" = OrderedDict()
        self.settings = settings or RoomSettings()
        self.requested_max_winners = self.settings.max_winners
        self.current_round = 1
        self.current_picker: Optional[str] = None
        self.winners: List[str] = []
        self.creator: Optional[str] = None
        self.in_tie_breaker = False
        self.tie_break_players: List[str] = []
        self.last_selected_stat: Optional[str] = None
        self.reserved_names: Set[str] = set()
        self.phase = RoomPhase.LOBBY
        self._revalidate_max_winners()

    # Roster

    def add_player(self, session_id: str, name: str, is_creator: bool = False) -> Player:
        """
        Add a player under the given session id.

        Raises:
            NameConflict: If the name (case-insensitive) is already reserved here
        """
        key = name.lower()
        if key in self.reserved_names:
            raise NameConflict(name, self.code)

        player = Player(session_id=session_id, name=name, is_creator=is_creator)
        self.reserved_names.add(key)
        self.players[session_id] = player
        if is_creator:
            self.creator = session_id
        self._revalidate_max_winners()
        return player

    def remove_player(self, session_id: str) -> Optional[Player]:
        """Release the player's name and drop them from the room. No-op if absent."""
        player = self.players.pop(session_id, None)
        if player is None:
            return None

        self.reserved_names.discard(player.name.lower())
        if session_id in self.winners:
            self.winners.remove(session_id)
        if session_id in self.tie_break_players:
            self.tie_break_players.remove(session_id)
        if self.creator == session_id:
            self.creator = None
        self._revalidate_max_winners()
        return player

    def replace_session(self, old_session_id: str, new_session_id: str) -> Player:
        """
        Move a roster entry to a new session id, keeping score, card and creator flag.

        The name stays reserved exactly once throughout. Picker, creator,
        winner and tie-break references follow the player to the new id and
        the entry keeps its place in join order.
        """
        old_player = self.players[old_session_id]
        new_player = Player(
            session_id=new_session_id,
            name=old_player.name,
            score=old_player.score,
            current_card=old_player.current_card,
            is_creator=old_player.is_creator
        )

        self.players = OrderedDict(
            (new_session_id, new_player) if sid == old_session_id else (sid, player)
            for sid, player in self.players.items()
        )
        self.winners = [new_session_id if sid == old_session_id else sid for sid in self.winners]
        self.tie_break_players = [
            new_session_id if sid == old_session_id else sid for sid in self.tie_break_players
        ]
        if self.creator == old_session_id:
            self.creator = new_session_id
        if self.current_picker == old_session_id:
            self.current_picker = new_session_id
        return new_player

    def clear_all_names(self) -> None:
        """Release every reserved name without touching the roster."""
        self.reserved_names.clear()

    def reserve_roster_names(self) -> None:
        """Reserve the names of everyone currently seated."""
        self.reserved_names = {player.name.lower() for player in self.players.values()}

    def find_player_by_name(self, name: str) -> Optional[Player]:
        key = name.lower()
        for player in self.players.values():
            if player.name.lower() == key:
                return player
        return None

    def is_name_reserved(self, name: str) -> bool:
        return name.lower() in self.reserved_names

    def has_player(self, session_id: str) -> bool:
        return session_id in self.players

    def get_player(self, session_id: str) -> Optional[Player]:
        return self.players.get(session_id)

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return not self.players

    def get_active_players(self) -> List[str]:
        """Roster members not yet in winners, in join order."""
        return [sid for sid in self.players if sid not in self.winners]

    def is_winner(self, session_id: str) -> bool:
        return session_id in self.winners

    def add_winner(self, session_id: str) -> bool:
        """Append to winners once. Returns False if already there."""
        if session_id in self.winners:
            return False
        self.winners.append(session_id)
        return True

    # Settings

    def update_settings(self, rounds_to_win: Optional[int] = None, max_winners: Optional[int] = None) -> RoomSettings:
        """Merge new values into the settings and re-clamp max_winners."""
        if rounds_to_win is not None:
            self.settings.rounds_to_win = rounds_to_win
        if max_winners is not None:
            self.requested_max_winners = max_winners
        self._revalidate_max_winners()
        return self.settings

    def _revalidate_max_winners(self) -> None:
        self.settings.max_winners = clamp_max_winners(self.requested_max_winners, len(self.players))

    # Game state

    def reset_game(self, clear_cards: bool = True) -> None:
        """Reset round counter, winners, tie-break state and scores for a new game."""
        self.current_round = 1
        self.winners = []
        self.in_tie_breaker = False
        self.tie_break_players = []
        self.last_selected_stat = None
        for player in self.players.values():
            player.score = 0
            if clear_cards:
                player.current_card = None
        self.reserve_roster_names()

    @property
    def game_ended(self) -> bool:
        return len(self.winners) >= self.settings.max_winners

    def __repr__(self) -> str:
        return f"Room(code={self.code!r}, players={len(self.players)}, phase={self.phase.value})"

"""
Data structures for StatClash rooms and rounds.

Cards come from the card provider and are immutable once dealt. Players are
owned by their Room. The view classes are the only shapes that leave the
process: round_started and round_complete carry different player views.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from src.core.errors import InvalidStat

STAT_NAMES = ('hp', 'attack', 'defense', 'speed')


@dataclass(frozen=True)
class Card:
    """A creature card with the numeric attributes players compare."""
    id: int
    name: str
    image: Optional[str]
    hp: int
    stats: Mapping[str, int]
    type: Optional[str] = None

    def stat_value(self, stat_name: str) -> int:
        """Read a comparable attribute; hp lives on the card, the rest in stats."""
        if stat_name == 'hp':
            return self.hp
        if stat_name not in STAT_NAMES or stat_name not in self.stats:
            raise InvalidStat(stat_name)
        return self.stats[stat_name]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'image': self.image,
            'hp': self.hp,
            'stats': dict(self.stats),
            'type': self.type
        }


@dataclass
class Player:
    session_id: str
    name: str
    score: int = 0
    current_card: Optional[Card] = None
    is_creator: bool = False


@dataclass
class RoomSettings:
    rounds_to_win: int = 3
    max_winners: int = 1

    def to_dict(self) -> Dict[str, int]:
        return {'rounds_to_win': self.rounds_to_win, 'max_winners': self.max_winners}


@dataclass
class RosterEntryView:
    """Lobby-level projection of a player (no card information)."""
    id: str
    name: str
    score: int
    is_creator: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'is_creator': self.is_creator
        }


@dataclass
class PlayerResultView:
    """Player projection broadcast with round_complete."""
    id: str
    name: str
    card: Optional[Card]
    score: int
    is_picker: bool
    is_creator: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'card': self.card.to_dict() if self.card else None,
            'score': self.score,
            'is_picker': self.is_picker,
            'is_creator': self.is_creator
        }


@dataclass
class PlayerRoundView(PlayerResultView):
    """Player projection broadcast with round_started; adds winner status."""
    is_winner: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['is_winner'] = self.is_winner
        return data


@dataclass
class RoundResult:
    """Outcome of one stat comparison."""
    round_winners: List[str]
    game_winners: List[str]
    players: List[PlayerResultView]
    game_ended: bool
    stat: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'winners': list(self.round_winners),
            'game_winners': list(self.game_winners),
            'stat': self.stat,
            'players': [player.to_dict() for player in self.players],
            'game_ended': self.game_ended
        }


@dataclass
class RoundState:
    """Snapshot of a freshly dealt round."""
    current_round: int
    current_picker: Optional[str]
    in_tie_breaker: bool
    tie_break_players: List[str]
    players: List[PlayerRoundView]
    winners: List[str]
    game_ended: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current_round': self.current_round,
            'current_picker': self.current_picker,
            'in_tie_breaker': self.in_tie_breaker,
            'tie_break_players': list(self.tie_break_players),
            'players': [player.to_dict() for player in self.players],
            'winners': list(self.winners),
            'game_ended': self.game_ended
        }


@dataclass
class JoinResult:
    """What happened when a session asked to join a room."""
    player: Player
    reconnected: bool = False
    replaced_session_id: Optional[str] = None


@dataclass
class DepartureResult:
    """What happened when a player left or was removed."""
    player: Player
    room_deleted: bool = False
    new_creator: Optional[str] = None

"""
Scoring Service for StatClash

Evaluates one stat comparison: who holds the best value, who scores, who has
reached the winning score and whether the game is over.
"""

import logging
from typing import List, Tuple

from src.core.errors import InvalidStat
from src.core.game_phases import RoomPhase
from src.core.models import STAT_NAMES, RoundResult
from src.core.room import Room
from src.services.room_state_presenter import RoomStatePresenter

logger = logging.getLogger(__name__)


class ScoringService:
    """Manages score calculation for game rounds."""

    def __init__(self, presenter: RoomStatePresenter = None):
        self.presenter = presenter or RoomStatePresenter()

    def get_evaluation_pool(self, room: Room) -> List[str]:
        """Players competing this round, in roster order. Players without a card sit out."""
        if room.in_tie_breaker:
            candidates = [sid for sid in room.players if sid in room.tie_break_players]
        else:
            candidates = room.get_active_players()
        return [sid for sid in candidates if room.players[sid].current_card is not None]

    def find_round_winners(self, room: Room, stat_name: str) -> Tuple[List[str], int]:
        """
        Find every pool member holding the highest value of the stat.

        Returns:
            Tuple of (tied holders in roster order, the winning value)

        Raises:
            InvalidStat: If the stat is unknown or nobody can compete
        """
        if stat_name not in STAT_NAMES:
            raise InvalidStat(stat_name)

        pool = self.get_evaluation_pool(room)
        if not pool:
            raise InvalidStat(stat_name, "No players with cards to compare this round")

        highest = None
        round_winners: List[str] = []
        for session_id in pool:
            value = room.players[session_id].current_card.stat_value(stat_name)
            if highest is None or value > highest:
                highest = value
                round_winners = [session_id]
            elif value == highest:
                round_winners.append(session_id)

        return round_winners, highest

    def evaluate_round(self, room: Room, stat_name: str) -> RoundResult:
        """
        Evaluate the round for the given stat and update scores.

        Only the first tied holder in roster order scores. Reaching the
        room's rounds_to_win moves that player into winners.

        Args:
            room: Room to evaluate (caller holds the room lock)
            stat_name: Attribute picked for this round

        Returns:
            RoundResult for broadcasting

        Raises:
            InvalidStat: If the stat is unknown or the pool is empty
        """
        round_winners, best_value = self.find_round_winners(room, stat_name)
        room.last_selected_stat = stat_name

        if not room.in_tie_breaker:
            scorer_id = round_winners[0]
            scorer = room.players[scorer_id]
            scorer.score += 1
            logger.info(
                f"Room {room.code}: {scorer.name} wins round {room.current_round - 1} "
                f"on {stat_name} ({best_value}), score {scorer.score}"
            )
            if scorer.score >= room.settings.rounds_to_win and room.add_winner(scorer_id):
                logger.info(f"Room {room.code}: {scorer.name} reached {room.settings.rounds_to_win} points")

        game_ended = room.game_ended
        if game_ended:
            room.phase = RoomPhase.GAME_OVER
            room.clear_all_names()
            logger.info(f"Room {room.code}: game over, winners {room.winners}")
        else:
            room.phase = RoomPhase.ROUND_COMPLETE

        return RoundResult(
            round_winners=round_winners,
            game_winners=list(room.winners),
            players=self.presenter.create_result_views(room),
            game_ended=game_ended,
            stat=stat_name
        )

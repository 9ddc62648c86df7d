"""
Room State Presenter - Centralized room state transformation for broadcasts.

This service provides canonical transformations for room state data that needs
to be sent to clients, ensuring consistent payload shapes and proper data
filtering. Reservation sets, requested settings and timestamps never leave
the process.
"""

import logging
from typing import Any, Dict, List, Optional

from src.core.game_phases import RoomPhase
from src.core.models import PlayerResultView, PlayerRoundView, RosterEntryView, RoundState
from src.core.room import Room

logger = logging.getLogger(__name__)


class RoomStatePresenter:
    """Centralized service for transforming room state data for client broadcasts."""

    def create_player_list(self, room: Room) -> List[Dict[str, Any]]:
        """Lobby view of the roster in join order, without cards."""
        return [
            RosterEntryView(
                id=session_id,
                name=player.name,
                score=player.score,
                is_creator=player.is_creator
            ).to_dict()
            for session_id, player in room.players.items()
        ]

    def create_result_views(self, room: Room) -> List[PlayerResultView]:
        """Per-player views attached to round_complete."""
        return [
            PlayerResultView(
                id=session_id,
                name=player.name,
                card=player.current_card,
                score=player.score,
                is_picker=session_id == room.current_picker,
                is_creator=player.is_creator
            )
            for session_id, player in room.players.items()
        ]

    def create_round_views(self, room: Room) -> List[PlayerRoundView]:
        """Per-player views attached to round_started; these also carry winner status."""
        return [
            PlayerRoundView(
                id=session_id,
                name=player.name,
                card=player.current_card,
                score=player.score,
                is_picker=session_id == room.current_picker,
                is_creator=player.is_creator,
                is_winner=room.is_winner(session_id)
            )
            for session_id, player in room.players.items()
        ]

    def create_round_state(self, room: Room, current_round: int) -> RoundState:
        """Snapshot of the round just dealt.

        Args:
            room: Room after cards were dealt
            current_round: Round number being played (before the counter advanced)
        """
        return RoundState(
            current_round=current_round,
            current_picker=room.current_picker,
            in_tie_breaker=room.in_tie_breaker,
            tie_break_players=list(room.tie_break_players),
            players=self.create_round_views(room),
            winners=list(room.winners),
            game_ended=room.game_ended
        )

    def get_displayed_round(self, room: Room) -> int:
        # The counter advances as soon as a round is dealt
        if room.phase == RoomPhase.LOBBY:
            return room.current_round
        return max(1, room.current_round - 1)

    def create_room_state_for_player(self, room: Room, session_id: Optional[str] = None) -> Dict[str, Any]:
        """Complete room state for one player (join, reconnect, explicit request).

        Args:
            room: Room to describe
            session_id: Requesting session, used for the personal flags

        Returns:
            Room state object for client consumption
        """
        state = {
            'room_code': room.code,
            'phase': room.phase.value,
            'settings': room.settings.to_dict(),
            'players': self.create_player_list(room),
            'creator': room.creator,
            'is_creator': session_id is not None and session_id == room.creator,
            'your_id': session_id
        }
        if room.phase != RoomPhase.LOBBY:
            state['round'] = self.create_round_state(room, self.get_displayed_round(room)).to_dict()
            state['last_selected_stat'] = room.last_selected_stat
        return state

    def create_lobby_summary(self, room: Room) -> Dict[str, Any]:
        """Public summary of a room, for the REST lookup."""
        return {
            'room_code': room.code,
            'player_count': room.player_count,
            'phase': room.phase.value,
            'settings': room.settings.to_dict()
        }

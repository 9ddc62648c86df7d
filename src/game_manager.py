"""
Game Manager for StatClash

Handles round advancement, stat selection, game starts and rematches.
Works with RoomManager to manage game sessions; every method holds the
room's lock for its whole duration, card fetching included.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple

from src.card_provider import CardProvider
from src.config.game_settings import get_game_settings
from src.core.errors import CardProviderError, ErrorCode, NotYourTurn, ValidationError
from src.core.game_phases import ACTIVE_GAME_PHASES, RoomPhase
from src.core.models import Card, RoundResult, RoundState
from src.core.picker_rotation import next_picker
from src.core.room import Room
from src.room_manager import RoomManager
from src.services.room_state_presenter import RoomStatePresenter
from src.services.scoring_service import ScoringService

logger = logging.getLogger(__name__)

DEPARTURE_GAME_OVER = 'game_over'
DEPARTURE_REDEAL = 'redeal'


class GameManager:
    """Manages round advancement and scoring flow."""

    def __init__(self, room_manager: RoomManager, card_provider: CardProvider,
                 scoring_service: Optional[ScoringService] = None,
                 presenter: Optional[RoomStatePresenter] = None):
        self.room_manager = room_manager
        self.card_provider = card_provider
        self.presenter = presenter or RoomStatePresenter()
        self.scoring = scoring_service or ScoringService(self.presenter)
        self.game_settings = get_game_settings()

    def _deal_cards(self, session_ids: List[str]) -> Dict[str, Card]:
        """
        Fetch one card per session, concurrently.

        Raises:
            CardProviderError: If any fetch fails; nothing is dealt then
        """
        if not session_ids:
            return {}
        workers = max(1, min(self.game_settings.card_fetch_workers, len(session_ids)))
        try:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                cards = list(executor.map(lambda _: self.card_provider.fetch_card(), session_ids))
        except CardProviderError:
            raise
        except Exception as e:
            logger.error(f"Card provider failed unexpectedly: {e}", exc_info=True)
            raise CardProviderError()
        return dict(zip(session_ids, cards))

    def _round_participants(self, room: Room) -> List[str]:
        if room.in_tie_breaker:
            return [sid for sid in room.players if sid in room.tie_break_players]
        return room.get_active_players()

    def _apply_round(self, room: Room, cards: Dict[str, Card]) -> RoundState:
        if not room.in_tie_breaker:
            room.current_picker = next_picker(room)
        for session_id, card in cards.items():
            room.players[session_id].current_card = card

        round_number = room.current_round
        if not room.in_tie_breaker:
            room.current_round += 1
        room.phase = RoomPhase.PICKING

        logger.info(
            f"Room {room.code}: round {round_number} dealt to {len(cards)} players, "
            f"picker {room.current_picker}"
        )
        return self.presenter.create_round_state(room, round_number)

    def start_new_round(self, room_code: str, expected_phase: Optional[RoomPhase] = None) -> Optional[RoundState]:
        """
        Deal the next round.

        Args:
            room_code: Room to advance
            expected_phase: When given, only advance a room still in this phase

        Returns:
            RoundState of the new round, or None when the room is gone or
            has moved on since the advance was requested

        Raises:
            CardProviderError: If cards could not be fetched; the room is unchanged
            ValidationError: If nobody is left to play
        """
        with self.room_manager.room_operation(room_code):
            room = self.room_manager.get_room(room_code)
            if room is None:
                return None
            if expected_phase is not None and room.phase != expected_phase:
                logger.info(f"Room {room_code}: skipping round advance, phase is {room.phase.value}")
                return None

            participants = self._round_participants(room)
            if not participants:
                raise ValidationError(ErrorCode.CANNOT_START_ROUND, "No players left to deal a round to")

            cards = self._deal_cards(participants)
            return self._apply_round(room, cards)

    def start_game(self, room_code: str) -> RoundState:
        """
        Reset scores, winners and cards, then deal round 1.

        Raises:
            RoomNotFound, CardProviderError
        """
        with self.room_manager.room_operation(room_code):
            room = self.room_manager.require_room(room_code)
            if room.is_empty:
                raise ValidationError(ErrorCode.CANNOT_START_ROUND, "Room has no players")

            # Everyone plays the first round, so the cards can be fetched before the reset
            cards = self._deal_cards(list(room.players))
            room.reset_game(clear_cards=True)
            logger.info(f"Room {room_code}: game started with {room.player_count} players")
            return self._apply_round(room, cards)

    def rematch(self, room_code: str) -> None:
        """
        Reset the game while keeping dealt cards; the first round is
        dealt later by the scheduler.

        Raises:
            RoomNotFound
        """
        with self.room_manager.room_operation(room_code):
            room = self.room_manager.require_room(room_code)
            room.reset_game(clear_cards=False)
            room.phase = RoomPhase.ROUND_COMPLETE
            logger.info(f"Room {room_code}: rematch requested")

    def select_stat(self, room_code: str, session_id: str, stat_name: str) -> RoundResult:
        """
        Evaluate the current round for the picker's chosen stat.

        Raises:
            RoomNotFound: If the room does not exist
            NotYourTurn: If no pick is awaited or the caller is not the picker
            InvalidStat: If the stat is unknown or nobody can compete
        """
        with self.room_manager.room_operation(room_code):
            room = self.room_manager.require_room(room_code)
            if room.phase != RoomPhase.PICKING:
                raise NotYourTurn("No stat selection is expected right now")
            if room.current_picker != session_id:
                raise NotYourTurn()
            return self.scoring.evaluate_round(room, stat_name)

    def handle_player_departure(self, room_code: str) -> Tuple[Optional[str], Optional[object]]:
        """
        Settle a running game after a player left.

        Returns:
            (DEPARTURE_GAME_OVER, winners) when the remaining winners now end the game,
            (DEPARTURE_REDEAL, RoundState) when the departed picker's round was redealt,
            (None, None) otherwise

        Raises:
            CardProviderError: If the redeal could not fetch cards; the room is
                left in ROUND_COMPLETE so a scheduled deal can replay the round
        """
        with self.room_manager.room_operation(room_code):
            room = self.room_manager.get_room(room_code)
            if room is None or room.phase not in ACTIVE_GAME_PHASES:
                return None, None

            if room.winners and room.game_ended:
                room.phase = RoomPhase.GAME_OVER
                room.clear_all_names()
                logger.info(f"Room {room_code}: game over after departure, winners {room.winners}")
                return DEPARTURE_GAME_OVER, list(room.winners)

            picker_left = room.current_picker is not None and not room.has_player(room.current_picker)
            if room.phase == RoomPhase.PICKING and picker_left:
                logger.info(f"Room {room_code}: picker left, redealing round")
                # The redeal replays the same round number
                room.current_round = max(1, room.current_round - 1)
                try:
                    return DEPARTURE_REDEAL, self.start_new_round(room_code)
                except CardProviderError:
                    # Nobody can pick; wait for a retried deal of the same round
                    room.phase = RoomPhase.ROUND_COMPLETE
                    raise

            return None, None

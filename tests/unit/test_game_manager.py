"""
Unit tests for GameManager: dealing rounds, stat selection, rematches and
departures during a game.
"""

import pytest

from src.core.errors import CardProviderError, NotYourTurn, RoomNotFound
from src.core.game_phases import RoomPhase
from src.core.models import RoomSettings
from src.game_manager import DEPARTURE_GAME_OVER, DEPARTURE_REDEAL, GameManager
from src.room_manager import RoomManager
from tests.helpers.card_helpers import StubCardProvider, make_card


class TestGameManager:
    """Test cases for GameManager functionality."""

    def setup_method(self):
        self.room_manager = RoomManager()
        self.provider = StubCardProvider()
        self.game_manager = GameManager(self.room_manager, self.provider)

        self.room = self.room_manager.create_room('s1', 'Ash', RoomSettings(rounds_to_win=2, max_winners=1))
        self.code = self.room.code
        self.room_manager.join_room(self.code, 's2', 'Misty')
        self.room_manager.join_room(self.code, 's3', 'Brock')

    def _give_cards(self):
        self.room.players['s1'].current_card = make_card(1, 'a', speed=10)
        self.room.players['s2'].current_card = make_card(2, 'b', speed=50)
        self.room.players['s3'].current_card = make_card(3, 'c', speed=90)

    def test_start_game_deals_round_one(self):
        round_state = self.game_manager.start_game(self.code)

        assert round_state.current_round == 1
        assert round_state.current_picker == 's1'
        assert self.room.phase == RoomPhase.PICKING
        assert self.room.current_round == 2
        assert all(p.current_card is not None for p in self.room.players.values())
        assert self.provider.fetch_count == 3

    def test_start_game_resets_previous_progress(self):
        self.room.players['s2'].score = 4
        self.room.winners = ['s2']

        round_state = self.game_manager.start_game(self.code)

        assert round_state.winners == []
        assert all(p.score == 0 for p in self.room.players.values())

    def test_start_game_failure_leaves_room_untouched(self):
        self.provider.fail = True

        with pytest.raises(CardProviderError):
            self.game_manager.start_game(self.code)

        assert self.room.phase == RoomPhase.LOBBY
        assert self.room.current_round == 1
        assert self.room.current_picker is None
        assert all(p.current_card is None for p in self.room.players.values())

    def test_start_game_unknown_room(self):
        with pytest.raises(RoomNotFound):
            self.game_manager.start_game('NOPE00')

    def test_round_payload_marks_picker(self):
        data = self.game_manager.start_game(self.code).to_dict()

        pickers = [player['id'] for player in data['players'] if player['is_picker']]
        assert pickers == ['s1']
        assert all('is_winner' in player for player in data['players'])

    def test_only_picker_may_select(self):
        self.game_manager.start_game(self.code)

        with pytest.raises(NotYourTurn):
            self.game_manager.select_stat(self.code, 's2', 'speed')

    def test_select_stat_scores_round(self):
        self.game_manager.start_game(self.code)
        self._give_cards()

        result = self.game_manager.select_stat(self.code, 's1', 'speed')

        assert result.round_winners == ['s3']
        assert self.room.players['s3'].score == 1
        assert self.room.phase == RoomPhase.ROUND_COMPLETE

    def test_second_selection_of_same_round_is_rejected(self):
        self.game_manager.start_game(self.code)
        self._give_cards()
        self.game_manager.select_stat(self.code, 's1', 'speed')

        with pytest.raises(NotYourTurn):
            self.game_manager.select_stat(self.code, 's1', 'speed')

        assert self.room.players['s3'].score == 1

    def test_next_round_rotates_picker(self):
        self.game_manager.start_game(self.code)
        self._give_cards()
        self.game_manager.select_stat(self.code, 's1', 'speed')

        round_state = self.game_manager.start_new_round(self.code, expected_phase=RoomPhase.ROUND_COMPLETE)

        assert round_state.current_round == 2
        assert round_state.current_picker == 's2'
        assert self.room.phase == RoomPhase.PICKING

    def test_next_round_skips_when_phase_moved_on(self):
        self.game_manager.start_game(self.code)

        assert self.game_manager.start_new_round(self.code, expected_phase=RoomPhase.ROUND_COMPLETE) is None
        assert self.room.current_round == 2

    def test_next_round_for_missing_room(self):
        assert self.game_manager.start_new_round('NOPE00') is None

    def test_next_round_failure_leaves_room_untouched(self):
        self.game_manager.start_game(self.code)
        self._give_cards()
        self.game_manager.select_stat(self.code, 's1', 'speed')
        cards_before = {sid: p.current_card for sid, p in self.room.players.items()}
        self.provider.fail = True

        with pytest.raises(CardProviderError):
            self.game_manager.start_new_round(self.code, expected_phase=RoomPhase.ROUND_COMPLETE)

        assert self.room.phase == RoomPhase.ROUND_COMPLETE
        assert self.room.current_round == 2
        assert self.room.current_picker == 's1'
        assert {sid: p.current_card for sid, p in self.room.players.items()} == cards_before

    def test_winners_are_not_dealt_in(self):
        self.room.update_settings(max_winners=2)
        self.game_manager.start_game(self.code)
        self.room.winners = ['s3']
        self.room.phase = RoomPhase.ROUND_COMPLETE
        fetched = self.provider.fetch_count

        round_state = self.game_manager.start_new_round(self.code)

        assert self.provider.fetch_count == fetched + 2
        assert round_state.current_picker == 's2'

    def test_unexpected_provider_error_is_wrapped(self):
        def explode():
            raise RuntimeError('boom')
        self.provider.fetch_card = explode

        with pytest.raises(CardProviderError):
            self.game_manager.start_game(self.code)

    def test_rematch_keeps_cards_and_waits_for_deal(self):
        self.game_manager.start_game(self.code)
        self.room.players['s2'].score = 2
        self.room.winners = ['s2']
        self.room.phase = RoomPhase.GAME_OVER
        self.room.clear_all_names()
        card = self.room.players['s1'].current_card

        self.game_manager.rematch(self.code)

        assert self.room.phase == RoomPhase.ROUND_COMPLETE
        assert self.room.current_round == 1
        assert self.room.winners == []
        assert self.room.players['s2'].score == 0
        assert self.room.players['s1'].current_card is card
        assert self.room.is_name_reserved('Misty')

    def test_departure_in_lobby_changes_nothing(self):
        self.room_manager.leave_room(self.code, 's3')
        assert self.game_manager.handle_player_departure(self.code) == (None, None)

    def test_departed_picker_gets_round_redealt(self):
        self.game_manager.start_game(self.code)
        self.room_manager.leave_room(self.code, 's1')

        outcome, round_state = self.game_manager.handle_player_departure(self.code)

        assert outcome == DEPARTURE_REDEAL
        assert round_state.current_round == 1
        assert round_state.current_picker == 's2'
        assert self.room.current_round == 2

    def test_failed_redeal_waits_for_retried_deal(self):
        self.game_manager.start_game(self.code)
        self.room_manager.leave_room(self.code, 's1')
        self.provider.fail = True

        with pytest.raises(CardProviderError):
            self.game_manager.handle_player_departure(self.code)

        assert self.room.phase == RoomPhase.ROUND_COMPLETE
        assert self.room.current_round == 1

        self.provider.fail = False
        round_state = self.game_manager.start_new_round(self.code, expected_phase=RoomPhase.ROUND_COMPLETE)

        assert round_state.current_round == 1
        assert round_state.current_picker == 's2'
        assert self.room.phase == RoomPhase.PICKING

    def test_departure_that_meets_winner_quota_ends_game(self):
        self.room_manager.join_room(self.code, 's4', 'Gary')
        self.room.update_settings(max_winners=2)
        self.game_manager.start_game(self.code)
        self.room.winners = ['s1']
        self.room.phase = RoomPhase.ROUND_COMPLETE

        self.room_manager.leave_room(self.code, 's4')
        self.room_manager.leave_room(self.code, 's3')
        outcome, winners = self.game_manager.handle_player_departure(self.code)

        assert outcome == DEPARTURE_GAME_OVER
        assert winners == ['s1']
        assert self.room.phase == RoomPhase.GAME_OVER

    def test_non_picker_departure_keeps_round(self):
        self.game_manager.start_game(self.code)
        self.room_manager.leave_room(self.code, 's3')

        assert self.game_manager.handle_player_departure(self.code) == (None, None)
        assert self.room.phase == RoomPhase.PICKING

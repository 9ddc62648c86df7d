"""
Unit tests for ScoringService round evaluation.
"""

import pytest

from src.core.errors import InvalidStat
from src.core.game_phases import RoomPhase
from src.core.models import RoomSettings
from src.core.room import Room
from src.services.scoring_service import ScoringService
from tests.helpers.card_helpers import make_card


class TestScoringService:
    """Test cases for stat comparison and score updates."""

    def setup_method(self):
        self.service = ScoringService()
        self.room = Room('SCO123', RoomSettings(rounds_to_win=2, max_winners=1))
        self.room.add_player('s1', 'Ash', is_creator=True)
        self.room.add_player('s2', 'Misty')
        self.room.add_player('s3', 'Brock')
        self.room.players['s1'].current_card = make_card(1, 'a', hp=40, attack=80, speed=20)
        self.room.players['s2'].current_card = make_card(2, 'b', hp=90, attack=80, speed=60)
        self.room.players['s3'].current_card = make_card(3, 'c', hp=70, attack=30, speed=99)
        self.room.phase = RoomPhase.PICKING
        self.room.current_round = 2
        self.room.current_picker = 's1'

    def test_highest_value_scores(self):
        result = self.service.evaluate_round(self.room, 'speed')

        assert result.round_winners == ['s3']
        assert self.room.players['s3'].score == 1
        assert self.room.phase == RoomPhase.ROUND_COMPLETE
        assert self.room.last_selected_stat == 'speed'
        assert not result.game_ended

    def test_hp_is_compared_from_card(self):
        result = self.service.evaluate_round(self.room, 'hp')
        assert result.round_winners == ['s2']

    def test_tie_reports_all_holders_but_first_scores(self):
        result = self.service.evaluate_round(self.room, 'attack')

        assert result.round_winners == ['s1', 's2']
        assert self.room.players['s1'].score == 1
        assert self.room.players['s2'].score == 0

    def test_reaching_target_makes_winner_and_ends_game(self):
        self.room.players['s3'].score = 1

        result = self.service.evaluate_round(self.room, 'speed')

        assert self.room.winners == ['s3']
        assert result.game_winners == ['s3']
        assert result.game_ended
        assert self.room.phase == RoomPhase.GAME_OVER
        assert self.room.reserved_names == set()

    def test_winners_do_not_compete(self):
        self.room.update_settings(max_winners=2)
        self.room.winners = ['s3']

        result = self.service.evaluate_round(self.room, 'speed')

        assert result.round_winners == ['s2']

    def test_players_without_cards_sit_out(self):
        self.room.players['s3'].current_card = None
        assert self.service.get_evaluation_pool(self.room) == ['s1', 's2']

    def test_tie_breaker_pool_and_no_score(self):
        self.room.in_tie_breaker = True
        self.room.tie_break_players = ['s1', 's3']

        result = self.service.evaluate_round(self.room, 'hp')

        assert result.round_winners == ['s3']
        assert all(p.score == 0 for p in self.room.players.values())

    def test_unknown_stat_changes_nothing(self):
        with pytest.raises(InvalidStat):
            self.service.evaluate_round(self.room, 'luck')

        assert self.room.last_selected_stat is None
        assert self.room.phase == RoomPhase.PICKING
        assert all(p.score == 0 for p in self.room.players.values())

    def test_empty_pool_raises(self):
        for player in self.room.players.values():
            player.current_card = None

        with pytest.raises(InvalidStat):
            self.service.evaluate_round(self.room, 'speed')

    def test_result_payload_shape(self):
        data = self.service.evaluate_round(self.room, 'speed').to_dict()

        assert set(data) == {'winners', 'game_winners', 'stat', 'players', 'game_ended'}
        assert data['stat'] == 'speed'
        first = data['players'][0]
        assert first['id'] == 's1'
        assert first['is_picker'] is True
        assert first['is_creator'] is True
        assert first['card']['stats']['speed'] == 20
        assert 'is_winner' not in first

"""
Unit tests for RoomStatePresenter payloads.
"""

from src.core.game_phases import RoomPhase
from src.core.room import Room
from src.services.room_state_presenter import RoomStatePresenter
from tests.helpers.card_helpers import make_card


class TestRoomStatePresenter:

    def setup_method(self):
        self.presenter = RoomStatePresenter()
        self.room = Room('PRE123')
        self.room.add_player('s1', 'Ash', is_creator=True)
        self.room.add_player('s2', 'Misty')

    def test_player_list_has_no_cards(self):
        self.room.players['s1'].current_card = make_card()

        players = self.presenter.create_player_list(self.room)

        assert players == [
            {'id': 's1', 'name': 'Ash', 'score': 0, 'is_creator': True},
            {'id': 's2', 'name': 'Misty', 'score': 0, 'is_creator': False},
        ]

    def test_lobby_state_for_player(self):
        state = self.presenter.create_room_state_for_player(self.room, 's2')

        assert state['room_code'] == 'PRE123'
        assert state['phase'] == 'lobby'
        assert state['creator'] == 's1'
        assert state['is_creator'] is False
        assert state['your_id'] == 's2'
        assert 'round' not in state
        assert 'reserved_names' not in state

    def test_in_game_state_includes_round(self):
        self.room.phase = RoomPhase.PICKING
        self.room.current_round = 3
        self.room.current_picker = 's2'
        self.room.last_selected_stat = 'attack'

        state = self.presenter.create_room_state_for_player(self.room, 's1')

        assert state['is_creator'] is True
        assert state['round']['current_round'] == 2
        assert state['round']['current_picker'] == 's2'
        assert state['last_selected_stat'] == 'attack'

    def test_displayed_round(self):
        assert self.presenter.get_displayed_round(self.room) == 1
        self.room.phase = RoomPhase.ROUND_COMPLETE
        self.room.current_round = 4
        assert self.presenter.get_displayed_round(self.room) == 3

    def test_round_views_carry_winner_flag(self):
        self.room.winners = ['s2']

        views = self.presenter.create_round_views(self.room)

        assert [view.is_winner for view in views] == [False, True]

    def test_lobby_summary(self):
        summary = self.presenter.create_lobby_summary(self.room)
        assert summary == {
            'room_code': 'PRE123',
            'player_count': 2,
            'phase': 'lobby',
            'settings': {'rounds_to_win': 3, 'max_winners': 1}
        }

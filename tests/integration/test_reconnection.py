"""
Integration tests for dropped connections: the disconnect grace period and
reclaiming a seat by name.
"""

from unittest.mock import Mock

from flask_socketio import SocketIOTestClient

from app import app, socketio
from container import get_container
from tests.helpers.room_helpers import create_room_helper, event_payload, find_event_in_received, join_room_helper


class TestReconnection:
    """Dropped players keep their seat until the grace period runs out."""

    def setup_method(self):
        container = get_container()
        self.room_manager = container.get('RoomManager')
        self.session_service = container.get('SessionService')
        self.auto_flow = container.get('AutoGameFlowService')
        self.auto_flow.game_settings = Mock(next_round_delay=30, rematch_delay=30, round_retry_delay=30, disconnect_grace=30)
        self.clients = []

    def teardown_method(self):
        for client in self.clients:
            if client.is_connected():
                client.disconnect()

    def _client(self):
        client = SocketIOTestClient(app, socketio)
        self.clients.append(client)
        client.get_received()
        return client

    def _seat_two_players(self):
        host = self._client()
        guest = self._client()
        created = create_room_helper(host, 'Ash')
        joined = join_room_helper(guest, created['room_code'], 'Misty')
        host.get_received()
        return host, guest, created['room_code'], joined['player_id']

    def test_disconnect_keeps_seat_during_grace(self):
        host, guest, room_code, guest_id = self._seat_two_players()

        guest.disconnect()

        room = self.room_manager.get_room(room_code)
        assert room.has_player(guest_id)
        assert not self.session_service.is_live(guest_id)
        assert find_event_in_received(host.get_received(), 'player_left') is None

    def test_reconnect_by_name_reclaims_seat(self):
        host, guest, room_code, guest_id = self._seat_two_players()
        self.room_manager.get_room(room_code).players[guest_id].score = 2
        guest.disconnect()

        returning = self._client()
        returning.emit('join_room', {'room_code': room_code, 'player_name': 'misty'})
        received = returning.get_received()

        joined = event_payload(received, 'room_joined')['data']
        assert joined['reconnected'] is True
        assert joined['player_name'] == 'Misty'
        new_id = joined['player_id']

        room = self.room_manager.get_room(room_code)
        assert not room.has_player(guest_id)
        assert room.players[new_id].score == 2
        assert list(room.players) == [room.creator, new_id]
        assert self.session_service.get_session(guest_id) is None

        state = event_payload(received, 'room_state')
        assert state['your_id'] == new_id

        announcement = event_payload(host.get_received(), 'player_reconnected')
        assert announcement['previous_id'] == guest_id
        assert announcement['player_id'] == new_id

    def test_live_player_name_stays_taken(self):
        host, guest, room_code, _ = self._seat_two_players()

        impostor = self._client()
        impostor.emit('join_room', {'room_code': room_code, 'player_name': 'Misty'})

        assert event_payload(impostor.get_received(), 'error')['error']['code'] == 'NAME_CONFLICT'

    def test_grace_expiry_removes_player(self):
        host, guest, room_code, guest_id = self._seat_two_players()
        self.auto_flow.game_settings.disconnect_grace = 0

        guest.disconnect()

        assert not self.room_manager.get_room(room_code).has_player(guest_id)
        assert event_payload(host.get_received(), 'player_left')['player_id'] == guest_id

    def test_creator_disconnect_hands_over_room(self):
        host, guest, room_code, guest_id = self._seat_two_players()
        self.auto_flow.game_settings.disconnect_grace = 0

        host.disconnect()

        assert self.room_manager.is_creator(room_code, guest_id)
        assert event_payload(guest.get_received(), 'creator_transferred')['creator'] == guest_id

    def test_last_player_disconnect_deletes_room(self):
        self.auto_flow.game_settings.disconnect_grace = 0
        host = self._client()
        room_code = create_room_helper(host, 'Ash')['room_code']

        host.disconnect()

        assert not self.room_manager.room_exists(room_code)

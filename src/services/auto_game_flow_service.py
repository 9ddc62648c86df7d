"""
Auto Game Flow Service - Timed transitions between rounds.

This service handles:
- Dealing the next round a few seconds after a round completes
- Dealing the first round of a rematch
- The grace period between a disconnect and the player's removal
"""

import logging
import threading
from typing import Callable, Dict, Optional

from src.config.game_settings import get_game_settings
from src.core.errors import CardProviderError, ValidationError
from src.core.game_phases import RoomPhase
from src.services.error_response_factory import ErrorResponseFactory

logger = logging.getLogger(__name__)

# Retry waits stop doubling after this many failures
MAX_RETRY_DOUBLINGS = 3


class AutoGameFlowService:
    """Owns the pending timers of every room and disconnected session."""

    def __init__(self, broadcast_service, game_manager, room_manager,
                 error_response_factory: Optional[ErrorResponseFactory] = None):
        """Initialize the auto game flow service.

        Args:
            broadcast_service: Service for broadcasting messages to rooms
            game_manager: Round advancement service
            room_manager: Room management service; room deletion cancels timers
        """
        self.broadcast_service = broadcast_service
        self.game_manager = game_manager
        self.room_manager = room_manager
        self.error_response_factory = error_response_factory or ErrorResponseFactory()
        self.game_settings = get_game_settings()
        self.running = True

        self._round_timers: Dict[str, threading.Timer] = {}
        # Bumped on every schedule or cancel; a timer carrying an older value is stale
        self._round_generations: Dict[str, int] = {}
        self._disconnect_timers: Dict[str, threading.Timer] = {}
        self._timers_lock = threading.Lock()

        self.room_manager.add_deletion_listener(self.cancel_room)
        logger.info("AutoGameFlowService started")

    def stop(self):
        """Stop the service and cancel every pending timer."""
        self.running = False
        with self._timers_lock:
            timers = list(self._round_timers.values()) + list(self._disconnect_timers.values())
            self._round_timers.clear()
            self._round_generations.clear()
            self._disconnect_timers.clear()
        for timer in timers:
            timer.cancel()
        logger.info("AutoGameFlowService stopped")

    # Round timers

    def schedule_next_round(self, room_code: str, delay: Optional[float] = None,
                            expected_phase: RoomPhase = RoomPhase.ROUND_COMPLETE,
                            attempt: int = 0) -> None:
        """
        Deal the room's next round after a delay, replacing any pending one.

        The round is only dealt if the room still exists and is still in
        expected_phase when the timer fires. attempt counts the failed deals
        before this one.
        """
        if not self.running:
            return
        if delay is None:
            delay = self.game_settings.next_round_delay

        with self._timers_lock:
            generation = self._round_generations.get(room_code, 0) + 1
            self._round_generations[room_code] = generation
            timer = threading.Timer(delay, self._advance_round,
                                    args=(room_code, expected_phase, generation, attempt))
            timer.daemon = True
            previous = self._round_timers.pop(room_code, None)
            self._round_timers[room_code] = timer
        if previous is not None:
            previous.cancel()
        timer.start()
        logger.debug(f"Scheduled next round for room {room_code} in {delay}s")

    def schedule_rematch_round(self, room_code: str) -> None:
        self.schedule_next_round(room_code, self.game_settings.rematch_delay)

    def schedule_retry(self, room_code: str, failures: int = 1,
                       expected_phase: RoomPhase = RoomPhase.ROUND_COMPLETE) -> None:
        """
        Try a deal that could not fetch its cards again.

        The wait starts at the configured retry delay and doubles with every
        further failure, up to 2 ** MAX_RETRY_DOUBLINGS times the delay.
        """
        if not self.room_manager.room_exists(room_code):
            return
        delay = self.game_settings.round_retry_delay * (2 ** min(failures - 1, MAX_RETRY_DOUBLINGS))
        logger.info(f"Retrying deal for room {room_code} in {delay}s after {failures} failed attempts")
        self.schedule_next_round(room_code, delay, expected_phase, attempt=failures)

    def cancel_room(self, room_code: str) -> None:
        """Cancel the room's pending round, if any."""
        with self._timers_lock:
            timer = self._round_timers.pop(room_code, None)
            self._round_generations.pop(room_code, None)
        if timer is not None:
            timer.cancel()
            logger.debug(f"Cancelled pending round for room {room_code}")

    def has_pending_round(self, room_code: str) -> bool:
        return room_code in self._round_timers

    def _advance_round(self, room_code: str, expected_phase: RoomPhase, generation: int,
                       attempt: int = 0) -> None:
        with self._timers_lock:
            if self._round_generations.get(room_code) != generation:
                return
            self._round_timers.pop(room_code, None)
            self._round_generations.pop(room_code, None)

        try:
            round_state = self.game_manager.start_new_round(room_code, expected_phase=expected_phase)
        except ValidationError as e:
            logger.warning(f"Scheduled round for room {room_code} failed: {e.code.value} - {e.message}")
            self.broadcast_service.broadcast_room_error(
                room_code, self.error_response_factory.create_response_for_exception(e)
            )
            if isinstance(e, CardProviderError):
                self.schedule_retry(room_code, attempt + 1, expected_phase)
            return
        except Exception as e:
            logger.error(f"Error advancing round for room {room_code}: {e}", exc_info=True)
            return

        if round_state is not None:
            self.broadcast_service.broadcast_round_started(room_code, round_state)

    # Disconnect grace

    def schedule_disconnect(self, session_id: str, callback: Callable[[str], None],
                            delay: Optional[float] = None) -> None:
        """
        Run callback(session_id) once the grace period ends.

        A delay of 0 runs the callback immediately.
        """
        if delay is None:
            delay = self.game_settings.disconnect_grace
        self.cancel_disconnect(session_id)
        if delay <= 0 or not self.running:
            callback(session_id)
            return

        timer = threading.Timer(delay, self._run_disconnect, args=(session_id, callback))
        timer.daemon = True
        with self._timers_lock:
            self._disconnect_timers[session_id] = timer
        timer.start()
        logger.debug(f"Scheduled removal of session {session_id} in {delay}s")

    def cancel_disconnect(self, session_id: str) -> None:
        with self._timers_lock:
            timer = self._disconnect_timers.pop(session_id, None)
        if timer is not None:
            timer.cancel()

    def _run_disconnect(self, session_id: str, callback: Callable[[str], None]) -> None:
        with self._timers_lock:
            self._disconnect_timers.pop(session_id, None)
        try:
            callback(session_id)
        except Exception as e:
            logger.error(f"Error removing disconnected session {session_id}: {e}", exc_info=True)

"""
Services package for StatClash

Contains decomposed service classes that follow Single Responsibility Principle.
"""

from .room_lifecycle_service import RoomLifecycleService
from .player_management_service import PlayerManagementService
from .concurrency_control_service import ConcurrencyControlService
from .scoring_service import ScoringService
from .room_state_presenter import RoomStatePresenter

__all__ = [
    'RoomLifecycleService',
    'PlayerManagementService',
    'ConcurrencyControlService',
    'ScoringService',
    'RoomStatePresenter'
]

"""
Service Container - Dependency Injection Container for StatClash

Services are registered by name with the names of the services they need;
instances are built on first use and shared unless registered as transient.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Callable
import inspect
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class ServiceLifecycle(Enum):
    SINGLETON = "singleton"  # one instance per container
    TRANSIENT = "transient"  # new instance on every get()


@dataclass
class ServiceDefinition:
    name: str
    factory: Callable
    dependencies: List[str] = field(default_factory=list)
    lifecycle: ServiceLifecycle = ServiceLifecycle.SINGLETON
    config: Dict[str, Any] = field(default_factory=dict)


class CircularDependencyError(Exception):
    """Raised when circular dependency is detected"""
    pass


class ServiceNotFoundError(Exception):
    """Raised when requested service is not registered"""
    pass


class ServiceContainer:
    """
    Builds services on demand and hands out shared instances.

    Classes are called with their resolved dependencies as positional
    arguments; plain functions additionally receive the registration's
    config as keyword arguments. Framework objects created elsewhere (the
    SocketIO server, test doubles) are supplied with set_external_dependency.
    """

    def __init__(self):
        self._services: Dict[str, ServiceDefinition] = {}
        self._instances: Dict[str, Any] = {}
        self._creating: List[str] = []

    def register(
        self,
        name: str,
        factory: Callable,
        dependencies: Optional[List[str]] = None,
        lifecycle: ServiceLifecycle = ServiceLifecycle.SINGLETON,
        config: Optional[Dict[str, Any]] = None
    ) -> 'ServiceContainer':
        if name in self._services:
            raise ValueError(f"Service '{name}' is already registered")
        if not callable(factory):
            raise ValueError(f"Factory for '{name}' must be callable")

        self._services[name] = ServiceDefinition(name, factory, list(dependencies or []), lifecycle, dict(config or {}))
        return self

    def set_external_dependency(self, name: str, instance: Any) -> 'ServiceContainer':
        """Provide a ready-made instance; it wins over any registration of the same name."""
        self._instances[name] = instance
        return self

    def get(self, name: str) -> Any:
        """
        Get a service instance, creating it if necessary.

        Raises:
            ServiceNotFoundError: If service is not registered
            CircularDependencyError: If circular dependency detected
        """
        if name in self._instances:
            return self._instances[name]
        if name not in self._services:
            raise ServiceNotFoundError(f"Service '{name}' is not registered")
        return self._create_service(self._services[name])

    def _create_service(self, service_def: ServiceDefinition) -> Any:
        if service_def.name in self._creating:
            cycle = ' -> '.join(self._creating + [service_def.name])
            raise CircularDependencyError(f"Circular dependency detected: {cycle}")

        self._creating.append(service_def.name)
        try:
            dependencies = [self.get(dep_name) for dep_name in service_def.dependencies]
            if inspect.isclass(service_def.factory):
                instance = service_def.factory(*dependencies)
            else:
                instance = service_def.factory(*dependencies, **service_def.config)
        finally:
            self._creating.remove(service_def.name)

        if service_def.lifecycle == ServiceLifecycle.SINGLETON:
            self._instances[service_def.name] = instance
        logger.debug(f"Created service {service_def.name}")
        return instance

    def has_service(self, name: str) -> bool:
        return name in self._services

    def get_service_names(self) -> List[str]:
        return list(self._services)

    def validate_dependencies(self) -> Dict[str, List[str]]:
        """Map each service to the dependencies that nothing provides."""
        issues = {}
        for name, service_def in self._services.items():
            missing = [dep for dep in service_def.dependencies
                       if dep not in self._services and dep not in self._instances]
            if missing:
                issues[name] = missing
        return issues

    def clear(self) -> 'ServiceContainer':
        self._services.clear()
        self._instances.clear()
        self._creating.clear()
        return self

    def __repr__(self) -> str:
        return f"ServiceContainer(services={len(self._services)}, instances={len(self._instances)})"


def _build_room_manager(session_service, concurrency_control):
    from src.room_manager import RoomManager
    # A seat may be reclaimed by name once its socket is gone
    return RoomManager(is_live=session_service.is_live, concurrency_control=concurrency_control)


def _build_card_provider(config_factory):
    from src.card_provider import create_card_provider
    return create_card_provider(config_factory.get_config())


def register_statclash_services(container: ServiceContainer) -> ServiceContainer:
    """Register every StatClash service. 'socketio' must be supplied externally."""
    from config_factory import ConfigurationFactory
    from src.game_manager import GameManager
    from src.services.validation_service import ValidationService
    from src.services.error_response_factory import ErrorResponseFactory
    from src.services.concurrency_control_service import ConcurrencyControlService
    from src.services.session_service import SessionService
    from src.services.broadcast_service import BroadcastService
    from src.services.auto_game_flow_service import AutoGameFlowService

    container.register('ConfigurationFactory', ConfigurationFactory)
    container.register('ValidationService', ValidationService)
    container.register('ErrorResponseFactory', ErrorResponseFactory)
    container.register('ConcurrencyControlService', ConcurrencyControlService)
    container.register('SessionService', SessionService)
    container.register('RoomManager', _build_room_manager,
                       dependencies=['SessionService', 'ConcurrencyControlService'])
    container.register('CardProvider', _build_card_provider, dependencies=['ConfigurationFactory'])
    container.register('GameManager', GameManager, dependencies=['RoomManager', 'CardProvider'])
    container.register('BroadcastService', BroadcastService, dependencies=['socketio', 'RoomManager'])
    container.register('AutoGameFlowService', AutoGameFlowService,
                       dependencies=['BroadcastService', 'GameManager', 'RoomManager', 'ErrorResponseFactory'])
    return container


# Global container instance for the application
_app_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    global _app_container
    if _app_container is None:
        _app_container = ServiceContainer()
    return _app_container


def configure_container(socketio=None) -> ServiceContainer:
    """Reset the global container and register the StatClash services on it."""
    container = get_container().clear()
    if socketio is not None:
        container.set_external_dependency('socketio', socketio)
    return register_statclash_services(container)

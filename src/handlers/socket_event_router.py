"""
Socket Event Router

Maps Socket.IO event names to handler callables. Every inbound payload
passes through the registered middleware before its handler runs, and each
dispatch is logged with the client's session id.
"""

import logging
from typing import Any, Callable, Dict, List

from flask import request

logger = logging.getLogger(__name__)

# (event_name, data) -> replacement data, or None to keep it
Middleware = Callable[[str, Any], Any]


class EventRouteNotFoundError(Exception):
    """Raised when an event route is not found."""
    pass


class SocketEventRouter:
    """Dispatch table for Socket.IO events with payload middleware."""

    def __init__(self, socketio_instance=None):
        self._socketio = socketio_instance
        self._routes: Dict[str, Callable] = {}
        self._middleware: List[Middleware] = []

    def register_route(self, event_name: str, handler: Callable) -> None:
        self._routes[event_name] = handler
        logger.debug(f"Registered route: {event_name} -> {handler.__name__}")

    def add_middleware(self, middleware: Middleware) -> None:
        self._middleware.append(middleware)

    def has_route(self, event_name: str) -> bool:
        return event_name in self._routes

    def get_registered_events(self) -> List[str]:
        return list(self._routes)

    def handle_event(self, event_name: str, data: Any = None) -> Any:
        """
        Run the middleware chain, then the event's handler.

        Raises:
            EventRouteNotFoundError: If no handler is registered for the event
        """
        handler = self._routes.get(event_name)
        if handler is None:
            raise EventRouteNotFoundError(f"No handler registered for event: {event_name}")

        logger.info(f"Handling event: {event_name} from client: {request.sid}")
        if data is not None:
            logger.debug(f"Event data: {data}")

        for middleware in self._middleware:
            transformed = middleware(event_name, data)
            if transformed is not None:
                data = transformed

        try:
            return handler(data)
        except Exception as e:
            logger.error(f"Error handling event {event_name}: {e}")
            raise

    def _socketio_handler(self, event_name: str) -> Callable:
        def socketio_handler(data=None):
            return self.handle_event(event_name, data)
        socketio_handler.__name__ = f'on_{event_name}'
        return socketio_handler

    def register_with_socketio(self) -> None:
        """Bind every registered route on the SocketIO server."""
        if self._socketio is None:
            raise RuntimeError("Router has no SocketIO instance to register with")
        for event_name in self._routes:
            self._socketio.on_event(event_name, self._socketio_handler(event_name))
            logger.debug(f"Registered SocketIO handler for: {event_name}")


def payload_normalization_middleware(event_name: str, data: Any) -> Any:
    """Give handlers an empty dict when a client sends no payload."""
    if data is None:
        return {}
    return data


def setup_router(socketio_instance) -> SocketEventRouter:
    """Create the application's router with its default middleware."""
    router = SocketEventRouter(socketio_instance)
    router.add_middleware(payload_normalization_middleware)
    logger.info("Socket event router initialized")
    return router

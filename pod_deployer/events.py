"""Deployment event publishing."""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from .models import DeploymentEvent

logger = logging.getLogger(__name__)

DEPLOY_POD_EVENT = "deploy.pod"
POD_RUNNING_EVENT = "deploy.pod.running"


class EventPublisher:
    """
    Publishes deployment events to registered handlers.

    Publishing is fire-and-forget: handler errors are logged and never
    reach the deployment flow.
    """

    def __init__(self):
        """Initialize event publisher."""
        self._handlers: list[Callable[[DeploymentEvent], None]] = []

    def register_handler(self, handler: Callable[[DeploymentEvent], None]) -> None:
        """
        Register a handler for deployment events.

        Args:
            handler: Callback function that takes DeploymentEvent
        """
        self._handlers.append(handler)

    def emit(self, name: str, properties: Optional[dict[str, Any]] = None) -> DeploymentEvent:
        """
        Emit an event.

        Args:
            name: Event name (e.g., "deploy.pod")
            properties: Event payload

        Returns:
            The emitted event
        """
        event = DeploymentEvent(
            name=name,
            properties=self._serialize_data(properties or {}),
        )
        logger.info(f"Event {name}: {event.properties}")

        for handler in self._handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {name}: {e}", exc_info=True)

        return event

    def _serialize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        """Convert enums and datetimes so the payload stays JSON friendly."""
        result = {}
        for key, value in data.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
            elif isinstance(value, Enum):
                result[key] = value.value
            elif isinstance(value, dict):
                result[key] = self._serialize_data(value)
            else:
                result[key] = value
        return result

"""
Role change notifications.

After an admin changes a user's role a ``RoleChanged`` event is published
so that connected surfaces can refresh the user's permissions. The
notifier holds no session state; subscribers are plain async callables.

Dependencies: None (stdlib only)
System role: Outbound role-change signal
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable

from lms_backend.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleChanged:
    """A user's role was changed by an admin."""

    user_id: str
    old_role: str
    new_role: str
    changed_by: str
    changed_at: datetime


Subscriber = Callable[[RoleChanged], Awaitable[None]]


class RoleChangeNotifier:
    """Fan-out of RoleChanged events to registered subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    async def publish(self, event: RoleChanged) -> None:
        """
        Deliver an event to every subscriber. Subscriber failures are logged.

        Args:
            event: Event to deliver
        """
        logger.info(
            "Role changed",
            extra={"user_id": event.user_id, "old_role": event.old_role, "new_role": event.new_role},
        )
        for subscriber in list(self._subscribers):
            try:
                await subscriber(event)
            except Exception as e:
                log_exception_with_context(
                    logger, "Role change subscriber failed", e, user_id=event.user_id
                )

"""Owner notifications."""

import logging
from typing import Protocol
from uuid import uuid4

from vrms.models import Notification
from vrms.storage.repositories import IdentityStore

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    async def send(
        self,
        user_id: str,
        title: str,
        message: str,
        priority: str,
        action_url: str | None,
    ) -> None: ...


class StoreNotificationDispatcher:
    """Writes in-app notifications to the notifications table."""

    def __init__(self, store: IdentityStore, action_label: str = "View Message"):
        self.store = store
        self.action_label = action_label

    async def send(
        self,
        user_id: str,
        title: str,
        message: str,
        priority: str,
        action_url: str | None,
    ) -> None:
        notification = await self.store.insert_notification(
            Notification(
                id=str(uuid4()),
                user_id=user_id,
                title=title,
                message=message,
                variant="success",
                priority=priority,
                action_url=action_url,
                action_label=self.action_label if action_url else None,
                data={},
                is_read=False,
            )
        )
        try:
            await self.store.commit()
        except Exception:
            await self.store.rollback()
            raise
        logger.info("Notification %s sent to %s", notification.id, user_id)

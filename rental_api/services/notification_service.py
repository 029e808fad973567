"""Outbound notification queue.

Rows written here are picked up by the delivery side (push, email, in-app),
which lives outside this service. Enqueueing is fire-and-forget: the insert
runs in a SAVEPOINT of the caller's transaction, so a failure is logged and
discarded without touching the caller's pending changes.
"""

from typing import Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from rental_api.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def enqueue(
        self,
        *,
        recipient_user_id: int,
        notification_type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> Optional[Notification]:
        """Queue a notification; returns None when it could not be stored."""
        try:
            async with self.db.begin_nested():
                notification = Notification(
                    user_id=recipient_user_id,
                    type=notification_type,
                    title=title,
                    message=message,
                    link=action_url,
                    extra_data=metadata,
                )
                self.db.add(notification)
        except Exception as e:
            logger.error(
                f"Failed to enqueue {notification_type} notification for user {recipient_user_id}: {type(e).__name__}",
                extra={"notification_type": notification_type, "user_id": recipient_user_id},
            )
            return None

        logger.debug(f"Queued {notification_type} notification for user {recipient_user_id}")
        return notification

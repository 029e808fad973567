"""Notification model for in-app notifications."""

from sqlalchemy import Column, String, DateTime, Text, Integer, Boolean, ForeignKey, JSON, Uuid
import uuid

from rental_api.database import Base, utcnow


class Notification(Base):
    """Queued notification for a user. Delivery (push, email, in-app) is done
    by the notification service reading this table."""

    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    # Target user
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Notification content
    type = Column(String(50), nullable=False, index=True)  # contract_sent, contract_signed, contract_cancelled, ...
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    # Status
    read = Column(Boolean, default=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    # Action link (URL to navigate to)
    link = Column(String(500), nullable=True)

    # Additional context; "metadata" is reserved on declarative classes
    extra_data = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    def __repr__(self):
        return f"<Notification {self.type}: {self.title[:30]}>"

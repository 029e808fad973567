from enum import Enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum as SAEnum

from rental_api.database import Base, utcnow


class UserRole(str, Enum):
    """Marketplace roles."""
    OWNER = "OWNER"
    TENANT = "TENANT"
    ADMIN = "ADMIN"


class User(Base):
    """Marketplace identity. Accounts are managed by the auth service; this
    service only reads them."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(30), nullable=True)
    role = Column(
        SAEnum(UserRole, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.TENANT,
    )
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User {self.email} ({self.role.value if self.role else None})>"

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

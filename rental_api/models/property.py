"""Property model - the listing a contract leases out."""

from enum import Enum
import uuid

from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship

from rental_api.database import Base, utcnow


class PropertyStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    UNAVAILABLE = "UNAVAILABLE"


class Property(Base):
    """Rental listing. Listing CRUD lives elsewhere; contracts only read the
    owner and flip the availability status."""

    __tablename__ = "properties"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)

    status = Column(
        SAEnum(PropertyStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PropertyStatus.AVAILABLE,
    )

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    owner = relationship("User", foreign_keys=[owner_id])

    def __repr__(self):
        return f"<Property {self.title} - {self.status.value if self.status else None}>"

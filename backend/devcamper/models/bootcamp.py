"""
DevCamper API: Bootcamp Model
==============================

What:  ORM model for the `bootcamps` table.

Derived columns:
    average_rating  mean review rating, maintained by aggregate_service
    average_cost    mean course tuition rounded up to the next 10
    slug            URL-friendly name, set by bootcamp_service
    location_*      geocoded from `address` by bootcamp_service

Geospatial queries:
    Coordinates are plain float columns with a composite index; radius
    searches prefilter on a bounding box in SQL and apply the great-circle
    test in Python (see bootcamp_service.get_bootcamps_in_radius).
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from devcamper.database import Base

if TYPE_CHECKING:
    from devcamper.models.course import Course


class Career(str, enum.Enum):
    WEB_DEVELOPMENT = "Web Development"
    MOBILE_DEVELOPMENT = "Mobile Development"
    UI_UX = "UI/UX"
    DATA_SCIENCE = "Data Science"
    BUSINESS = "Business"
    OTHER = "Other"


DEFAULT_PHOTO = "no-photo.jpg"


class Bootcamp(Base):
    __tablename__ = "bootcamps"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    slug: Mapped[Optional[str]] = mapped_column(String(60), nullable=True, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── Geocoded location ─────────────────────────────────────────────────
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    formatted_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zipcode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Stored as a JSON array of Career values
    careers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    average_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    photo: Mapped[str] = mapped_column(String(255), nullable=False, default=DEFAULT_PHOTO)

    housing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_assistance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_guarantee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accept_gi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Non-owning reference; deleting the user leaves the bootcamp ownerless
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Loaded only on request (selectinload); children are deleted explicitly
    courses: Mapped[List["Course"]] = relationship(
        back_populates="bootcamp",
        lazy="raise",
        passive_deletes=True,
        order_by="Course.created_at",
    )

    __table_args__ = (
        Index("idx_bootcamps_location", "latitude", "longitude"),
        Index("idx_bootcamps_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Bootcamp(id={self.id}, name='{self.name}')>"

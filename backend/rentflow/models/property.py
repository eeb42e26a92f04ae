"""Property listing and its photos.

Lifecycle:  draft → vacant (published) → leased | maintenance | archived

`wizard_step` records how far the listing wizard validated (8 = review).
Photos are PropertyImage rows ordered by `sort_order`; exactly one of
them carries `is_main` once any exist.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rentflow.database import Base


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    property_manager_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default="draft", index=True)
    visibility: Mapped[str] = mapped_column(String(20), default="private")
    accepting_applications: Mapped[bool] = mapped_column(Boolean, default=False)
    wizard_step: Mapped[int] = mapped_column(Integer, default=1)

    # ── Type ─────────────────────────────────────────────────
    type: Mapped[str] = mapped_column(String(20), default="apartment")
    subtype: Mapped[str] = mapped_column(String(30), default="studio")

    # ── Location ─────────────────────────────────────────────
    house_number: Mapped[str] = mapped_column(String(20), default="")
    street_name: Mapped[str] = mapped_column(String(255), default="")
    street_line2: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str] = mapped_column(String(100), default="")
    state: Mapped[str | None] = mapped_column(String(100))
    postal_code: Mapped[str] = mapped_column(String(20), default="")
    country: Mapped[str] = mapped_column(String(2), default="CH")

    # ── Specifications ───────────────────────────────────────
    bedrooms: Mapped[int | None] = mapped_column(Integer, default=0)
    bathrooms: Mapped[float | None] = mapped_column(Float, default=0)
    size: Mapped[float | None] = mapped_column(Float)
    floor_level: Mapped[int | None] = mapped_column(Integer)
    has_elevator: Mapped[bool | None] = mapped_column(Boolean)
    year_built: Mapped[int | None] = mapped_column(Integer)
    parking_spots_interior: Mapped[int | None] = mapped_column(Integer)
    parking_spots_exterior: Mapped[int | None] = mapped_column(Integer)
    balcony_size: Mapped[float | None] = mapped_column(Float)
    land_size: Mapped[float | None] = mapped_column(Float)

    # ── Amenities ────────────────────────────────────────────
    kitchen_equipped: Mapped[bool | None] = mapped_column(Boolean)
    kitchen_separated: Mapped[bool | None] = mapped_column(Boolean)
    has_cellar: Mapped[bool | None] = mapped_column(Boolean)
    has_laundry: Mapped[bool | None] = mapped_column(Boolean)
    has_fireplace: Mapped[bool | None] = mapped_column(Boolean)
    has_air_conditioning: Mapped[bool | None] = mapped_column(Boolean)
    has_garden: Mapped[bool | None] = mapped_column(Boolean)
    has_rooftop: Mapped[bool | None] = mapped_column(Boolean)

    # ── Energy ───────────────────────────────────────────────
    energy_class: Mapped[str | None] = mapped_column(String(5))
    thermal_insulation_class: Mapped[str | None] = mapped_column(String(5))
    heating_type: Mapped[str | None] = mapped_column(String(20))

    # ── Pricing ──────────────────────────────────────────────
    rent_amount: Mapped[float] = mapped_column(Float, default=0)
    rent_currency: Mapped[str] = mapped_column(String(3), default="eur")
    available_date: Mapped[date | None] = mapped_column(Date)

    # ── Media ────────────────────────────────────────────────
    title: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[str | None] = mapped_column(Text)

    extras: Mapped[dict | None] = mapped_column(JSON)

    published_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )


class PropertyImage(Base):
    __tablename__ = "property_images"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    property_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_path: Mapped[str] = mapped_column(String(500), nullable=False)
    original_filename: Mapped[str | None] = mapped_column(String(255))
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_main: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

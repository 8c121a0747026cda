"""
SQLAlchemy ORM models for persistent storage.

Models mirror the dataclass models but add database persistence.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CatalogItemDB(Base):
    """
    A collectible definition shared by every user.

    Written only by administrators and import jobs.
    """

    __tablename__ = "catalog_items"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), index=True)
    series: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    character: Mapped[str | None] = mapped_column(String(255), nullable=True)
    image_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    hex_id: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)

    release_na: Mapped[str | None] = mapped_column(String(10), nullable=True)
    release_jp: Mapped[str | None] = mapped_column(String(10), nullable=True)
    release_eu: Mapped[str | None] = mapped_column(String(10), nullable=True)
    release_au: Mapped[str | None] = mapped_column(String(10), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<CatalogItemDB(id={self.id}, name={self.name})>"


class OwnershipDB(Base):
    """
    A figure in a user's collection.

    At most one record per (user, item).
    """

    __tablename__ = "ownership_records"
    __table_args__ = (UniqueConstraint("user_id", "item_id", name="uq_ownership_user_item"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    item_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("catalog_items.id", ondelete="CASCADE"), index=True
    )
    is_boxed: Mapped[bool] = mapped_column(Boolean, default=False)
    condition: Mapped[str] = mapped_column(String(20), default="new")
    value_paid: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    acquired_at: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    item: Mapped["CatalogItemDB"] = relationship()

    def __repr__(self) -> str:
        return f"<OwnershipDB(user={self.user_id}, item={self.item_id})>"


class WishlistDB(Base):
    """A figure a user wants. At most one record per (user, item)."""

    __tablename__ = "wishlist_records"
    __table_args__ = (UniqueConstraint("user_id", "item_id", name="uq_wishlist_user_item"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    item_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("catalog_items.id", ondelete="CASCADE"), index=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<WishlistDB(user={self.user_id}, item={self.item_id})>"


class ProfileDB(Base):
    """Per-user profile: display name, avatar, and preferences."""

    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    birthdate: Mapped[date | None] = mapped_column(Date, nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    language: Mapped[str | None] = mapped_column(String(10), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ProfileDB(user_id={self.user_id}, username={self.username})>"


class UserRoleDB(Base):
    """Role assignment. Only the admin role gates anything."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_role"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    role: Mapped[str] = mapped_column(String(20))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<UserRoleDB(user_id={self.user_id}, role={self.role})>"

"""SQLAlchemy models for CardLink."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import (
    Column,
    String,
    Integer,
    Text,
    Numeric,
    DateTime,
    Boolean,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator, CHAR

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GUID(TypeDecorator):
    """Platform-independent GUID type using String for SQLite."""

    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID())
        else:
            return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, UUID):
            return UUID(str(value))
        return value


class User(Base):
    """Local mirror of an externally authenticated identity."""

    __tablename__ = "users"

    id = Column(GUID(), primary_key=True)  # Token subject
    email = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, default="user")  # UserRole enum
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Relationships
    profiles = relationship("Profile", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_users_created_at", "created_at"),)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class Profile(Base):
    """A digital card profile owned by a user."""

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    profile_type = Column(String(20), nullable=False)  # ProfileType enum
    name = Column(String(100), nullable=False)
    title = Column(String(150), nullable=True)
    bio = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)
    color = Column(String(7), nullable=False, default="#0066FF")
    design_mode = Column(String(20), nullable=False, default="manual")  # DesignMode enum
    ai_prompt = Column(Text, nullable=True)
    ai_background = Column(String(500), nullable=True)
    custom_design_url = Column(String(500), nullable=True)
    template = Column(String(50), nullable=False, default="modern")
    slug = Column(String(120), nullable=False, unique=True)
    profile_url = Column(String(255), nullable=False)
    qr_code_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    view_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    user = relationship("User", back_populates="profiles")
    social_links = relationship(
        "SocialLink",
        back_populates="profile",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SocialLink.order",
    )
    views = relationship(
        "ProfileView", back_populates="profile", cascade="all, delete-orphan", passive_deletes=True
    )
    visitors = relationship("ProfileVisitor", back_populates="profile", passive_deletes=True)
    orders = relationship("Order", back_populates="profile", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("user_id", "profile_type", name="uq_profile_type_per_user"),
        CheckConstraint("view_count >= 0", name="ck_profile_view_count_non_negative"),
        Index("ix_profiles_user_id", "user_id"),
        Index("ix_profiles_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, slug='{self.slug}')>"


class SocialLink(Base):
    """A platform link shown on a profile."""

    __tablename__ = "social_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    platform = Column(String(20), nullable=False)  # Platform enum
    url = Column(String(500), nullable=False)
    label = Column(String(100), nullable=True)
    is_visible = Column(Boolean, nullable=False, default=True)
    order = Column(Integer, nullable=False, default=1)
    click_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    profile = relationship("Profile", back_populates="social_links")

    __table_args__ = (
        UniqueConstraint("profile_id", "platform", name="uq_social_link_platform_per_profile"),
        CheckConstraint('"order" >= 1', name="ck_social_link_order_positive"),
        CheckConstraint("click_count >= 0", name="ck_social_link_click_count_non_negative"),
        Index("ix_social_links_profile_order", "profile_id", "order"),
    )

    def __repr__(self) -> str:
        return f"<SocialLink(id={self.id}, platform='{self.platform}')>"


class ProfileView(Base):
    """One anonymous visit to a public profile."""

    __tablename__ = "profile_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    viewer_ip = Column(String(45), nullable=True)
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    user_agent = Column(Text, nullable=True)
    device = Column(String(20), nullable=True)  # DeviceClass enum
    browser = Column(String(100), nullable=True)
    referrer = Column(String(500), nullable=True)
    view_source = Column(String(10), nullable=False, default="direct")  # ViewSource enum
    viewed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Relationships
    profile = relationship("Profile", back_populates="views")

    __table_args__ = (
        Index("ix_profile_views_profile_viewed_at", "profile_id", "viewed_at"),
        Index("ix_profile_views_viewed_at", "viewed_at"),
    )


class ProfileVisitor(Base):
    """A contact left by a visitor on a public profile."""

    __tablename__ = "profile_visitors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    profile_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    user_id = Column(GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    visitor_email = Column(String(255), nullable=False)
    visitor_phone = Column(String(20), nullable=False)
    viewer_ip = Column(String(45), nullable=True)
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    user_agent = Column(Text, nullable=True)
    device = Column(String(20), nullable=True)
    browser = Column(String(100), nullable=True)
    referrer = Column(String(500), nullable=True)
    view_source = Column(String(10), nullable=False, default="direct")
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Relationships
    profile = relationship("Profile", back_populates="visitors")

    __table_args__ = (
        Index("ix_profile_visitors_profile_submitted", "profile_id", "submitted_at"),
        Index("ix_profile_visitors_user_id", "user_id"),
    )


class Order(Base):
    """A physical card order with a frozen copy of the profile design."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(50), nullable=False, unique=True)
    user_id = Column(GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    profile_id = Column(
        Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )

    customer_first_name = Column(String(100), nullable=False)
    customer_last_name = Column(String(100), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False)

    shipping_address = Column(Text, nullable=False)
    shipping_city = Column(String(100), nullable=False)
    shipping_country = Column(String(100), nullable=False, default="Jordan")
    shipping_notes = Column(Text, nullable=True)

    # Design snapshot, copied from the profile when the order is placed
    card_type = Column(String(20), nullable=False)
    card_color = Column(String(7), nullable=True)
    card_template = Column(String(50), nullable=True)
    design_mode = Column(String(20), nullable=True)
    ai_background = Column(String(500), nullable=True)
    custom_design_url = Column(String(500), nullable=True)

    payment_method = Column(String(20), nullable=False, default="cash_on_delivery")
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # OrderStatus enum
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    user = relationship("User", back_populates="orders")
    profile = relationship("Profile", back_populates="orders")

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_order_total_non_negative"),
        Index("ix_orders_user_id", "user_id"),
        Index("ix_orders_profile_id", "profile_id"),
        Index("ix_orders_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, order_number='{self.order_number}', status='{self.status}')>"

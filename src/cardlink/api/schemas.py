"""Pydantic models for API request/response validation.

JSON bodies use camelCase keys; Python attributes stay snake_case.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field  # type: ignore
from pydantic.alias_generators import to_camel

from ..core.enums import DesignMode, OrderStatus, PaymentMethod, Platform, ProfileType

HEX_COLOR = r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$"


class CamelModel(BaseModel):
    """Base model accepting and emitting camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# User schemas
class UserSummary(CamelModel):
    id: UUID
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    created_at: datetime


# Social link schemas
class SocialLinkInput(CamelModel):
    """A link submitted together with a profile or in a bulk request."""

    platform: Platform
    url: Optional[str] = Field(None, max_length=500)
    label: Optional[str] = Field(None, max_length=100)
    is_visible: bool = True


class SocialLinkCreate(SocialLinkInput):
    profile_id: int
    url: str = Field(min_length=1, max_length=500)


class SocialLinkBulkCreate(CamelModel):
    profile_id: int
    links: List[SocialLinkInput] = Field(min_length=1)


class SocialLinkUpdate(CamelModel):
    url: Optional[str] = Field(None, min_length=1, max_length=500)
    label: Optional[str] = Field(None, max_length=100)
    is_visible: Optional[bool] = None
    order: Optional[int] = Field(None, ge=1)


class LinkOrder(CamelModel):
    id: int
    order: int = Field(ge=1)


class SocialLinkReorder(CamelModel):
    links: List[LinkOrder] = Field(min_length=1)


class SocialLinkBulkDelete(CamelModel):
    link_ids: List[int] = Field(min_length=1)


class SocialLinkResponse(CamelModel):
    id: int
    profile_id: int
    platform: str
    url: str
    label: Optional[str] = None
    is_visible: bool
    order: int
    click_count: int
    created_at: datetime
    updated_at: datetime


class PublicSocialLink(CamelModel):
    id: int
    platform: str
    url: str
    label: Optional[str] = None
    order: int


class LinkClickResponse(CamelModel):
    click_count: int
    redirect_url: str


class SocialLinkStatistics(CamelModel):
    total_links: int
    visible_links: int
    hidden_links: int
    total_clicks: int
    most_clicked_link: Optional[SocialLinkResponse] = None
    links: List[SocialLinkResponse]


# Profile schemas
class ProfileCreate(CamelModel):
    """Schema for creating a profile with an optional batch of links."""

    profile_type: ProfileType
    name: str = Field(min_length=2, max_length=100)
    title: Optional[str] = Field(None, max_length=150)
    bio: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    design_mode: Optional[DesignMode] = None
    ai_prompt: Optional[str] = Field(None, max_length=500)
    ai_background: Optional[str] = Field(None, max_length=500)
    custom_design_url: Optional[str] = Field(None, max_length=500)
    template: Optional[str] = Field(None, max_length=50)
    social_links: List[SocialLinkInput] = Field(default_factory=list)


class ProfileUpdate(CamelModel):
    """Partial update; only keys present in the body are applied."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    title: Optional[str] = Field(None, max_length=150)
    bio: Optional[str] = Field(None, max_length=500)
    avatar: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    design_mode: Optional[DesignMode] = None
    ai_prompt: Optional[str] = Field(None, max_length=500)
    ai_background: Optional[str] = Field(None, max_length=500)
    custom_design_url: Optional[str] = Field(None, max_length=500)
    template: Optional[str] = Field(None, max_length=50)


class ProfileResponse(CamelModel):
    id: int
    user_id: UUID
    profile_type: str
    name: str
    title: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    color: str
    design_mode: str
    ai_prompt: Optional[str] = None
    ai_background: Optional[str] = None
    custom_design_url: Optional[str] = None
    template: str
    slug: str
    profile_url: str
    qr_code_url: Optional[str] = None
    is_active: bool
    view_count: int
    created_at: datetime
    updated_at: datetime
    social_links: List[SocialLinkResponse] = Field(default_factory=list)


class PublicProfileResponse(CamelModel):
    id: int
    profile_type: str
    name: str
    title: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None
    color: str
    design_mode: str
    ai_background: Optional[str] = None
    custom_design_url: Optional[str] = None
    template: str
    slug: str
    profile_url: str
    qr_code_url: Optional[str] = None
    view_count: int
    social_links: List[PublicSocialLink] = Field(default_factory=list)


# Tracking schemas
class TrackViewRequest(CamelModel):
    source: Optional[str] = None


class TrackViewResponse(CamelModel):
    view_id: int
    view_count: int


class VisitorContactCreate(CamelModel):
    email: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=20)
    source: Optional[str] = None


class VisitorResponse(CamelModel):
    id: int
    profile_id: Optional[int] = None
    visitor_email: str
    visitor_phone: str
    country: Optional[str] = None
    city: Optional[str] = None
    device: Optional[str] = None
    browser: Optional[str] = None
    referrer: Optional[str] = None
    view_source: str
    submitted_at: datetime


class ProfileViewResponse(CamelModel):
    id: int
    viewer_ip: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    device: Optional[str] = None
    browser: Optional[str] = None
    referrer: Optional[str] = None
    view_source: str
    viewed_at: datetime


class CleanupRequest(CamelModel):
    days_to_keep: Optional[int] = Field(None, ge=1)


# Analytics schemas
class SourceCount(CamelModel):
    source: str
    count: int


class SourceShare(SourceCount):
    percentage: float


class DeviceCount(CamelModel):
    device: str
    count: int


class DeviceShare(DeviceCount):
    percentage: float


class BrowserCount(CamelModel):
    browser: str
    count: int


class CountryCount(CamelModel):
    country: str
    count: int


class CityCount(CamelModel):
    city: str
    country: str
    count: int


class DailyCount(CamelModel):
    date: str
    count: int


class TypeCount(CamelModel):
    type: str
    count: int


class StatusCount(CamelModel):
    status: str
    count: int


class AnalyticsPeriod(CamelModel):
    days: int
    start_date: datetime
    end_date: datetime


class ProfileAnalytics(CamelModel):
    total_views: int
    all_time_views: int
    total_clicks: int
    views_by_source: List[SourceCount]
    views_by_device: List[DeviceCount]
    views_by_browser: List[BrowserCount]
    views_by_country: List[CountryCount]
    views_by_city: List[CityCount]
    views_by_date: List[DailyCount]
    recent_views: List[ProfileViewResponse]


class AnalyticsProfileRef(CamelModel):
    id: int
    name: str
    type: str
    slug: str


class ProfileAnalyticsResponse(CamelModel):
    profile: AnalyticsProfileRef
    period: AnalyticsPeriod
    analytics: ProfileAnalytics
    social_links: List[SocialLinkResponse]


class UserProfileAnalytics(CamelModel):
    id: int
    name: str
    slug: str
    type: str
    total_views: int
    views_in_period: int
    clicks: int


class UserAnalyticsResponse(CamelModel):
    period: str
    total_profiles: int
    total_views: int
    total_views_in_period: int
    total_clicks: int
    views_by_source: List[SourceCount]
    profiles: List[UserProfileAnalytics]


class DashboardProfile(CamelModel):
    id: int
    name: str
    slug: str
    type: str
    views: int
    is_active: bool


class DashboardSummary(CamelModel):
    total_profiles: int
    active_profiles: int
    total_views: int
    total_clicks: int
    profiles: List[DashboardProfile]


class StatValue(CamelModel):
    value: int
    today: Optional[int] = None
    growth: Optional[float] = None


class AdminStats(CamelModel):
    total_users: StatValue
    total_profiles: StatValue
    total_views: StatValue
    total_clicks: StatValue
    active_profiles: StatValue


class AdminCharts(CamelModel):
    profiles_by_type: List[TypeCount]
    views_over_time: List[DailyCount]
    users_over_time: List[DailyCount]
    profiles_over_time: List[DailyCount]
    views_by_source: List[SourceCount]


class TopProfile(CamelModel):
    id: int
    name: str
    slug: str
    profile_type: str
    view_count: int
    user: Optional[UserSummary] = None


class AdminDashboardResponse(CamelModel):
    stats: AdminStats
    charts: AdminCharts
    top_profiles: List[TopProfile]
    recent_users: List[UserSummary]


# Order schemas
class CustomerInfo(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=255)
    phone: str = Field(min_length=1, max_length=20)


class ShippingInfo(CamelModel):
    address: str = Field(min_length=1)
    city: str = Field(min_length=1, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class CardDesign(CamelModel):
    """Design overrides; omitted values are copied from the profile."""

    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    template: Optional[str] = Field(None, max_length=50)
    design_mode: Optional[DesignMode] = None
    ai_background: Optional[str] = Field(None, max_length=500)
    custom_design_url: Optional[str] = Field(None, max_length=500)


class OrderCreate(CamelModel):
    profile_id: int
    customer_info: CustomerInfo
    shipping_info: ShippingInfo
    card_design: Optional[CardDesign] = None
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    total_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)


class OrderStatusUpdate(CamelModel):
    status: OrderStatus
    admin_notes: Optional[str] = None


class OrderResponse(CamelModel):
    id: int
    order_number: str
    user_id: UUID
    profile_id: Optional[int] = None
    customer_first_name: str
    customer_last_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    shipping_city: str
    shipping_country: str
    shipping_notes: Optional[str] = None
    card_type: str
    card_color: Optional[str] = None
    card_template: Optional[str] = None
    design_mode: Optional[str] = None
    ai_background: Optional[str] = None
    custom_design_url: Optional[str] = None
    payment_method: str
    total_amount: Decimal
    status: str
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AdminOrderResponse(OrderResponse):
    user: Optional[UserSummary] = None


class OrderPage(CamelModel):
    orders: List[AdminOrderResponse]
    total: int
    limit: int
    offset: int


class OrderStatistics(CamelModel):
    orders_by_status: List[StatusCount]
    total_revenue: Decimal
    orders_this_month: int
    recent_orders: List[AdminOrderResponse]

"""Analytics API endpoints: view tracking and per-profile rollups."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ..auth.dependencies import get_current_user
from ..config import get_config
from ..db.models import User
from ..services.analytics import AnalyticsService
from ..services.dependencies import get_analytics_service, get_view_tracker
from ..services.request_context import build_request_context
from ..services.tracker import ViewTracker
from .responses import success
from .schemas import (
    AnalyticsPeriod,
    AnalyticsProfileRef,
    BrowserCount,
    CityCount,
    CleanupRequest,
    CountryCount,
    DailyCount,
    DeviceCount,
    DeviceShare,
    ProfileAnalytics,
    ProfileAnalyticsResponse,
    ProfileViewResponse,
    SocialLinkResponse,
    SourceCount,
    SourceShare,
    TrackViewRequest,
    TrackViewResponse,
    UserAnalyticsResponse,
    UserProfileAnalytics,
)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def source_counts(rows):
    return [SourceCount(source=key, count=count) for key, count in rows]


@router.post("/track-view/{slug}", status_code=status.HTTP_201_CREATED)
async def track_view(
    slug: str,
    request: Request,
    view_data: Optional[TrackViewRequest] = None,
    tracker: ViewTracker = Depends(get_view_tracker),
):
    """Record an anonymous view of a public profile."""
    context = build_request_context(request, get_config().tracking.trust_proxy_headers)
    source = view_data.source if view_data else None
    view, view_count = await tracker.track_view(slug, source, context)
    return success(
        TrackViewResponse(view_id=view.id, view_count=view_count),
        message="View tracked successfully",
    )


@router.get("/user")
async def user_analytics(
    days: int = Query(30, ge=1, le=365),
    user: User = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Totals across all of the caller's profiles."""
    rollup = await service.user_analytics(user.id, days)
    return success(
        UserAnalyticsResponse(
            period=rollup["period"],
            total_profiles=rollup["total_profiles"],
            total_views=rollup["total_views"],
            total_views_in_period=rollup["total_views_in_period"],
            total_clicks=rollup["total_clicks"],
            views_by_source=source_counts(rollup["views_by_source"]),
            profiles=[UserProfileAnalytics(**profile) for profile in rollup["profiles"]],
        )
    )


@router.get("/profile/{profile_id}")
async def profile_analytics(
    profile_id: int,
    days: int = Query(30, ge=1, le=365),
    user: User = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Everything about one profile's traffic in the window."""
    overview = await service.profile_overview(profile_id, user.id, days)
    profile = overview["profile"]
    return success(
        ProfileAnalyticsResponse(
            profile=AnalyticsProfileRef(
                id=profile.id, name=profile.name, type=profile.profile_type, slug=profile.slug
            ),
            period=AnalyticsPeriod(**overview["period"]),
            analytics=ProfileAnalytics(
                total_views=overview["total_views"],
                all_time_views=overview["all_time_views"],
                total_clicks=overview["total_clicks"],
                views_by_source=source_counts(overview["views_by_source"]),
                views_by_device=[DeviceCount(device=k, count=c) for k, c in overview["views_by_device"]],
                views_by_browser=[BrowserCount(browser=k, count=c) for k, c in overview["views_by_browser"]],
                views_by_country=[CountryCount(country=k, count=c) for k, c in overview["views_by_country"]],
                views_by_city=[
                    CityCount(city=city, country=country, count=count)
                    for city, country, count in overview["views_by_city"]
                ],
                views_by_date=[DailyCount(date=k, count=c) for k, c in overview["views_by_date"]],
                recent_views=[ProfileViewResponse.model_validate(view) for view in overview["recent_views"]],
            ),
            social_links=[SocialLinkResponse.model_validate(link) for link in overview["social_links"]],
        )
    )


@router.get("/profile/{profile_id}/views-by-source")
async def views_by_source(
    profile_id: int,
    days: int = Query(30, ge=1, le=365),
    user: User = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    result = await service.views_by_source(profile_id, user.id, days)
    return success(
        {
            "total": result["total"],
            "breakdown": [SourceShare(**row) for row in result["breakdown"]],
        }
    )


@router.get("/profile/{profile_id}/views-by-location")
async def views_by_location(
    profile_id: int,
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    result = await service.views_by_location(profile_id, user.id, days, limit)
    return success(
        {
            "countries": [CountryCount(**row) for row in result["countries"]],
            "cities": [CityCount(**row) for row in result["cities"]],
        }
    )


@router.get("/profile/{profile_id}/views-by-device")
async def views_by_device(
    profile_id: int,
    days: int = Query(30, ge=1, le=365),
    user: User = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    result = await service.views_by_device(profile_id, user.id, days)
    return success(
        {
            "totalViews": result["total_views"],
            "devices": [DeviceShare(**row) for row in result["devices"]],
            "browsers": [BrowserCount(**row) for row in result["browsers"]],
        }
    )


@router.get("/profile/{profile_id}/views-over-time")
async def views_over_time(
    profile_id: int,
    days: int = Query(30, ge=1, le=365),
    fill_gaps: bool = Query(False, alias="fillGaps"),
    user: User = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Daily view counts, ascending; days without views are omitted unless fillGaps is set."""
    result = await service.views_over_time(profile_id, user.id, days, fill_gaps)
    return success(
        {
            "period": result["period"],
            "views": [DailyCount(**row) for row in result["views"]],
        }
    )


@router.get("/profile/{profile_id}/recent-views")
async def recent_views(
    profile_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    views = await service.recent_views(profile_id, user.id, limit, offset)
    return success([ProfileViewResponse.model_validate(view) for view in views])


@router.delete("/profile/{profile_id}/cleanup")
async def cleanup_old_views(
    profile_id: int,
    cleanup: Optional[CleanupRequest] = None,
    user: User = Depends(get_current_user),
    tracker: ViewTracker = Depends(get_view_tracker),
):
    """Delete view events older than daysToKeep; counters and contacts are kept."""
    if cleanup is not None and cleanup.days_to_keep is not None:
        days_to_keep = cleanup.days_to_keep
    else:
        days_to_keep = get_config().tracking.default_retention_days
    deleted = await tracker.purge_views_older_than(profile_id, user.id, days_to_keep)
    return success(
        {"deletedCount": deleted},
        message=f"Deleted {deleted} old view records",
    )

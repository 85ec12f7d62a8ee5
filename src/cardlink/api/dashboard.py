"""Dashboard API endpoints for owners and administrators."""

from fastapi import APIRouter, Depends

from ..auth.dependencies import get_current_user, require_admin
from ..db.models import User
from ..services.analytics import AnalyticsService
from ..services.dependencies import get_analytics_service
from .responses import success
from .schemas import (
    AdminCharts,
    AdminDashboardResponse,
    AdminStats,
    DailyCount,
    DashboardProfile,
    DashboardSummary,
    SourceCount,
    StatValue,
    TopProfile,
    TypeCount,
    UserSummary,
)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def daily(rows):
    return [DailyCount(date=day, count=count) for day, count in rows]


@router.get("/summary")
async def dashboard_summary(
    user: User = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Profile counts, views and clicks for the caller."""
    summary = await service.dashboard_summary(user.id)
    return success(
        DashboardSummary(
            total_profiles=summary["total_profiles"],
            active_profiles=summary["active_profiles"],
            total_views=summary["total_views"],
            total_clicks=summary["total_clicks"],
            profiles=[DashboardProfile(**profile) for profile in summary["profiles"]],
        )
    )


@router.get("/admin/stats")
async def admin_stats(
    admin: User = Depends(require_admin),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Platform-wide totals, registration growth and 7-day charts."""
    result = await service.admin_stats()
    stats = result["stats"]
    charts = result["charts"]
    return success(
        AdminDashboardResponse(
            stats=AdminStats(**{key: StatValue(**value) for key, value in stats.items()}),
            charts=AdminCharts(
                profiles_by_type=[TypeCount(type=key, count=count) for key, count in charts["profiles_by_type"]],
                views_over_time=daily(charts["views_over_time"]),
                users_over_time=daily(charts["users_over_time"]),
                profiles_over_time=daily(charts["profiles_over_time"]),
                views_by_source=[SourceCount(source=key, count=count) for key, count in charts["views_by_source"]],
            ),
            top_profiles=[TopProfile.model_validate(profile) for profile in result["top_profiles"]],
            recent_users=[UserSummary.model_validate(user) for user in result["recent_users"]],
        )
    )

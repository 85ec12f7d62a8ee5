"""On-demand analytics rollups over profile views, links and registrations.

Everything here is read-only and computed from the event tables at request
time; there is no materialized rollup store.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from ..core.errors import NotFoundError
from ..db.models import Profile
from ..repositories.interfaces import CountRow, RepositoryContainer
from ..utils.logging_config import get_logger

logger = get_logger("analytics")

DEFAULT_WINDOW_DAYS = 30
CHART_WINDOW_DAYS = 7
GROWTH_WINDOW_DAYS = 30


def percentage(count: int, total: int) -> float:
    """Share of ``total`` as a percentage rounded to two decimals."""
    if not total:
        return 0.0
    return round(count / total * 100, 2)


def growth_percentage(current: int, previous: int) -> float:
    """Change between two windows in percent; 0 when the earlier window is empty."""
    if not previous:
        return 0
    return round((current - previous) / previous * 100, 1)


def fill_daily_series(rows: Sequence[CountRow], start: date, end: date) -> List[CountRow]:
    """Materialize zero-count days between ``start`` and ``end`` inclusive."""
    counts = dict(rows)
    series = []
    day = start
    while day <= end:
        key = day.isoformat()
        series.append((key, counts.get(key, 0)))
        day += timedelta(days=1)
    return series


def window_start(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or datetime.now(timezone.utc)) - timedelta(days=days)


class AnalyticsService:
    """Computes per-profile, per-user and platform-wide rollups."""

    def __init__(self, repos: RepositoryContainer):
        self.repos = repos

    async def _owned_profile(self, profile_id: int, user_id: UUID) -> Profile:
        profile = await self.repos.profile.get_owned(profile_id, user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def views_by_source(self, profile_id: int, user_id: UUID, days: int = DEFAULT_WINDOW_DAYS) -> Dict[str, Any]:
        profile = await self._owned_profile(profile_id, user_id)
        rows = await self.repos.view.count_by("view_source", [profile.id], window_start(days))
        total = sum(count for _, count in rows)
        return {
            "total": total,
            "breakdown": [
                {"source": source, "count": count, "percentage": percentage(count, total)}
                for source, count in rows
            ],
        }

    async def views_by_location(
        self, profile_id: int, user_id: UUID, days: int = DEFAULT_WINDOW_DAYS, limit: int = 10
    ) -> Dict[str, Any]:
        profile = await self._owned_profile(profile_id, user_id)
        since = window_start(days)
        countries = await self.repos.view.count_by("country", [profile.id], since, limit)
        cities = await self.repos.view.count_by_city([profile.id], since, limit)
        return {
            "countries": [{"country": country, "count": count} for country, count in countries],
            "cities": [
                {"city": city, "country": country, "count": count}
                for city, country, count in cities
            ],
        }

    async def views_by_device(self, profile_id: int, user_id: UUID, days: int = DEFAULT_WINDOW_DAYS) -> Dict[str, Any]:
        profile = await self._owned_profile(profile_id, user_id)
        since = window_start(days)
        devices = await self.repos.view.count_by("device", [profile.id], since)
        browsers = await self.repos.view.count_by("browser", [profile.id], since, 10)
        total = await self.repos.view.count([profile.id], since)
        return {
            "total_views": total,
            "devices": [
                {"device": device, "count": count, "percentage": percentage(count, total)}
                for device, count in devices
            ],
            "browsers": [{"browser": browser, "count": count} for browser, count in browsers],
        }

    async def views_over_time(
        self,
        profile_id: int,
        user_id: UUID,
        days: int = DEFAULT_WINDOW_DAYS,
        fill_gaps: bool = False,
    ) -> Dict[str, Any]:
        """Daily view counts in the window, ascending by date."""
        profile = await self._owned_profile(profile_id, user_id)
        now = datetime.now(timezone.utc)
        since = window_start(days, now)
        rows = await self.repos.view.count_by_day([profile.id], since)
        if fill_gaps:
            rows = fill_daily_series(rows, since.date(), now.date())
        return {
            "period": f"{days} days",
            "views": [{"date": day, "count": count} for day, count in rows],
        }

    async def recent_views(self, profile_id: int, user_id: UUID, limit: int = 20, offset: int = 0):
        profile = await self._owned_profile(profile_id, user_id)
        return await self.repos.view.list_recent(profile.id, limit, offset)

    async def profile_overview(self, profile_id: int, user_id: UUID, days: int = DEFAULT_WINDOW_DAYS) -> Dict[str, Any]:
        """Full analytics for one profile over the window."""
        profile = await self._owned_profile(profile_id, user_id)
        now = datetime.now(timezone.utc)
        since = window_start(days, now)
        ids = [profile.id]

        links = await self.repos.social_link.list_by_profile(profile.id, include_hidden=True)
        links_by_clicks = sorted(links, key=lambda link: (-link.click_count, link.order, link.id))

        return {
            "profile": profile,
            "period": {"days": days, "start_date": since, "end_date": now},
            "total_views": await self.repos.view.count(ids, since),
            "all_time_views": profile.view_count,
            "total_clicks": sum(link.click_count for link in links),
            "views_by_source": await self.repos.view.count_by("view_source", ids, since),
            "views_by_device": await self.repos.view.count_by("device", ids, since),
            "views_by_browser": await self.repos.view.count_by("browser", ids, since, 10),
            "views_by_country": await self.repos.view.count_by("country", ids, since, 10),
            "views_by_city": await self.repos.view.count_by_city(ids, since, 10),
            "views_by_date": await self.repos.view.count_by_day(ids, since),
            "recent_views": await self.repos.view.list_recent(profile.id, 20),
            "social_links": links_by_clicks,
        }

    async def user_analytics(self, user_id: UUID, days: int = DEFAULT_WINDOW_DAYS) -> Dict[str, Any]:
        """Totals across a user's profiles plus a per-profile breakdown."""
        profiles = await self.repos.profile.list_by_user(user_id)
        ids = [profile.id for profile in profiles]
        since = window_start(days)

        views_in_period = await self.repos.view.counts_by_profile(ids, since)
        clicks = await self.repos.social_link.click_totals_by_profile(ids)

        return {
            "period": f"{days} days",
            "total_profiles": len(profiles),
            "total_views": sum(profile.view_count for profile in profiles),
            "total_views_in_period": sum(views_in_period.values()),
            "total_clicks": sum(clicks.values()),
            "views_by_source": await self.repos.view.count_by("view_source", ids, since),
            "profiles": [
                {
                    "id": profile.id,
                    "name": profile.name,
                    "slug": profile.slug,
                    "type": profile.profile_type,
                    "total_views": profile.view_count,
                    "views_in_period": views_in_period.get(profile.id, 0),
                    "clicks": clicks.get(profile.id, 0),
                }
                for profile in profiles
            ],
        }

    async def dashboard_summary(self, user_id: UUID) -> Dict[str, Any]:
        profiles = await self.repos.profile.list_by_user(user_id)
        ids = [profile.id for profile in profiles]
        ranked = sorted(profiles, key=lambda profile: (-profile.view_count, profile.id))

        return {
            "total_profiles": len(profiles),
            "active_profiles": sum(1 for profile in profiles if profile.is_active),
            "total_views": sum(profile.view_count for profile in profiles),
            "total_clicks": await self.repos.social_link.sum_clicks(ids),
            "profiles": [
                {
                    "id": profile.id,
                    "name": profile.name,
                    "slug": profile.slug,
                    "type": profile.profile_type,
                    "views": profile.view_count,
                    "is_active": profile.is_active,
                }
                for profile in ranked
            ],
        }

    async def admin_stats(self) -> Dict[str, Any]:
        """Platform-wide totals, growth and 7-day charts."""
        now = datetime.now(timezone.utc)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        growth_start = window_start(GROWTH_WINDOW_DAYS, now)
        previous_start = window_start(2 * GROWTH_WINDOW_DAYS, now)
        chart_start = window_start(CHART_WINDOW_DAYS, now)

        registrations = await self.repos.user.count(since=growth_start)
        previous_registrations = await self.repos.user.count(since=previous_start, until=growth_start)
        top_profiles = await self.repos.profile.list_top_viewed(5)
        logger.debug(
            f"Admin stats: {registrations} registrations in the last {GROWTH_WINDOW_DAYS} days, "
            f"{previous_registrations} in the window before"
        )

        stats = {
            "total_users": {
                "value": await self.repos.user.count(),
                "today": await self.repos.user.count(since=today),
                "growth": growth_percentage(registrations, previous_registrations),
            },
            "total_profiles": {
                "value": await self.repos.profile.count(),
                "today": await self.repos.profile.count(since=today),
            },
            "total_views": {
                "value": await self.repos.profile.sum_view_count(),
                "today": await self.repos.view.count(None, today),
            },
            "total_clicks": {"value": await self.repos.social_link.sum_clicks()},
            "active_profiles": {"value": await self.repos.profile.count(active_only=True)},
        }
        charts = {
            "profiles_by_type": await self.repos.profile.count_by_type(),
            "views_over_time": await self.repos.view.count_by_day(None, chart_start),
            "users_over_time": await self.repos.user.count_by_day(chart_start),
            "profiles_over_time": await self.repos.profile.count_by_day(chart_start),
            "views_by_source": await self.repos.view.count_by("view_source", None, chart_start),
        }
        return {
            "stats": stats,
            "charts": charts,
            "top_profiles": top_profiles,
            "recent_users": await self.repos.user.list_recent(5),
        }

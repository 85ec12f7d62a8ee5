"""Anonymous view, click and contact tracking."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from ..core.enums import ViewSource
from ..core.errors import NotFoundError, ValidationError
from ..db.models import Profile, ProfileView, ProfileVisitor, SocialLink
from ..domain.links import EMAIL, PHONE, redirect_url
from ..repositories.interfaces import RepositoryContainer
from ..utils.logging_config import get_logger
from .geo import GeoResolver
from .request_context import RequestContext, describe_visitor

logger = get_logger("tracking")

DEFAULT_RETENTION_DAYS = 90


def parse_view_source(source: Optional[str]) -> str:
    """Validate a view source, defaulting to direct."""
    if source is None or (isinstance(source, str) and not source.strip()):
        return ViewSource.DIRECT.value
    try:
        return ViewSource(source).value
    except ValueError:
        allowed = ", ".join(member.value for member in ViewSource)
        raise ValidationError(f"Invalid view source '{source}', expected one of: {allowed}", field="source")


class ViewTracker:
    """Records views, clicks and visitor contacts against active profiles."""

    def __init__(self, repos: RepositoryContainer, geo: GeoResolver):
        self.repos = repos
        self.geo = geo

    async def _active_profile(self, slug: str) -> Profile:
        profile = await self.repos.profile.get_by_slug(slug, active_only=True)
        if profile is None:
            raise NotFoundError("Profile not found or inactive")
        return profile

    async def _owned_profile(self, profile_id: int, user_id: UUID) -> Profile:
        profile = await self.repos.profile.get_owned(profile_id, user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def track_view(
        self, slug: str, source: Optional[str], context: RequestContext
    ) -> Tuple[ProfileView, int]:
        """
        Record one view of an active profile.

        Returns:
            Tuple of (stored view, profile view count after the increment)
        """
        view_source = parse_view_source(source)
        profile = await self._active_profile(slug)
        visitor = describe_visitor(context, self.geo)

        view = ProfileView(
            profile_id=profile.id,
            viewer_ip=visitor.ip,
            country=visitor.country,
            city=visitor.city,
            user_agent=visitor.user_agent,
            device=visitor.device,
            browser=visitor.browser,
            referrer=visitor.referrer,
            view_source=view_source,
            viewed_at=datetime.now(timezone.utc),
        )
        try:
            await self.repos.view.save(view)
            await self.repos.view.flush()
            view_count = await self.repos.profile.increment_view_count(profile.id)
            await self.repos.commit()
        except SQLAlchemyError:
            await self.repos.rollback()
            raise

        logger.debug(f"View {view.id} on profile {profile.id} via {view_source} ({visitor.device})")
        return view, view_count

    async def save_visitor_contact(
        self,
        slug: str,
        email: Optional[str],
        phone: Optional[str],
        source: Optional[str],
        context: RequestContext,
    ) -> ProfileVisitor:
        """
        Store contact details a visitor left on a public profile.

        Raises:
            ValidationError: Email or phone is malformed
            NotFoundError: The profile is missing or inactive
        """
        email = (email or "").strip().lower()
        phone = (phone or "").strip()
        if not email or not phone:
            raise ValidationError("Email and phone are required")
        if not EMAIL.match(email):
            raise ValidationError("Please provide a valid email address", field="email")
        if not PHONE.match(phone) or not 7 <= len(phone) <= 20:
            raise ValidationError("Please provide a valid phone number", field="phone")
        view_source = parse_view_source(source)

        profile = await self._active_profile(slug)
        visitor = describe_visitor(context, self.geo)

        contact = ProfileVisitor(
            profile_id=profile.id,
            user_id=profile.user_id,
            visitor_email=email,
            visitor_phone=phone,
            viewer_ip=visitor.ip,
            country=visitor.country,
            city=visitor.city,
            user_agent=visitor.user_agent,
            device=visitor.device,
            browser=visitor.browser,
            referrer=visitor.referrer,
            view_source=view_source,
            submitted_at=datetime.now(timezone.utc),
        )
        await self.repos.visitor.save(contact)
        try:
            await self.repos.commit()
        except SQLAlchemyError:
            await self.repos.rollback()
            raise

        await self.repos.visitor.refresh(contact)
        logger.info(f"Visitor contact {contact.id} captured on profile {profile.id}")
        return contact

    async def track_click(self, link_id: int) -> Tuple[SocialLink, int, str]:
        """
        Count a click on a link of an active profile.

        Returns:
            Tuple of (link, click count after the increment, redirect URL)
        """
        link = await self.repos.social_link.get_by_id(link_id)
        if link is None or not link.profile.is_active:
            raise NotFoundError("Social link not found or profile inactive")

        try:
            click_count = await self.repos.social_link.increment_click_count(link.id)
            await self.repos.commit()
        except SQLAlchemyError:
            await self.repos.rollback()
            raise

        return link, click_count, redirect_url(link.platform, link.url)

    async def purge_views_older_than(
        self, profile_id: int, user_id: UUID, days: int = DEFAULT_RETENTION_DAYS
    ) -> int:
        """Delete views older than ``days``; view counters and contacts are kept."""
        if days < 1:
            raise ValidationError("daysToKeep must be at least 1", field="daysToKeep")
        profile = await self._owned_profile(profile_id, user_id)
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)

        deleted = await self.repos.view.delete_older_than(profile.id, cutoff)
        await self.repos.commit()
        logger.info(f"Purged {deleted} views older than {days} days from profile {profile.id}")
        return deleted

    async def list_visitors(
        self, profile_id: int, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> Tuple[List[ProfileVisitor], int]:
        profile = await self._owned_profile(profile_id, user_id)
        visitors = await self.repos.visitor.list_by_profile(profile.id, limit, offset)
        return visitors, await self.repos.visitor.count(profile.id)

    async def visitor_stats(self, profile_id: int, user_id: UUID) -> Dict[str, Any]:
        profile = await self._owned_profile(profile_id, user_id)
        return {
            "total_visitors": await self.repos.visitor.count(profile.id),
            "by_source": await self.repos.visitor.count_by("view_source", profile.id),
            "by_device": await self.repos.visitor.count_by("device", profile.id),
            "by_country": await self.repos.visitor.count_by("country", profile.id),
        }

    async def list_all_visitors(
        self, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> Tuple[List[ProfileVisitor], int]:
        """Contacts across all of the user's profiles, kept after a profile is deleted."""
        visitors = await self.repos.visitor.list_by_user(user_id, limit, offset)
        return visitors, await self.repos.visitor.count_for_user(user_id)

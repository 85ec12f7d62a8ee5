"""Social link management for profile owners."""

from typing import Any, Dict, List, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from ..core.enums import Platform
from ..core.errors import DuplicateError, NotFoundError, ValidationError
from ..db.models import Profile, SocialLink
from ..domain.links import next_order, validate_link
from ..repositories.interfaces import RepositoryContainer
from ..utils.logging_config import get_logger

logger = get_logger("profiles")


def _label(value) -> Any:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class SocialLinkService:
    """Ownership-checked CRUD, ordering and statistics for social links."""

    def __init__(self, repos: RepositoryContainer):
        self.repos = repos

    async def _owned_profile(self, profile_id: int, user_id: UUID) -> Profile:
        profile = await self.repos.profile.get_owned(profile_id, user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def get(self, link_id: int, user_id: UUID) -> SocialLink:
        link = await self.repos.social_link.get_owned(link_id, user_id)
        if link is None:
            raise NotFoundError("Social link not found")
        return link

    async def list(self, profile_id: int, user_id: UUID, include_hidden: bool = False) -> List[SocialLink]:
        await self._owned_profile(profile_id, user_id)
        return await self.repos.social_link.list_by_profile(profile_id, include_hidden)

    async def create(
        self,
        profile_id: int,
        user_id: UUID,
        platform,
        url: str,
        label=None,
        is_visible: bool = True,
    ) -> SocialLink:
        """
        Add a link for a platform not yet present on the profile.

        Raises:
            DuplicateError: The profile already has a link for this platform
            ValidationError: The URL does not fit the platform
        """
        await self._owned_profile(profile_id, user_id)
        platform = Platform(platform)

        if await self.repos.social_link.get_by_profile_platform(profile_id, platform.value):
            raise DuplicateError(
                f"A {platform.value} link already exists for this profile. Update it instead.",
                platform=platform.value,
            )

        link = SocialLink(
            profile_id=profile_id,
            platform=platform.value,
            url=validate_link(platform, url),
            label=_label(label),
            is_visible=is_visible,
            order=next_order([await self.repos.social_link.max_order(profile_id)]),
        )
        await self.repos.social_link.save(link)
        try:
            await self.repos.commit()
        except IntegrityError:
            await self.repos.rollback()
            raise DuplicateError(
                f"A {platform.value} link already exists for this profile. Update it instead.",
                platform=platform.value,
            )

        await self.repos.social_link.refresh(link)
        logger.info(f"Added {platform.value} link {link.id} to profile {profile_id}")
        return link

    async def bulk_create(
        self, profile_id: int, user_id: UUID, links: Sequence[Dict[str, Any]]
    ) -> Tuple[List[SocialLink], int]:
        """
        Add several links, skipping platforms the profile already has.

        Returns:
            Tuple of (created links, number of skipped entries)

        Raises:
            ValidationError: Nothing is left to create, or an entry is invalid
        """
        await self._owned_profile(profile_id, user_id)
        current = await self.repos.social_link.list_by_profile(profile_id, include_hidden=True)
        existing = {link.platform for link in current}

        submitted = [
            entry for entry in links
            if entry.get("url") is not None and str(entry["url"]).strip()
        ]
        if not submitted:
            raise ValidationError("No valid links provided", field="links")

        pending: List[Dict[str, Any]] = []
        skipped = 0
        for entry in submitted:
            platform = Platform(entry["platform"])
            raw_url = entry["url"]
            if platform.value in existing:
                skipped += 1
                continue
            pending.append(
                {
                    "platform": platform.value,
                    "url": validate_link(platform, raw_url),
                    "label": _label(entry.get("label")),
                    "is_visible": entry.get("is_visible", True) is not False,
                }
            )
            existing.add(platform.value)

        if not pending:
            raise ValidationError("All provided platforms already exist for this profile")

        first_order = next_order(link.order for link in current)
        created = []
        for offset, values in enumerate(pending):
            link = SocialLink(profile_id=profile_id, order=first_order + offset, **values)
            await self.repos.social_link.save(link)
            created.append(link)

        try:
            await self.repos.commit()
        except IntegrityError:
            await self.repos.rollback()
            raise DuplicateError("One of the platforms was added concurrently, please retry")

        for link in created:
            await self.repos.social_link.refresh(link)
        logger.info(f"Bulk added {len(created)} links to profile {profile_id} ({skipped} skipped)")
        return created, skipped

    async def update(self, link_id: int, user_id: UUID, fields: Dict[str, Any]) -> SocialLink:
        """Partial update of url, label, visibility or order."""
        link = await self.get(link_id, user_id)

        if "url" in fields:
            link.url = validate_link(link.platform, fields["url"])
        if "label" in fields:
            link.label = _label(fields["label"])
        if fields.get("is_visible") is not None:
            link.is_visible = bool(fields["is_visible"])
        if fields.get("order") is not None:
            if fields["order"] < 1:
                raise ValidationError("Order must be at least 1", field="order")
            link.order = fields["order"]

        await self.repos.commit()
        await self.repos.social_link.refresh(link)
        return link

    async def delete(self, link_id: int, user_id: UUID) -> None:
        link = await self.get(link_id, user_id)
        await self.repos.social_link.delete(link)
        await self.repos.commit()
        logger.info(f"Deleted link {link_id}")

    async def toggle_visibility(self, link_id: int, user_id: UUID) -> SocialLink:
        link = await self.get(link_id, user_id)
        link.is_visible = not link.is_visible
        await self.repos.commit()
        await self.repos.social_link.refresh(link)
        return link

    async def reorder(
        self, profile_id: int, user_id: UUID, orders: Sequence[Tuple[int, int]]
    ) -> List[SocialLink]:
        """
        Apply (link_id, order) pairs in one transaction.

        Links that do not belong to the profile are ignored. Orders need not
        be contiguous but must be at least 1.
        """
        await self._owned_profile(profile_id, user_id)
        for _, order in orders:
            if order < 1:
                raise ValidationError("Order must be at least 1", field="order")

        links = {
            link.id: link
            for link in await self.repos.social_link.list_by_profile(profile_id, include_hidden=True)
        }
        for link_id, order in orders:
            if link_id in links:
                links[link_id].order = order

        await self.repos.commit()
        return await self.repos.social_link.list_by_profile(profile_id, include_hidden=True)

    async def bulk_delete(self, profile_id: int, user_id: UUID, link_ids: Sequence[int]) -> int:
        await self._owned_profile(profile_id, user_id)
        deleted = await self.repos.social_link.delete_many(profile_id, list(link_ids))
        await self.repos.commit()
        logger.info(f"Bulk deleted {deleted} links from profile {profile_id}")
        return deleted

    async def statistics(self, profile_id: int, user_id: UUID) -> Dict[str, Any]:
        """Visibility counts and links ranked by clicks."""
        await self._owned_profile(profile_id, user_id)
        links = await self.repos.social_link.list_by_profile(profile_id, include_hidden=True)
        ranked = sorted(links, key=lambda link: (-link.click_count, link.order, link.id))
        visible = sum(1 for link in links if link.is_visible)

        return {
            "total_links": len(links),
            "visible_links": visible,
            "hidden_links": len(links) - visible,
            "total_clicks": sum(link.click_count for link in links),
            "most_clicked_link": ranked[0] if ranked and ranked[0].click_count > 0 else None,
            "links": ranked,
        }

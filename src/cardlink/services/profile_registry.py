"""Profile lifecycle: creation, updates, activation, deletion and public lookup."""

from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..config import get_config
from ..core.enums import DesignMode, Platform, ProfileType
from ..core.errors import ConflictError, NotFoundError, ProfileHasOrdersError, ValidationError
from ..db.models import Profile, SocialLink
from ..domain.links import validate_link
from ..domain.slugs import allocate_slug, build_profile_url
from ..repositories.interfaces import RepositoryContainer
from ..utils.logging_config import get_logger
from .assets import AssetStore, discard_asset, discard_assets
from .qr import publish_profile_qr

logger = get_logger("profiles")

DEFAULT_COLOR = "#0066FF"
DEFAULT_TEMPLATE = "modern"

UPDATABLE_FIELDS = (
    "name",
    "title",
    "bio",
    "avatar",
    "color",
    "design_mode",
    "ai_prompt",
    "ai_background",
    "custom_design_url",
    "template",
)
NON_NULLABLE_FIELDS = ("name", "color", "design_mode", "template")
# Replaced values of these fields point at assets that may need deleting
ASSET_FIELDS = ("avatar", "ai_background", "custom_design_url")


def prepare_links(links: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Validate a batch of submitted links.

    Entries with a blank URL are skipped. Raises ValidationError on the first
    invalid entry so nothing is persisted for a bad batch.
    """
    prepared: List[Dict[str, Any]] = []
    seen = set()
    for link in links:
        raw_url = link.get("url")
        if raw_url is None or not str(raw_url).strip():
            continue

        platform = Platform(link["platform"])
        if platform in seen:
            raise ValidationError(
                f"Duplicate platform '{platform.value}' in links", field="links"
            )
        seen.add(platform)

        label = link.get("label")
        prepared.append(
            {
                "platform": platform.value,
                "url": validate_link(platform, raw_url),
                "label": label.strip() if label and label.strip() else None,
                "is_visible": link.get("is_visible", True) is not False,
            }
        )
    return prepared


def _clean(value: Any) -> Any:
    """Trim strings; blank strings become None."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, (DesignMode, ProfileType)):
        return value.value
    return value


class ProfileRegistry:
    """Owns the profile lifecycle and its invariants."""

    def __init__(self, repos: RepositoryContainer, assets: AssetStore, public_base_url: Optional[str] = None):
        self.repos = repos
        self.assets = assets
        self.public_base_url = public_base_url or get_config().app.public_base_url

    async def _slug_for(self, name: str, exclude_profile_id: Optional[int] = None) -> str:
        async def taken(candidate: str) -> bool:
            return await self.repos.profile.slug_exists(candidate, exclude_profile_id)

        return await allocate_slug(name, taken)

    async def get_for_owner(self, profile_id: int, user_id: UUID) -> Profile:
        """Get an owned profile or raise NotFoundError."""
        profile = await self.repos.profile.get_owned(profile_id, user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    async def list_for_owner(self, user_id: UUID) -> List[Profile]:
        return await self.repos.profile.list_by_user(user_id)

    async def get_public(self, slug: str) -> Tuple[Profile, List[SocialLink]]:
        """Active profile by slug with its visible links in display order."""
        profile = await self.repos.profile.get_by_slug(slug, active_only=True)
        if profile is None:
            raise NotFoundError("Profile not found or inactive")
        links = [link for link in profile.social_links if link.is_visible]
        return profile, sorted(links, key=lambda link: (link.order, link.id))

    async def create(
        self,
        user_id: UUID,
        profile_type,
        fields: Dict[str, Any],
        links: Sequence[Dict[str, Any]] = (),
    ) -> Profile:
        """
        Create a profile with its initial links in one transaction.

        Raises:
            ConflictError: The user already has a profile of this type
            ValidationError: A field or link is malformed
            UpstreamError: The QR code could not be stored
        """
        profile_type = ProfileType(profile_type).value
        if await self.repos.profile.exists_for_user_type(user_id, profile_type):
            raise ConflictError(
                f"You already have a {profile_type} profile", profileType=profile_type
            )

        values = {
            key: _clean(fields[key]) for key in UPDATABLE_FIELDS if key in fields
        }
        if not values.get("name"):
            raise ValidationError("Name is required", field="name")
        values["color"] = values.get("color") or DEFAULT_COLOR
        values["design_mode"] = values.get("design_mode") or DesignMode.MANUAL.value
        values["template"] = values.get("template") or DEFAULT_TEMPLATE

        prepared_links = prepare_links(links)

        for attempt in range(2):
            slug = await self._slug_for(values["name"])
            profile_url = build_profile_url(self.public_base_url, slug)
            qr_code_url = await publish_profile_qr(self.assets, slug, profile_url)

            profile = Profile(
                user_id=user_id,
                profile_type=profile_type,
                slug=slug,
                profile_url=profile_url,
                qr_code_url=qr_code_url,
                **values,
            )
            for order, link in enumerate(prepared_links, start=1):
                profile.social_links.append(SocialLink(order=order, **link))

            try:
                await self.repos.profile.save(profile)
                await self.repos.commit()
            except IntegrityError:
                await self.repos.rollback()
                await discard_asset(self.assets, qr_code_url)
                if await self.repos.profile.exists_for_user_type(user_id, profile_type):
                    raise ConflictError(
                        f"You already have a {profile_type} profile", profileType=profile_type
                    )
                if attempt == 0 and await self.repos.profile.slug_exists(slug):
                    logger.warning(f"Slug '{slug}' was claimed concurrently, retrying")
                    continue
                raise ConflictError("Profile conflicts with an existing record")
            except SQLAlchemyError:
                await self.repos.rollback()
                await discard_asset(self.assets, qr_code_url)
                raise

            await self.repos.profile.refresh(profile)
            logger.info(
                f"Created {profile_type} profile {profile.id} ({slug}) for user {user_id} "
                f"with {len(prepared_links)} links"
            )
            return profile

        raise ConflictError("Could not allocate a unique slug")

    async def update(self, profile_id: int, user_id: UUID, fields: Dict[str, Any]) -> Profile:
        """
        Apply a partial update.

        Only keys present in ``fields`` change. Nullable fields may be cleared
        with None or an empty string. A name change moves the slug, URL and QR.
        """
        profile = await self.get_for_owner(profile_id, user_id)

        changes = {key: _clean(fields[key]) for key in UPDATABLE_FIELDS if key in fields}
        for key in NON_NULLABLE_FIELDS:
            if key in changes and changes[key] is None:
                raise ValidationError(f"{key} cannot be empty", field=key)

        for attempt in range(2):
            superseded: List[Optional[str]] = [
                getattr(profile, key)
                for key in ASSET_FIELDS
                if key in changes and changes[key] != getattr(profile, key)
            ]

            slug = None
            new_qr_code_url = None
            if "name" in changes and changes["name"] != profile.name:
                slug = await self._slug_for(changes["name"], exclude_profile_id=profile.id)
                if slug != profile.slug:
                    profile_url = build_profile_url(self.public_base_url, slug)
                    new_qr_code_url = await publish_profile_qr(self.assets, slug, profile_url)
                    superseded.append(profile.qr_code_url)
                    profile.slug = slug
                    profile.profile_url = profile_url
                    profile.qr_code_url = new_qr_code_url

            for key, value in changes.items():
                setattr(profile, key, value)

            try:
                await self.repos.commit()
            except IntegrityError:
                await self.repos.rollback()
                await discard_asset(self.assets, new_qr_code_url)
                if (
                    attempt == 0
                    and new_qr_code_url is not None
                    and await self.repos.profile.slug_exists(slug, profile.id)
                ):
                    logger.warning(f"Slug '{slug}' was claimed concurrently, retrying rename")
                    await self.repos.profile.refresh(profile)
                    continue
                raise ConflictError("Profile name conflicts with another profile")
            except SQLAlchemyError:
                await self.repos.rollback()
                await discard_asset(self.assets, new_qr_code_url)
                raise

            await discard_assets(self.assets, superseded)
            await self.repos.profile.refresh(profile)
            logger.info(f"Updated profile {profile.id}: {sorted(changes)}")
            return profile

        raise ConflictError("Could not allocate a unique slug")

    async def toggle_active(self, profile_id: int, user_id: UUID) -> Profile:
        profile = await self.get_for_owner(profile_id, user_id)
        profile.is_active = not profile.is_active
        await self.repos.commit()
        await self.repos.profile.refresh(profile)
        logger.info(f"Profile {profile.id} is now {'active' if profile.is_active else 'inactive'}")
        return profile

    async def regenerate_qr(self, profile_id: int, user_id: UUID) -> Profile:
        """Render a fresh QR code for the profile's current URL."""
        profile = await self.get_for_owner(profile_id, user_id)
        old_qr_code_url = profile.qr_code_url
        new_qr_code_url = await publish_profile_qr(self.assets, profile.slug, profile.profile_url)

        profile.qr_code_url = new_qr_code_url
        try:
            await self.repos.commit()
        except SQLAlchemyError:
            await self.repos.rollback()
            await discard_asset(self.assets, new_qr_code_url)
            raise

        await discard_asset(self.assets, old_qr_code_url)
        await self.repos.profile.refresh(profile)
        return profile

    async def delete(self, profile_id: int, user_id: UUID) -> None:
        """
        Delete a profile with its links and views.

        Raises:
            ProfileHasOrdersError: Orders reference the profile
        """
        profile = await self.get_for_owner(profile_id, user_id)

        order_count = await self.repos.order.count_for_profile(profile.id)
        if order_count:
            raise ProfileHasOrdersError(order_count)

        owned_assets = [
            profile.avatar,
            profile.qr_code_url,
            profile.ai_background,
            profile.custom_design_url,
        ]

        await self.repos.profile.delete(profile)
        await self.repos.commit()
        await discard_assets(self.assets, owned_assets)
        logger.info(f"Deleted profile {profile_id} for user {user_id}")

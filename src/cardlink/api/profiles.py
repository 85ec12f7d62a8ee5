"""Profile management API endpoints."""

from fastapi import APIRouter, Depends, Query, Request, status

from ..auth.dependencies import get_current_user
from ..config import get_config
from ..db.models import User
from ..services.dependencies import get_profile_registry, get_view_tracker
from ..services.profile_registry import ProfileRegistry
from ..services.request_context import build_request_context
from ..services.tracker import ViewTracker
from .responses import success
from .schemas import (
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
    PublicProfileResponse,
    PublicSocialLink,
    SourceCount,
    DeviceCount,
    CountryCount,
    VisitorContactCreate,
    VisitorResponse,
)

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_profile(
    profile_data: ProfileCreate,
    user: User = Depends(get_current_user),
    registry: ProfileRegistry = Depends(get_profile_registry),
):
    """
    Create a profile together with its initial social links.

    A user may own one profile of each type. All links are validated before
    anything is stored; an invalid link rejects the whole request.
    """
    fields = profile_data.model_dump(exclude={"profile_type", "social_links"}, exclude_unset=True)
    links = [link.model_dump() for link in profile_data.social_links]
    profile = await registry.create(user.id, profile_data.profile_type, fields, links)
    return success(ProfileResponse.model_validate(profile), message="Profile created successfully")


@router.get("")
async def list_profiles(
    user: User = Depends(get_current_user),
    registry: ProfileRegistry = Depends(get_profile_registry),
):
    """List the caller's profiles, newest first, with all their links."""
    profiles = await registry.list_for_owner(user.id)
    return success([ProfileResponse.model_validate(profile) for profile in profiles])


@router.get("/public/{slug}")
async def get_public_profile(
    slug: str,
    registry: ProfileRegistry = Depends(get_profile_registry),
):
    """Public profile page data: active profiles only, visible links only."""
    profile, links = await registry.get_public(slug)
    public = PublicProfileResponse.model_validate(profile)
    public.social_links = [PublicSocialLink.model_validate(link) for link in links]
    return success(public)


@router.post("/public/{slug}/visitor-contact", status_code=status.HTTP_201_CREATED)
async def submit_visitor_contact(
    slug: str,
    contact: VisitorContactCreate,
    request: Request,
    tracker: ViewTracker = Depends(get_view_tracker),
):
    """Capture contact details a visitor leaves on a public profile."""
    context = build_request_context(request, get_config().tracking.trust_proxy_headers)
    visitor = await tracker.save_visitor_contact(
        slug, contact.email, contact.phone, contact.source, context
    )
    return success(
        {"id": visitor.id, "submittedAt": visitor.submitted_at},
        message="Contact information saved successfully",
    )


@router.get("/visitors/all")
async def list_all_visitors(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    tracker: ViewTracker = Depends(get_view_tracker),
):
    """Contacts from all of the caller's profiles; deleted profiles leave profileId null."""
    visitors, total = await tracker.list_all_visitors(user.id, limit, offset)
    return success(
        {
            "visitors": [VisitorResponse.model_validate(visitor) for visitor in visitors],
            "total": total,
            "limit": limit,
            "offset": offset,
        }
    )


@router.get("/{profile_id}")
async def get_profile(
    profile_id: int,
    user: User = Depends(get_current_user),
    registry: ProfileRegistry = Depends(get_profile_registry),
):
    profile = await registry.get_for_owner(profile_id, user.id)
    return success(ProfileResponse.model_validate(profile))


@router.put("/{profile_id}")
async def update_profile(
    profile_id: int,
    profile_data: ProfileUpdate,
    user: User = Depends(get_current_user),
    registry: ProfileRegistry = Depends(get_profile_registry),
):
    """
    Partially update a profile.

    Only keys present in the body change. Sending null or an empty string
    clears optional fields. Renaming moves the slug, URL and QR code.
    """
    fields = profile_data.model_dump(exclude_unset=True)
    profile = await registry.update(profile_id, user.id, fields)
    return success(ProfileResponse.model_validate(profile), message="Profile updated successfully")


@router.delete("/{profile_id}")
async def delete_profile(
    profile_id: int,
    user: User = Depends(get_current_user),
    registry: ProfileRegistry = Depends(get_profile_registry),
):
    """Delete a profile; refused with 400 when orders reference it."""
    await registry.delete(profile_id, user.id)
    return success(message="Profile deleted successfully")


@router.patch("/{profile_id}/toggle-status")
async def toggle_profile_status(
    profile_id: int,
    user: User = Depends(get_current_user),
    registry: ProfileRegistry = Depends(get_profile_registry),
):
    profile = await registry.toggle_active(profile_id, user.id)
    state = "activated" if profile.is_active else "deactivated"
    return success(ProfileResponse.model_validate(profile), message=f"Profile {state} successfully")


@router.post("/{profile_id}/regenerate-qr")
async def regenerate_qr(
    profile_id: int,
    user: User = Depends(get_current_user),
    registry: ProfileRegistry = Depends(get_profile_registry),
):
    profile = await registry.regenerate_qr(profile_id, user.id)
    return success(
        {"qrCodeUrl": profile.qr_code_url, "profileUrl": profile.profile_url},
        message="QR code regenerated successfully",
    )


@router.get("/{profile_id}/visitors")
async def list_visitors(
    profile_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    tracker: ViewTracker = Depends(get_view_tracker),
):
    """Contacts captured on the profile, newest first."""
    visitors, total = await tracker.list_visitors(profile_id, user.id, limit, offset)
    return success(
        {
            "visitors": [VisitorResponse.model_validate(visitor) for visitor in visitors],
            "total": total,
            "limit": limit,
            "offset": offset,
        }
    )


@router.get("/{profile_id}/visitor-stats")
async def visitor_stats(
    profile_id: int,
    user: User = Depends(get_current_user),
    tracker: ViewTracker = Depends(get_view_tracker),
):
    stats = await tracker.visitor_stats(profile_id, user.id)
    return success(
        {
            "totalVisitors": stats["total_visitors"],
            "bySource": [SourceCount(source=key, count=count) for key, count in stats["by_source"]],
            "byDevice": [DeviceCount(device=key, count=count) for key, count in stats["by_device"]],
            "byCountry": [CountryCount(country=key, count=count) for key, count in stats["by_country"]],
        }
    )

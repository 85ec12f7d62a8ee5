"""Social link API endpoints."""

from fastapi import APIRouter, Depends, Query, status

from ..auth.dependencies import get_current_user
from ..db.models import User
from ..services.dependencies import get_social_link_service, get_view_tracker
from ..services.social_links import SocialLinkService
from ..services.tracker import ViewTracker
from .responses import success
from .schemas import (
    LinkClickResponse,
    SocialLinkBulkCreate,
    SocialLinkBulkDelete,
    SocialLinkCreate,
    SocialLinkReorder,
    SocialLinkResponse,
    SocialLinkStatistics,
    SocialLinkUpdate,
)

router = APIRouter(prefix="/api/social-links", tags=["social-links"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_social_link(
    link_data: SocialLinkCreate,
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    """Add a link; a platform can only appear once per profile."""
    link = await service.create(
        link_data.profile_id,
        user.id,
        link_data.platform,
        link_data.url,
        link_data.label,
        link_data.is_visible,
    )
    return success(SocialLinkResponse.model_validate(link), message="Social link created successfully")


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
async def bulk_create_social_links(
    bulk_data: SocialLinkBulkCreate,
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    """Add several links, skipping platforms the profile already has."""
    created, skipped = await service.bulk_create(
        bulk_data.profile_id, user.id, [link.model_dump() for link in bulk_data.links]
    )
    return success(
        [SocialLinkResponse.model_validate(link) for link in created],
        message=f"{len(created)} social links created successfully",
        skipped=skipped,
    )


@router.get("/profile/{profile_id}")
async def list_profile_links(
    profile_id: int,
    include_hidden: bool = Query(False, alias="includeHidden"),
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    links = await service.list(profile_id, user.id, include_hidden)
    return success([SocialLinkResponse.model_validate(link) for link in links])


@router.put("/profile/{profile_id}/reorder")
async def reorder_links(
    profile_id: int,
    reorder: SocialLinkReorder,
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    """Apply new order values in one transaction; foreign links are ignored."""
    links = await service.reorder(
        profile_id, user.id, [(item.id, item.order) for item in reorder.links]
    )
    return success(
        [SocialLinkResponse.model_validate(link) for link in links],
        message="Social links reordered successfully",
    )


@router.get("/profile/{profile_id}/statistics")
async def link_statistics(
    profile_id: int,
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    stats = await service.statistics(profile_id, user.id)
    most_clicked = stats["most_clicked_link"]
    return success(
        SocialLinkStatistics(
            total_links=stats["total_links"],
            visible_links=stats["visible_links"],
            hidden_links=stats["hidden_links"],
            total_clicks=stats["total_clicks"],
            most_clicked_link=SocialLinkResponse.model_validate(most_clicked) if most_clicked else None,
            links=[SocialLinkResponse.model_validate(link) for link in stats["links"]],
        )
    )


@router.delete("/profile/{profile_id}/bulk-delete")
async def bulk_delete_links(
    profile_id: int,
    delete_data: SocialLinkBulkDelete,
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    deleted = await service.bulk_delete(profile_id, user.id, delete_data.link_ids)
    return success({"deletedCount": deleted}, message=f"{deleted} social links deleted successfully")


@router.get("/{link_id}")
async def get_social_link(
    link_id: int,
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    link = await service.get(link_id, user.id)
    return success(SocialLinkResponse.model_validate(link))


@router.put("/{link_id}")
async def update_social_link(
    link_id: int,
    link_data: SocialLinkUpdate,
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    link = await service.update(link_id, user.id, link_data.model_dump(exclude_unset=True))
    return success(SocialLinkResponse.model_validate(link), message="Social link updated successfully")


@router.delete("/{link_id}")
async def delete_social_link(
    link_id: int,
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    await service.delete(link_id, user.id)
    return success(message="Social link deleted successfully")


@router.patch("/{link_id}/toggle-visibility")
async def toggle_link_visibility(
    link_id: int,
    user: User = Depends(get_current_user),
    service: SocialLinkService = Depends(get_social_link_service),
):
    link = await service.toggle_visibility(link_id, user.id)
    state = "visible" if link.is_visible else "hidden"
    return success(SocialLinkResponse.model_validate(link), message=f"Social link is now {state}")


@router.post("/{link_id}/click")
async def track_link_click(
    link_id: int,
    tracker: ViewTracker = Depends(get_view_tracker),
):
    """Public click counter; returns the URL the client should open."""
    link, click_count, redirect = await tracker.track_click(link_id)
    return success(LinkClickResponse(click_count=click_count, redirect_url=redirect))

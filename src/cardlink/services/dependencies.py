"""FastAPI dependencies assembling services per request."""

from fastapi import Depends

from ..repositories.dependencies import get_repository_container
from ..repositories.interfaces import RepositoryContainer
from .analytics import AnalyticsService
from .assets import AssetStore, get_asset_store
from .geo import GeoResolver, get_geo_resolver
from .orders import OrderService
from .profile_registry import ProfileRegistry
from .social_links import SocialLinkService
from .tracker import ViewTracker


def get_profile_registry(
    repos: RepositoryContainer = Depends(get_repository_container),
    assets: AssetStore = Depends(get_asset_store),
) -> ProfileRegistry:
    return ProfileRegistry(repos, assets)


def get_social_link_service(
    repos: RepositoryContainer = Depends(get_repository_container),
) -> SocialLinkService:
    return SocialLinkService(repos)


def get_view_tracker(
    repos: RepositoryContainer = Depends(get_repository_container),
    geo: GeoResolver = Depends(get_geo_resolver),
) -> ViewTracker:
    return ViewTracker(repos, geo)


def get_analytics_service(
    repos: RepositoryContainer = Depends(get_repository_container),
) -> AnalyticsService:
    return AnalyticsService(repos)


def get_order_service(
    repos: RepositoryContainer = Depends(get_repository_container),
) -> OrderService:
    return OrderService(repos)

"""Abstract repository interfaces for data access layer."""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from ..db.models import (
    User,
    Profile,
    SocialLink,
    ProfileView,
    ProfileVisitor,
    Order,
)

# (key, count) pairs as returned by grouped counts
CountRow = Tuple[Optional[str], int]


class BaseRepository(ABC):
    """Base repository interface with common operations."""

    @abstractmethod
    async def save(self, entity) -> None:
        """Stage an entity for insert or update."""
        pass

    @abstractmethod
    async def delete(self, entity) -> None:
        """Stage an entity for deletion."""
        pass

    @abstractmethod
    async def flush(self) -> None:
        """Send pending changes without committing."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Commit the current transaction."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the current transaction."""
        pass

    @abstractmethod
    async def refresh(self, entity) -> None:
        """Reload an entity's state from the database."""
        pass


class UserRepository(BaseRepository):
    """Repository interface for User entities."""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get a user by ID."""
        pass

    @abstractmethod
    async def count(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> int:
        """Count users created in [since, until)."""
        pass

    @abstractmethod
    async def count_by_day(self, since: datetime) -> List[CountRow]:
        """Registrations per calendar day since a point in time."""
        pass

    @abstractmethod
    async def list_recent(self, limit: int) -> List[User]:
        """Most recently registered users."""
        pass


class ProfileRepository(BaseRepository):
    """Repository interface for Profile entities."""

    @abstractmethod
    async def get_by_id(self, profile_id: int) -> Optional[Profile]:
        """Get a profile by ID."""
        pass

    @abstractmethod
    async def get_owned(self, profile_id: int, user_id: UUID) -> Optional[Profile]:
        """Get a profile only if it belongs to the user."""
        pass

    @abstractmethod
    async def get_by_slug(self, slug: str, active_only: bool = True) -> Optional[Profile]:
        """Get a profile by slug."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: UUID) -> List[Profile]:
        """All profiles of a user, newest first."""
        pass

    @abstractmethod
    async def exists_for_user_type(self, user_id: UUID, profile_type: str) -> bool:
        """Whether the user already has a profile of this type."""
        pass

    @abstractmethod
    async def slug_exists(self, slug: str, exclude_profile_id: Optional[int] = None) -> bool:
        """Whether a slug is taken by any profile other than the excluded one."""
        pass

    @abstractmethod
    async def increment_view_count(self, profile_id: int) -> int:
        """Atomically add one view and return the new count."""
        pass

    @abstractmethod
    async def count(
        self,
        user_id: Optional[UUID] = None,
        active_only: bool = False,
        since: Optional[datetime] = None,
    ) -> int:
        """Count profiles matching the filters."""
        pass

    @abstractmethod
    async def sum_view_count(self, user_id: Optional[UUID] = None) -> int:
        """Sum of all-time view counters."""
        pass

    @abstractmethod
    async def count_by_type(self) -> List[CountRow]:
        """Profiles grouped by profile type."""
        pass

    @abstractmethod
    async def count_by_day(self, since: datetime) -> List[CountRow]:
        """Profiles created per calendar day since a point in time."""
        pass

    @abstractmethod
    async def list_top_viewed(self, limit: int) -> List[Profile]:
        """Profiles with the highest all-time view counts."""
        pass


class SocialLinkRepository(BaseRepository):
    """Repository interface for SocialLink entities."""

    @abstractmethod
    async def get_by_id(self, link_id: int) -> Optional[SocialLink]:
        """Get a link by ID."""
        pass

    @abstractmethod
    async def get_owned(self, link_id: int, user_id: UUID) -> Optional[SocialLink]:
        """Get a link only if its profile belongs to the user."""
        pass

    @abstractmethod
    async def list_by_profile(self, profile_id: int, include_hidden: bool = True) -> List[SocialLink]:
        """Links of a profile ordered by their order value."""
        pass

    @abstractmethod
    async def get_by_profile_platform(self, profile_id: int, platform: str) -> Optional[SocialLink]:
        """Get the link for one platform on a profile."""
        pass

    @abstractmethod
    async def max_order(self, profile_id: int) -> int:
        """Highest order value used on a profile, 0 when it has no links."""
        pass

    @abstractmethod
    async def increment_click_count(self, link_id: int) -> int:
        """Atomically add one click and return the new count."""
        pass

    @abstractmethod
    async def sum_clicks(self, profile_ids: Optional[Sequence[int]] = None) -> int:
        """Sum of click counters, optionally restricted to some profiles."""
        pass

    @abstractmethod
    async def click_totals_by_profile(self, profile_ids: Sequence[int]) -> Dict[int, int]:
        """Click sums keyed by profile ID."""
        pass

    @abstractmethod
    async def delete_many(self, profile_id: int, link_ids: Sequence[int]) -> int:
        """Delete the given links of a profile and return how many were removed."""
        pass


class ProfileViewRepository(BaseRepository):
    """Repository interface for ProfileView events."""

    @abstractmethod
    async def count(self, profile_ids: Optional[Sequence[int]], since: Optional[datetime] = None) -> int:
        """Count views of the profiles (all profiles when None) since a point in time."""
        pass

    @abstractmethod
    async def count_by(
        self,
        field: str,
        profile_ids: Optional[Sequence[int]],
        since: datetime,
        limit: Optional[int] = None,
    ) -> List[CountRow]:
        """Views grouped by one column, largest group first."""
        pass

    @abstractmethod
    async def count_by_city(
        self, profile_ids: Sequence[int], since: datetime, limit: int
    ) -> List[Tuple[str, str, int]]:
        """Views grouped by (city, country), largest group first."""
        pass

    @abstractmethod
    async def count_by_day(
        self, profile_ids: Optional[Sequence[int]], since: datetime
    ) -> List[CountRow]:
        """Views per calendar day, ascending."""
        pass

    @abstractmethod
    async def counts_by_profile(self, profile_ids: Sequence[int], since: datetime) -> Dict[int, int]:
        """View counts keyed by profile ID."""
        pass

    @abstractmethod
    async def list_recent(self, profile_id: int, limit: int, offset: int = 0) -> List[ProfileView]:
        """Most recent views of a profile."""
        pass

    @abstractmethod
    async def delete_older_than(self, profile_id: int, cutoff: datetime) -> int:
        """Delete views older than the cutoff and return how many were removed."""
        pass


class ProfileVisitorRepository(BaseRepository):
    """Repository interface for ProfileVisitor contact captures."""

    @abstractmethod
    async def list_by_profile(self, profile_id: int, limit: int, offset: int = 0) -> List[ProfileVisitor]:
        """Contacts captured on a profile, newest first."""
        pass

    @abstractmethod
    async def count(self, profile_id: int) -> int:
        """Number of contacts captured on a profile."""
        pass

    @abstractmethod
    async def count_by(self, field: str, profile_id: int) -> List[CountRow]:
        """Contacts grouped by one column, largest group first."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: UUID, limit: int, offset: int = 0) -> List[ProfileVisitor]:
        """Contacts captured on any of a user's profiles, including deleted ones, newest first."""
        pass

    @abstractmethod
    async def count_for_user(self, user_id: UUID) -> int:
        """Number of contacts owned by a user."""
        pass


class OrderRepository(BaseRepository):
    """Repository interface for Order entities."""

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Optional[Order]:
        """Get an order by ID."""
        pass

    @abstractmethod
    async def get_owned(self, order_id: int, user_id: UUID) -> Optional[Order]:
        """Get an order only if it belongs to the user."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: UUID) -> List[Order]:
        """Orders of a user, newest first."""
        pass

    @abstractmethod
    async def list_all(
        self, status: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Order], int]:
        """Page through all orders; returns the page and the total count."""
        pass

    @abstractmethod
    async def count_for_profile(self, profile_id: int) -> int:
        """Number of orders referencing a profile."""
        pass

    @abstractmethod
    async def count(self, since: Optional[datetime] = None) -> int:
        """Count orders created since a point in time."""
        pass

    @abstractmethod
    async def count_by_status(self) -> List[CountRow]:
        """Orders grouped by status."""
        pass

    @abstractmethod
    async def delivered_revenue(self) -> Decimal:
        """Sum of totals over delivered orders."""
        pass

    @abstractmethod
    async def list_recent(self, limit: int) -> List[Order]:
        """Most recently placed orders."""
        pass


class RepositoryContainer:
    """Container for all repository interfaces to support dependency injection."""

    def __init__(
        self,
        user_repo: UserRepository,
        profile_repo: ProfileRepository,
        social_link_repo: SocialLinkRepository,
        view_repo: ProfileViewRepository,
        visitor_repo: ProfileVisitorRepository,
        order_repo: OrderRepository,
    ):
        self.user = user_repo
        self.profile = profile_repo
        self.social_link = social_link_repo
        self.view = view_repo
        self.visitor = visitor_repo
        self.order = order_repo

    async def commit(self) -> None:
        """Commit the unit of work shared by all repositories."""
        await self.profile.commit()

    async def rollback(self) -> None:
        """Roll back the unit of work shared by all repositories."""
        await self.profile.rollback()

"""SQLAlchemy concrete implementations of repository interfaces."""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import and_, desc, func, update
from sqlalchemy.orm import Session, selectinload

from .interfaces import (
    CountRow,
    UserRepository,
    ProfileRepository,
    SocialLinkRepository,
    ProfileViewRepository,
    ProfileVisitorRepository,
    OrderRepository,
)
from ..db.models import (
    User,
    Profile,
    SocialLink,
    ProfileView,
    ProfileVisitor,
    Order,
)


def _day_key(value) -> str:
    """DATE() yields a string on SQLite and a date on PostgreSQL."""
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)


def _grouped(query, column, limit: Optional[int] = None) -> List[CountRow]:
    count = func.count().label("count")
    query = query.with_entities(column, count).filter(column.isnot(None)).group_by(column)
    query = query.order_by(desc("count"), column)
    if limit is not None:
        query = query.limit(limit)
    return [(key, int(total)) for key, total in query.all()]


class BaseSQLAlchemyRepository:
    """Base SQLAlchemy repository implementation."""

    def __init__(self, session: Session):
        self._session = session

    async def save(self, entity) -> None:
        """Stage an entity for insert or update."""
        self._session.add(entity)

    async def delete(self, entity) -> None:
        """Stage an entity for deletion."""
        self._session.delete(entity)

    async def flush(self) -> None:
        """Send pending changes without committing."""
        self._session.flush()

    async def commit(self) -> None:
        """Commit the current transaction."""
        self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        self._session.rollback()

    async def refresh(self, entity) -> None:
        """Reload an entity's state from the database."""
        self._session.refresh(entity)


class SQLAlchemyUserRepository(BaseSQLAlchemyRepository, UserRepository):
    """SQLAlchemy implementation of UserRepository."""

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return self._session.get(User, user_id)

    async def count(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> int:
        query = self._session.query(func.count(User.id))
        if since is not None:
            query = query.filter(User.created_at >= since)
        if until is not None:
            query = query.filter(User.created_at < until)
        return query.scalar() or 0

    async def count_by_day(self, since: datetime) -> List[CountRow]:
        day = func.date(User.created_at)
        rows = (
            self._session.query(day, func.count(User.id))
            .filter(User.created_at >= since)
            .group_by(day)
            .order_by(day)
            .all()
        )
        return [(_day_key(key), int(total)) for key, total in rows]

    async def list_recent(self, limit: int) -> List[User]:
        return self._session.query(User).order_by(desc(User.created_at)).limit(limit).all()


class SQLAlchemyProfileRepository(BaseSQLAlchemyRepository, ProfileRepository):
    """SQLAlchemy implementation of ProfileRepository."""

    def _with_links(self):
        return self._session.query(Profile).options(selectinload(Profile.social_links))

    async def get_by_id(self, profile_id: int) -> Optional[Profile]:
        return self._session.get(Profile, profile_id)

    async def get_owned(self, profile_id: int, user_id: UUID) -> Optional[Profile]:
        return (
            self._with_links()
            .filter(and_(Profile.id == profile_id, Profile.user_id == user_id))
            .first()
        )

    async def get_by_slug(self, slug: str, active_only: bool = True) -> Optional[Profile]:
        query = self._with_links().filter(Profile.slug == slug)
        if active_only:
            query = query.filter(Profile.is_active.is_(True))
        return query.first()

    async def list_by_user(self, user_id: UUID) -> List[Profile]:
        return (
            self._with_links()
            .filter(Profile.user_id == user_id)
            .order_by(desc(Profile.created_at), desc(Profile.id))
            .all()
        )

    async def exists_for_user_type(self, user_id: UUID, profile_type: str) -> bool:
        query = self._session.query(Profile.id).filter(
            and_(Profile.user_id == user_id, Profile.profile_type == profile_type)
        )
        return self._session.query(query.exists()).scalar()

    async def slug_exists(self, slug: str, exclude_profile_id: Optional[int] = None) -> bool:
        query = self._session.query(Profile.id).filter(Profile.slug == slug)
        if exclude_profile_id is not None:
            query = query.filter(Profile.id != exclude_profile_id)
        return self._session.query(query.exists()).scalar()

    async def increment_view_count(self, profile_id: int) -> int:
        self._session.execute(
            update(Profile)
            .where(Profile.id == profile_id)
            .values(view_count=Profile.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        return (
            self._session.query(Profile.view_count)
            .filter(Profile.id == profile_id)
            .scalar()
        )

    async def count(
        self,
        user_id: Optional[UUID] = None,
        active_only: bool = False,
        since: Optional[datetime] = None,
    ) -> int:
        query = self._session.query(func.count(Profile.id))
        if user_id is not None:
            query = query.filter(Profile.user_id == user_id)
        if active_only:
            query = query.filter(Profile.is_active.is_(True))
        if since is not None:
            query = query.filter(Profile.created_at >= since)
        return query.scalar() or 0

    async def sum_view_count(self, user_id: Optional[UUID] = None) -> int:
        query = self._session.query(func.coalesce(func.sum(Profile.view_count), 0))
        if user_id is not None:
            query = query.filter(Profile.user_id == user_id)
        return int(query.scalar() or 0)

    async def count_by_type(self) -> List[CountRow]:
        return _grouped(self._session.query(Profile), Profile.profile_type)

    async def count_by_day(self, since: datetime) -> List[CountRow]:
        day = func.date(Profile.created_at)
        rows = (
            self._session.query(day, func.count(Profile.id))
            .filter(Profile.created_at >= since)
            .group_by(day)
            .order_by(day)
            .all()
        )
        return [(_day_key(key), int(total)) for key, total in rows]

    async def list_top_viewed(self, limit: int) -> List[Profile]:
        return (
            self._session.query(Profile)
            .options(selectinload(Profile.user))
            .order_by(desc(Profile.view_count), Profile.id)
            .limit(limit)
            .all()
        )


class SQLAlchemySocialLinkRepository(BaseSQLAlchemyRepository, SocialLinkRepository):
    """SQLAlchemy implementation of SocialLinkRepository."""

    async def get_by_id(self, link_id: int) -> Optional[SocialLink]:
        return (
            self._session.query(SocialLink)
            .options(selectinload(SocialLink.profile))
            .filter(SocialLink.id == link_id)
            .first()
        )

    async def get_owned(self, link_id: int, user_id: UUID) -> Optional[SocialLink]:
        return (
            self._session.query(SocialLink)
            .join(Profile, SocialLink.profile_id == Profile.id)
            .filter(and_(SocialLink.id == link_id, Profile.user_id == user_id))
            .first()
        )

    async def list_by_profile(self, profile_id: int, include_hidden: bool = True) -> List[SocialLink]:
        query = self._session.query(SocialLink).filter(SocialLink.profile_id == profile_id)
        if not include_hidden:
            query = query.filter(SocialLink.is_visible.is_(True))
        return query.order_by(SocialLink.order, SocialLink.id).all()

    async def get_by_profile_platform(self, profile_id: int, platform: str) -> Optional[SocialLink]:
        return (
            self._session.query(SocialLink)
            .filter(and_(SocialLink.profile_id == profile_id, SocialLink.platform == platform))
            .first()
        )

    async def max_order(self, profile_id: int) -> int:
        max_order = (
            self._session.query(func.max(SocialLink.order))
            .filter(SocialLink.profile_id == profile_id)
            .scalar()
        )
        return max_order or 0

    async def increment_click_count(self, link_id: int) -> int:
        self._session.execute(
            update(SocialLink)
            .where(SocialLink.id == link_id)
            .values(click_count=SocialLink.click_count + 1)
            .execution_options(synchronize_session=False)
        )
        return (
            self._session.query(SocialLink.click_count)
            .filter(SocialLink.id == link_id)
            .scalar()
        )

    async def sum_clicks(self, profile_ids: Optional[Sequence[int]] = None) -> int:
        query = self._session.query(func.coalesce(func.sum(SocialLink.click_count), 0))
        if profile_ids is not None:
            if not profile_ids:
                return 0
            query = query.filter(SocialLink.profile_id.in_(profile_ids))
        return int(query.scalar() or 0)

    async def click_totals_by_profile(self, profile_ids: Sequence[int]) -> Dict[int, int]:
        if not profile_ids:
            return {}
        rows = (
            self._session.query(SocialLink.profile_id, func.sum(SocialLink.click_count))
            .filter(SocialLink.profile_id.in_(profile_ids))
            .group_by(SocialLink.profile_id)
            .all()
        )
        return {profile_id: int(total or 0) for profile_id, total in rows}

    async def delete_many(self, profile_id: int, link_ids: Sequence[int]) -> int:
        if not link_ids:
            return 0
        return (
            self._session.query(SocialLink)
            .filter(and_(SocialLink.profile_id == profile_id, SocialLink.id.in_(link_ids)))
            .delete(synchronize_session=False)
        )


class SQLAlchemyProfileViewRepository(BaseSQLAlchemyRepository, ProfileViewRepository):
    """SQLAlchemy implementation of ProfileViewRepository."""

    GROUPABLE = {
        "view_source": ProfileView.view_source,
        "device": ProfileView.device,
        "browser": ProfileView.browser,
        "country": ProfileView.country,
    }

    def _window(self, profile_ids: Optional[Sequence[int]], since: Optional[datetime]):
        query = self._session.query(ProfileView)
        if profile_ids is not None:
            query = query.filter(ProfileView.profile_id.in_(profile_ids))
        if since is not None:
            query = query.filter(ProfileView.viewed_at >= since)
        return query

    async def count(self, profile_ids: Optional[Sequence[int]], since: Optional[datetime] = None) -> int:
        if profile_ids is not None and not profile_ids:
            return 0
        return self._window(profile_ids, since).with_entities(func.count(ProfileView.id)).scalar() or 0

    async def count_by(
        self,
        field: str,
        profile_ids: Optional[Sequence[int]],
        since: datetime,
        limit: Optional[int] = None,
    ) -> List[CountRow]:
        if profile_ids is not None and not profile_ids:
            return []
        return _grouped(self._window(profile_ids, since), self.GROUPABLE[field], limit)

    async def count_by_city(
        self, profile_ids: Sequence[int], since: datetime, limit: int
    ) -> List[Tuple[str, str, int]]:
        if not profile_ids:
            return []
        count = func.count(ProfileView.id).label("count")
        rows = (
            self._window(profile_ids, since)
            .with_entities(ProfileView.city, ProfileView.country, count)
            .filter(and_(ProfileView.city.isnot(None), ProfileView.country.isnot(None)))
            .group_by(ProfileView.city, ProfileView.country)
            .order_by(desc("count"), ProfileView.city, ProfileView.country)
            .limit(limit)
            .all()
        )
        return [(city, country, int(total)) for city, country, total in rows]

    async def count_by_day(
        self, profile_ids: Optional[Sequence[int]], since: datetime
    ) -> List[CountRow]:
        if profile_ids is not None and not profile_ids:
            return []
        day = func.date(ProfileView.viewed_at)
        rows = (
            self._window(profile_ids, since)
            .with_entities(day, func.count(ProfileView.id))
            .group_by(day)
            .order_by(day)
            .all()
        )
        return [(_day_key(key), int(total)) for key, total in rows]

    async def counts_by_profile(self, profile_ids: Sequence[int], since: datetime) -> Dict[int, int]:
        if not profile_ids:
            return {}
        rows = (
            self._window(profile_ids, since)
            .with_entities(ProfileView.profile_id, func.count(ProfileView.id))
            .group_by(ProfileView.profile_id)
            .all()
        )
        return {profile_id: int(total) for profile_id, total in rows}

    async def list_recent(self, profile_id: int, limit: int, offset: int = 0) -> List[ProfileView]:
        return (
            self._session.query(ProfileView)
            .filter(ProfileView.profile_id == profile_id)
            .order_by(desc(ProfileView.viewed_at), desc(ProfileView.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    async def delete_older_than(self, profile_id: int, cutoff: datetime) -> int:
        return (
            self._session.query(ProfileView)
            .filter(and_(ProfileView.profile_id == profile_id, ProfileView.viewed_at < cutoff))
            .delete(synchronize_session=False)
        )


class SQLAlchemyProfileVisitorRepository(BaseSQLAlchemyRepository, ProfileVisitorRepository):
    """SQLAlchemy implementation of ProfileVisitorRepository."""

    GROUPABLE = {
        "view_source": ProfileVisitor.view_source,
        "device": ProfileVisitor.device,
        "country": ProfileVisitor.country,
    }

    async def list_by_profile(self, profile_id: int, limit: int, offset: int = 0) -> List[ProfileVisitor]:
        return (
            self._session.query(ProfileVisitor)
            .filter(ProfileVisitor.profile_id == profile_id)
            .order_by(desc(ProfileVisitor.submitted_at), desc(ProfileVisitor.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    async def count(self, profile_id: int) -> int:
        return (
            self._session.query(func.count(ProfileVisitor.id))
            .filter(ProfileVisitor.profile_id == profile_id)
            .scalar()
            or 0
        )

    async def count_by(self, field: str, profile_id: int) -> List[CountRow]:
        query = self._session.query(ProfileVisitor).filter(ProfileVisitor.profile_id == profile_id)
        return _grouped(query, self.GROUPABLE[field])

    async def list_by_user(self, user_id: UUID, limit: int, offset: int = 0) -> List[ProfileVisitor]:
        return (
            self._session.query(ProfileVisitor)
            .filter(ProfileVisitor.user_id == user_id)
            .order_by(desc(ProfileVisitor.submitted_at), desc(ProfileVisitor.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

    async def count_for_user(self, user_id: UUID) -> int:
        return (
            self._session.query(func.count(ProfileVisitor.id))
            .filter(ProfileVisitor.user_id == user_id)
            .scalar()
            or 0
        )


class SQLAlchemyOrderRepository(BaseSQLAlchemyRepository, OrderRepository):
    """SQLAlchemy implementation of OrderRepository."""

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        return self._session.get(Order, order_id)

    async def get_owned(self, order_id: int, user_id: UUID) -> Optional[Order]:
        return (
            self._session.query(Order)
            .filter(and_(Order.id == order_id, Order.user_id == user_id))
            .first()
        )

    async def list_by_user(self, user_id: UUID) -> List[Order]:
        return (
            self._session.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(desc(Order.created_at), desc(Order.id))
            .all()
        )

    async def list_all(
        self, status: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Order], int]:
        query = self._session.query(Order)
        if status is not None:
            query = query.filter(Order.status == status)
        total = query.with_entities(func.count(Order.id)).scalar() or 0
        orders = (
            query.options(selectinload(Order.user))
            .order_by(desc(Order.created_at), desc(Order.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return orders, total

    async def count_for_profile(self, profile_id: int) -> int:
        return (
            self._session.query(func.count(Order.id))
            .filter(Order.profile_id == profile_id)
            .scalar()
            or 0
        )

    async def count(self, since: Optional[datetime] = None) -> int:
        query = self._session.query(func.count(Order.id))
        if since is not None:
            query = query.filter(Order.created_at >= since)
        return query.scalar() or 0

    async def count_by_status(self) -> List[CountRow]:
        return _grouped(self._session.query(Order), Order.status)

    async def delivered_revenue(self) -> Decimal:
        total = (
            self._session.query(func.sum(Order.total_amount))
            .filter(Order.status == "delivered")
            .scalar()
        )
        return Decimal(str(total)) if total is not None else Decimal("0")

    async def list_recent(self, limit: int) -> List[Order]:
        return (
            self._session.query(Order)
            .options(selectinload(Order.user))
            .order_by(desc(Order.created_at), desc(Order.id))
            .limit(limit)
            .all()
        )

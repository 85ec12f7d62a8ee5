"""Dependency injection for repository layer."""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..db.database import get_db
from .interfaces import RepositoryContainer
from .sqlalchemy_impl import (
    SQLAlchemyUserRepository,
    SQLAlchemyProfileRepository,
    SQLAlchemySocialLinkRepository,
    SQLAlchemyProfileViewRepository,
    SQLAlchemyProfileVisitorRepository,
    SQLAlchemyOrderRepository,
)


def build_repository_container(db: Session) -> RepositoryContainer:
    """Assemble SQLAlchemy repositories sharing one session."""
    return RepositoryContainer(
        user_repo=SQLAlchemyUserRepository(db),
        profile_repo=SQLAlchemyProfileRepository(db),
        social_link_repo=SQLAlchemySocialLinkRepository(db),
        view_repo=SQLAlchemyProfileViewRepository(db),
        visitor_repo=SQLAlchemyProfileVisitorRepository(db),
        order_repo=SQLAlchemyOrderRepository(db),
    )


def get_repository_container(
    db: Session = Depends(get_db),
) -> RepositoryContainer:
    """
    Create and configure a repository container with SQLAlchemy implementations.

    This is the main dependency injection point for repositories.
    """
    return build_repository_container(db)

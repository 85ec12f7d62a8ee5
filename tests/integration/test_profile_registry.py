"""Integration tests for the profile registry against the migrated schema."""

import pytest
from sqlalchemy.exc import IntegrityError

from cardlink.core.errors import ConflictError, ProfileHasOrdersError, ValidationError
from cardlink.db.models import Profile, SocialLink
from cardlink.services.orders import OrderService

CUSTOMER = {"first_name": "Jane", "last_name": "Doe", "email": "jane@example.com", "phone": "+962790000000"}
SHIPPING = {"address": "12 Rainbow St", "city": "Amman"}


def stored_files(asset_store):
    if not asset_store.directory.exists():
        return []
    return sorted(path.name for path in asset_store.directory.rglob("*") if path.is_file())


@pytest.mark.integration
class TestProfileCreation:
    async def test_slug_sequence_across_users(self, registry, make_user):
        first = await registry.create(make_user().id, "personal", {"name": "Jane Doe"})
        second = await registry.create(make_user().id, "personal", {"name": "jane   DOE"})
        third = await registry.create(make_user().id, "business", {"name": "Jane Doe!"})

        assert [first.slug, second.slug, third.slug] == ["jane-doe", "jane-doe-1", "jane-doe-2"]
        assert third.profile_url == "https://linkme.test/jane-doe-2"

    async def test_one_profile_per_type(self, registry, make_user, db_session):
        owner = make_user()
        await registry.create(owner.id, "personal", {"name": "Jane Doe"})

        with pytest.raises(ConflictError) as exc_info:
            await registry.create(owner.id, "personal", {"name": "Someone Else"})

        assert exc_info.value.extra == {"profileType": "personal"}
        assert db_session.query(Profile).filter(Profile.user_id == owner.id).count() == 1

    async def test_invalid_link_persists_nothing(self, registry, make_user, db_session, asset_store):
        owner = make_user()
        links = [
            {"platform": "website", "url": "https://jane.dev"},
            {"platform": "whatsapp", "url": "call me"},
        ]

        with pytest.raises(ValidationError):
            await registry.create(owner.id, "personal", {"name": "Jane Doe"}, links)

        assert db_session.query(Profile).count() == 0
        assert db_session.query(SocialLink).count() == 0
        assert stored_files(asset_store) == []

    async def test_slug_claimed_between_check_and_insert(self, registry, repos, make_user, monkeypatch, asset_store):
        await registry.create(make_user().id, "personal", {"name": "Jane Doe"})
        real_slug_exists = repos.profile.slug_exists
        calls = []

        async def stale_slug_exists(slug, exclude_profile_id=None):
            calls.append(slug)
            if len(calls) == 1:
                # Simulates a check that ran before the competing insert
                return False
            return await real_slug_exists(slug, exclude_profile_id)

        monkeypatch.setattr(repos.profile, "slug_exists", stale_slug_exists)

        profile = await registry.create(make_user().id, "personal", {"name": "Jane Doe"})

        assert profile.slug == "jane-doe-1"
        assert calls[0] == "jane-doe"
        # The QR rendered for the lost slug is cleaned up
        assert len(stored_files(asset_store)) == 2

    async def test_slug_claimed_between_check_and_rename(self, registry, repos, make_user, monkeypatch, asset_store):
        await registry.create(make_user().id, "personal", {"name": "Jane Doe"})
        owner = make_user()
        profile = await registry.create(owner.id, "personal", {"name": "Bob Stone"})
        real_slug_exists = repos.profile.slug_exists
        calls = []

        async def stale_slug_exists(slug, exclude_profile_id=None):
            calls.append(slug)
            if len(calls) == 1:
                return False
            return await real_slug_exists(slug, exclude_profile_id)

        monkeypatch.setattr(repos.profile, "slug_exists", stale_slug_exists)

        renamed = await registry.update(profile.id, owner.id, {"name": "Jane Doe", "title": "Engineer"})

        assert renamed.slug == "jane-doe-1"
        assert renamed.name == "Jane Doe"
        assert renamed.title == "Engineer"
        assert renamed.profile_url == "https://linkme.test/jane-doe-1"
        assert calls[0] == "jane-doe"
        # Only the first profile's QR and the renamed profile's new QR remain
        assert len(stored_files(asset_store)) == 2

    async def test_links_are_ordered_from_one(self, registry, make_user):
        links = [
            {"platform": "github", "url": "https://github.com/jane"},
            {"platform": "email", "url": "jane@example.com"},
        ]

        profile = await registry.create(make_user().id, "personal", {"name": "Jane Doe"}, links)

        assert [(link.platform, link.order) for link in profile.social_links] == [("github", 1), ("email", 2)]


@pytest.mark.integration
class TestProfileLifecycle:
    async def test_rename_frees_old_slug(self, registry, make_user, asset_store):
        owner = make_user()
        profile = await registry.create(owner.id, "personal", {"name": "Jane Doe"})
        old_qr = profile.qr_code_url

        renamed = await registry.update(profile.id, owner.id, {"name": "Janet Smith"})

        assert renamed.slug == "janet-smith"
        assert renamed.profile_url == "https://linkme.test/janet-smith"
        assert renamed.qr_code_url != old_qr
        assert len(stored_files(asset_store)) == 1

        other = await registry.create(make_user().id, "personal", {"name": "Jane Doe"})
        assert other.slug == "jane-doe"

    async def test_rename_onto_own_slug_base(self, registry, make_user):
        owner = make_user()
        profile = await registry.create(owner.id, "personal", {"name": "Jane Doe"})

        renamed = await registry.update(profile.id, owner.id, {"name": "Jane  Doe"})

        assert renamed.slug == "jane-doe"

    async def test_delete_refused_while_orders_exist(self, registry, repos, make_user, db_session, asset_store):
        owner = make_user()
        profile = await registry.create(
            owner.id, "personal", {"name": "Jane Doe"}, [{"platform": "website", "url": "https://jane.dev"}]
        )
        await OrderService(repos).create_order(owner.id, profile.id, CUSTOMER, SHIPPING)
        await OrderService(repos).create_order(owner.id, profile.id, CUSTOMER, SHIPPING)

        with pytest.raises(ProfileHasOrdersError) as exc_info:
            await registry.delete(profile.id, owner.id)

        assert exc_info.value.order_count == 2
        assert exc_info.value.status_code == 400
        db_session.expire_all()
        stored = db_session.get(Profile, profile.id)
        assert stored.slug == "jane-doe"
        assert len(stored.social_links) == 1
        assert stored_files(asset_store) != []

    async def test_delete_cascades_links_and_views(self, registry, tracker, make_user, db_session, asset_store):
        from cardlink.db.models import ProfileView
        from cardlink.services.request_context import RequestContext

        owner = make_user()
        profile = await registry.create(
            owner.id, "personal", {"name": "Jane Doe"}, [{"platform": "website", "url": "https://jane.dev"}]
        )
        await tracker.track_view("jane-doe", "qr", RequestContext())

        await registry.delete(profile.id, owner.id)

        assert db_session.query(SocialLink).count() == 0
        assert db_session.query(ProfileView).count() == 0
        assert stored_files(asset_store) == []

    async def test_toggle_twice_restores(self, registry, make_user):
        owner = make_user()
        profile = await registry.create(owner.id, "personal", {"name": "Jane Doe"})

        assert (await registry.toggle_active(profile.id, owner.id)).is_active is False
        assert (await registry.toggle_active(profile.id, owner.id)).is_active is True


@pytest.mark.integration
class TestSchemaConstraints:
    """The database enforces the same uniqueness the services check."""

    def _profile(self, user, slug, profile_type="personal"):
        return Profile(
            user_id=user.id,
            profile_type=profile_type,
            name="Jane Doe",
            slug=slug,
            profile_url=f"https://linkme.test/{slug}",
        )

    def test_slug_is_unique(self, db_session, make_user):
        db_session.add(self._profile(make_user(), "jane-doe"))
        db_session.commit()

        db_session.add(self._profile(make_user(), "jane-doe"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_profile_type_is_unique_per_user(self, db_session, make_user):
        owner = make_user()
        db_session.add(self._profile(owner, "jane-doe"))
        db_session.commit()

        db_session.add(self._profile(owner, "jane-doe-1"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_platform_is_unique_per_profile(self, db_session, make_user):
        profile = self._profile(make_user(), "jane-doe")
        profile.social_links.append(SocialLink(platform="website", url="https://a.dev", order=1))
        db_session.add(profile)
        db_session.commit()

        db_session.add(SocialLink(profile_id=profile.id, platform="website", url="https://b.dev", order=2))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_link_order_must_be_positive(self, db_session, make_user):
        profile = self._profile(make_user(), "jane-doe")
        db_session.add(profile)
        db_session.commit()

        db_session.add(SocialLink(profile_id=profile.id, platform="website", url="https://a.dev", order=0))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

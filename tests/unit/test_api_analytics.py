"""Tests for analytics API endpoints."""

from datetime import datetime, timedelta, timezone

import pytest

from cardlink.db.models import ProfileView
from tests.helpers.visitors import DESKTOP_UA, PRIVATE_IP, PUBLIC_IP, visitor_headers


@pytest.fixture
def profile(make_api_profile):
    return make_api_profile(
        socialLinks=[
            {"platform": "website", "url": "https://jane.dev"},
            {"platform": "github", "url": "https://github.com/jane"},
        ]
    )


def track(client, slug="jane-doe", source=None, **header_args):
    kwargs = {"headers": visitor_headers(**header_args)}
    if source is not None:
        kwargs["json"] = {"source": source}
    return client.post(f"/api/analytics/track-view/{slug}", **kwargs)


def insert_view(db_session, profile_id, viewed_at, source="direct"):
    db_session.add(ProfileView(profile_id=profile_id, view_source=source, viewed_at=viewed_at))
    db_session.commit()


@pytest.mark.unit
class TestTrackView:
    def test_track_view_records_visitor(self, client, auth_headers, profile, geo_resolver):
        response = track(client, source="qr", referrer="https://instagram.com/jane")

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "View tracked successfully"
        assert body["data"]["viewCount"] == 1
        assert isinstance(body["data"]["viewId"], int)
        assert geo_resolver.lookups == [PUBLIC_IP]

        view = client.get(
            f"/api/analytics/profile/{profile['id']}/recent-views", headers=auth_headers
        ).json()["data"][0]
        assert view["viewerIp"] == PUBLIC_IP
        assert view["country"] == "JO"
        assert view["city"] == "Amman"
        assert view["device"] == "Mobile"
        assert view["referrer"] == "https://instagram.com/jane"
        assert view["viewSource"] == "qr"

    def test_view_count_increments(self, client, auth_headers, profile):
        counts = [track(client).json()["data"]["viewCount"] for _ in range(3)]

        assert counts == [1, 2, 3]
        stored = client.get(f"/api/profiles/{profile['id']}", headers=auth_headers).json()["data"]
        assert stored["viewCount"] == 3

    def test_missing_body_defaults_to_direct(self, client, auth_headers, profile):
        track(client)

        view = client.get(
            f"/api/analytics/profile/{profile['id']}/recent-views", headers=auth_headers
        ).json()["data"][0]
        assert view["viewSource"] == "direct"

    def test_private_address_is_neither_stored_nor_resolved(self, client, auth_headers, profile, geo_resolver):
        track(client, ip=PRIVATE_IP, user_agent=DESKTOP_UA)

        view = client.get(
            f"/api/analytics/profile/{profile['id']}/recent-views", headers=auth_headers
        ).json()["data"][0]
        assert geo_resolver.lookups == []
        assert view["viewerIp"] is None
        assert view["country"] is None
        assert view["device"] == "Desktop"
        assert view["browser"] == "Chrome 120"

    def test_invalid_source(self, client, profile):
        response = track(client, source="carrier-pigeon")

        assert response.status_code == 400
        assert response.json()["field"] == "source"

    def test_unknown_or_inactive_profile(self, client, auth_headers, profile):
        assert track(client, slug="nobody").status_code == 404

        client.patch(f"/api/profiles/{profile['id']}/toggle-status", headers=auth_headers)
        assert track(client).status_code == 404


@pytest.mark.unit
class TestBreakdowns:
    def test_views_by_source(self, client, auth_headers, profile):
        for source in ("qr", "qr", "qr", None, "direct"):
            track(client, source=source)

        response = client.get(f"/api/analytics/profile/{profile['id']}/views-by-source", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 5
        assert data["breakdown"] == [
            {"source": "qr", "count": 3, "percentage": 60.0},
            {"source": "direct", "count": 2, "percentage": 40.0},
        ]

    def test_views_by_device(self, client, auth_headers, profile):
        track(client)
        track(client)
        track(client, user_agent=DESKTOP_UA)

        data = client.get(
            f"/api/analytics/profile/{profile['id']}/views-by-device", headers=auth_headers
        ).json()["data"]

        assert data["totalViews"] == 3
        assert data["devices"] == [
            {"device": "Mobile", "count": 2, "percentage": 66.67},
            {"device": "Desktop", "count": 1, "percentage": 33.33},
        ]
        assert {"browser": "Chrome 120", "count": 1} in data["browsers"]

    def test_views_by_location(self, client, auth_headers, profile):
        track(client)
        track(client, ip="1.1.1.1")
        track(client, ip=PRIVATE_IP)

        data = client.get(
            f"/api/analytics/profile/{profile['id']}/views-by-location", headers=auth_headers
        ).json()["data"]

        assert data["countries"] == [{"country": "JO", "count": 2}]
        assert data["cities"] == [{"city": "Amman", "country": "JO", "count": 2}]

    def test_window_excludes_old_views(self, client, auth_headers, db_session, profile):
        now = datetime.now(timezone.utc)
        insert_view(db_session, profile["id"], now - timedelta(days=40), source="nfc")
        insert_view(db_session, profile["id"], now - timedelta(days=2), source="link")

        data = client.get(
            f"/api/analytics/profile/{profile['id']}/views-by-source?days=30", headers=auth_headers
        ).json()["data"]

        assert data["total"] == 1
        assert data["breakdown"][0]["source"] == "link"

    def test_empty_profile(self, client, auth_headers, profile):
        data = client.get(
            f"/api/analytics/profile/{profile['id']}/views-by-source", headers=auth_headers
        ).json()["data"]

        assert data == {"total": 0, "breakdown": []}


@pytest.mark.unit
class TestViewsOverTime:
    def test_only_days_with_views(self, client, auth_headers, db_session, profile):
        now = datetime.now(timezone.utc)
        insert_view(db_session, profile["id"], now - timedelta(days=3))
        insert_view(db_session, profile["id"], now - timedelta(days=3, minutes=5))
        insert_view(db_session, profile["id"], now)

        data = client.get(
            f"/api/analytics/profile/{profile['id']}/views-over-time?days=7", headers=auth_headers
        ).json()["data"]

        assert data["period"] == "7 days"
        dates = [row["date"] for row in data["views"]]
        assert dates == sorted(dates)
        assert sum(row["count"] for row in data["views"]) == 3
        assert data["views"][-1] == {"date": now.date().isoformat(), "count": 1}

    def test_fill_gaps(self, client, auth_headers, profile):
        track(client)

        data = client.get(
            f"/api/analytics/profile/{profile['id']}/views-over-time?days=7&fillGaps=true",
            headers=auth_headers,
        ).json()["data"]

        views = data["views"]
        assert len(views) == 8
        assert sum(row["count"] for row in views) == 1
        assert views[-1]["count"] == 1
        assert all(row["count"] == 0 for row in views[:-1])


@pytest.mark.unit
class TestRollups:
    def test_profile_analytics(self, client, auth_headers, profile):
        website, github = profile["socialLinks"]
        track(client, source="nfc")
        track(client, source="qr")
        client.post(f"/api/social-links/{github['id']}/click")
        client.post(f"/api/social-links/{github['id']}/click")
        client.post(f"/api/social-links/{website['id']}/click")

        response = client.get(f"/api/analytics/profile/{profile['id']}", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["profile"] == {"id": profile["id"], "name": "Jane Doe", "type": "personal", "slug": "jane-doe"}
        assert data["period"]["days"] == 30
        analytics = data["analytics"]
        assert analytics["totalViews"] == 2
        assert analytics["allTimeViews"] == 2
        assert analytics["totalClicks"] == 3
        assert {row["source"] for row in analytics["viewsBySource"]} == {"nfc", "qr"}
        assert analytics["viewsByCountry"] == [{"country": "JO", "count": 2}]
        assert len(analytics["recentViews"]) == 2
        assert [link["id"] for link in data["socialLinks"]] == [github["id"], website["id"]]

    def test_user_analytics(self, client, auth_headers, make_api_profile):
        make_api_profile()
        business = make_api_profile(name="Acme Corp", profile_type="business")
        track(client, slug="acme-corp")
        track(client, slug="acme-corp")
        track(client, slug="jane-doe", source="qr")

        data = client.get("/api/analytics/user?days=7", headers=auth_headers).json()["data"]

        assert data["period"] == "7 days"
        assert data["totalProfiles"] == 2
        assert data["totalViews"] == 3
        assert data["totalViewsInPeriod"] == 3
        assert data["totalClicks"] == 0
        by_id = {row["id"]: row for row in data["profiles"]}
        assert by_id[business["id"]]["viewsInPeriod"] == 2
        assert by_id[business["id"]]["type"] == "business"

    def test_user_without_profiles(self, client, auth_headers):
        data = client.get("/api/analytics/user", headers=auth_headers).json()["data"]

        assert data["totalProfiles"] == 0
        assert data["profiles"] == []
        assert data["viewsBySource"] == []

    def test_foreign_profile(self, client, other_headers, profile):
        response = client.get(f"/api/analytics/profile/{profile['id']}", headers=other_headers)

        assert response.status_code == 404

    def test_requires_authentication(self, client, profile):
        response = client.get(f"/api/analytics/profile/{profile['id']}")

        assert response.status_code == 401

    def test_days_out_of_range(self, client, auth_headers, profile):
        response = client.get(f"/api/analytics/profile/{profile['id']}?days=0", headers=auth_headers)

        assert response.status_code == 400


@pytest.mark.unit
class TestCleanup:
    def test_cleanup_removes_old_views_only(self, client, auth_headers, db_session, profile):
        now = datetime.now(timezone.utc)
        track(client)
        insert_view(db_session, profile["id"], now - timedelta(days=100))
        insert_view(db_session, profile["id"], now - timedelta(days=20))

        response = client.request(
            "DELETE",
            f"/api/analytics/profile/{profile['id']}/cleanup",
            json={"daysToKeep": 30},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"deletedCount": 1}
        assert response.json()["message"] == "Deleted 1 old view records"
        stored = client.get(f"/api/profiles/{profile['id']}", headers=auth_headers).json()["data"]
        assert stored["viewCount"] == 1

    def test_cleanup_defaults_to_ninety_days(self, client, auth_headers, db_session, profile):
        now = datetime.now(timezone.utc)
        insert_view(db_session, profile["id"], now - timedelta(days=100))
        insert_view(db_session, profile["id"], now - timedelta(days=60))

        response = client.delete(f"/api/analytics/profile/{profile['id']}/cleanup", headers=auth_headers)

        assert response.json()["data"] == {"deletedCount": 1}

    def test_cleanup_rejects_zero_days(self, client, auth_headers, profile):
        response = client.request(
            "DELETE",
            f"/api/analytics/profile/{profile['id']}/cleanup",
            json={"daysToKeep": 0},
            headers=auth_headers,
        )

        assert response.status_code == 400

"""Tests for the HTTP API."""
import pytest

from tagradio.core.config import app_settings
from tagradio.services import RadioStationService

API = app_settings.api_prefix


@pytest.fixture
async def rock_station(db, library):
    """Active station: require Rock, exclude Live."""
    return await RadioStationService(db).create_station(
        name="Rock Block",
        background_video="rock.mp4",
        tag_rules={library.tags.rock: "require", library.tags.live: "exclude"},
    )


class TestStationPlaylist:
    """GET /radio/stations/{slug}."""

    async def test_wire_format(self, client, rock_station, library):
        response = await client.get(f"{API}/radio/stations/rock-block")

        assert response.status_code == 200
        body = response.json()
        assert body["station"] == {"id": rock_station.id, "name": "Rock Block", "backgroundVideo": "rock.mp4"}
        assert body["total_songs"] == 1
        assert body["songs"] == [
            {"id": library.tracks.rock_fast, "title": "Rock Fast", "filename": "rock_fast.mp3", "duration": 180}
        ]
        assert "message" not in body

    async def test_no_rules_plays_all_active_tracks(self, client, station, library):
        response = await client.get(f"{API}/radio/stations/heavy-hitters")

        body = response.json()
        assert body["total_songs"] == 5
        assert library.tracks.retired not in {song["id"] for song in body["songs"]}
        assert body["station"]["description"] == "Loud stuff"

    async def test_empty_station_returns_message(self, client, db, library):
        await RadioStationService(db).create_station(
            name="Nothing", tag_rules={library.tags.jazz: "require", library.tags.pop: "require"}
        )
        response = await client.get(f"{API}/radio/stations/nothing")

        assert response.status_code == 200
        body = response.json()
        assert body["songs"] == []
        assert body["total_songs"] == 0
        assert body["message"] == "No songs match this station"

    async def test_unknown_station(self, client):
        response = await client.get(f"{API}/radio/stations/missing")

        assert response.status_code == 404
        body = response.json()
        assert body["error"]["code"] == "NOT_FOUND"
        assert "songs" not in body

    async def test_inactive_station_not_found(self, client, db, library):
        await RadioStationService(db).create_station(name="Off Air", active=False)
        response = await client.get(f"{API}/radio/stations/off-air")
        assert response.status_code == 404

    async def test_malformed_slug(self, client):
        response = await client.get(f"{API}/radio/stations/Bad_Slug")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_trailing_newline_slug_is_malformed(self, client, station):
        response = await client.get(f"{API}/radio/stations/heavy-hitters%0A")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_list_stations(self, client, rock_station, station):
        response = await client.get(f"{API}/radio/stations")

        assert response.status_code == 200
        assert {s["slug"] for s in response.json()} == {"rock-block", "heavy-hitters"}

    async def test_correlation_id_echoed(self, client, station):
        response = await client.get(f"{API}/radio/stations/heavy-hitters", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestRuleUpdate:
    """PUT /radio/admin/stations/{id}/rules."""

    async def test_replace_rules_then_fetch(self, client, station, library):
        station_id = station.id
        response = await client.put(
            f"{API}/radio/admin/stations/{station_id}/rules",
            json={"stationId": station_id, "tagRules": {str(library.tags.rock): "include", str(library.tags.pop): "include"}},
        )

        assert response.status_code == 200
        assert response.json() == {
            "stationId": station_id,
            "tagRules": {str(library.tags.rock): "include", str(library.tags.pop): "include"},
        }

        playlist = (await client.get(f"{API}/radio/stations/heavy-hitters")).json()
        assert {song["id"] for song in playlist["songs"]} == {
            library.tracks.rock_fast,
            library.tracks.rock_live,
            library.tracks.pop,
        }

    async def test_empty_rules_restore_all_tracks(self, client, rock_station, library):
        station_id = rock_station.id
        response = await client.put(f"{API}/radio/admin/stations/{station_id}/rules", json={"tagRules": {}})

        assert response.status_code == 200
        assert response.json()["tagRules"] == {}
        playlist = (await client.get(f"{API}/radio/stations/rock-block")).json()
        assert playlist["total_songs"] == 5

    async def test_none_entries_are_not_stored(self, client, station, library):
        response = await client.put(
            f"{API}/radio/admin/stations/{station.id}/rules",
            json={"tagRules": {str(library.tags.rock): "none", str(library.tags.pop): None}},
        )
        assert response.json()["tagRules"] == {}

    async def test_unknown_kind_rejected(self, client, station, library):
        response = await client.put(
            f"{API}/radio/admin/stations/{station.id}/rules",
            json={"tagRules": {str(library.tags.rock): "prefer"}},
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_missing_payload_rejected(self, client, station):
        response = await client.put(f"{API}/radio/admin/stations/{station.id}/rules", json={})
        assert response.status_code == 400

    async def test_station_id_mismatch_rejected(self, client, station):
        response = await client.put(
            f"{API}/radio/admin/stations/{station.id}/rules",
            json={"stationId": station.id + 1, "tagRules": {}},
        )
        assert response.status_code == 400

    async def test_unknown_station(self, client):
        response = await client.put(f"{API}/radio/admin/stations/999/rules", json={"tagRules": {}})
        assert response.status_code == 404

    async def test_get_rules(self, client, rock_station, library):
        response = await client.get(f"{API}/radio/admin/stations/{rock_station.id}/rules")
        assert response.json()["tagRules"] == {str(library.tags.rock): "require", str(library.tags.live): "exclude"}


class TestStationAdmin:
    """Station create/update routes."""

    async def test_create(self, client, library):
        response = await client.post(
            f"{API}/radio/admin/stations",
            json={"name": "Jazz Cafe", "tag_rules": {str(library.tags.jazz): "include"}},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "jazz-cafe"
        assert body["tag_rules"] == {str(library.tags.jazz): "include"}

    async def test_create_slug_collision(self, client, station):
        response = await client.post(f"{API}/radio/admin/stations", json={"name": "Other", "slug": "heavy-hitters"})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    async def test_update(self, client, station):
        response = await client.patch(f"{API}/radio/admin/stations/{station.id}", json={"active": False})
        assert response.status_code == 200
        assert response.json()["active"] is False
        assert (await client.get(f"{API}/radio/stations/heavy-hitters")).status_code == 404

    async def test_empty_update_rejected(self, client, station):
        response = await client.patch(f"{API}/radio/admin/stations/{station.id}", json={})
        assert response.status_code == 400

    async def test_admin_key_enforced(self, client, station, monkeypatch):
        monkeypatch.setattr(app_settings, "admin_api_key", "s3cret")
        url = f"{API}/radio/admin/stations/{station.id}/rules"

        assert (await client.put(url, json={"tagRules": {}})).status_code == 403
        assert (await client.put(url, json={"tagRules": {}}, headers={"X-Admin-Key": "wrong"})).status_code == 403
        assert (await client.put(url, json={"tagRules": {}}, headers={"X-Admin-Key": "s3cret"})).status_code == 200

    async def test_public_fetch_needs_no_admin_key(self, client, station, monkeypatch):
        monkeypatch.setattr(app_settings, "admin_api_key", "s3cret")
        assert (await client.get(f"{API}/radio/stations/heavy-hitters")).status_code == 200


class TestTagRoutes:
    """Tag routes."""

    async def test_create_and_list(self, client):
        response = await client.post(f"{API}/radio/tags", json={"name": "Heavy Hitters!!", "category": "mood"})
        assert response.status_code == 201
        assert response.json()["slug"] == "heavy-hitters"

        tags = (await client.get(f"{API}/radio/tags")).json()
        assert [t["name"] for t in tags] == ["Heavy Hitters!!"]

    async def test_list_with_usage(self, client, library):
        tags = (await client.get(f"{API}/radio/tags", params={"with_usage": "true", "category": "mood"})).json()
        assert {t["name"]: t["usage_count"] for t in tags} == {"Live": 1, "Fast": 1}

    async def test_delete_referenced_tag(self, client, library):
        response = await client.delete(f"{API}/radio/tags/{library.tags.rock}")
        assert response.status_code == 409

    async def test_rename(self, client, library):
        response = await client.patch(f"{API}/radio/tags/{library.tags.jazz}", json={"name": "Smooth Jazz"})
        assert response.json()["slug"] == "smooth-jazz"

    async def test_categories(self, client, library):
        categories = (await client.get(f"{API}/radio/tags/categories")).json()
        assert [c["category"] for c in categories] == ["genre", "mood"]

    async def test_stats(self, client, library):
        body = (await client.get(f"{API}/radio/tags/stats")).json()
        assert body["total_tags"] == 5
        assert body["most_used"][0] == {"id": library.tags.rock, "name": "Rock", "usage_count": 3}

    async def test_search(self, client, library):
        response = await client.get(f"{API}/radio/tags/search", params={"query": "jaz"})
        assert [t["slug"] for t in response.json()] == ["jazz"]

    async def test_search_without_query(self, client):
        response = await client.get(f"{API}/radio/tags/search")
        assert response.status_code == 400


class TestTrackRoutes:
    """Track routes."""

    async def test_list(self, client, library):
        body = (await client.get(f"{API}/radio/tracks", params={"status": "active", "limit": 2})).json()
        assert body["pagination"] == {"total": 5, "limit": 2, "offset": 0, "has_more": True}
        assert len(body["tracks"]) == 2

    async def test_deactivated_track_leaves_station(self, client, station, library):
        response = await client.patch(f"{API}/radio/tracks/{library.tracks.jazz}", json={"active": False})
        assert response.status_code == 200

        playlist = (await client.get(f"{API}/radio/stations/heavy-hitters")).json()
        assert library.tracks.jazz not in {song["id"] for song in playlist["songs"]}

    async def test_set_tags(self, client, library):
        response = await client.put(
            f"{API}/radio/tracks/{library.tracks.untagged}/tags", json={"tag_ids": [library.tags.live]}
        )
        assert [t["name"] for t in response.json()["tags"]] == ["Live"]

    async def test_delete_track(self, client, station, library):
        response = await client.delete(f"{API}/radio/tracks/{library.tracks.jazz}")
        assert response.status_code == 204

        playlist = (await client.get(f"{API}/radio/stations/heavy-hitters")).json()
        assert library.tracks.jazz not in {song["id"] for song in playlist["songs"]}
        assert (await client.get(f"{API}/radio/tracks/{library.tracks.jazz}")).status_code == 404
        assert (await client.delete(f"{API}/radio/tags/{library.tags.jazz}")).status_code == 204

    async def test_delete_missing_track(self, client):
        response = await client.delete(f"{API}/radio/tracks/999")
        assert response.status_code == 404

    async def test_delete_requires_admin_key(self, client, library, monkeypatch):
        monkeypatch.setattr(app_settings, "admin_api_key", "s3cret")
        url = f"{API}/radio/tracks/{library.tracks.jazz}"
        assert (await client.delete(url)).status_code == 403
        assert (await client.delete(url, headers={"X-Admin-Key": "s3cret"})).status_code == 204

    async def test_bulk_delete(self, client, library):
        response = await client.post(
            f"{API}/radio/tracks/bulk-delete", json={"track_ids": [library.tracks.pop, library.tracks.jazz, 999]}
        )
        assert response.json() == {"deleted_count": 2}

    async def test_bulk_delete_empty_rejected(self, client):
        response = await client.post(f"{API}/radio/tracks/bulk-delete", json={"track_ids": []})
        assert response.status_code == 400

    async def test_stats(self, client, library):
        body = (await client.get(f"{API}/radio/tracks/stats")).json()
        assert body["total_tracks"] == 6
        assert body["active_tracks"] == 5
        assert body["duration_seconds"]["max"] == 180


class TestPlaybackEvents:
    """POST /radio/playback/events."""

    async def test_records_play(self, client, station, library):
        response = await client.post(
            f"{API}/radio/playback/events",
            json={"station_id": station.id, "track_id": library.tracks.pop, "duration_seconds": 30},
        )
        assert response.status_code == 201
        assert response.json()["track_id"] == library.tracks.pop

        track = (await client.get(f"{API}/radio/tracks/{library.tracks.pop}")).json()
        assert track["play_count"] == 1

    async def test_unknown_track(self, client, station):
        response = await client.post(f"{API}/radio/playback/events", json={"station_id": station.id, "track_id": 404})
        assert response.status_code == 404


class TestServiceRoutes:
    """Health and metrics."""

    async def test_health(self, client):
        body = (await client.get("/health")).json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"

    async def test_metrics(self, client, station):
        await client.get(f"{API}/radio/stations/heavy-hitters")
        response = await client.get("/metrics")
        assert response.status_code == 200
        assert "station_fetches_total" in response.text

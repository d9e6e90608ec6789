# tests/v1/test_media_api.py
"""Tests for the media library endpoints."""

import pytest
from fastapi import status

from lightbox.core.settings import settings
from lightbox.db.session import get_db
from lightbox.models import Media
from lightbox.services.image_host import ImageResource

BASE = "/api/v1/media"


def _ids(payload: dict) -> list[int]:
    return [item["id"] for item in payload["media"]]


def test_create_media(client, db_session) -> None:
    response = client.post(
        f"{BASE}/",
        json={
            "cloudinary_public_id": "portfolio/harbour",
            "cloudinary_url": "https://res.cloudinary.com/demo/image/upload/portfolio/harbour",
            "caption": "Harbour at dawn",
            "exif_data": {"Model": "X100V"},
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    media = response.json()["media"]
    assert media["cloudinary_public_id"] == "portfolio/harbour"
    assert media["exif_data"] == {"Model": "X100V"}
    assert media["is_masthead"] is False
    assert media["masthead_order"] is None


def test_create_media_with_flags_appends(client, make_media) -> None:
    make_media(is_masthead=True, masthead_order=4)
    response = client.post(
        f"{BASE}/",
        json={
            "cloudinary_public_id": "portfolio/new",
            "cloudinary_url": "https://example.test/new.jpg",
            "is_masthead": True,
            "is_featured": True,
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    media = response.json()["media"]
    assert media["masthead_order"] == 5
    assert media["featured_order"] == 0


def test_create_duplicate_public_id(client, make_media) -> None:
    existing = make_media()
    response = client.post(
        f"{BASE}/",
        json={
            "cloudinary_public_id": existing.cloudinary_public_id,
            "cloudinary_url": "https://example.test/dup.jpg",
        },
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert "already exists" in response.json()["detail"]


def test_create_media_requires_public_id(client) -> None:
    response = client.post(f"{BASE}/", json={"cloudinary_url": "https://example.test/x.jpg"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_create_media_derives_delivery_url(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "cloudinary_cloud_name", "demo")
    response = client.post(f"{BASE}/", json={"cloudinary_public_id": "portfolio/quay"})
    assert response.status_code == status.HTTP_201_CREATED
    assert (
        response.json()["media"]["cloudinary_url"]
        == "https://res.cloudinary.com/demo/image/upload/portfolio/quay"
    )


def test_create_media_without_url_needs_cloud_name(client, db_session, monkeypatch) -> None:
    monkeypatch.setattr(settings, "cloudinary_cloud_name", None)
    response = client.post(f"{BASE}/", json={"cloudinary_public_id": "portfolio/quay"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "cloudinary_url is required" in response.json()["detail"]
    assert db_session.query(Media).count() == 0


def test_list_media_newest_first(client, make_media) -> None:
    older = make_media(minutes=1)
    newer = make_media(minutes=5)
    response = client.get(f"{BASE}/")
    assert response.status_code == status.HTTP_200_OK
    assert _ids(response.json()) == [newer.id, older.id]


def test_list_masthead_in_display_order(client, make_media) -> None:
    second = make_media(is_masthead=True, masthead_order=1)
    first = make_media(is_masthead=True, masthead_order=0)
    make_media()
    response = client.get(f"{BASE}/", params={"is_masthead": "true"})
    assert _ids(response.json()) == [first.id, second.id]


def test_list_featured_filtered_by_story(client, make_media, make_story) -> None:
    story = make_story()
    linked = make_media(is_featured=True, featured_order=1, story_id=story.id)
    make_media(is_featured=True, featured_order=0)
    response = client.get(f"{BASE}/", params={"is_featured": "true", "story_id": story.id})
    assert _ids(response.json()) == [linked.id]


def test_get_media(client, make_media) -> None:
    media = make_media(caption="Quay")
    response = client.get(f"{BASE}/{media.id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["media"]["caption"] == "Quay"


def test_get_missing_media(client) -> None:
    response = client.get(f"{BASE}/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_update_toggles_masthead(client, make_media) -> None:
    make_media(is_masthead=True, masthead_order=0)
    media = make_media()

    response = client.put(f"{BASE}/{media.id}", json={"is_masthead": True})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["media"]["masthead_order"] == 1

    response = client.put(f"{BASE}/{media.id}", json={"is_masthead": False})
    body = response.json()["media"]
    assert body["is_masthead"] is False
    assert body["masthead_order"] is None


def test_update_keeps_story_link_when_not_sent(client, make_media, make_story) -> None:
    story = make_story()
    media = make_media(story_id=story.id)
    response = client.put(f"{BASE}/{media.id}", json={"caption": "New caption"})
    body = response.json()["media"]
    assert body["caption"] == "New caption"
    assert body["story_id"] == story.id


def test_update_rejects_unknown_story(client, make_media) -> None:
    media = make_media()
    response = client.put(f"{BASE}/{media.id}", json={"story_id": 4040})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_delete_media_calls_image_host(client, image_host, make_media, db_session) -> None:
    media = make_media()
    media_id, public_id = media.id, media.cloudinary_public_id

    response = client.delete(f"{BASE}/{media_id}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}
    assert image_host.destroyed == [public_id]
    assert db_session.get(Media, media_id) is None


def test_delete_media_survives_image_host_failure(client, image_host, make_media, db_session) -> None:
    media = make_media()
    media_id = media.id
    image_host.fail_destroy.add(media.cloudinary_public_id)

    response = client.delete(f"{BASE}/{media_id}")

    assert response.status_code == status.HTTP_200_OK
    assert db_session.get(Media, media_id) is None


def test_delete_media_with_image_host_disabled(client, image_host, make_media, db_session) -> None:
    media = make_media()
    media_id = media.id
    image_host.enabled = False

    response = client.delete(f"{BASE}/{media_id}")

    assert response.status_code == status.HTTP_200_OK
    assert db_session.get(Media, media_id) is None


def test_batch_delete(client, image_host, make_media, db_session) -> None:
    a, b, keep = make_media(), make_media(), make_media()
    ids = [a.id, b.id]

    response = client.request("DELETE", f"{BASE}/", json={"ids": ids})

    assert response.status_code == status.HTTP_200_OK
    assert sorted(image_host.destroyed) == sorted([a.cloudinary_public_id, b.cloudinary_public_id])
    remaining = [m.id for m in db_session.query(Media).all()]
    assert remaining == [keep.id]


def test_batch_update_assigns_in_list_order(client, make_media) -> None:
    make_media(is_featured=True, featured_order=0)
    a, b = make_media(), make_media()

    response = client.put(
        f"{BASE}/batch",
        json={"ids": [b.id, a.id], "updates": {"is_featured": True}},
    )
    assert response.status_code == status.HTTP_200_OK

    listing = client.get(f"{BASE}/", params={"is_featured": "true"}).json()
    assert _ids(listing)[1:] == [b.id, a.id]
    orders = {m["id"]: m["featured_order"] for m in listing["media"]}
    assert orders[b.id] == 1
    assert orders[a.id] == 2


def test_batch_update_clears(client, make_media) -> None:
    a = make_media(is_masthead=True, masthead_order=0)
    b = make_media(is_masthead=True, masthead_order=1)
    response = client.put(
        f"{BASE}/batch",
        json={"ids": [a.id, b.id], "updates": {"is_masthead": False}},
    )
    assert response.status_code == status.HTTP_200_OK
    listing = client.get(f"{BASE}/", params={"is_masthead": "true"}).json()
    assert listing["media"] == []


def test_batch_update_caption(client, make_media) -> None:
    a, b = make_media(), make_media()
    client.put(f"{BASE}/batch", json={"ids": [a.id, b.id], "updates": {"caption": "Series"}})
    assert client.get(f"{BASE}/{a.id}").json()["media"]["caption"] == "Series"
    assert client.get(f"{BASE}/{b.id}").json()["media"]["caption"] == "Series"


def test_batch_update_without_updates(client, make_media) -> None:
    media = make_media()
    response = client.put(f"{BASE}/batch", json={"ids": [media.id], "updates": {}})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "No valid updates provided"


def test_batch_update_unknown_id(client, make_media) -> None:
    media = make_media()
    response = client.put(
        f"{BASE}/batch",
        json={"ids": [media.id, 777777], "updates": {"is_featured": True}},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert client.get(f"{BASE}/{media.id}").json()["media"]["is_featured"] is False


@pytest.fixture()
def closing_session(app, db_session):
    """Serve the test session and close it after each request, as get_db does."""

    def _get_db():
        try:
            yield db_session
        finally:
            db_session.close()

    app.dependency_overrides[get_db] = _get_db


def test_batch_update_store_failure_commits_nothing(
    client, db_session, make_media, closing_session, fail_media_update, stored_media
) -> None:
    ids = [make_media(minutes=i).id for i in range(3)]
    db_session.commit()

    fail_media_update(2)
    response = client.put(f"{BASE}/batch", json={"ids": ids, "updates": {"is_featured": True}})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"detail": "Database error"}
    assert stored_media(Media.is_featured, ids) == [False, False, False]
    assert stored_media(Media.featured_order, ids) == [None, None, None]


def test_reorder_store_failure_commits_nothing(
    client, db_session, make_media, closing_session, fail_media_update, stored_media
) -> None:
    ids = [make_media(is_masthead=True, masthead_order=i).id for i in range(3)]
    db_session.commit()

    fail_media_update(2)
    response = client.put(
        f"{BASE}/reorder", json={"type": "masthead", "media_ids": list(reversed(ids))}
    )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert stored_media(Media.masthead_order, ids) == [0, 1, 2]
    listing = client.get(f"{BASE}/", params={"is_masthead": "true"}).json()
    assert _ids(listing) == ids


def test_reorder_masthead(client, make_media) -> None:
    rows = [make_media(is_masthead=True, masthead_order=i) for i in range(3)]
    wanted = [rows[2].id, rows[0].id, rows[1].id]

    response = client.put(f"{BASE}/reorder", json={"type": "masthead", "media_ids": wanted})

    assert response.status_code == status.HTTP_200_OK
    assert _ids(response.json()) == wanted
    assert [m["masthead_order"] for m in response.json()["media"]] == [0, 1, 2]
    listing = client.get(f"{BASE}/", params={"is_masthead": "true"}).json()
    assert _ids(listing) == wanted


def test_reorder_rejects_non_member(client, make_media) -> None:
    member = make_media(is_featured=True, featured_order=0)
    outsider = make_media()
    response = client.put(
        f"{BASE}/reorder",
        json={"type": "featured", "media_ids": [outsider.id, member.id]},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert str(outsider.id) in response.json()["detail"]


def test_reorder_rejects_duplicates(client, make_media) -> None:
    member = make_media(is_featured=True, featured_order=0)
    response = client.put(
        f"{BASE}/reorder",
        json={"type": "featured", "media_ids": [member.id, member.id]},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_reorder_unknown_type(client, make_media) -> None:
    media = make_media(is_masthead=True, masthead_order=0)
    response = client.put(f"{BASE}/reorder", json={"type": "carousel", "media_ids": [media.id]})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_move_media_up(client, make_media) -> None:
    first = make_media(is_featured=True, featured_order=0)
    second = make_media(is_featured=True, featured_order=1)

    response = client.post(
        f"{BASE}/{second.id}/move",
        json={"type": "featured", "direction": "up"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert _ids(response.json()) == [second.id, first.id]


def test_move_first_up_is_no_op(client, make_media) -> None:
    first = make_media(is_masthead=True, masthead_order=0)
    second = make_media(is_masthead=True, masthead_order=1)
    response = client.post(
        f"{BASE}/{first.id}/move",
        json={"type": "masthead", "direction": "up"},
    )
    assert _ids(response.json()) == [first.id, second.id]
    assert [m["masthead_order"] for m in response.json()["media"]] == [0, 1]


def test_move_non_member(client, make_media) -> None:
    media = make_media()
    response = client.post(
        f"{BASE}/{media.id}/move",
        json={"type": "masthead", "direction": "down"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_move_invalid_direction(client, make_media) -> None:
    media = make_media(is_masthead=True, masthead_order=0)
    response = client.post(
        f"{BASE}/{media.id}/move",
        json={"type": "masthead", "direction": "left"},
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_dimensions(client, image_host, make_media) -> None:
    known = make_media(minutes=2)
    unknown = make_media(minutes=1)
    image_host.resources[known.cloudinary_public_id] = ImageResource(
        public_id=known.cloudinary_public_id, width=3000, height=2000, format="jpg"
    )

    response = client.get(f"{BASE}/dimensions", params={"limit": 5})

    assert response.status_code == status.HTTP_200_OK
    entries = {entry["id"]: entry for entry in response.json()["media"]}
    assert entries[known.id]["width"] == 3000
    assert entries[known.id]["aspect_ratio"] == 1.5
    assert entries[known.id]["error"] is None
    assert entries[unknown.id]["error"] == "Not found on image host"


def test_dimensions_with_image_host_disabled(client, image_host, make_media) -> None:
    media = make_media()
    image_host.enabled = False
    response = client.get(f"{BASE}/dimensions")
    assert response.json()["media"][0]["id"] == media.id
    assert response.json()["media"][0]["error"] == "Image host not configured"

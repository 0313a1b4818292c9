from datetime import datetime, timedelta

import pytest

from app.models import Event


def event_payload(**overrides):
    now = datetime.utcnow()
    payload = {
        "title": "Spring Launch",
        "image_url": "/uploads/spring.jpg",
        "start_date": (now - timedelta(days=1)).isoformat(),
        "end_date": (now + timedelta(days=7)).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_admin_event_lifecycle(admin_client):
    created = admin_client.post("/api/admin/events/", json=event_payload(position=2))
    assert created.status_code == 201
    event = created.json()
    assert event["content_type"] == "IMAGE"
    assert event["text_color"] == "#ffffff"

    updated = admin_client.put(f"/api/admin/events/{event['id']}", json={"title": "Spring Sale"})
    assert updated.json()["title"] == "Spring Sale"

    assert admin_client.delete(f"/api/admin/events/{event['id']}").status_code == 200
    assert admin_client.get(f"/api/events/{event['id']}").status_code == 404


def test_event_dates_and_video_rules(admin_client):
    now = datetime.utcnow()
    backwards = event_payload(start_date=now.isoformat(), end_date=(now - timedelta(days=1)).isoformat())
    assert admin_client.post("/api/admin/events/", json=backwards).status_code == 422
    assert admin_client.post("/api/admin/events/", json=event_payload(content_type="VIDEO")).status_code == 422

    event = admin_client.post("/api/admin/events/", json=event_payload()).json()
    response = admin_client.put(
        f"/api/admin/events/{event['id']}", json={"end_date": (now - timedelta(days=5)).isoformat()}
    )
    assert response.status_code == 400


@pytest.mark.parametrize("field", ["start_date", "end_date", "content_type", "text_position", "is_active", "position"])
def test_event_update_rejects_null_for_required_fields(admin_client, field):
    event = admin_client.post("/api/admin/events/", json=event_payload()).json()

    response = admin_client.put(f"/api/admin/events/{event['id']}", json={field: None})
    assert response.status_code == 422

    cleared = admin_client.put(f"/api/admin/events/{event['id']}", json={"link_url": None, "text_overlay": None})
    assert cleared.status_code == 200


def test_public_active_filter_and_order(client, session):
    now = datetime.utcnow()
    session.add_all([
        Event(title="Second", position=1, start_date=now - timedelta(days=1), end_date=now + timedelta(days=1)),
        Event(title="First", position=0, start_date=now - timedelta(days=2), end_date=now + timedelta(days=1)),
        Event(title="Finished", start_date=now - timedelta(days=9), end_date=now - timedelta(days=1)),
        Event(title="Paused", is_active=False, start_date=now - timedelta(days=1), end_date=now + timedelta(days=1)),
    ])
    session.commit()

    active = client.get("/api/events/", params={"active": "true"}).json()
    assert [e["title"] for e in active] == ["First", "Second"]

    everything = client.get("/api/events/").json()
    assert len(everything) == 4


def test_event_admin_requires_admin(client):
    assert client.post("/api/admin/events/", json=event_payload()).status_code == 401

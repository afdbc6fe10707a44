import uuid

from sqlalchemy.exc import SQLAlchemyError

from pitchdeck.core.database import get_db
from pitchdeck.main import app


def test_health_and_root(client):
    response = client.get("/system/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["database"] == "ok"
    assert client.get("/").json()["health"] == "/system/health"


def test_health_reports_unreachable_database(client):
    class DownSession:
        def execute(self, statement):
            raise SQLAlchemyError("connection refused")

    app.dependency_overrides[get_db] = lambda: DownSession()
    try:
        response = client.get("/system/health")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["database"] == "unavailable"


def test_create_presentation(presentation, owner):
    assert presentation["title"] == "Q3 hiring offer"
    assert presentation["templateId"] == "sales-proposal"
    assert presentation["ownerId"] == str(owner.id)
    random_part, millis = presentation["slug"].rsplit("-", 1)
    assert len(random_part) == 10
    assert millis.isdigit()
    block = presentation["content"]["sections"][0]["blocks"][0]
    assert block["type"] == "text"
    assert block["content"]["text"] == "Hello {{clientName}}"
    assert presentation["settings"]["theme"]["primaryColor"] == "#FF5A5F"


def test_create_presentation_without_owner_is_rejected(client, presentation_payload):
    response = client.post("/presentations/", json=presentation_payload)
    assert response.status_code == 422
    assert "owner" in response.json()["detail"].lower()


def test_create_presentation_validates_title(client, owner):
    assert client.post("/presentations/", json={"title": ""}).status_code == 422


def test_unknown_block_types_are_kept(client, owner):
    payload = {
        "title": "Forward compatible",
        "content": {
            "sections": [
                {"id": "s", "blocks": [{"id": "b", "type": "carousel", "content": {"slides": [1, 2]}, "speed": 3}]}
            ]
        },
    }
    created = client.post("/presentations/", json=payload).json()
    block = created["content"]["sections"][0]["blocks"][0]
    assert block["type"] == "carousel"
    assert block["content"] == {"slides": [1, 2]}
    assert block["speed"] == 3


def test_presentation_detail_includes_versions_and_rollup(client, presentation, version):
    response = client.get(f"/presentations/{presentation['id']}")
    assert response.status_code == 200
    data = response.json()
    assert [item["versionSlug"] for item in data["versions"]] == [version["versionSlug"]]
    assert data["versions"][0]["viewCount"] == 0
    assert data["analytics"] == {"totalViews": 0, "uniqueViewers": 0, "avgTimeSpent": 0}


def test_get_unknown_presentation(client, owner):
    assert client.get(f"/presentations/{uuid.uuid4()}").status_code == 404
    assert client.get("/presentations/not-a-uuid").status_code == 404


def test_list_presentations_with_search_and_pagination(client, owner, presentation_payload):
    for title in ("Alpha deck", "Beta deck", "Gamma pitch"):
        client.post("/presentations/", json={**presentation_payload, "title": title})

    response = client.get("/presentations/", params={"page": 1, "limit": 2})
    data = response.json()
    assert len(data["data"]) == 2
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}

    response = client.get("/presentations/", params={"search": "DECK"})
    titles = {item["title"] for item in response.json()["data"]}
    assert titles == {"Alpha deck", "Beta deck"}

    assert client.get("/presentations/", params={"limit": 500}).status_code == 422


def test_list_reports_version_counts(client, presentation, version):
    data = client.get("/presentations/").json()["data"]
    assert data[0]["versionCount"] == 1


def test_update_presentation(client, presentation):
    response = client.put(f"/presentations/{presentation['id']}", json={"title": "Renamed"})
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Renamed"
    assert data["content"] == presentation["content"]

    assert client.put(f"/presentations/{uuid.uuid4()}", json={"title": "x"}).status_code == 404


def test_delete_presentation_cascades(client, presentation, version):
    client.post("/analytics/track/view", json={"versionId": version["id"], "sessionId": "s1"})

    response = client.delete(f"/presentations/{presentation['id']}")
    assert response.status_code == 200

    assert client.get(f"/presentations/{presentation['id']}").status_code == 404
    assert client.get(f"/versions/{version['versionSlug']}", params={"token": version["viewToken"]}).status_code == 404
    assert client.get(f"/analytics/presentation/{presentation['id']}").status_code == 404
    assert client.post(
        "/analytics/track/engagement", json={"sessionId": "s1", "scrollDepth": 10}
    ).status_code == 404

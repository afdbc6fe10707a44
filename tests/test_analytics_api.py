import uuid

IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"
DESKTOP_UA = "Mozilla/5.0 (X11; Linux x86_64) Gecko/20100101 Firefox/128.0"


def track_view(client, version_id, session_id, **extra):
    return client.post("/analytics/track/view", json={"versionId": version_id, "sessionId": session_id, **extra})


def track_engagement(client, session_id, **fields):
    return client.post("/analytics/track/engagement", json={"sessionId": session_id, **fields})


def test_view_then_engagement_then_version_summary(client, version):
    response = track_view(client, version["id"], "s1")
    assert response.status_code == 200
    assert response.json()["sessionId"] == "s1"

    response = track_engagement(client, "s1", timeSpent=45, scrollDepth=80)
    assert response.status_code == 200

    summary = client.get(f"/analytics/version/{version['id']}").json()
    assert summary["totalViews"] == 1
    assert summary["uniqueSessions"] == 1
    assert summary["avgTimeSpent"] == 45
    assert summary["avgScrollDepth"] == 80
    assert len(summary["views"]) == 1
    assert summary["views"][0]["timeSpent"] == 45


def test_track_view_for_unknown_version(client, owner):
    response = track_view(client, str(uuid.uuid4()), "s1")
    assert response.status_code == 404
    assert response.json()["detail"] == "Version not found"


def test_track_view_validates_input(client, version):
    assert client.post("/analytics/track/view", json={"versionId": version["id"]}).status_code == 422
    assert track_view(client, version["id"], "").status_code == 422


def test_track_view_fills_client_metadata(client, version):
    response = client.post(
        "/analytics/track/view",
        json={"versionId": version["id"], "sessionId": "s1"},
        headers={"User-Agent": IPHONE_UA, "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )
    data = response.json()
    assert data["ipAddress"] == "203.0.113.7"
    assert data["device"] == "mobile"
    assert data["userAgent"] == IPHONE_UA


def test_repeated_views_count_views_not_viewers(client, presentation, version):
    for _ in range(3):
        assert track_view(client, version["id"], "s1").status_code == 200
    track_view(client, version["id"], "s2")

    rollup = client.get(f"/presentations/{presentation['id']}").json()["analytics"]
    assert rollup["totalViews"] == 4
    assert rollup["uniqueViewers"] == 2

    summary = client.get(f"/analytics/version/{version['id']}").json()
    assert summary["totalViews"] == 2
    assert summary["uniqueSessions"] == 2


def test_engagement_for_unknown_session(client, version):
    assert track_engagement(client, "ghost", scrollDepth=10).status_code == 404


def test_engagement_validates_ranges(client, version):
    track_view(client, version["id"], "s1")
    assert track_engagement(client, "s1", scrollDepth=120).status_code == 422
    assert track_engagement(client, "s1", timeSpent=-1).status_code == 422


def test_presentation_analytics_breakdowns(client, presentation, version):
    track_view(client, version["id"], "a", country="Poland", userAgent=IPHONE_UA)
    track_view(client, version["id"], "b", country="Poland", userAgent=DESKTOP_UA)
    track_view(client, version["id"], "c", country="Germany", device="Tablet")
    track_engagement(client, "a", timeSpent=30, scrollDepth=100, sectionsViewed=["hero", "pricing"])
    track_engagement(client, "b", timeSpent=10, scrollDepth=50, sectionsViewed=["hero"])
    track_engagement(client, "c", timeSpent=20, scrollDepth=0)

    response = client.get(f"/analytics/presentation/{presentation['id']}")
    assert response.status_code == 200
    data = response.json()

    assert data["totalViews"] == 3
    assert data["uniqueViewers"] == 3
    assert data["avgTimeSpent"] == 20
    assert data["scrollDepthAvg"] == 50
    assert data["deviceBreakdown"] == {"desktop": 1, "mobile": 1, "tablet": 1}
    assert data["locationData"] == [{"country": "Poland", "count": 2}, {"country": "Germany", "count": 1}]
    assert data["topSections"][0] == {"sectionId": "hero", "views": 2, "avgTime": 12.5}
    assert data["topSections"][1] == {"sectionId": "pricing", "views": 1, "avgTime": 15}


def test_presentation_analytics_without_sessions(client, presentation):
    data = client.get(f"/analytics/presentation/{presentation['id']}").json()
    assert data["totalViews"] == 0
    assert data["scrollDepthAvg"] == 0
    assert data["topSections"] == []
    assert data["locationData"] == []


def test_analytics_for_unknown_ids(client, owner):
    assert client.get(f"/analytics/presentation/{uuid.uuid4()}").status_code == 404
    assert client.get("/analytics/presentation/not-a-uuid").status_code == 404
    assert client.get(f"/analytics/version/{uuid.uuid4()}").status_code == 404

import threading
import time
import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from pitchdeck import crud
from pitchdeck.core import session_tracker as session_tracker_module
from pitchdeck.core.database import Base
from pitchdeck.core.exceptions import ConflictError, NotFoundError
from pitchdeck.core.session_tracker import (
    SessionTracker,
    detect_browser,
    detect_device_type,
    merge_sections,
)
from pitchdeck.models import ViewSession
from pitchdeck.schemas import TrackEngagementRequest

IPHONE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Version/17.0 Mobile Safari/604.1"
IPAD_UA = "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Version/17.0 Safari/604.1"
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/126.0 Safari/537.36"


def rollup_for(db, version):
    db.expire_all()
    return crud.view_session_crud.get_rollup(db, uuid.UUID(version["presentationId"]))


def engagement(**fields):
    return TrackEngagementRequest(**fields)


def test_device_and_browser_detection():
    assert detect_device_type(IPHONE_UA) == "mobile"
    assert detect_device_type(IPAD_UA) == "tablet"
    assert detect_device_type(DESKTOP_UA) == "desktop"
    assert detect_device_type(None) is None
    assert detect_browser(DESKTOP_UA) == "chrome"
    assert detect_browser(IPAD_UA) == "safari"


def test_merge_sections_is_an_ordered_union():
    assert merge_sections(["hero", "pricing"], ["pricing", "team", "team"]) == ["hero", "pricing", "team"]
    assert merge_sections(None, ["hero"]) == ["hero"]


def test_first_view_creates_record_and_counts_unique_viewer(db, version):
    tracker = SessionTracker(db)
    record = tracker.record_view(version["id"], "s1", {"user_agent": IPHONE_UA, "country": "PL"})

    assert record.session_id == "s1"
    assert record.device == "mobile"
    assert record.country == "PL"
    assert record.time_spent == 0
    assert record.sections_viewed == []

    rollup = rollup_for(db, version)
    assert rollup.unique_viewers == 1
    assert rollup.total_views == 1


def test_repeated_views_keep_one_record(db, version):
    tracker = SessionTracker(db)
    first = tracker.record_view(version["id"], "s1", {"user_agent": DESKTOP_UA})
    first_seen = first.first_seen
    for _ in range(3):
        tracker.record_view(version["id"], "s1", {"user_agent": IPHONE_UA})

    records = db.query(ViewSession).all()
    assert len(records) == 1
    assert records[0].first_seen == first_seen
    assert records[0].last_ping >= first_seen
    # metadata of the first ping is kept
    assert records[0].device == "desktop"

    rollup = rollup_for(db, version)
    assert rollup.unique_viewers == 1
    assert rollup.total_views == 4


def test_concurrent_first_views_create_one_record(db, version, monkeypatch):
    # Both calls miss the existence check, as two racing requests would
    monkeypatch.setattr(SessionTracker, "_find_existing", lambda self, version_id, session_id: None)
    tracker = SessionTracker(db)

    tracker.record_view(version["id"], "race", {})
    tracker.record_view(version["id"], "race", {})

    assert db.query(ViewSession).filter(ViewSession.session_id == "race").count() == 1
    rollup = rollup_for(db, version)
    assert rollup.unique_viewers == 1
    assert rollup.total_views == 2


def test_view_for_unknown_version_is_not_found(db, version):
    tracker = SessionTracker(db)
    with pytest.raises(NotFoundError):
        tracker.record_view(str(uuid.uuid4()), "s1", {})
    with pytest.raises(NotFoundError):
        tracker.record_view("not-a-uuid", "s1", {})
    assert db.query(ViewSession).count() == 0


def test_engagement_requires_a_prior_view(db, version):
    with pytest.raises(NotFoundError):
        SessionTracker(db).record_engagement(engagement(session_id="never-seen", time_spent=5))


def test_engagement_merges_fields(db, version):
    tracker = SessionTracker(db)
    tracker.record_view(version["id"], "s1", {})

    tracker.record_engagement(engagement(
        session_id="s1",
        time_spent=10,
        scroll_depth=40,
        sections_viewed=["hero"],
        clicks=[{"elementId": "cta-1", "timestamp": "2025-06-01T10:00:00Z"}],
    ))
    record = tracker.record_engagement(engagement(
        session_id="s1",
        time_spent=25,
        scroll_depth=30,
        sections_viewed=["pricing", "hero"],
        clicks=[{"elementId": "cta-2", "timestamp": "2025-06-01T10:00:05Z"}],
    ))

    assert record.time_spent == 25
    # last write wins, even when it goes down
    assert record.scroll_depth == 30
    assert record.sections_viewed == ["hero", "pricing"]
    assert [click["elementId"] for click in record.clicks] == ["cta-1", "cta-2"]
    assert record.clicks[0]["timestamp"] == "2025-06-01T10:00:00Z"


def test_sections_viewed_only_grow(db, version):
    tracker = SessionTracker(db)
    tracker.record_view(version["id"], "s1", {})

    seen = set()
    for batch in (["a"], ["b", "a"], [], ["c"]):
        record = tracker.record_engagement(engagement(session_id="s1", sections_viewed=batch))
        current = set(record.sections_viewed)
        assert current >= seen
        seen = current
    assert seen == {"a", "b", "c"}


def test_partial_engagement_leaves_other_fields(db, version):
    tracker = SessionTracker(db)
    tracker.record_view(version["id"], "s1", {})
    tracker.record_engagement(engagement(session_id="s1", time_spent=42, sections_viewed=["hero"]))

    record = tracker.record_engagement(engagement(session_id="s1", scroll_depth=55))

    assert record.time_spent == 42
    assert record.scroll_depth == 55
    assert record.sections_viewed == ["hero"]


def test_time_spent_updates_recompute_average(db, version):
    tracker = SessionTracker(db)
    for session_id, seconds in (("a", 10), ("b", 20), ("c", 30)):
        tracker.record_view(version["id"], session_id, {})
        tracker.record_engagement(engagement(session_id=session_id, time_spent=seconds))

    assert rollup_for(db, version).avg_time_spent == 20


def test_failed_rollup_does_not_undo_engagement(db, version, monkeypatch):
    def broken(db, version_id):
        raise SQLAlchemyError("rollup table locked")

    monkeypatch.setattr(session_tracker_module, "recompute_average_time_spent", broken)
    tracker = SessionTracker(db)
    tracker.record_view(version["id"], "s1", {})

    record = tracker.record_engagement(engagement(session_id="s1", time_spent=30, scroll_depth=90))

    assert record.time_spent == 30
    assert record.scroll_depth == 90
    assert rollup_for(db, version).avg_time_spent == 0


def test_failed_rollup_lookup_does_not_fail_engagement(db, version, monkeypatch):
    def missing(db, version_id):
        raise NotFoundError("Version not found")

    monkeypatch.setattr(session_tracker_module, "recompute_average_time_spent", missing)
    tracker = SessionTracker(db)
    tracker.record_view(version["id"], "s1", {})

    record = tracker.record_engagement(engagement(session_id="s1", time_spent=12))

    assert record.time_spent == 12


def test_concurrent_engagement_keeps_both_contributions(tmp_path, monkeypatch):
    # A file database gives each thread its own connection, like separate requests
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    make_session = sessionmaker(bind=engine, autoflush=False)

    now = datetime.now(timezone.utc)
    with make_session() as setup:
        setup.add(ViewSession(version_id=uuid.uuid4(), session_id="s1", first_seen=now, last_ping=now))
        setup.commit()

    def slow_merge(existing, incoming):
        # Hold both updates between read and write
        time.sleep(0.2)
        return merge_sections(existing, incoming)

    monkeypatch.setattr(session_tracker_module, "merge_sections", slow_merge)

    errors = []

    def send(section_id):
        with make_session() as session:
            try:
                SessionTracker(session).record_engagement(engagement(session_id="s1", sections_viewed=[section_id]))
            except Exception as exc:
                errors.append(exc)

    threads = [threading.Thread(target=send, args=(section_id,)) for section_id in ("a", "b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    with make_session() as check:
        record = check.query(ViewSession).filter(ViewSession.session_id == "s1").one()
        assert errors == []
        assert set(record.sections_viewed) == {"a", "b"}
        assert record.revision == 2
    engine.dispose()


def test_engagement_gives_up_after_repeated_conflicts(db, version, monkeypatch):
    tracker = SessionTracker(db)
    tracker.record_view(version["id"], "s1", {})
    monkeypatch.setattr(crud.view_session_crud, "apply_engagement", lambda *args: False)

    with pytest.raises(ConflictError):
        tracker.record_engagement(engagement(session_id="s1", scroll_depth=10))

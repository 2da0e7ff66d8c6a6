"""Integration tests for admin triage, resolution and case visibility."""
from __future__ import annotations

from uuid import UUID, uuid4

import pytest
from sqlalchemy import select

from casting_reports.database import SessionLocal
from casting_reports.models import Notification, Report, ReportAdminNote
from casting_reports.services import case_store, report_service
from casting_reports.services.errors import ReportConflict


@pytest.fixture
def cast(user_factory):
    return {
        "reporter": user_factory("Ana"),
        "target": user_factory("Ben"),
        "admin": user_factory("Cleo", role="admin"),
        "stranger": user_factory("Dev"),
    }


def test_harassment_case_end_to_end(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"], category="harassment")
    report_id = created["id"]

    admin = authed_client(cast["admin"])
    review = admin.patch(
        f"/admin/reports/{report_id}/status",
        json={"status": "under_review", "note": "contacted both parties"},
    )
    assert review.status_code == 200, review.text

    resolved = admin.post(
        f"/admin/reports/{report_id}/resolve",
        json={"action": "warning_sent", "details": "Issued formal warning to B"},
    )
    assert resolved.status_code == 200, resolved.text
    body = resolved.json()
    assert body["status"] == "resolved"
    assert body["resolution"]["action"] == "warning_sent"
    assert body["resolution"]["resolved_by"] == str(cast["admin"].id)
    assert [note["action"] for note in body["admin_notes"]] == ["status_change", "action_taken"]

    target_view = authed_client(cast["target"]).get(f"/reports/target/{report_id}").json()
    reporter_view = authed_client(cast["reporter"]).get(f"/reports/{report_id}").json()
    for view in (target_view, reporter_view):
        assert view["resolution"]["details"] == "Issued formal warning to B"
        assert "admin_notes" not in view
        assert "contacted both parties" not in str(view)
    assert target_view["reporter_id"] is None
    assert target_view["evidence"] is None


def test_unrelated_user_gets_not_found(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])
    client = authed_client(cast["stranger"])

    assert client.get(f"/reports/{created['id']}").status_code == 404
    assert client.get(f"/reports/target/{created['id']}").status_code == 404
    assert client.get(f"/reports/{uuid4()}").status_code == 404

    # The reporter is not the target of their own case.
    assert authed_client(cast["reporter"]).get(f"/reports/target/{created['id']}").status_code == 404


def test_non_admin_cannot_use_admin_routes(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])
    client = authed_client(cast["reporter"])

    assert client.get("/admin/reports").status_code == 403
    response = client.post(
        f"/admin/reports/{created['id']}/resolve",
        json={"action": "no_action", "details": "closing my own report"},
    )
    assert response.status_code == 403


def test_resolved_case_is_frozen(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])
    admin = authed_client(cast["admin"])
    first = admin.post(
        f"/admin/reports/{created['id']}/resolve",
        json={"action": "content_removed", "details": "Removed the casting"},
    ).json()

    again = admin.post(
        f"/admin/reports/{created['id']}/resolve",
        json={"action": "user_banned", "details": "Second attempt"},
    )
    reopen = admin.patch(f"/admin/reports/{created['id']}/status", json={"status": "pending"})
    archive = admin.patch(f"/admin/reports/{created['id']}/status", json={"status": "archived"})

    for response in (again, reopen, archive):
        assert response.status_code == 409
        assert response.json()["detail"]["message"] == "this case has already been resolved"

    current = admin.get(f"/admin/reports/{created['id']}").json()
    assert current["resolution"] == first["resolution"]
    assert len(current["admin_notes"]) == 1

    priority = admin.patch(f"/admin/reports/{created['id']}/priority", json={"priority": "low"})
    assert priority.status_code == 200
    assert priority.json()["priority"] == "low"


def test_every_admin_mutation_adds_one_note(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])
    admin = authed_client(cast["admin"])
    path = f"/admin/reports/{created['id']}"

    assert admin.patch(f"{path}/priority", json={"priority": "high"}).status_code == 200
    assert admin.patch(f"{path}/status", json={"status": "escalated"}).status_code == 200
    assert admin.post(f"{path}/notes", json={"note": "Requested chat export"}).status_code == 200
    assert admin.patch(f"{path}/status", json={"status": "escalated"}).status_code == 409
    assert admin.patch(f"{path}/status", json={"status": "archived"}).status_code == 422
    assert admin.post(f"{path}/resolve", json={"action": "warning_sent"}).status_code == 422

    notes = admin.get(path).json()["admin_notes"]
    assert [note["action"] for note in notes] == ["priority_change", "status_change", "note_added"]
    assert notes[2]["admin"]["first_name"] == "Cleo"


def test_message_sub_threads_are_private(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])
    report_id = created["id"]

    admin = authed_client(cast["admin"])
    missing_participant = admin.post(f"/admin/reports/{report_id}/message", json={"message": "Hello"})
    assert missing_participant.status_code == 422
    assert missing_participant.json()["detail"]["field"] == "participant"

    assert admin.post(
        f"/admin/reports/{report_id}/message",
        json={"message": "Can you share more details?", "participant": "reporter"},
    ).status_code == 200
    assert admin.post(
        f"/admin/reports/{report_id}/message",
        json={"message": "Please respond to this report.", "participant": "target"},
    ).status_code == 200

    reporter_reply = authed_client(cast["reporter"]).post(
        f"/reports/{report_id}/message", json={"message": "Screenshots attached earlier."}
    )
    assert reporter_reply.status_code == 200
    assert [message["content"] for message in reporter_reply.json()["messages"]] == [
        "Can you share more details?",
        "Screenshots attached earlier.",
    ]

    target_thread = authed_client(cast["target"]).get(f"/reports/target/{report_id}").json()["messages"]
    assert [message["content"] for message in target_thread] == ["Please respond to this report."]

    stranger = authed_client(cast["stranger"]).post(f"/reports/{report_id}/message", json={"message": "hi"})
    assert stranger.status_code == 403

    full = authed_client(cast["admin"]).get(f"/admin/reports/{report_id}").json()["messages"]
    assert len(full) == 3
    assert full[0]["content"] == "Can you share more details?"

    with SessionLocal() as session:
        notified = session.scalars(
            select(Notification.recipient_id).where(Notification.type == "report.message")
        ).all()
    assert set(notified) == {cast["reporter"].id, cast["target"].id}


def test_untargeted_case_has_no_thread(cast, file_report, authed_client):
    created = file_report(cast["reporter"])

    response = authed_client(cast["reporter"]).post(f"/reports/{created['id']}/message", json={"message": "hello"})

    assert response.status_code == 403


def test_notification_failure_does_not_undo_resolution(monkeypatch, cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])

    def _broken_notify(*args, **kwargs):
        raise RuntimeError("notification queue offline")

    monkeypatch.setattr(report_service, "notify", _broken_notify)

    response = authed_client(cast["admin"]).post(
        f"/admin/reports/{created['id']}/resolve",
        json={"action": "no_action", "details": "No violation found"},
    )

    assert response.status_code == 200
    with SessionLocal() as session:
        assert session.get(Report, UUID(created["id"])).status == "resolved"


def test_user_lists_and_stats(cast, file_report, authed_client):
    file_report(cast["reporter"], cast["target"])
    file_report(cast["reporter"])
    file_report(cast["stranger"], cast["target"])

    mine = authed_client(cast["reporter"]).get("/reports/me").json()
    assert mine["total"] == 2
    assert mine["current_page"] == 1

    against = authed_client(cast["target"]).get("/reports/against-me").json()
    assert against["total"] == 2
    assert all(item["reporter_id"] is None for item in against["items"])
    assert all(item["evidence"] is None for item in against["items"])

    bad_filter = authed_client(cast["target"]).get("/reports/against-me", params={"status": "closed"})
    assert bad_filter.status_code == 422

    stats = authed_client(cast["target"]).get("/reports/stats/overview").json()
    assert stats["mine"]["reports_against_me"] == 2
    assert stats["mine"]["pending_reports_against_me"] == 2
    assert stats["platform"] is None

    admin_stats = authed_client(cast["admin"]).get("/reports/stats/overview").json()
    assert admin_stats["platform"]["total_reports"] == 3
    assert admin_stats["platform"]["by_category"] == {"harassment": 2, "technical_issue": 1}


def test_admin_queue_filters_search_and_triage_order(cast, file_report, authed_client):
    low = file_report(cast["reporter"], cast["target"], title="Fake casting call")
    urgent = file_report(cast["stranger"], cast["target"], title="Threatening messages")
    file_report(cast["reporter"], title="Upload page broken")

    admin = authed_client(cast["admin"])
    admin.patch(f"/admin/reports/{urgent['id']}/priority", json={"priority": "urgent"})
    admin.patch(f"/admin/reports/{low['id']}/priority", json={"priority": "low"})

    queue = admin.get("/admin/reports").json()
    assert queue["total"] == 3
    assert queue["items"][0]["id"] == urgent["id"]
    assert queue["items"][0]["is_urgent"] is True
    assert queue["items"][-1]["id"] == low["id"]

    searched = admin.get("/admin/reports", params={"search": "THREAT"}).json()
    assert [item["id"] for item in searched["items"]] == [urgent["id"]]

    by_type = admin.get("/admin/reports", params={"report_type": "system"}).json()
    assert by_type["total"] == 1

    paged = admin.get("/admin/reports", params={"limit": 2, "page": 2}).json()
    assert paged["total_pages"] == 2
    assert len(paged["items"]) == 1

    platform = admin.get("/admin/reports/stats/overview").json()
    assert platform["urgent_reports"] == 1
    assert platform["pending_reports"] == 3


def test_dismiss_comment_stays_out_of_party_views(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])
    report_id = created["id"]

    dismissed = authed_client(cast["admin"]).patch(
        f"/admin/reports/{report_id}/status",
        json={"status": "dismissed", "note": "INTERNAL: reporter filed three bogus cases"},
    )
    assert dismissed.status_code == 200, dismissed.text
    assert "INTERNAL" in dismissed.json()["admin_notes"][0]["note"]

    reporter_view = authed_client(cast["reporter"]).get(f"/reports/{report_id}").json()
    target_view = authed_client(cast["target"]).get(f"/reports/target/{report_id}").json()
    for view in (reporter_view, target_view):
        assert view["status"] == "dismissed"
        assert view["resolution"]["action"] == "no_action"
        assert view["resolution"]["details"] == "status changed to dismissed"
        assert "INTERNAL" not in str(view)
        assert "bogus" not in str(view)


def test_message_reads_back_unchanged(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])
    client = authed_client(cast["reporter"])
    text = "Sent at 21:04.\nSecond line with émojis ✓"

    posted = client.post(f"/reports/{created['id']}/message", json={"message": text})
    assert posted.status_code == 200, posted.text
    sent = posted.json()["messages"][-1]

    fetched = client.get(f"/reports/{created['id']}").json()["messages"]
    assert fetched[-1]["content"] == text
    assert fetched[-1]["content"] == sent["content"]
    assert fetched[-1]["created_at"] == sent["created_at"]
    assert fetched[-1]["id"] == sent["id"]


def test_message_longer_than_limit_is_rejected(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])
    client = authed_client(cast["reporter"])

    response = client.post(f"/reports/{created['id']}/message", json={"message": "x" * 4001})

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "message"
    assert client.get(f"/reports/{created['id']}").json()["messages"] == []


def test_stale_session_cannot_overwrite_concurrent_note(cast, file_report, authed_client):
    created = file_report(cast["reporter"], cast["target"])
    report_id = UUID(created["id"])

    with SessionLocal() as stale:
        # Load the case before the other request commits.
        assert case_store.get_report(stale, report_id) is not None

        first = authed_client(cast["admin"]).post(
            f"/admin/reports/{report_id}/notes", json={"note": "Called the reporter"}
        )
        assert first.status_code == 200

        try:
            report_service.add_admin_note(stale, report_id=report_id, actor=cast["admin"], note="Emailed the target")
        except ReportConflict as exc:
            assert exc.status_code == 409
            expected = ["Called the reporter"]
        else:
            expected = ["Called the reporter", "Emailed the target"]

    with SessionLocal() as session:
        notes = session.scalars(
            select(ReportAdminNote).where(ReportAdminNote.report_id == report_id).order_by(ReportAdminNote.position)
        ).all()
    assert [note.note for note in notes] == expected
    assert [note.position for note in notes] == list(range(1, len(expected) + 1))

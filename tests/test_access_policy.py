"""Role resolution and per-role projections of a case."""
from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from casting_reports.models import Report, ReportEvidence, ReportMessage, User
from casting_reports.models.base import utcnow
from casting_reports.schemas import ReportAdminView, UserRef
from casting_reports.services import lifecycle
from casting_reports.services.access_policy import (
    CaseRole,
    is_urgent,
    project_case,
    referenced_user_ids,
    resolve_role,
)


@pytest.fixture
def parties() -> dict[str, User]:
    return {
        "reporter": User(id=uuid4(), first_name="Ana", last_name="Reporter", role="talent"),
        "target": User(id=uuid4(), first_name="Ben", last_name="Target", role="casting_director"),
        "admin": User(id=uuid4(), first_name="Cleo", last_name="Admin", role="admin"),
        "stranger": User(id=uuid4(), first_name="Dev", last_name="Stranger", role="talent"),
    }


@pytest.fixture
def case(parties) -> Report:
    now = utcnow()
    report = Report(
        id=uuid4(),
        case_number="REP-20261019-000042",
        reporter_id=parties["reporter"].id,
        target_id=parties["target"].id,
        target_kind="user",
        report_type="user",
        category="harassment",
        title="Harassment after audition",
        description="Repeated messages",
        status="pending",
        priority="medium",
        created_at=now,
        updated_at=now,
    )
    report.evidence.append(
        ReportEvidence(id=uuid4(), position=1, type="link", url="https://example.test/screenshot", description="Chat log")
    )
    for position, (participant, sender, text) in enumerate(
        [
            (parties["reporter"].id, "user", "Any update?"),
            (parties["target"].id, "admin", "Please explain your messages."),
            (parties["target"].id, "user", "It was a misunderstanding."),
        ],
        start=1,
    ):
        report.messages.append(
            ReportMessage(
                id=uuid4(),
                position=position,
                sender=sender,
                sender_id=parties["admin"].id if sender == "admin" else participant,
                participant_id=participant,
                content=text,
                created_at=now,
            )
        )
    note = lifecycle.add_note(report, "Internal: looks credible", actor_id=parties["admin"].id)
    note.id = uuid4()
    return report


def test_resolve_role_precedence(case, parties):
    assert resolve_role(case, parties["reporter"]) is CaseRole.REPORTER
    assert resolve_role(case, parties["target"]) is CaseRole.TARGET
    assert resolve_role(case, parties["admin"]) is CaseRole.ADMIN
    assert resolve_role(case, parties["stranger"]) is CaseRole.DENIED
    assert resolve_role(case, None) is CaseRole.DENIED

    reporter_turned_admin = User(id=parties["reporter"].id, role="owner")
    assert resolve_role(case, reporter_turned_admin) is CaseRole.ADMIN


def test_target_view_hides_reporter_identity_and_evidence(case, parties):
    users = {user.id: UserRef.model_validate(user) for user in parties.values()}

    view = project_case(case, CaseRole.TARGET, users=users)
    body = view.model_dump()

    assert view.view == "target"
    assert body["reporter_id"] is None
    assert body["reporter"] is None
    assert body["evidence"] is None
    assert "admin_notes" not in body
    assert [message.content for message in view.messages] == [
        "Please explain your messages.",
        "It was a misunderstanding.",
    ]
    assert parties["reporter"].id not in referenced_user_ids(case, CaseRole.TARGET)


def test_reporter_view_sees_own_thread_only(case, parties):
    view = project_case(case, CaseRole.REPORTER)

    assert view.reporter_id == parties["reporter"].id
    assert len(view.evidence) == 1
    assert [message.content for message in view.messages] == ["Any update?"]
    assert "Internal: looks credible" not in view.model_dump_json()


def test_admin_view_includes_notes_and_both_threads(case, parties):
    view = project_case(case, CaseRole.ADMIN)

    assert isinstance(view, ReportAdminView)
    assert len(view.messages) == 3
    assert [note.note for note in view.admin_notes] == ["Internal: looks credible"]
    assert view.is_urgent is False


def test_denied_has_no_projection(case):
    with pytest.raises(ValueError):
        project_case(case, CaseRole.DENIED)


def test_urgency_rules(case):
    now = utcnow()
    assert not is_urgent(case, now=now)
    assert is_urgent(case, now=now + timedelta(days=4))

    case.priority = "high"
    assert is_urgent(case, now=now + timedelta(days=2))

    case.priority = "urgent"
    assert is_urgent(case, now=now)

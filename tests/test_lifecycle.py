"""Unit tests for status, priority and resolution rules."""
from __future__ import annotations

from uuid import uuid4

import pytest

from casting_reports.models import Report
from casting_reports.services import lifecycle
from casting_reports.services.errors import AlreadyResolved, InvalidTransition, ReportValidationError


def _report(**overrides) -> Report:
    values = dict(
        id=uuid4(),
        case_number="REP-20261019-000001",
        reporter_id=uuid4(),
        target_id=uuid4(),
        report_type="user",
        category="harassment",
        title="Harassment",
        description="Details",
        status="pending",
        priority="medium",
    )
    values.update(overrides)
    return Report(**values)


def test_set_status_appends_single_status_note():
    report = _report()
    admin_id = uuid4()

    lifecycle.set_status(report, "under_review", actor_id=admin_id, note="contacted both parties")

    assert report.status == "under_review"
    assert report.resolved_at is None
    assert len(report.admin_notes) == 1
    note = report.admin_notes[0]
    assert note.action == "status_change"
    assert note.admin_id == admin_id
    assert note.note == "status changed to under_review: contacted both parties"
    assert note.position == 1


def test_jump_to_dismissed_stamps_resolution():
    report = _report()
    admin_id = uuid4()

    lifecycle.set_status(report, "DISMISSED", actor_id=admin_id, note="reporter has filed bogus cases before")

    assert report.status == "dismissed"
    assert report.resolution_action == "no_action"
    assert report.resolution_details == "status changed to dismissed"
    assert report.admin_notes[0].note == "status changed to dismissed: reporter has filed bogus cases before"
    assert report.resolved_by == admin_id
    assert report.resolved_at is not None


def test_same_status_is_rejected():
    report = _report(status="escalated")

    with pytest.raises(InvalidTransition):
        lifecycle.set_status(report, "escalated", actor_id=uuid4())
    assert report.admin_notes == []


def test_terminal_case_rejects_status_and_resolve_without_side_effects():
    report = _report()
    admin_id = uuid4()
    lifecycle.resolve(report, "warning_sent", "Formal warning issued", actor_id=admin_id)
    resolved_at = report.resolved_at

    with pytest.raises(AlreadyResolved) as excinfo:
        lifecycle.set_status(report, "pending", actor_id=admin_id)
    assert str(excinfo.value) == "this case has already been resolved"

    with pytest.raises(AlreadyResolved):
        lifecycle.resolve(report, "user_banned", "Second attempt", actor_id=admin_id)

    with pytest.raises(AlreadyResolved):
        lifecycle.set_status(report, "archived", actor_id=admin_id)

    with pytest.raises(AlreadyResolved):
        lifecycle.resolve(report, None, None, actor_id=admin_id)

    assert report.status == "resolved"
    assert report.resolution_action == "warning_sent"
    assert report.resolved_at == resolved_at
    assert len(report.admin_notes) == 1


def test_resolve_requires_action_and_details():
    report = _report()

    with pytest.raises(ReportValidationError) as missing_action:
        lifecycle.resolve(report, None, "details", actor_id=uuid4())
    assert missing_action.value.field == "action"

    with pytest.raises(ReportValidationError) as missing_details:
        lifecycle.resolve(report, "warning_sent", "   ", actor_id=uuid4())
    assert missing_details.value.field == "details"

    with pytest.raises(ReportValidationError) as bad_action:
        lifecycle.resolve(report, "banish", "details", actor_id=uuid4())
    assert "warning_sent" in bad_action.value.message

    assert report.status == "pending"
    assert report.admin_notes == []


def test_priority_changes_after_resolution_are_allowed():
    report = _report()
    admin_id = uuid4()
    lifecycle.resolve(report, "content_removed", "Removed the listing", actor_id=admin_id)

    lifecycle.set_priority(report, "low", actor_id=admin_id)

    assert report.priority == "low"
    assert [note.action for note in report.admin_notes] == ["action_taken", "priority_change"]
    assert [note.position for note in report.admin_notes] == [1, 2]

    with pytest.raises(InvalidTransition):
        lifecycle.set_priority(report, "low", actor_id=admin_id)


def test_add_note_rejects_blank_text():
    report = _report()

    with pytest.raises(ReportValidationError):
        lifecycle.add_note(report, "  ", actor_id=uuid4())

    lifecycle.add_note(report, "Called the reporter", actor_id=uuid4())
    assert report.admin_notes[0].action == "note_added"
    assert report.status == "pending"

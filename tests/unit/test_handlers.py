from __future__ import annotations

import asyncio
from typing import Any

from legal_admin_hub.core.types import ToolResult
from legal_admin_hub.llm import tool_call
from legal_admin_hub.tools import HandlerContext, ToolExecutor, build_default_registry


def _run(name: str, args: dict[str, Any], *, strict: bool = False) -> ToolResult:
    executor = ToolExecutor(
        build_default_registry(),
        context=HandlerContext(latency_scale=0.0, strict_reschedule=strict),
    )
    return asyncio.run(executor.execute_to_completion(tool_call(name, args)))


CALENDAR = {"clientName": "Ana Diaz", "clientEmail": "ana@example.com"}


def test_portfolio_retrieve_is_idempotent() -> None:
    args = {"clientId": "C-17", "action": "retrieve"}

    first, second = _run("portfolioManager", args), _run("portfolioManager", args)

    assert first.ok
    assert first.payload == second.payload
    assert "C-17" in first.payload


def test_portfolio_update_records_distinct_changes() -> None:
    args = {"clientId": "C-17", "action": "update", "details": "new address"}

    first, second = _run("portfolioManager", args), _run("portfolioManager", args)

    assert first.ok and second.ok
    assert "new address" in first.payload
    assert first.payload != second.payload


def test_calendar_defaults_to_sixty_minutes() -> None:
    r = _run("calendarAgent", {**CALENDAR, "scenario": "newIntakeConsult"})

    assert r.ok
    assert "for 60 minutes" in r.payload
    assert "primary calendar" in r.payload


def test_calendar_rejects_non_positive_duration() -> None:
    r = _run("calendarAgent", {**CALENDAR, "scenario": "checkAvailability", "durationMinutes": 0})

    assert r.error is not None
    assert r.error["field"] == "durationMinutes"


def test_reschedule_with_event_id() -> None:
    r = _run("calendarAgent", {**CALENDAR, "scenario": "rescheduleConsult", "existingEventId": "evt_1"})

    assert r.ok
    assert "evt_1" in r.payload


def test_reschedule_without_correlation_is_flagged_when_permissive() -> None:
    r = _run("calendarAgent", {**CALENDAR, "scenario": "rescheduleConsult"})

    assert r.ok
    assert "please verify the correct booking" in r.payload


def test_reschedule_without_correlation_fails_when_strict() -> None:
    r = _run("calendarAgent", {**CALENDAR, "scenario": "rescheduleConsult"}, strict=True)

    assert r.state == "error"
    assert r.error is not None
    assert r.error["type"] == "missing_correlation"
    assert r.error["field"] == "existingEventId"


def test_reschedule_matched_by_phone_when_strict() -> None:
    r = _run(
        "calendarAgent",
        {**CALENDAR, "scenario": "rescheduleConsult", "clientPhone": "+15550100"},
        strict=True,
    )

    assert r.ok
    assert "+15550100" in r.payload


def test_email_generic_update_falls_back_to_neutral_template() -> None:
    r = _run(
        "emailAgent",
        {"scenario": "genericUpdate", "recipientEmail": "ana@example.com", "clientName": "Ana"},
    )

    assert r.ok
    assert "Subject: Update regarding your matter" in r.payload
    assert "[Insert update details here.]" in r.payload


def test_email_confirmation_includes_time_and_location() -> None:
    r = _run(
        "emailAgent",
        {
            "scenario": "intakeConfirmation",
            "recipientEmail": "ana@example.com",
            "clientName": "Ana",
            "appointmentDateTime": "2025-12-20T10:00:00-08:00",
            "officeLocationOrLink": "https://meet.example.com/ana",
        },
    )

    assert "Email prepared and sent to ana@example.com" in r.payload
    assert "scheduled for 2025-12-20T10:00:00-08:00" in r.payload
    assert "https://meet.example.com/ana" in r.payload


def test_intake_ids_are_unique() -> None:
    args = {"clientName": "Ana", "email": "ana@example.com", "matterDescription": "lease dispute"}

    first, second = _run("intakeAgent", args), _run("intakeAgent", args)

    assert "with id intake_" in first.payload
    assert first.payload != second.payload
    assert "urgency: unspecified" in first.payload


def test_intake_rejects_unknown_urgency() -> None:
    r = _run(
        "intakeAgent",
        {"clientName": "Ana", "email": "ana@example.com", "matterDescription": "x", "urgency": "critical"},
    )

    assert r.error is not None
    assert r.error["field"] == "urgency"


def test_document_modes() -> None:
    base = {"clientName": "Ana", "matterDescription": "lease dispute"}

    summary = _run("documentAgent", {**base, "mode": "intakeSummary"})
    followup = _run("documentAgent", {**base, "mode": "consultFollowupEmail"})
    letter = _run("documentAgent", {**base, "mode": "engagementLetter", "extraInstructions": "Warm regards"})

    assert summary.payload.startswith("Intake Summary for Ana")
    assert "Not yet scheduled." in summary.payload
    assert followup.payload.endswith("Best regards,\n[Your Law Firm Name]")
    assert letter.payload.endswith("Warm regards")


def test_chat_agent_is_labelled_simulated() -> None:
    r = _run("chatAIAgent", {"clientName": "Ana", "query": "office hours?"})

    assert r.payload.startswith("Response for Ana:")
    assert "Simulated" in r.payload


def test_call_agent_describes_workflow() -> None:
    r = _run(
        "callAgent",
        {"clientName": "Ana", "phoneNumber": "+15550100", "reason": "confirmAppointment", "notesForAgent": "intake_1"},
    )

    assert "to confirm an upcoming appointment" in r.payload
    assert "Notes for the phone agent: intake_1" in r.payload


def test_receptionist_actions() -> None:
    base = {"clientName": "Ana", "inquiry": "a lease"}

    assert "Routing Ana's inquiry" in _run("receptionist", {**base, "action": "route"}).payload
    assert _run("receptionist", {**base, "action": "summarize"}).payload.startswith("Summary prepared for Ana")

"""Handlers behind the assistant's tools.

Every handler is an async generator: it yields a ``processing`` update and
then exactly one terminal update. Collaborators (calendar, email provider,
record store, voice-agent provider) are simulated: handlers log what they
would have done and return templated text. Structured refusals are raised
as ``HandlerError`` and become ``error`` results in the executor.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable

from legal_admin_hub.core.errors import HandlerError
from legal_admin_hub.core.types import HandlerUpdate
from legal_admin_hub.observability import get_logger
from legal_admin_hub.observability.ids import new_record_id

from .schemas import (
    CalendarAgentInput,
    CallAgentInput,
    ChatAIAgentInput,
    DocumentAgentInput,
    EmailAgentInput,
    IntakeAgentInput,
    PortfolioManagerInput,
    ReceptionistInput,
)

FIRM_SIGNATURE = "[Your Law Firm Name]"
LOCATION_PLACEHOLDER = "[Office address or video link will be provided separately]"

_log = get_logger("legal_admin_hub.handlers")


@dataclass(frozen=True, slots=True)
class HandlerContext:
    """Per-process settings shared by all handlers."""

    latency_scale: float = 1.0
    strict_reschedule: bool = False
    new_id: Callable[[str], str] = field(default=new_record_id)

    async def pause(self, seconds: float) -> None:
        """Simulate collaborator latency (scaled; 0 disables it)."""

        if self.latency_scale > 0:
            await asyncio.sleep(seconds * self.latency_scale)


def processing() -> HandlerUpdate:
    return HandlerUpdate(state="processing")


def complete(text: str) -> HandlerUpdate:
    return HandlerUpdate(state="complete", payload=text)


async def receptionist(inp: ReceptionistInput, ctx: HandlerContext) -> AsyncIterator[HandlerUpdate]:
    yield processing()
    await ctx.pause(0.5)

    if inp.action == "greet":
        text = (
            f"Welcome {inp.client_name}! I'm the receptionist agent. I understand you're inquiring about: "
            f"{inp.inquiry}. Let me coordinate with the appropriate specialists to assist you."
        )
    elif inp.action == "route":
        text = f"Routing {inp.client_name}'s inquiry regarding \"{inp.inquiry}\" to the appropriate specialized agents..."
    else:
        text = (
            f"Summary prepared for {inp.client_name}: All relevant agents have been consulted "
            "and your matter has been handled comprehensively."
        )

    yield complete(text)


async def portfolio_manager(inp: PortfolioManagerInput, ctx: HandlerContext) -> AsyncIterator[HandlerUpdate]:
    yield processing()
    await ctx.pause(0.7)

    if inp.action == "retrieve":
        text = (
            f"Retrieved portfolio for client {inp.client_id}: Active since 2022, 3 ongoing matters, "
            "last consultation 2 weeks ago. Case files include contract review, property transaction, "
            "and estate planning."
        )
    elif inp.action == "update":
        # Every update is a distinct change.
        change_id = ctx.new_id("change")
        _log.info("portfolio_update", client_id=inp.client_id, change_id=change_id)
        text = (
            f"Portfolio updated for client {inp.client_id} (change {change_id}): "
            f"{inp.details or 'New information added to record.'} All changes synchronized with secure database."
        )
    else:
        text = (
            f"Search completed for client {inp.client_id}: Found relevant documents and case history "
            f"matching \"{inp.details or ''}\". Records are ready for review."
        )

    yield complete(text)


async def calendar_agent(inp: CalendarAgentInput, ctx: HandlerContext) -> AsyncIterator[HandlerUpdate]:
    yield processing()

    calendar_label = inp.lawyer_calendar_id or "primary calendar"
    tz_label = inp.timezone or "firm default"

    if inp.scenario == "checkAvailability":
        text = (
            f"Checked availability for {inp.client_name} on {calendar_label}.\n\n"
            f"Example available slots (client timezone: {tz_label}):\n"
            "- Tomorrow at 10:00\n- Tomorrow at 14:00\n- The following day at 09:30\n\n"
            f"All slots are {inp.duration_minutes}-minute consultations."
        )
    elif inp.scenario == "newIntakeConsult":
        when = inp.preferred_date_time or (
            "the next available slot within normal business hours (e.g., Mon-Fri, 9 AM-5 PM)."
        )
        phone_line = f"\n- Phone: {inp.client_phone}" if inp.client_phone else ""
        text = (
            f"New consultation booked for {inp.client_name} on {calendar_label} at {when} "
            f"for {inp.duration_minutes} minutes.\n\n"
            f"Event details:\n- Title: Initial Consultation - {inp.client_name}\n"
            f"- Attendee: {inp.client_email}{phone_line}\n- Timezone: {tz_label}\n\n"
            "A calendar event was (or will be) created and an invite sent to the client."
        )
    else:
        text = _reschedule_text(inp, ctx, calendar_label)

    yield complete(text)


def _reschedule_text(inp: CalendarAgentInput, ctx: HandlerContext, calendar_label: str) -> str:
    when = inp.preferred_date_time or (
        "a new available slot similar to the original appointment time during business hours."
    )

    if inp.existing_event_id:
        target = f"Existing event {inp.existing_event_id} was updated"
    elif inp.client_phone:
        target = f"Existing event matched by client email and phone ({inp.client_email}, {inp.client_phone}) was updated"
    elif ctx.strict_reschedule:
        raise HandlerError(
            "missing_correlation",
            "rescheduleConsult needs existingEventId (or clientPhone alongside clientEmail) "
            "to identify the original booking",
            field="existingEventId",
        )
    else:
        # Name and email alone may match several bookings.
        _log.warning("reschedule_uncorrelated", client_email=inp.client_email)
        target = (
            "Existing event was matched by client name and email only (no event ID given; "
            "please verify the correct booking) and updated"
        )

    return (
        f"Consultation for {inp.client_name} has been rescheduled on {calendar_label}.\n\n"
        f"{target} to {when} for {inp.duration_minutes} minutes.\n\n"
        f"The client at {inp.client_email} has been notified and sent an updated calendar invite."
    )


def _compose_email(inp: EmailAgentInput) -> tuple[str, str]:
    name = inp.client_name
    location = inp.office_location_or_link or LOCATION_PLACEHOLDER
    when = inp.appointment_date_time

    if inp.scenario == "intakeConfirmation":
        subject = f"Consultation confirmed - {name}"
        body = (
            f"Dear {name},\n\n"
            f"Thank you for contacting our firm. Your consultation has been scheduled{f' for {when}' if when else ''}.\n\n"
            f"Location / Meeting Link:\n{location}\n\n"
            "If you need to reschedule, please reply to this email or call our office.\n\n"
            f"Best regards,\n{FIRM_SIGNATURE}"
        )
    elif inp.scenario == "consultReminder":
        subject = f"Upcoming consultation reminder - {name}"
        body = (
            f"Dear {name},\n\n"
            f"This is a friendly reminder of your upcoming consultation{f' on {when}' if when else ''}.\n\n"
            f"Location / Meeting Link:\n{location}\n\n"
            "Please have any relevant documents ready, and plan to join a few minutes early.\n\n"
            f"Best regards,\n{FIRM_SIGNATURE}"
        )
    elif inp.scenario == "afterHoursReceipt":
        noted = f" and noted your requested consultation time of {when}" if when else ""
        subject = f"We received your message - {name}"
        body = (
            f"Dear {name},\n\n"
            f"Thank you for reaching out. Our office is currently closed, but we have received your message{noted}.\n\n"
            "A member of our team will review your information and follow up during regular business hours.\n\n"
            "If this is an emergency or a time-sensitive legal deadline, please indicate that clearly in your reply.\n\n"
            f"Best regards,\n{FIRM_SIGNATURE}"
        )
    else:
        subject = inp.custom_subject or "Update regarding your matter"
        body = inp.custom_body or (
            f"Dear {name},\n\n"
            "We wanted to share a brief update regarding your matter.\n\n"
            "[Insert update details here.]\n\n"
            f"Best regards,\n{FIRM_SIGNATURE}"
        )

    return subject, body


async def email_agent(inp: EmailAgentInput, ctx: HandlerContext) -> AsyncIterator[HandlerUpdate]:
    yield processing()
    await ctx.pause(0.3)

    subject, body = _compose_email(inp)
    _log.info("email_sent", scenario=inp.scenario, to=inp.recipient_email, subject=subject)

    yield complete(f"Email prepared and sent to {inp.recipient_email}.\nSubject: {subject}\n\n{body}")


async def chat_ai_agent(inp: ChatAIAgentInput, ctx: HandlerContext) -> AsyncIterator[HandlerUpdate]:
    yield processing()

    # Stand-in for the voice-agent provider's conversational endpoint.
    reply = (
        f"(Simulated voice-agent reply) I understand your question: \"{inp.query}\". "
        "A human or phone agent can follow up if needed."
    )
    yield complete(f"Response for {inp.client_name}: {reply}")


async def intake_agent(inp: IntakeAgentInput, ctx: HandlerContext) -> AsyncIterator[HandlerUpdate]:
    yield processing()

    intake_id = ctx.new_id("intake")
    _log.info(
        "intake_created",
        intake_id=intake_id,
        client_name=inp.client_name,
        email=inp.email,
        matter_type=inp.matter_type,
        urgency=inp.urgency,
    )

    yield complete(
        f"Intake record created with id {intake_id} for {inp.client_name}. "
        f"Matter type: {inp.matter_type or 'unspecified'}, urgency: {inp.urgency or 'unspecified'}."
    )


def _draft_document(inp: DocumentAgentInput) -> str:
    name = inp.client_name
    extra = inp.extra_instructions

    if inp.mode == "intakeSummary":
        return (
            f"Intake Summary for {name}\n\n"
            f"Key Facts:\n{inp.matter_description}\n\n"
            f"Consultation:\n{inp.appointment_date_time or 'Not yet scheduled.'}\n\n"
            "Lawyer Prep Checklist:\n"
            "- Review any prior related matters for this client (if any).\n"
            "- Identify key documents to request.\n"
            "- Prepare 3-5 targeted questions to clarify the goals and constraints.\n\n"
            f"{extra or ''}"
        ).rstrip()

    if inp.mode == "consultFollowupEmail":
        on = f" on {inp.appointment_date_time}" if inp.appointment_date_time else ""
        return (
            f"Subject: Thank you for meeting with us, {name}\n\n"
            f"Dear {name},\n\n"
            f"Thank you for taking the time to speak with us{on}.\n\n"
            f"Based on our discussion, here is a brief summary of your matter:\n{inp.matter_description}\n\n"
            "Next Steps:\n"
            "- We will review the information and documents you've provided.\n"
            "- We will follow up with any additional questions or documents needed.\n"
            "- If you decide to move forward, we will send you our engagement letter for review.\n\n"
            f"{extra or _sign_off('Best regards')}"
        )

    return (
        f"Subject: Engagement Letter for {name}\n\n"
        f"Dear {name},\n\n"
        f"Thank you for considering our firm to assist you with the following matter:\n{inp.matter_description}\n\n"
        "This letter outlines the scope of our representation, our fees, and other important terms.\n"
        "[INSERT FIRM-SPECIFIC TERMS HERE]\n\n"
        "If these terms are acceptable, please sign and return this letter so we may begin work on your matter.\n\n"
        f"{extra or _sign_off('Sincerely')}"
    )


def _sign_off(closing: str) -> str:
    return f"{closing},\n{FIRM_SIGNATURE}"


async def document_agent(inp: DocumentAgentInput, ctx: HandlerContext) -> AsyncIterator[HandlerUpdate]:
    yield processing()
    yield complete(_draft_document(inp))


_CALL_REASONS = {
    "scheduleConsultation": "to schedule a consultation",
    "confirmAppointment": "to confirm an upcoming appointment",
    "generalCallback": "for a general callback",
}


async def call_agent(inp: CallAgentInput, ctx: HandlerContext) -> AsyncIterator[HandlerUpdate]:
    yield processing()

    # Delegated to the voice-agent provider; here it is only logged.
    _log.info(
        "outbound_call_requested",
        client_name=inp.client_name,
        phone_number=inp.phone_number,
        reason=inp.reason,
        notes_for_agent=inp.notes_for_agent,
    )

    text = f"Outbound call workflow started for {inp.client_name} at {inp.phone_number} {_CALL_REASONS[inp.reason]}."
    if inp.notes_for_agent:
        text += f" Notes for the phone agent: {inp.notes_for_agent}"
    yield complete(text)

"""Input models for the assistant's tools.

One pydantic model per tool. Field aliases are the camelCase names the
model sees in the tool specs; Python code uses the snake_case attributes.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ToolInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ReceptionistInput(ToolInput):
    client_name: str = Field(description="The client name")
    inquiry: str = Field(description="The nature of the inquiry")
    action: Literal["greet", "route", "summarize"] = Field(description="Action to take")


class PortfolioManagerInput(ToolInput):
    client_id: str = Field(description="Client identifier")
    action: Literal["retrieve", "update", "search"] = Field(description="Action to perform")
    details: str | None = Field(default=None, description="Additional details or updates")


class CalendarAgentInput(ToolInput):
    scenario: Literal["newIntakeConsult", "rescheduleConsult", "checkAvailability"] = Field(
        description="Scheduling scenario to handle"
    )
    client_name: str = Field(description="Client full name")
    client_email: str = Field(description="Client email address")
    client_phone: str | None = Field(
        default=None, description="Client phone number, used in event description when available"
    )
    preferred_date_time: str | None = Field(
        default=None,
        description=(
            "Client's preferred date/time in ISO-8601 format if given "
            "(e.g., '2025-12-20T10:00:00-08:00')."
        ),
    )
    duration_minutes: int = Field(default=60, gt=0, description="Consultation duration in minutes, default is 60.")
    lawyer_calendar_id: str | None = Field(
        default=None,
        description=(
            "Calendar ID for the lawyer or firm resource (e.g., 'lawyer@example.com'). "
            "If omitted, use primary calendar."
        ),
    )
    timezone: str | None = Field(
        default=None, description="IANA timezone string for the client, e.g. 'America/Los_Angeles'."
    )
    existing_event_id: str | None = Field(
        default=None, description="If rescheduling, the calendar event ID of the existing appointment."
    )


class EmailAgentInput(ToolInput):
    scenario: Literal["intakeConfirmation", "consultReminder", "afterHoursReceipt", "genericUpdate"] = Field(
        description="Email scenario to handle"
    )
    recipient_email: str = Field(description="Client email address")
    client_name: str = Field(description="Client name for personalization")
    appointment_date_time: str | None = Field(
        default=None,
        description="ISO date/time string of the consultation when relevant.",
    )
    office_location_or_link: str | None = Field(
        default=None, description="Office address or video link to include in confirmation/reminder emails."
    )
    custom_subject: str | None = Field(default=None, description="Optional custom subject for generic updates.")
    custom_body: str | None = Field(
        default=None,
        description="Optional custom body text for generic updates. If omitted, a neutral template will be used.",
    )


class ChatAIAgentInput(ToolInput):
    client_name: str = Field(description="The client's name for personalization")
    query: str = Field(description="The client's question or request")


class IntakeAgentInput(ToolInput):
    client_name: str = Field(description="Client full name")
    email: str = Field(description="Client email address")
    phone: str | None = Field(default=None, description="Client phone number")
    matter_description: str = Field(description="Free-text description of the legal issue")
    matter_type: str | None = Field(
        default=None,
        description="Short label for matter type, e.g. 'family', 'immigration', 'business contracts'",
    )
    urgency: Literal["low", "medium", "high"] | None = Field(
        default=None, description="Rough urgency level based on deadlines or language used"
    )


class DocumentAgentInput(ToolInput):
    mode: Literal["intakeSummary", "consultFollowupEmail", "engagementLetter"] = Field(
        description="Type of document to draft"
    )
    client_name: str = Field(description="Client name to personalize the document")
    matter_description: str = Field(
        description="Key facts and context about the client's matter to include in the draft"
    )
    appointment_date_time: str | None = Field(
        default=None,
        description="ISO date/time string for the consultation, if relevant",
    )
    extra_instructions: str | None = Field(
        default=None, description="Any extra instructions from the lawyer or firm regarding tone or content"
    )


class CallAgentInput(ToolInput):
    client_name: str = Field(description="Client name")
    phone_number: str = Field(description="Client phone number, ideally in E.164 format, e.g. +1XXXXXXXXXX")
    reason: Literal["scheduleConsultation", "confirmAppointment", "generalCallback"] = Field(
        description="Reason for the call"
    )
    notes_for_agent: str | None = Field(
        default=None,
        description="Short context for the phone agent, e.g. intake ID, matter type, or priority.",
    )

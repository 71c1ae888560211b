"""Presentational mappings shared by the page views. No persisted effect."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from leadboard.schemas.lead import Lead, LeadStatus

UNKNOWN_LEAD = "Unknown Lead"
NO_LEADS = "No leads available"

DEFAULT_STATUS_COLOR = "bg-gray-100 text-gray-800"
STATUS_COLORS = {
    LeadStatus.NEW.value: "bg-blue-100 text-blue-800",
    LeadStatus.CONTACTED.value: "bg-yellow-100 text-yellow-800",
    LeadStatus.QUALIFIED.value: "bg-green-100 text-green-800",
    LeadStatus.CLOSED.value: DEFAULT_STATUS_COLOR,
}

STAT_CARDS = (
    (LeadStatus.NEW.value, "New Leads", "text-blue-600"),
    (LeadStatus.CONTACTED.value, "Contacted", "text-yellow-600"),
    (LeadStatus.QUALIFIED.value, "Qualified", "text-green-600"),
    (LeadStatus.CLOSED.value, "Closed", "text-gray-600"),
)

KANBAN_COLUMNS = (
    (LeadStatus.NEW.value, "New"),
    (LeadStatus.CONTACTED.value, "Contacted"),
    (LeadStatus.QUALIFIED.value, "Qualified"),
    (LeadStatus.CLOSED.value, "Closed"),
)


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, DEFAULT_STATUS_COLOR)


def leads_by_status(leads: Sequence[Lead], status: str) -> list[Lead]:
    return [lead for lead in leads if lead.status == status]


def format_date(value: Optional[datetime]) -> str:
    return value.date().isoformat() if value else ""


def lead_name(leads: Sequence[Lead], lead_id: str) -> str:
    for lead in leads:
        if lead.id == lead_id:
            return lead.name or UNKNOWN_LEAD
    return UNKNOWN_LEAD


def lead_card(lead: Lead, selected_id: Optional[str] = None) -> dict[str, Any]:
    return {
        "id": lead.id,
        "name": lead.name,
        "email": lead.email,
        "phone": lead.phone,
        "status": lead.status,
        "status_color": status_color(lead.status),
        "interest": f"Interested in: {lead.product}" if lead.product else None,
        "created": format_date(lead.created_at),
        "selected": lead.id == selected_id,
    }


def stat_cards(leads: Sequence[Lead]) -> list[dict[str, Any]]:
    return [
        {"status": status, "label": label, "color": color, "count": len(leads_by_status(leads, status))}
        for status, label, color in STAT_CARDS
    ]


def kanban_columns(leads: Sequence[Lead]) -> list[dict[str, Any]]:
    columns = []
    for status, title in KANBAN_COLUMNS:
        members = leads_by_status(leads, status)
        columns.append(
            {
                "status": status,
                "title": title,
                "count": len(members),
                "leads": [lead_card(lead) for lead in members],
            }
        )
    return columns


def selected_summary(lead: Optional[Lead]) -> Optional[dict[str, Any]]:
    if lead is None:
        return None
    return {"id": lead.id, "name": lead.name, "email": lead.email}

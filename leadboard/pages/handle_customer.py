from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from leadboard.pages import presentation
from leadboard.pages.base import BasePage
from leadboard.schemas.lead import FollowUp, Lead, LeadStatus

RECENT_FOLLOW_UPS_LIMIT = 10

QUICK_ACTIONS = (
    ("Mark Contacted", LeadStatus.CONTACTED.value),
    ("Qualify", LeadStatus.QUALIFIED.value),
)


class HandleCustomerPage(BasePage):
    """Active leads with quick status actions and follow-up logging."""

    page_type = "handle-customer"
    title = "Handle Customer"
    table_models = {"leads": Lead, "follow_ups": FollowUp}

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.follow_up_text = ""

    @property
    def follow_ups(self) -> list[FollowUp]:
        return self.rows["follow_ups"]

    def set_text(self, text: str) -> None:
        self.follow_up_text = text
        self._notify()

    async def add_follow_up(self) -> bool:
        def build_row(lead: Lead, text: str) -> Dict[str, Any]:
            return {
                "lead_id": lead.id,
                "notes": text,
                "follow_up_date": datetime.now(timezone.utc).isoformat(),
            }

        return await self._append_for_selected_lead("follow_ups", self.follow_up_text, build_row)

    async def submit(self) -> bool:
        return await self.add_follow_up()

    async def mark_contacted(self, lead_id: str) -> bool:
        return await self.update_lead_status(lead_id, LeadStatus.CONTACTED.value)

    async def qualify(self, lead_id: str) -> bool:
        return await self.update_lead_status(lead_id, LeadStatus.QUALIFIED.value)

    def render(self) -> Dict[str, Any]:
        view: Dict[str, Any] = {"page": self.page_type, "title": self.title, "loading": self.loading}
        if self.loading:
            return view

        leads = self.leads
        selected_id = self.selected_lead.id if self.selected_lead else None
        items = []
        for lead in leads:
            card = presentation.lead_card(lead, selected_id)
            card["actions"] = [{"label": label, "status": status} for label, status in QUICK_ACTIONS]
            items.append(card)

        view["active_leads"] = {
            "title": "Active Leads",
            "items": items,
            "empty_message": presentation.NO_LEADS if not leads else None,
        }
        view["follow_up_form"] = {
            "title": "Add Follow-up",
            "selected_lead": presentation.selected_summary(self.selected_lead),
            "text": self.follow_up_text,
            "submitting": self.submitting,
            "can_submit": bool(self.selected_lead) and not self.submitting and bool(self.follow_up_text.strip()),
            "placeholder": None if self.selected_lead else "Select a lead to add follow-up notes",
        }
        view["recent_follow_ups"] = {
            "title": "Recent Follow-ups",
            "items": [
                {
                    "id": follow_up.id,
                    "lead_name": presentation.lead_name(leads, follow_up.lead_id),
                    "date": presentation.format_date(follow_up.created_at),
                    "notes": follow_up.notes,
                }
                for follow_up in self.follow_ups[:RECENT_FOLLOW_UPS_LIMIT]
            ],
            "empty_message": "No follow-ups yet" if not self.follow_ups else None,
        }
        return view

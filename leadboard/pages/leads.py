from __future__ import annotations

from typing import Any, Dict

from leadboard.pages import presentation
from leadboard.pages.base import BasePage
from leadboard.schemas.lead import Lead, Note


VIEW_MODES = ("kanban", "list")
RECENT_NOTES_LIMIT = 5


class LeadsPage(BasePage):
    """Leads management: status kanban, lead list and notes."""

    page_type = "leads"
    title = "Leads Management"
    table_models = {"leads": Lead, "notes": Note}

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.view_mode = "kanban"
        self.note_text = ""

    @property
    def notes(self) -> list[Note]:
        return self.rows["notes"]

    def set_view_mode(self, mode: str) -> None:
        if mode not in VIEW_MODES:
            raise ValueError(f"Unknown view mode: {mode}")
        self.view_mode = mode
        self._notify()

    def set_text(self, text: str) -> None:
        self.note_text = text
        self._notify()

    async def add_note(self) -> bool:
        def build_row(lead: Lead, text: str) -> Dict[str, Any]:
            row: Dict[str, Any] = {"lead_id": lead.id, "content": text}
            if self.user_id:
                row["created_by"] = self.user_id
            return row

        return await self._append_for_selected_lead("notes", self.note_text, build_row)

    async def submit(self) -> bool:
        return await self.add_note()

    def render(self) -> Dict[str, Any]:
        view: Dict[str, Any] = {"page": self.page_type, "title": self.title, "loading": self.loading}
        if self.loading:
            return view

        leads = self.leads
        selected_id = self.selected_lead.id if self.selected_lead else None
        view["view_mode"] = self.view_mode
        view["stats"] = presentation.stat_cards(leads)
        if self.view_mode == "kanban":
            view["kanban"] = presentation.kanban_columns(leads)
            return view

        view["leads"] = {
            "title": "All Leads",
            "items": [presentation.lead_card(lead, selected_id) for lead in leads],
            "empty_message": presentation.NO_LEADS if not leads else None,
        }
        view["note_form"] = {
            "title": "Add Note",
            "selected_lead": presentation.selected_summary(self.selected_lead),
            "text": self.note_text,
            "submitting": self.submitting,
            "can_submit": bool(self.selected_lead) and not self.submitting and bool(self.note_text.strip()),
            "placeholder": None if self.selected_lead else "Select a lead to add notes",
        }
        view["recent_notes"] = {
            "title": "Recent Notes",
            "items": [
                {
                    "id": note.id,
                    "lead_name": presentation.lead_name(leads, note.lead_id),
                    "date": presentation.format_date(note.created_at),
                    "content": note.content,
                }
                for note in self.notes[:RECENT_NOTES_LIMIT]
            ],
            "empty_message": "No notes yet" if not self.notes else None,
        }
        return view

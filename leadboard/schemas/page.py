from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel

from leadboard.schemas.lead import LeadStatus


class PageOpen(BaseModel):
    page: Literal["leads", "handle-customer"]


class LeadSelection(BaseModel):
    lead_id: Optional[str] = None


class FormText(BaseModel):
    text: str


class ViewModeUpdate(BaseModel):
    mode: Literal["kanban", "list"]


class StatusChange(BaseModel):
    status: LeadStatus


class PageView(BaseModel):
    session_id: str
    view: dict[str, Any]
    accepted: Optional[bool] = None

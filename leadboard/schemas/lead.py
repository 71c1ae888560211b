from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CLOSED = "closed"


class Lead(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    product: Optional[str] = None
    # Kept as a plain string: rows written outside this service may carry any label.
    status: str = LeadStatus.NEW.value
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None


class Note(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    lead_id: str
    content: str
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class FollowUp(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    lead_id: str
    notes: str
    follow_up_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


class LeadStatusUpdate(BaseModel):
    status: LeadStatus


class NoteCreate(BaseModel):
    content: str


class FollowUpCreate(BaseModel):
    notes: str

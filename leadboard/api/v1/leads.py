from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from leadboard.api.dependencies import get_user_backend
from leadboard.backend.client import BackendClient
from leadboard.core.exceptions import BackendError
from leadboard.schemas.lead import FollowUp, FollowUpCreate, Lead, LeadStatusUpdate, Note, NoteCreate

router = APIRouter()


def _bad_gateway(exc: BackendError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.get("/", response_model=list[Lead])
async def list_leads(backend: BackendClient = Depends(get_user_backend)):
    try:
        rows = await backend.select_all("leads")
    except BackendError as exc:
        raise _bad_gateway(exc)
    return [Lead.model_validate(row) for row in rows]


@router.get("/notes", response_model=list[Note])
async def list_notes(backend: BackendClient = Depends(get_user_backend)):
    try:
        rows = await backend.select_all("notes")
    except BackendError as exc:
        raise _bad_gateway(exc)
    return [Note.model_validate(row) for row in rows]


@router.get("/follow-ups", response_model=list[FollowUp])
async def list_follow_ups(backend: BackendClient = Depends(get_user_backend)):
    try:
        rows = await backend.select_all("follow_ups")
    except BackendError as exc:
        raise _bad_gateway(exc)
    return [FollowUp.model_validate(row) for row in rows]


@router.patch("/{lead_id}/status", response_model=Lead)
async def update_lead_status(
    lead_id: str,
    payload: LeadStatusUpdate,
    backend: BackendClient = Depends(get_user_backend),
):
    try:
        rows = await backend.update("leads", {"status": payload.status.value}, {"id": lead_id})
    except BackendError as exc:
        raise _bad_gateway(exc)
    if not rows:
        raise HTTPException(status_code=404, detail="Lead not found")
    return Lead.model_validate(rows[0])


@router.post("/{lead_id}/notes", response_model=Note, status_code=status.HTTP_201_CREATED)
async def add_note(
    lead_id: str,
    payload: NoteCreate,
    backend: BackendClient = Depends(get_user_backend),
):
    if not payload.content.strip():
        raise HTTPException(status_code=400, detail="Note content is required")
    row = {"lead_id": lead_id, "content": payload.content}
    try:
        rows = await backend.insert("notes", row)
    except BackendError as exc:
        raise _bad_gateway(exc)
    if not rows:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Backend returned no row")
    return Note.model_validate(rows[0])


@router.post("/{lead_id}/follow-ups", response_model=FollowUp, status_code=status.HTTP_201_CREATED)
async def add_follow_up(
    lead_id: str,
    payload: FollowUpCreate,
    backend: BackendClient = Depends(get_user_backend),
):
    if not payload.notes.strip():
        raise HTTPException(status_code=400, detail="Follow-up notes are required")
    row = {
        "lead_id": lead_id,
        "notes": payload.notes,
        "follow_up_date": datetime.now(timezone.utc).isoformat(),
    }
    try:
        rows = await backend.insert("follow_ups", row)
    except BackendError as exc:
        raise _bad_gateway(exc)
    if not rows:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Backend returned no row")
    return FollowUp.model_validate(rows[0])

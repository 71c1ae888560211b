"""
Page session API
Mounts CRM screens server-side and drives them through user actions.
Every action answers with the freshly rendered view.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from leadboard.api.dependencies import get_access_token, get_backend, get_page_manager, get_page_session
from leadboard.backend.client import BackendClient
from leadboard.core.exceptions import BackendError, SessionNotFoundError
from leadboard.pages.leads import LeadsPage
from leadboard.pages.sessions import PageSession, PageSessionManager
from leadboard.schemas.page import FormText, LeadSelection, PageOpen, PageView, StatusChange, ViewModeUpdate

router = APIRouter()


def _view(session: PageSession, accepted: Optional[bool] = None) -> PageView:
    return PageView(session_id=session.id, view=session.page.render(), accepted=accepted)


@router.post("/", response_model=PageView, status_code=status.HTTP_201_CREATED)
async def open_page(
    payload: PageOpen,
    access_token: Optional[str] = Depends(get_access_token),
    backend: BackendClient = Depends(get_backend),
    manager: PageSessionManager = Depends(get_page_manager),
):
    user_id = None
    if access_token:
        try:
            user_id = (await backend.for_access_token(access_token).get_user()).get("id")
        except BackendError:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
    session = await manager.open(payload.page, access_token=access_token, user_id=user_id)
    return _view(session)


@router.get("/{session_id}", response_model=PageView)
async def get_page(session: PageSession = Depends(get_page_session)):
    return _view(session)


@router.delete("/{session_id}")
async def close_page(
    session: PageSession = Depends(get_page_session),
    manager: PageSessionManager = Depends(get_page_manager),
):
    try:
        await manager.close(session.id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Page session not found")
    return {"success": True}


@router.post("/{session_id}/select", response_model=PageView)
async def select_lead(payload: LeadSelection, session: PageSession = Depends(get_page_session)):
    selected = session.page.select_lead(payload.lead_id)
    return _view(session, accepted=payload.lead_id is None or selected is not None)


@router.post("/{session_id}/text", response_model=PageView)
async def set_form_text(payload: FormText, session: PageSession = Depends(get_page_session)):
    session.page.set_text(payload.text)
    return _view(session)


@router.post("/{session_id}/cancel", response_model=PageView)
async def cancel_form(session: PageSession = Depends(get_page_session)):
    session.page.clear_form()
    return _view(session)


@router.post("/{session_id}/view-mode", response_model=PageView)
async def set_view_mode(payload: ViewModeUpdate, session: PageSession = Depends(get_page_session)):
    if not isinstance(session.page, LeadsPage):
        raise HTTPException(status_code=400, detail="This page has no view modes")
    session.page.set_view_mode(payload.mode)
    return _view(session)


@router.post("/{session_id}/submit", response_model=PageView)
async def submit_form(session: PageSession = Depends(get_page_session)):
    accepted = await session.page.submit()
    return _view(session, accepted=accepted)


@router.post("/{session_id}/leads/{lead_id}/status", response_model=PageView)
async def change_lead_status(
    lead_id: str,
    payload: StatusChange,
    session: PageSession = Depends(get_page_session),
):
    accepted = await session.page.update_lead_status(lead_id, payload.status.value)
    return _view(session, accepted=accepted)

from __future__ import annotations

from datetime import timedelta

import pytest

from fakes import FakeBackend, lead_row
from leadboard.core.exceptions import SessionNotFoundError
from leadboard.pages.sessions import PageSession, PageSessionManager


@pytest.fixture
def backend():
    return FakeBackend({'leads': [lead_row('l1')], 'notes': [], 'follow_ups': []})


@pytest.mark.asyncio
async def test_idle_session_without_stream_is_closed(backend):
    manager = PageSessionManager(backend, idle_timeout_seconds=60)
    session = await manager.open('leads')

    closed = await manager.reap_idle(now=session.last_active + timedelta(seconds=61))

    assert closed == [session.id]
    assert manager.sessions == {}
    assert backend.open_handles() == []
    with pytest.raises(SessionNotFoundError):
        manager.get(session.id)


@pytest.mark.asyncio
async def test_recent_or_streamed_sessions_are_kept(backend):
    manager = PageSessionManager(backend, idle_timeout_seconds=60)
    recent = await manager.open('leads')
    streamed = await manager.open('handle-customer')
    manager.listen(streamed.id)
    later = streamed.last_active + timedelta(seconds=30)

    assert await manager.reap_idle(now=later) == []

    closed = await manager.reap_idle(now=later + timedelta(minutes=10))

    assert closed == [recent.id]
    assert list(manager.sessions) == [streamed.id]
    await manager.close_all()


@pytest.mark.asyncio
async def test_dropped_stream_restarts_idle_clock(backend):
    manager = PageSessionManager(backend, idle_timeout_seconds=60)
    session = await manager.open('leads')
    queue = manager.listen(session.id)

    manager.unlisten(session.id, queue)

    assert session.listeners == set()
    assert await manager.reap_idle(now=session.last_active + timedelta(seconds=59)) == []
    assert await manager.reap_idle(now=session.last_active + timedelta(seconds=61)) == [session.id]


@pytest.mark.asyncio
async def test_opening_a_page_sweeps_stale_sessions(backend):
    manager = PageSessionManager(backend, idle_timeout_seconds=60)
    stale = await manager.open('leads')
    stale.last_active -= timedelta(minutes=5)

    fresh = await manager.open('leads')

    assert list(manager.sessions) == [fresh.id]
    await manager.close_all()


@pytest.mark.asyncio
async def test_sweeper_stops_promptly(backend):
    manager = PageSessionManager(backend, sweep_seconds=3600)
    manager.start()

    await manager.stop()

    assert manager._sweeper is None


def test_session_token_must_match_opener(backend):
    owned = PageSession(id='s1', page=None, backend=backend, access_token='owner-jwt')
    anonymous = PageSession(id='s2', page=None, backend=backend)

    assert owned.opened_by('owner-jwt')
    assert not owned.opened_by('other-jwt')
    assert not owned.opened_by(None)
    assert anonymous.opened_by(None)
    assert not anonymous.opened_by('owner-jwt')

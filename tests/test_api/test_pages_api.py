from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from fakes import FakeBackend, lead_row
from leadboard.main import create_app


@pytest.fixture
def backend():
    return FakeBackend({'leads': [lead_row('l1', 'closed')], 'notes': [], 'follow_ups': []})


@pytest.fixture
def api(settings, backend):
    with TestClient(create_app(settings, backend=backend)) as client:
        yield client


def bearer(token):
    return {'Authorization': f'Bearer {token}'} if token else {}


def open_page(api, page='leads', token=None):
    response = api.post('/api/v1/pages/', json={'page': page}, headers=bearer(token))
    assert response.status_code == 201
    return response.json()


def test_open_leads_page_renders_kanban(api):
    body = open_page(api)

    view = body['view']
    assert view['title'] == 'Leads Management'
    assert view['loading'] is False
    assert {c['status']: c['count'] for c in view['kanban']} == {'new': 0, 'contacted': 0, 'qualified': 0, 'closed': 1}


def test_note_flow_through_page_session(api, backend):
    session_id = open_page(api, token='user-jwt')['session_id']
    headers = bearer('user-jwt')

    api.post(f'/api/v1/pages/{session_id}/view-mode', json={'mode': 'list'}, headers=headers)
    api.post(f'/api/v1/pages/{session_id}/select', json={'lead_id': 'l1'}, headers=headers)
    api.post(f'/api/v1/pages/{session_id}/text', json={'text': 'Asked for a quote'}, headers=headers)
    response = api.post(f'/api/v1/pages/{session_id}/submit', headers=headers)

    body = response.json()
    assert body['accepted'] is True
    view = body['view']
    assert view['recent_notes']['items'][0]['content'] == 'Asked for a quote'
    assert view['recent_notes']['items'][0]['lead_name'] == 'Lead l1'
    assert view['note_form']['text'] == ''
    assert view['note_form']['selected_lead'] is None
    assert backend.inserts[0][1]['created_by'] == 'user-1'
    assert 'user-jwt' in backend.tokens


def test_blank_submit_is_not_accepted(api, backend):
    session_id = open_page(api)['session_id']
    api.post(f'/api/v1/pages/{session_id}/select', json={'lead_id': 'l1'})
    api.post(f'/api/v1/pages/{session_id}/text', json={'text': '   '})

    body = api.post(f'/api/v1/pages/{session_id}/submit').json()

    assert body['accepted'] is False
    assert backend.inserts == []


def test_status_change_from_closed_to_new(api):
    session_id = open_page(api, page='handle-customer')['session_id']

    body = api.post(f'/api/v1/pages/{session_id}/leads/l1/status', json={'status': 'new'}).json()

    assert body['accepted'] is True
    assert body['view']['active_leads']['items'][0]['status'] == 'new'


def test_unknown_status_rejected(api):
    session_id = open_page(api)['session_id']

    response = api.post(f'/api/v1/pages/{session_id}/leads/l1/status', json={'status': 'won'})

    assert response.status_code == 422


def test_view_mode_only_on_leads_page(api):
    session_id = open_page(api, page='handle-customer')['session_id']

    response = api.post(f'/api/v1/pages/{session_id}/view-mode', json={'mode': 'list'})

    assert response.status_code == 400


def test_close_page_unsubscribes_everything(api, backend):
    session_id = open_page(api)['session_id']

    assert api.delete(f'/api/v1/pages/{session_id}').status_code == 200
    assert api.get(f'/api/v1/pages/{session_id}').status_code == 404
    assert api.delete(f'/api/v1/pages/{session_id}').status_code == 404
    assert len(backend.unsubscribed) == 2
    assert backend.open_handles() == []


def test_unknown_page_type_rejected(api):
    assert api.post('/api/v1/pages/', json={'page': 'dashboard'}).status_code == 422


def test_shutdown_unmounts_open_sessions(settings, backend):
    with TestClient(create_app(settings, backend=backend)) as client:
        open_page(client)
        open_page(client, page='handle-customer')

    assert len(backend.unsubscribed) == 4


def test_owned_session_refuses_anonymous_caller(api, backend):
    session_id = open_page(api, token='owner-jwt')['session_id']

    response = api.post(f'/api/v1/pages/{session_id}/leads/l1/status', json={'status': 'new'})

    assert response.status_code == 401
    assert backend.updates == []
    assert api.get(f'/api/v1/stream/pages/{session_id}').status_code == 401


def test_owned_session_refuses_other_token(api, backend):
    session_id = open_page(api, token='owner-jwt')['session_id']
    intruder = bearer('other-jwt')

    assert api.post(f'/api/v1/pages/{session_id}/leads/l1/status', json={'status': 'new'}, headers=intruder).status_code == 403
    assert api.post(f'/api/v1/pages/{session_id}/submit', headers=intruder).status_code == 403
    assert api.get(f'/api/v1/pages/{session_id}', headers=intruder).status_code == 403
    assert api.delete(f'/api/v1/pages/{session_id}', headers=intruder).status_code == 403
    assert backend.updates == []
    assert api.get(f'/api/v1/pages/{session_id}', headers=bearer('owner-jwt')).status_code == 200


def test_anonymous_session_refuses_token_caller(api):
    session_id = open_page(api)['session_id']

    assert api.get(f'/api/v1/pages/{session_id}', headers=bearer('owner-jwt')).status_code == 403
    assert api.get(f'/api/v1/pages/{session_id}').status_code == 200

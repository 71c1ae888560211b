from __future__ import annotations

import asyncio

import pytest

from fakes import FakeBackend, lead_row, ts
from leadboard.pages.leads import LeadsPage


def note_row(note_id: str, lead_id: str, minutes: int = 0, content: str = 'Called, no answer') -> dict:
    return {'id': note_id, 'lead_id': lead_id, 'content': content, 'created_by': 'user-1', 'created_at': ts(minutes)}


@pytest.fixture
def backend():
    return FakeBackend(
        {
            'leads': [lead_row('l1', 'new', 1), lead_row('l2', 'closed', 2)],
            'notes': [note_row('n1', 'l1', 3)],
        }
    )


async def mounted(backend, **kwargs) -> LeadsPage:
    page = LeadsPage(backend, **kwargs)
    await page.mount()
    return page


@pytest.mark.asyncio
async def test_mount_fetches_snapshots_newest_first_and_subscribes(backend):
    page = await mounted(backend)

    assert page.loading is False
    assert [lead.id for lead in page.leads] == ['l2', 'l1']
    assert [note.id for note in page.notes] == ['n1']
    assert backend.select_calls == {'leads': 1, 'notes': 1}
    assert sorted(h.table for h in backend.open_handles()) == ['leads', 'notes']


@pytest.mark.asyncio
@pytest.mark.parametrize('table', ['leads', 'notes'])
async def test_each_change_event_triggers_exactly_one_refetch(backend, table):
    page = await mounted(backend)
    other = 'notes' if table == 'leads' else 'leads'

    for _ in range(3):
        await backend.emit(table, 'INSERT', record={'id': 'x'})

    assert backend.select_calls[table] == 1 + 3
    assert backend.select_calls[other] == 1
    await page.unmount()


@pytest.mark.asyncio
async def test_remote_change_replaces_cache_with_fresh_snapshot(backend):
    page = await mounted(backend)
    backend.tables['leads'].append(lead_row('l3', 'qualified', 10))

    await backend.emit('leads', 'INSERT', record={'id': 'l3'})

    assert [lead.id for lead in page.leads] == ['l3', 'l2', 'l1']


@pytest.mark.asyncio
async def test_add_note_lists_note_and_clears_form(backend):
    page = await mounted(backend, user_id='user-1')
    page.select_lead('l1')
    page.set_text('Interested in premium package')

    assert await page.add_note() is True

    assert backend.inserts == [
        ('notes', {'lead_id': 'l1', 'content': 'Interested in premium package', 'created_by': 'user-1'})
    ]
    assert page.notes[0].content == 'Interested in premium package'
    assert page.note_text == ''
    assert page.selected_lead is None
    assert page.submitting is False


@pytest.mark.asyncio
@pytest.mark.parametrize('text', ['', '   ', '\n\t '])
async def test_blank_note_makes_no_network_call(backend, text):
    page = await mounted(backend)
    page.select_lead('l1')
    page.set_text(text)
    calls_before = dict(backend.select_calls)

    assert await page.add_note() is False

    assert backend.inserts == []
    assert dict(backend.select_calls) == calls_before
    assert page.selected_lead is not None


@pytest.mark.asyncio
async def test_note_without_selected_lead_is_ignored(backend):
    page = await mounted(backend)
    page.set_text('Orphan note')

    assert await page.add_note() is False
    assert backend.inserts == []


class SlowInsertBackend(FakeBackend):
    async def insert(self, table, row):
        await asyncio.sleep(0.01)
        return await super().insert(table, row)


@pytest.mark.asyncio
async def test_second_submit_while_saving_is_rejected():
    backend = SlowInsertBackend({'leads': [lead_row('l1')], 'notes': []})
    page = await mounted(backend)
    page.select_lead('l1')
    page.set_text('Wants a callback')

    results = await asyncio.gather(page.submit(), page.submit())

    assert sorted(results) == [False, True]
    assert len(backend.inserts) == 1
    assert page.submitting is False


@pytest.mark.asyncio
async def test_failed_note_write_keeps_form_state(backend):
    page = await mounted(backend)
    page.select_lead('l1')
    page.set_text('Will not be saved')
    backend.fail_writes = True

    assert await page.add_note() is False

    assert page.note_text == 'Will not be saved'
    assert page.selected_lead.id == 'l1'
    assert page.submitting is False
    assert [note.id for note in page.notes] == ['n1']


@pytest.mark.asyncio
@pytest.mark.parametrize(
    'start,target',
    [
        ('closed', 'new'),
        ('new', 'closed'),
        ('qualified', 'contacted'),
        ('contacted', 'contacted'),
        ('new', 'qualified'),
    ],
)
async def test_any_status_transition_is_accepted(start, target):
    backend = FakeBackend({'leads': [lead_row('l1', start)], 'notes': []})
    page = await mounted(backend)

    assert await page.update_lead_status('l1', target) is True

    assert backend.updates == [('leads', {'status': target}, {'id': 'l1'})]
    assert page.leads[0].status == target


@pytest.mark.asyncio
async def test_failed_status_update_leaves_cache(backend):
    page = await mounted(backend)
    backend.fail_writes = True

    assert await page.update_lead_status('l2', 'new') is False
    assert {lead.id: lead.status for lead in page.leads}['l2'] == 'closed'


@pytest.mark.asyncio
async def test_empty_leads_render_empty_state_and_zero_columns():
    page = await mounted(FakeBackend({'leads': [], 'notes': []}))

    kanban = page.render()
    assert [column['count'] for column in kanban['kanban']] == [0, 0, 0, 0]
    assert [card['count'] for card in kanban['stats']] == [0, 0, 0, 0]

    page.set_view_mode('list')
    view = page.render()
    assert view['leads']['empty_message'] == 'No leads available'
    assert view['leads']['items'] == []
    assert view['recent_notes']['empty_message'] == 'No notes yet'
    assert view['note_form']['placeholder'] == 'Select a lead to add notes'


@pytest.mark.asyncio
async def test_kanban_groups_leads_by_status(backend):
    page = await mounted(backend)

    columns = {column['status']: column for column in page.render()['kanban']}

    assert columns['new']['count'] == 1
    assert columns['closed']['count'] == 1
    assert columns['closed']['leads'][0]['status_color'] == 'bg-gray-100 text-gray-800'


@pytest.mark.asyncio
async def test_recent_notes_fall_back_to_unknown_lead():
    backend = FakeBackend({'leads': [lead_row('l1')], 'notes': [note_row('n1', 'missing', 5)]})
    page = await mounted(backend)
    page.set_view_mode('list')

    assert page.render()['recent_notes']['items'][0]['lead_name'] == 'Unknown Lead'


@pytest.mark.asyncio
async def test_unmount_closes_each_subscription_exactly_once(backend):
    page = await mounted(backend)
    opened = list(backend.handles)

    await page.unmount()
    await page.unmount()

    assert len(backend.unsubscribed) == len(opened) == 2
    assert {id(h) for h in backend.unsubscribed} == {id(h) for h in opened}
    assert backend.open_handles() == []


@pytest.mark.asyncio
async def test_failed_refetch_keeps_stale_cache(backend):
    page = await mounted(backend)
    backend.fail_reads = True
    backend.tables['leads'] = []

    await page.fetch_table('leads')

    assert [lead.id for lead in page.leads] == ['l2', 'l1']


@pytest.mark.asyncio
async def test_loading_view_hides_content(backend):
    page = LeadsPage(backend)

    assert page.render() == {'page': 'leads', 'title': 'Leads Management', 'loading': True}


@pytest.mark.asyncio
async def test_listeners_fire_on_state_changes(backend):
    page = await mounted(backend)
    seen = []
    remove = page.add_listener(lambda: seen.append(page.note_text))

    page.set_text('draft')
    remove()
    page.set_text('ignored')

    assert seen == ['draft']


def test_unknown_view_mode_rejected(backend):
    page = LeadsPage(backend)
    with pytest.raises(ValueError):
        page.set_view_mode('grid')

from datetime import datetime, timezone

import pytest

from leadboard.pages import presentation
from leadboard.schemas.lead import Lead


def make_lead(lead_id: str, status: str, name: str = 'Budi') -> Lead:
    return Lead(id=lead_id, name=name, status=status)


@pytest.mark.parametrize(
    'status,expected',
    [
        ('new', 'bg-blue-100 text-blue-800'),
        ('contacted', 'bg-yellow-100 text-yellow-800'),
        ('qualified', 'bg-green-100 text-green-800'),
        ('closed', 'bg-gray-100 text-gray-800'),
        ('archived', 'bg-gray-100 text-gray-800'),
    ],
)
def test_status_color(status, expected):
    assert presentation.status_color(status) == expected


def test_kanban_columns_cover_all_statuses_in_order():
    leads = [make_lead('a', 'new'), make_lead('b', 'new'), make_lead('c', 'qualified'), make_lead('d', 'lost')]

    columns = presentation.kanban_columns(leads)

    assert [c['status'] for c in columns] == ['new', 'contacted', 'qualified', 'closed']
    assert [c['count'] for c in columns] == [2, 0, 1, 0]


def test_lead_name_fallback():
    leads = [make_lead('a', 'new', name='Siti')]

    assert presentation.lead_name(leads, 'a') == 'Siti'
    assert presentation.lead_name(leads, 'zzz') == 'Unknown Lead'
    assert presentation.lead_name([], 'a') == 'Unknown Lead'


def test_lead_card_interest_and_date():
    lead = Lead(
        id='a',
        name='Siti',
        status='new',
        product='Umrah Plus',
        created_at=datetime(2025, 8, 4, 23, 30, tzinfo=timezone.utc),
    )

    card = presentation.lead_card(lead, selected_id='a')

    assert card['interest'] == 'Interested in: Umrah Plus'
    assert card['created'] == '2025-08-04'
    assert card['selected'] is True
    assert presentation.lead_card(make_lead('b', 'new'))['interest'] is None

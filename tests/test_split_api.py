import pytest
from bill_splitting_logic import BillSplitter


RECEIPT = {
    'restaurantName': 'Wing Shack',
    'currency': 'USD',
    'taxCents': 1,
    'tipCents': 1,
    'items': [{'name': 'Wings', 'quantity': 3, 'totalPriceCents': 1000}],
}


def test_expand_units(client):
    response = client.post('/api/expand-units', json={'receipt': RECEIPT})

    assert response.status_code == 200
    units = response.get_json()['units']
    assert [u['amountCents'] for u in units] == [334, 333, 333]
    assert units[1] == {
        'id': '0-1',
        'label': 'Wings (2/3)',
        'amountCents': 333,
        'sourceItemName': 'Wings',
        'sourceRowIndex': 0,
        'unitIndex': 1
    }


def test_expand_units_requires_body(client):
    response = client.post('/api/expand-units', json={})

    assert response.status_code == 400


def test_split_bill_from_receipt(client):
    response = client.post('/api/split-bill', json={
        'people': ['Bob', 'Alice'],
        'receipt': RECEIPT,
        'assignments': {'0-0': ['Bob', 'Alice']},
    })

    assert response.status_code == 200
    result = response.get_json()['split_result']
    assert result['personTotals'] == [
        {'name': 'Alice', 'subtotalCents': 167, 'taxShareCents': 1, 'tipShareCents': 1, 'totalCents': 169},
        {'name': 'Bob', 'subtotalCents': 167, 'taxShareCents': 0, 'tipShareCents': 0, 'totalCents': 167},
    ]
    assert result['unassignedUnitIds'] == ['0-1', '0-2']


def test_split_bill_from_units(client):
    response = client.post('/api/split-bill', json={
        'people': ['Bob', 'Alice'],
        'units': [{'id': 'u1', 'label': 'Nachos', 'amountCents': 101}],
        'assignments': {'u1': ['Bob', 'Alice']},
        'taxCents': 1,
        'tipCents': 1,
    })

    assert response.status_code == 200
    totals = response.get_json()['split_result']['personTotals']
    assert [(t['name'], t['totalCents']) for t in totals] == [('Alice', 53), ('Bob', 50)]


def test_split_bill_requires_receipt_or_units(client):
    response = client.post('/api/split-bill', json={'people': ['Alice']})

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Receipt or units are required'


def test_split_bill_invalid_unit(client):
    response = client.post('/api/split-bill', json={'people': ['Alice'], 'units': [{'label': 'no id'}]})

    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_split_evenly(client):
    response = client.post('/api/split-evenly', json={'totalCents': 100, 'people': ['Carol', 'Alice', 'Bob']})

    assert response.status_code == 200
    assert response.get_json()['split_result'] == [
        {'name': 'Alice', 'amountCents': 34},
        {'name': 'Bob', 'amountCents': 33},
        {'name': 'Carol', 'amountCents': 33},
    ]


def test_split_evenly_validation(client):
    assert client.post('/api/split-evenly', json={'totalCents': 100, 'people': []}).status_code == 400
    assert client.post('/api/split-evenly', json={'totalCents': 'x', 'people': ['A']}).status_code == 400
    assert client.post('/api/split-evenly', json={'totalCents': -1, 'people': ['A']}).status_code == 400


def test_report_returns_html(client):
    response = client.post('/api/report', json={
        'people': ['Bob', 'Alice'],
        'receipt': RECEIPT,
        'assignments': {'0-0': ['Bob', 'Alice']},
    })

    assert response.status_code == 200
    assert response.content_type.startswith('text/html')
    html = response.get_data(as_text=True)
    assert 'Restaurant: Wing Shack' in html
    assert 'Alice: $1.67 + Bob: $1.67' in html


def test_report_requires_receipt(client):
    response = client.post('/api/report', json={'people': ['Alice']})

    assert response.status_code == 400


@pytest.mark.parametrize('body', [
    [1, 2],
    {'people': ['Alice'], 'receipt': [1]},
    {'people': ['Alice'], 'receipt': RECEIPT, 'assignments': [['0-0', ['Alice']]]},
    {'people': ['Alice'], 'units': {'id': 'u1'}},
    {'people': 'Alice', 'receipt': RECEIPT},
    {'people': ['Alice'], 'receipt': {'items': [['Wings', 3, 1000]]}},
])
def test_split_bill_rejects_wrongly_shaped_json(client, body):
    response = client.post('/api/split-bill', json=body)

    assert response.status_code == 400
    assert response.get_json().get('success') is not True


@pytest.mark.parametrize('body', [[1, 2], {'receipt': [1]}, {'receipt': {'items': 'Wings'}}])
def test_expand_units_rejects_wrongly_shaped_json(client, body):
    response = client.post('/api/expand-units', json=body)

    assert response.status_code == 400
    assert 'error' in response.get_json()


@pytest.mark.parametrize('body', [[1, 2], {'receipt': [1]}, {'receipt': RECEIPT, 'assignments': ['0-0']}])
def test_report_rejects_wrongly_shaped_json(client, body):
    response = client.post('/api/report', json=body)

    assert response.status_code == 400
    assert response.is_json


def test_split_bill_unexpected_error_returns_json_500(client, mocker):
    mocker.patch.object(BillSplitter, 'calculate_split', side_effect=RuntimeError('boom'))

    response = client.post('/api/split-bill', json={'people': ['Alice'], 'receipt': RECEIPT})

    assert response.status_code == 500
    assert response.get_json() == {'success': False, 'error': 'boom'}


def test_report_unexpected_error_returns_json_500(client, mocker):
    mocker.patch.object(BillSplitter, 'calculate_split', side_effect=RuntimeError('boom'))

    response = client.post('/api/report', json={'people': ['Alice'], 'receipt': RECEIPT})

    assert response.status_code == 500
    assert response.get_json() == {'error': 'boom'}


def test_expand_units_string_quantity_is_one_unit(client):
    receipt = dict(RECEIPT, items=[{'name': 'Wings', 'quantity': '3', 'totalPriceCents': 1000}])

    units = client.post('/api/expand-units', json={'receipt': receipt}).get_json()['units']

    assert [(u['label'], u['amountCents']) for u in units] == [('Wings', 1000)]


@pytest.mark.parametrize('total_cents', [10.9, True, '10.5', [10]])
def test_split_evenly_rejects_non_whole_totals(client, total_cents):
    response = client.post('/api/split-evenly', json={'totalCents': total_cents, 'people': ['Alice', 'Bob']})

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Total cents must be a whole number'


@pytest.mark.parametrize('total_cents', [10, 10.0, '10'])
def test_split_evenly_accepts_whole_totals(client, total_cents):
    response = client.post('/api/split-evenly', json={'totalCents': total_cents, 'people': ['Alice', 'Bob']})

    assert response.status_code == 200
    assert [s['amountCents'] for s in response.get_json()['split_result']] == [5, 5]


@pytest.mark.parametrize('body', [[1, 2], {'totalCents': 10, 'people': [['Alice']]}, {'totalCents': 10, 'people': 'Al'}])
def test_split_evenly_rejects_wrongly_shaped_json(client, body):
    response = client.post('/api/split-evenly', json=body)

    assert response.status_code == 400

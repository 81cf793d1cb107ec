import json

import pytest
import requests
from rest_framework.authtoken.models import Token

from portal.sync import (
    ConstraintViolation,
    HttpDataStore,
    PermissionDenied,
    SelfActionError,
    TransportError,
    ValidationError,
)

from .conftest import CDU, DAY, make_doctor


def _response(status, payload=None):
    resp = requests.Response()
    resp.status_code = status
    resp.reason = 'reason'
    resp._content = json.dumps(payload).encode() if payload is not None else b''
    return resp


class FakeSession:
    def __init__(self, *responses):
        self.headers = {}
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_select_builds_filters_and_unwraps_data():
    session = FakeSession(_response(200, {'ok': True, 'data': [{'id': 'r1'}]}))
    store = HttpDataStore('http://portal.local/', token='abc', session=session)

    rows = store.select('rooms', {'sector': CDU, 'is_admin': False}, in_=('id', ['a', 'b']), order_by=['order'])

    assert rows == [{'id': 'r1'}]
    method, url, kwargs = session.requests[0]
    assert (method, url) == ('GET', 'http://portal.local/api/rooms')
    assert kwargs['params'] == {'sector': CDU, 'is_admin': 'false', 'in.id': 'a,b', 'order': 'order'}
    assert session.headers['Authorization'] == 'Token abc'


@pytest.mark.parametrize('status, error, expected', [
    (400, {'code': 'invalid', 'message': 'bad'}, ValidationError),
    (403, {'code': 'self_action', 'message': 'no'}, SelfActionError),
    (403, {'code': 'permission_denied', 'message': 'no'}, PermissionDenied),
    (404, {'code': 'not_found', 'message': 'gone'}, ConstraintViolation),
    (409, {'code': 'conflict', 'message': 'dup'}, ConstraintViolation),
    (502, None, TransportError),
])
def test_http_errors_map_to_sync_errors(status, error, expected):
    payload = {'ok': False, 'error': error} if error else None
    store = HttpDataStore('http://portal.local', session=FakeSession(_response(status, payload)))
    with pytest.raises(expected) as info:
        store.update('rooms', 'r1', {'name': 'x'})
    assert type(info.value) is expected


def test_network_failure_is_a_transport_error():
    store = HttpDataStore('http://portal.local', session=FakeSession(requests.ConnectionError('down')))
    with pytest.raises(TransportError) as info:
        store.select('rooms')
    assert info.value.message == 'Falha de comunicação com o servidor.'


def test_delete_and_upsert_requests():
    session = FakeSession(
        _response(200, {'ok': True, 'deleted': 0}),
        _response(200, {'ok': True, 'data': {'id': 1}}),
    )
    store = HttpDataStore('http://portal.local', session=session)

    assert store.delete('room_allocations', {'room_id': 'r1', 'shift': 'morning'}) == 0
    assert store.upsert('room_allocations', {'room_id': 'r1'}, ('room_id', 'date', 'shift')) == {'id': 1}

    assert session.requests[0][0] == 'DELETE'
    method, url, kwargs = session.requests[1]
    assert url.endswith('/api/room_allocations/upsert')
    assert kwargs['json'] == {'values': {'room_id': 'r1'}, 'on_conflict': ['room_id', 'date', 'shift']}


@pytest.mark.django_db(transaction=True)
def test_against_running_server(live_server, admin):
    token = Token.objects.create(user=admin)
    store = HttpDataStore(live_server.url, token=token.key)
    doc = make_doctor('Drº Um')

    assert store.me()['id'] == admin.id
    room = store.insert('rooms', {'name': 'Sala 1', 'sector': CDU, 'extension': '201'})
    assert [r['name'] for r in store.select('rooms', {'sector': CDU})] == ['Sala 1']

    keys = ('room_id', 'date', 'shift')
    first = store.upsert('room_allocations', {'room_id': room['id'], 'doctor_id': doc.id,
                                              'date': DAY.isoformat(), 'shift': 'morning'}, keys)
    assert first['created_by'] is None
    assert store.select('room_allocations', {'date': DAY.isoformat()}, in_=('room_id', [room['id']]))[0]['doctor_id'] == doc.id

    with pytest.raises(SelfActionError):
        store.update('profiles', admin.id, {'is_admin': False})
    with pytest.raises(ValidationError):
        store.insert('rooms', {'name': 'Sala 2', 'sector': 'Subsolo'})

    assert store.delete('room_allocations', {'room_id': room['id'], 'date': DAY.isoformat(), 'shift': 'afternoon'}) == 0
    assert store.delete('room_allocations', {'room_id': room['id'], 'date': DAY.isoformat(), 'shift': 'morning'}) == 1

import datetime

import pytest
from django.db import IntegrityError

from portal.models import RoomAllocation
from portal.services import tables

from .conftest import CDU, DAY, OFTALMO, make_doctor, make_room

pytestmark = pytest.mark.django_db


def test_select_filters_and_orders_rooms():
    make_room('B', order=1)
    make_room('A', order=0)
    make_room('C', order=1)
    make_room('Outro', sector=OFTALMO)

    rows = tables.select('rooms', {'sector': CDU}, order_by=['order'])
    assert [r['name'] for r in rows] == ['A', 'B', 'C']


def test_select_with_membership_filter():
    r1, r2, r3 = make_room('1'), make_room('2'), make_room('3')
    rows = tables.select('rooms', in_=('id', [r1.id, r3.id]))
    assert {r['id'] for r in rows} == {r1.id, r3.id}
    assert tables.select('rooms', in_=('id', [])) == []


def test_unknown_table_column_and_order():
    with pytest.raises(LookupError):
        tables.select('patients')
    with pytest.raises(ValueError):
        tables.select('rooms', {'floor': '9'})
    with pytest.raises(ValueError):
        tables.select('rooms', order_by=['floor'])


def test_insert_cleans_free_text():
    row = tables.insert('rooms', {'name': '  <b>Sala</b> 1 ', 'sector': CDU, 'extension': 201})
    assert row['name'] == 'Sala 1'
    assert row['extension'] == '201'


def test_free_text_keeps_ampersands_and_quotes():
    row = tables.insert('rooms', {'name': 'Sala A & B', 'sector': CDU, 'extension': '"201"'})
    assert row['name'] == 'Sala A & B'
    assert row['extension'] == '"201"'
    row = tables.update('rooms', row['id'], {'name': '<i>Sala</i> <script>x</script>C & D'})
    assert '<' not in row['name']
    assert row['name'].endswith('C & D')


def test_insert_rejects_invalid_values():
    with pytest.raises(ValueError):
        tables.insert('rooms', {'name': 'Sala', 'sector': 'Subsolo'})
    with pytest.raises(ValueError):
        tables.insert('rooms', {'sector': CDU})
    with pytest.raises(ValueError):
        tables.insert('rooms', {'name': 'Sala', 'sector': CDU, 'floor': 1})


def test_allocation_must_reference_a_doctor(reception):
    room = make_room('Sala 1')
    with pytest.raises(ValueError):
        tables.insert('room_allocations', {
            'room_id': room.id, 'doctor_id': reception.id, 'date': DAY, 'shift': 'morning',
        })


def test_duplicate_slot_insert_is_an_integrity_error():
    room, doc = make_room('Sala 1'), make_doctor('Drº A')
    values = {'room_id': room.id, 'doctor_id': doc.id, 'date': '2024-01-10', 'shift': 'morning'}
    tables.insert('room_allocations', values)
    with pytest.raises(IntegrityError):
        tables.insert('room_allocations', values)


def test_upsert_overwrites_same_slot():
    room, d1, d2 = make_room('Sala 1'), make_doctor('Drº A'), make_doctor('Drª B')
    keys = ('room_id', 'date', 'shift')
    first = tables.upsert('room_allocations', {'room_id': room.id, 'doctor_id': d1.id, 'date': DAY, 'shift': 'morning'}, keys)
    second = tables.upsert('room_allocations', {'room_id': room.id, 'doctor_id': d2.id, 'date': DAY, 'shift': 'morning'}, keys)

    assert first['id'] == second['id']
    assert second['date'] == '2024-01-10'
    assert RoomAllocation.objects.get().doctor_id == d2.id


def test_upsert_requires_writable_conflict_keys():
    with pytest.raises(ValueError):
        tables.upsert('rooms', {'name': 'Sala', 'sector': CDU}, ('id',))


def test_update_and_delete():
    room = make_room('Sala 1')
    assert tables.update('rooms', room.id, {'extension': '201'})['extension'] == '201'
    with pytest.raises(LookupError):
        tables.update('rooms', 'missing', {'name': 'x'})

    assert tables.delete('rooms', {'id': 'missing'}) == 0
    assert tables.delete('rooms', {'id': room.id}) == 1
    with pytest.raises(ValueError):
        tables.delete('rooms', {})


def test_parse_date():
    assert tables.parse_date('2024-01-10') == DAY
    assert tables.parse_date(datetime.datetime(2024, 1, 10, 9, 30)) == DAY
    with pytest.raises(ValueError):
        tables.parse_date('10/01/2024')

"""
Integration tests for the MediPortal REST surface.

These exercise table listing and filtering, the write rules per role,
self-protection on profiles, the allocation upsert and the sector
dashboard, using Django REST Framework's APIClient.
"""
import pytest
from rest_framework import status
from rest_framework.test import APIClient

from portal.models import Profile, Room, RoomAllocation

from .conftest import CARDIO, CDU, DAY, OFTALMO, make_doctor, make_room

pytestmark = pytest.mark.django_db


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def test_anonymous_requests_are_rejected():
    resp = APIClient().get('/api/rooms')
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED
    assert resp.data['ok'] is False


def test_list_rooms_by_sector(doctor):
    make_room('Sala 2', order=1)
    make_room('Sala 1', order=0)
    make_room('Outra', sector=OFTALMO)

    resp = client_for(doctor).get('/api/rooms', {'sector': CDU, 'order': 'order'})
    assert resp.status_code == 200
    assert [r['name'] for r in resp.data['data']] == ['Sala 1', 'Sala 2']


def test_unknown_table_and_column(reception):
    client = client_for(reception)
    resp = client.get('/api/patients')
    assert resp.status_code == 404
    assert resp.data['error']['code'] == 'not_found'

    resp = client.get('/api/rooms', {'floor': '9'})
    assert resp.status_code == 400
    assert resp.data['error']['code'] == 'invalid'


def test_reception_creates_and_edits_rooms(reception):
    client = client_for(reception)
    resp = client.post('/api/rooms', {'name': 'Sala 1', 'sector': CDU, 'extension': '201'}, format='json')
    assert resp.status_code == 201
    room_id = resp.data['data']['id']

    resp = client.patch(f'/api/rooms/{room_id}', {'extension': '202'}, format='json')
    assert resp.data['data']['extension'] == '202'
    assert client.get(f'/api/rooms/{room_id}').data['data']['name'] == 'Sala 1'

    assert client.delete(f'/api/rooms/{room_id}').data['deleted'] == 1
    assert client.get(f'/api/rooms/{room_id}').status_code == 404


def test_doctors_cannot_write_the_room_map(doctor):
    client = client_for(doctor)
    resp = client.post('/api/rooms', {'name': 'Sala 1', 'sector': CDU}, format='json')
    assert resp.status_code == 403
    assert resp.data['error']['message'] == 'Médicos não podem alterar o mapa de salas.'
    assert Room.objects.count() == 0

    room = make_room('Sala 1')
    assert client.get('/api/rooms', {'sector': CDU}).status_code == 200
    assert client.patch(f'/api/rooms/{room.id}', {'name': 'X'}, format='json').status_code == 403
    resp = client.post('/api/room_allocations/upsert', {
        'values': {'room_id': room.id, 'doctor_id': doctor.id, 'date': '2024-01-10', 'shift': 'morning'},
        'on_conflict': ['room_id', 'date', 'shift'],
    }, format='json')
    assert resp.status_code == 403
    assert client.delete(f'/api/room_allocations?room_id={room.id}').status_code == 403


def test_upsert_replaces_the_slot(reception):
    room, d1, d2 = make_room('Sala 1'), make_doctor('Drº Um'), make_doctor('Drª Dois')
    client = client_for(reception)
    for doc in (d1, d2):
        resp = client.post('/api/room_allocations/upsert', {
            'values': {'room_id': room.id, 'doctor_id': doc.id, 'date': '2024-01-10', 'shift': 'morning',
                       'created_by': reception.id},
            'on_conflict': ['room_id', 'date', 'shift'],
        }, format='json')
        assert resp.status_code == 200

    alloc = RoomAllocation.objects.get()
    assert alloc.doctor_id == d2.id
    assert alloc.created_by_id == reception.id

    resp = client.get('/api/room_allocations', {'date': '2024-01-10', 'in.room_id': room.id})
    assert [a['doctor_id'] for a in resp.data['data']] == [d2.id]


def test_plain_insert_on_taken_slot_conflicts(reception):
    room, d1 = make_room('Sala 1'), make_doctor('Drº Um')
    values = {'room_id': room.id, 'doctor_id': d1.id, 'date': '2024-01-10', 'shift': 'afternoon'}
    client = client_for(reception)
    assert client.post('/api/room_allocations', values, format='json').status_code == 201
    resp = client.post('/api/room_allocations', values, format='json')
    assert resp.status_code == 409
    assert resp.data['error']['code'] == 'conflict'


def test_delete_by_filters_allows_zero(reception):
    room = make_room('Sala 1')
    resp = client_for(reception).delete(f'/api/room_allocations?room_id={room.id}&date=2024-01-10&shift=morning')
    assert resp.status_code == 200
    assert resp.data['deleted'] == 0


def test_profiles_filtered_by_role_and_admin_flag(admin, reception, doctor):
    client = client_for(reception)
    assert [p['id'] for p in client.get('/api/profiles', {'role': 'doctor'}).data['data']] == [doctor.id]
    assert [p['id'] for p in client.get('/api/profiles', {'is_admin': 'true'}).data['data']] == [admin.id]


def test_admin_cannot_demote_or_delete_self(admin):
    client = client_for(admin)
    resp = client.patch(f'/api/profiles/{admin.id}', {'is_admin': False}, format='json')
    assert resp.status_code == 403
    assert resp.data['error']['code'] == 'self_action'

    resp = client.delete(f'/api/profiles/{admin.id}')
    assert resp.data['error']['code'] == 'self_action'

    resp = client.delete('/api/profiles?role=reception')
    assert resp.data['error']['code'] == 'self_action'

    admin.refresh_from_db()
    assert admin.is_admin


def test_admin_manages_other_profiles(admin, reception):
    client = client_for(admin)
    resp = client.patch(f'/api/profiles/{reception.id}', {'is_admin': True, 'name': 'Recepção 8'}, format='json')
    assert resp.data['data']['is_admin'] is True

    resp = client.post('/api/profiles', {'name': 'Novo', 'role': 'reception', 'specialty': 'Recepção'}, format='json')
    assert resp.status_code == 201
    assert Profile.objects.filter(name='Novo').exists()

    assert client.delete(f'/api/profiles/{reception.id}').data['deleted'] == 1


def test_staff_change_only_their_own_status(reception, doctor):
    client = client_for(doctor)
    resp = client.patch(f'/api/profiles/{doctor.id}', {'status': 'vacation'}, format='json')
    assert resp.status_code == 200
    assert resp.data['data']['status'] == 'vacation'

    assert client.patch(f'/api/profiles/{doctor.id}', {'name': 'Outro'}, format='json').status_code == 403
    assert client.patch(f'/api/profiles/{reception.id}', {'status': 'offline'}, format='json').status_code == 403


def test_me_returns_own_row(doctor):
    resp = client_for(doctor).get('/api/me')
    assert resp.data['data']['id'] == doctor.id
    assert resp.data['data']['role'] == 'doctor'


def test_sector_dashboard(reception):
    d1, d2 = make_doctor('Drº Um'), make_doctor('Drª Dois')
    s1, s2 = make_room('Sala 1', order=0), make_room('Sala 2', order=1)
    make_room('Cardio', sector=CARDIO)
    for room, doc, shift in ((s1, d1, 'morning'), (s1, d2, 'afternoon'), (s2, d1, 'afternoon')):
        RoomAllocation.objects.create(room=room, doctor=doc, date=DAY, shift=shift)

    resp = client_for(reception).get('/api/dashboard', {'sector': CDU, 'date': '2024-01-10'})
    data = resp.data['data']
    assert (data['rooms'], data['morningDoctors'], data['afternoonDoctors']) == (2, 1, 2)
    assert (data['occupiedSlots'], data['freeSlots']) == (3, 1)
    assert data['schedule'][1] == {'roomId': s2.id, 'name': 'Sala 2', 'extension': '', 'morning': None,
                                   'afternoon': 'Drº Um'}

    resp = client_for(reception).get('/api/dashboard', {'sector': 'Subsolo'})
    assert resp.status_code == 400
    assert resp.data['error'] == {'code': 'invalid', 'message': 'Setor inválido.'}


def test_healthz(client):
    resp = client.get('/healthz')
    assert resp.status_code == 200
    assert resp.json()['ok'] is True

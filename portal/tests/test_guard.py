import pytest

from portal.models import RoomAllocation
from portal.sync import (
    AllocationGuard,
    AllocationSynchronizer,
    PermissionDenied,
    PortalSession,
    RoomSynchronizer,
    SlotState,
    ValidationError,
)

from .conftest import CDU, DAY, identity_of, make_doctor

pytestmark = pytest.mark.django_db(transaction=True)


@pytest.fixture
def daily_map(store, channel, admin_context):
    admin_context.set_current_sector(CDU)
    rooms = RoomSynchronizer(store, channel, admin_context).start()
    allocations = AllocationSynchronizer(store, channel, admin_context, rooms, day=DAY).start()
    yield rooms, allocations, AllocationGuard(allocations)
    allocations.stop()
    rooms.stop()


def test_cdu_scenario(daily_map):
    rooms, allocations, guard = daily_map
    d1, d2 = make_doctor('Drº Um'), make_doctor('Drª Dois')

    rooms.save_room('Sala 1', '201')
    (sala,) = rooms.items
    assert (sala.name, sala.extension, sala.sector) == ('Sala 1', '201', CDU)

    guard.assign(sala.id, d1.id, 'morning', DAY)
    assert guard.lookup(sala.id, 'morning').doctor_id == d1.id

    guard.assign(sala.id, d2.id, 'morning', DAY)
    assert guard.lookup(sala.id, 'morning').doctor_id == d2.id
    assert RoomAllocation.objects.filter(room_id=sala.id, date=DAY, shift='morning').count() == 1

    guard.clear(sala.id, 'morning', DAY)
    assert guard.lookup(sala.id, 'morning') is None
    assert guard.slot_state(sala.id, 'morning') is SlotState.EMPTY


def test_last_assignment_wins(daily_map, admin):
    rooms, allocations, guard = daily_map
    doctors = [make_doctor(f'Drº {n}') for n in range(4)]
    rooms.save_room('Sala 1')
    room_id = rooms.items[0].id

    for doc in doctors + doctors[:2]:
        guard.assign(room_id, doc.id, 'afternoon')

    (alloc,) = allocations.items
    assert alloc.doctor_id == doctors[1].id
    assert alloc.created_by == admin.id
    assert guard.slot_state(room_id, 'afternoon') is SlotState.ASSIGNED
    assert guard.slot_state(room_id, 'morning') is SlotState.EMPTY


def test_clearing_an_empty_slot_changes_nothing(daily_map):
    rooms, allocations, guard = daily_map
    doc = make_doctor('Drº Um')
    rooms.save_room('Sala 1')
    room_id = rooms.items[0].id
    guard.assign(room_id, doc.id, 'morning')
    before = allocations.items

    assert guard.clear(room_id, 'afternoon') == 0
    assert guard.clear(room_id, 'afternoon') == 0
    assert allocations.items == before


def test_shift_and_ids_are_validated(daily_map):
    rooms, allocations, guard = daily_map
    with pytest.raises(ValidationError):
        guard.assign('room', 'doc', 'night')
    with pytest.raises(ValidationError):
        guard.assign('', 'doc', 'morning')
    with pytest.raises(ValidationError):
        guard.clear('room', 'evening')


def test_doctors_cannot_assign(store, channel, context, doctor):
    context.sign_in(identity_of(doctor))
    context.set_current_sector(CDU)
    rooms = RoomSynchronizer(store, channel, context).start()
    guard = AllocationGuard(AllocationSynchronizer(store, channel, context, rooms, day=DAY).start())
    with pytest.raises(PermissionDenied):
        guard.assign('any-room', doctor.id, 'morning')
    with pytest.raises(PermissionDenied):
        guard.clear('any-room', 'morning')


def test_guard_sees_writes_from_another_client(store, channel, tmp_path, admin, reception):
    from portal.sync import ClientState, SectorContext

    first = PortalSession(store, channel, SectorContext(ClientState(tmp_path / '1.json')))
    second = PortalSession(store, channel, SectorContext(ClientState(tmp_path / '2.json')))
    first.sign_in(admin.id)
    second.sign_in(reception.id)
    for session in (first, second):
        session.context.set_current_sector(CDU)
    doc = make_doctor('Drº Um')

    rooms_1, _, guard_1, _ = first.daily_map(DAY)
    rooms_2, _, guard_2, doctors_2 = second.daily_map(DAY)
    rooms_1.save_room('Sala 1')
    room_id = rooms_2.items[0].id

    guard_1.assign(room_id, doc.id, 'morning')
    assert guard_2.lookup(room_id, 'morning').doctor_id == doc.id
    assert doctors_2.get(doc.id).name == doc.name

    second.close()
    first.close()

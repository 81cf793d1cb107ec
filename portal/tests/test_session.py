import pytest

from portal.models import Profile
from portal.sync import PermissionDenied, PortalSession

from .conftest import CARDIO, CDU, DAY, OFTALMO, make_doctor

pytestmark = pytest.mark.django_db(transaction=True)


@pytest.fixture
def session(store, channel, context):
    s = PortalSession(store, channel, context)
    yield s
    s.close()


def test_sign_in_marks_profile_online(session, reception):
    identity = session.sign_in(reception.id)
    assert identity.id == reception.id
    assert session.identity == identity
    reception.refresh_from_db()
    assert reception.status == 'online'

    session.sign_out()
    reception.refresh_from_db()
    assert reception.status == 'offline'
    assert session.identity is None


def test_unknown_profile_cannot_sign_in(session, db):
    with pytest.raises(PermissionDenied):
        session.sign_in('nobody')


def test_sign_out_after_profile_removal(session, reception):
    session.sign_in(reception.id)
    Profile.objects.filter(id=reception.id).delete()
    session.sign_out()
    assert session.identity is None


def test_close_releases_every_subscription(session, channel, context, admin):
    session.sign_in(admin.id)
    context.set_current_sector(CARDIO)
    make_doctor('Drª Carla')
    professionals = session.professionals()
    daily = session.daily_map()
    assert [p.name for p in professionals.items] == ['Drª Carla']
    assert len(channel.active_subscriptions()) == 4
    assert daily.allocations.listener_count == 1

    session.close()
    assert channel.active_subscriptions() == []
    assert context.listener_count == 0
    assert daily.allocations.listener_count == 0


def test_daily_map_resolves_doctor_names(session, context, reception):
    session.sign_in(reception.id)
    context.set_current_sector(CDU)
    ana = make_doctor('Drª Ana', sector=OFTALMO)
    daily = session.daily_map(DAY)
    daily.rooms.save_room('Sala 1')
    room_id = daily.rooms.items[0].id

    daily.guard.assign(room_id, ana.id, 'morning')
    slot = daily.guard.lookup(room_id, 'morning')
    assert daily.doctor_name(slot.doctor_id) == 'Drª Ana'
    assert daily.doctor_name('nobody') == ''

import datetime

import pytest

from portal.constants import ROLE_DOCTOR, ROLE_RECEPTION
from portal.models import Profile, Room
from portal.services import tables
from portal.sync import ClientState, Identity, OrmDataStore, SectorContext, SignalChangeChannel
from portal.sync.mapping import compose_role_display

CDU = 'CDU - CENTRO DE DIAGNÓSTICO UNIMED'
OFTALMO = '9º Andar ( OFTALMOLOGIA )'
CARDIO = '8º Andar ( CLÍNICA MÉDICA / CARDIOLOGIA )'
DAY = datetime.date(2024, 1, 10)


def identity_of(profile: Profile) -> Identity:
    return Identity.from_row(tables.serialize(tables.get_table('profiles'), profile))


def make_doctor(name, specialty='Cardiologia', sector=CARDIO, **extra) -> Profile:
    return Profile.objects.create(
        name=name, role=ROLE_DOCTOR, specialty=compose_role_display(specialty, sector), **extra
    )


def make_room(name, sector=CDU, order=0, extension='') -> Room:
    return Room.objects.create(name=name, sector=sector, order=order, extension=extension)


@pytest.fixture
def store():
    return OrmDataStore()


@pytest.fixture
def channel():
    ch = SignalChangeChannel()
    yield ch
    ch.close()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def context(tmp_path):
    return SectorContext(ClientState(tmp_path / 'client.json'))


@pytest.fixture
def admin(db):
    return Profile.objects.create(name='Admin', role=ROLE_RECEPTION, specialty='Recepção', is_admin=True)


@pytest.fixture
def reception(db):
    return Profile.objects.create(name='Recepção 9', role=ROLE_RECEPTION, specialty='Recepção')


@pytest.fixture
def doctor(db):
    return make_doctor('Drº Paulo Reis')


@pytest.fixture
def admin_context(context, admin):
    context.sign_in(identity_of(admin))
    return context

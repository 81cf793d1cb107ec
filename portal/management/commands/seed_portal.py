"""
Management command to populate the database with sample portal data.
"""
from django.core.management.base import BaseCommand
from django.utils import timezone
from rest_framework.authtoken.models import Token

from portal.constants import (
    GENDER_FEMALE,
    GENDER_MALE,
    ROLE_DOCTOR,
    ROLE_RECEPTION,
    SECTOR_OPTIONS,
    SHIFT_AFTERNOON,
    SHIFT_MORNING,
    STATUS_ACTIVE,
    STATUS_VACATION,
)
from portal.models import Profile, Room, RoomAllocation
from portal.sync.mapping import avatar_url, compose_role_display, doctor_display_name

CDU = SECTOR_OPTIONS[0]
OFTALMO = '9º Andar ( OFTALMOLOGIA )'
CARDIO = '8º Andar ( CLÍNICA MÉDICA / CARDIOLOGIA )'

STAFF = [
    # username, name, is_admin
    ('admin', 'Administração', True),
    ('recepcao', 'Recepção Central', False),
]

DOCTORS = [
    # id, name, gender, specialty, sector, status
    ('doc-ana', 'Ana Souza', GENDER_FEMALE, 'Oftalmologia', OFTALMO, STATUS_ACTIVE),
    ('doc-bruno', 'Bruno Lima', GENDER_MALE, 'Retina', OFTALMO, STATUS_ACTIVE),
    ('doc-carla', 'Carla Mendes', GENDER_FEMALE, 'Cardiologia', CARDIO, STATUS_ACTIVE),
    ('doc-davi', 'Davi Rocha', GENDER_MALE, 'Clínica Médica', CARDIO, STATUS_VACATION),
    ('doc-elisa', 'Elisa Prado', GENDER_FEMALE, 'Radiologia', CDU, STATUS_ACTIVE),
]

ROOMS = {
    OFTALMO: [('Consultório 901', '9010'), ('Consultório 902', '9020'), ('Exames 903', '9030')],
    CARDIO: [('Consultório 801', '8010'), ('Ecocardiograma', '8050')],
    CDU: [('Tomografia', '1100'), ('Ressonância', '1200')],
}


class Command(BaseCommand):
    help = 'Populate database with sample staff, rooms and today\'s room map'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='123456', help='password for the staff logins')
        parser.add_argument('--no-allocations', action='store_true', help='skip today\'s allocations')

    def handle(self, *args, **options):
        self.stdout.write('Criando dados de exemplo...')
        admin = self.create_staff(options['password'])
        doctors = self.create_doctors()
        rooms = self.create_rooms()
        if not options['no_allocations']:
            self.create_allocations(rooms, doctors, admin)
        self.stdout.write(self.style.SUCCESS('Dados de exemplo criados!'))

    def create_staff(self, password):
        admin = None
        for username, name, is_admin in STAFF:
            user, created = Profile.objects.get_or_create(
                username=username,
                defaults={
                    'name': name,
                    'role': ROLE_RECEPTION,
                    'specialty': 'Recepção',
                    'is_admin': is_admin,
                    'avatar': avatar_url(name, ROLE_RECEPTION),
                },
            )
            if created:
                user.set_password(password)
                user.save(update_fields=['password'])
            token, _ = Token.objects.get_or_create(user=user)
            self.stdout.write(f'Usuário: {username} (token {token.key})')
            if is_admin:
                admin = user
        return admin

    def create_doctors(self):
        doctors = {}
        for pk, name, gender, specialty, sector, status in DOCTORS:
            display = doctor_display_name(name, gender)
            doctor, _ = Profile.objects.get_or_create(
                id=pk,
                defaults={
                    'name': display,
                    'role': ROLE_DOCTOR,
                    'gender': gender,
                    'specialty': compose_role_display(specialty, sector),
                    'status': status,
                    'avatar': avatar_url(display, ROLE_DOCTOR),
                },
            )
            doctors.setdefault(sector, []).append(doctor)
            self.stdout.write(f'Médico: {doctor.name} -> {sector}')
        return doctors

    def create_rooms(self):
        rooms = {}
        for sector, entries in ROOMS.items():
            for order, (name, extension) in enumerate(entries):
                room, _ = Room.objects.get_or_create(
                    sector=sector, name=name,
                    defaults={'extension': extension, 'order': order},
                )
                rooms.setdefault(sector, []).append(room)
            self.stdout.write(f'Setor {sector}: {len(entries)} salas')
        return rooms

    def create_allocations(self, rooms, doctors, admin):
        today = timezone.localdate()
        count = 0
        for sector, sector_rooms in rooms.items():
            staff = doctors.get(sector) or []
            if not staff:
                continue
            for i, room in enumerate(sector_rooms):
                for j, shift in enumerate((SHIFT_MORNING, SHIFT_AFTERNOON)):
                    doctor = staff[(i + j) % len(staff)]
                    RoomAllocation.objects.update_or_create(
                        room=room, date=today, shift=shift,
                        defaults={'doctor': doctor, 'created_by': admin},
                    )
                    count += 1
        self.stdout.write(f'Alocações de {today.isoformat()}: {count}')

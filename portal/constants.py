"""
Fixed enumerations shared by the models, the REST surface and the sync layer.

Sector labels double as the scoping key for rooms and professionals, so the
exact strings (accents and spacing included) matter: they are stored as-is.
"""
from __future__ import annotations

SECTOR_OPTIONS: tuple[str, ...] = (
    '10º Andar ( CENTRO CIRÚRGICO )',
    '9º Andar ( OFTALMOLOGIA )',
    '8º Andar ( CLÍNICA MÉDICA / CARDIOLOGIA )',
    '7º Andar ( PEDIATRIA / OTORRINO )',
    '6º Andar ( GINECOLOGIA / OBSTETRÍCIA )',
    '5º Andar ( ORTOPEDIA / VASCULAR )',
    '4º Andar ( ESP CIRÚRGICAS / DERMATOLOGIA )',
    '3º Andar ( SARA )',
    '2º Andar ( PSIQUISTRIA )',
    'CDU - CENTRO DE DIAGNÓSTICO UNIMED',
    'Térreo ( RECEPÇÃO / TRIAGEM )',
)
SECTOR_CHOICES = [(s, s) for s in SECTOR_OPTIONS]
DEFAULT_SECTOR = '9º Andar ( OFTALMOLOGIA )'

MEDICAL_SPECIALTIES: tuple[str, ...] = tuple(sorted([
    'Alergia e Imunologia',
    'Anestesiologia',
    'Angiologia',
    'Cardiologia',
    'Cirurgia Cardiovascular',
    'Cirurgia da Mão',
    'Cirurgia de Cabeça e Pescoço',
    'Cirurgia do Aparelho Digestivo',
    'Cirurgia Geral',
    'Cirurgia Pediátrica',
    'Cirurgia Plástica',
    'Cirurgia Torácica',
    'Cirurgia Vascular',
    'Clínica Médica',
    'Coloproctologia',
    'Dermatologia',
    'Endocrinologia e Metabologia',
    'Endoscopia',
    'Gastroenterologia',
    'Genética Médica',
    'Geriatria',
    'Ginecologia e Obstetrícia',
    'Hematologia e Hemoterapia',
    'Homeopatia',
    'Infectologia',
    'Mastologia',
    'Medicina de Emergência',
    'Medicina do Trabalho',
    'Medicina de Tráfego',
    'Medicina Esportiva',
    'Medicina Física e Reabilitação',
    'Medicina Intensiva',
    'Medicina Legal e Perícia Médica',
    'Medicina Nuclear',
    'Medicina Preventiva e Social',
    'Nefrologia',
    'Neurocirurgia',
    'Neurologia',
    'Nutrologia',
    'Oftalmologia',
    'Oncologia Clínica',
    'Ortopedia e Traumatologia',
    'Otorrinolaringologia',
    'Patologia',
    'Patologia Clínica/Medicina Laboratorial',
    'Pediatria',
    'Pneumologia',
    'Psiquiatria',
    'Radiologia e Diagnóstico por Imagem',
    'Radioterapia',
    'Reumatologia',
    'Urologia',
]))

ROLE_DOCTOR = 'doctor'
ROLE_RECEPTION = 'reception'
ROLE_CHOICES = [
    (ROLE_DOCTOR, 'Doctor'),
    (ROLE_RECEPTION, 'Reception'),
]

STATUS_ACTIVE = 'active'
STATUS_INACTIVE = 'inactive'
STATUS_VACATION = 'vacation'
STATUS_ONLINE = 'online'
STATUS_OFFLINE = 'offline'
STATUS_CHOICES = [
    (STATUS_ACTIVE, 'Active'),
    (STATUS_INACTIVE, 'Inactive'),
    (STATUS_VACATION, 'Vacation'),
    (STATUS_ONLINE, 'Online'),
    (STATUS_OFFLINE, 'Offline'),
]
PROFESSIONAL_STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE, STATUS_VACATION)
PRESENCE_STATUSES = (STATUS_ONLINE, STATUS_OFFLINE)

GENDER_MALE = 'male'
GENDER_FEMALE = 'female'
GENDER_CHOICES = [
    (GENDER_MALE, 'Male'),
    (GENDER_FEMALE, 'Female'),
]

SHIFT_MORNING = 'morning'
SHIFT_AFTERNOON = 'afternoon'
SHIFTS = (SHIFT_MORNING, SHIFT_AFTERNOON)
SHIFT_CHOICES = [
    (SHIFT_MORNING, 'Manhã'),
    (SHIFT_AFTERNOON, 'Tarde'),
]

# "<specialty> | <sector>" is how doctor profiles store both values in
# the single ``specialty`` column.
ROLE_DISPLAY_DELIMITER = ' | '

# Client-side storage key for the last selected sector.
SELECTED_SECTOR_KEY = 'mediportal_selected_floor'

TABLE_PROFILES = 'profiles'
TABLE_ROOMS = 'rooms'
TABLE_ROOM_ALLOCATIONS = 'room_allocations'
TABLES = (TABLE_PROFILES, TABLE_ROOMS, TABLE_ROOM_ALLOCATIONS)

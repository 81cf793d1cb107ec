"""
Row → entity mapping for the portal pages.

Doctors keep specialty and sector in one column, ``"<specialty> |
<sector>"``; :func:`split_role_display` and :func:`compose_role_display`
are the only places that know the delimiter.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

from django.conf import settings

from ..constants import (
    GENDER_FEMALE,
    GENDER_MALE,
    ROLE_DISPLAY_DELIMITER,
    ROLE_DOCTOR,
    ROLE_RECEPTION,
    STATUS_ACTIVE,
    STATUS_OFFLINE,
)

UNNAMED = 'Sem Nome'
DEFAULT_SPECIALTY = 'Médico'
RECEPTION_LABEL = 'Recepção'

_TITLE_RE = re.compile(r'^(dr|dra|dr\.|dra\.|drº|drª)\s+', re.IGNORECASE)


def split_role_display(value: Optional[str]) -> tuple[str, str]:
    """``"Cardiologia | 8º Andar"`` → ``("Cardiologia", "8º Andar")``.

    Without the delimiter the whole value is the specialty and the
    sector is empty.
    """
    parts = (value or '').split(ROLE_DISPLAY_DELIMITER)
    specialty = parts[0].strip()
    sector = parts[1].strip() if len(parts) > 1 else ''
    return specialty, sector


def compose_role_display(specialty: str, sector: str) -> str:
    return f'{(specialty or "").strip()}{ROLE_DISPLAY_DELIMITER}{(sector or "").strip()}'


def strip_title(name: str) -> str:
    return _TITLE_RE.sub('', name or '').strip()


def doctor_display_name(name: str, gender: str) -> str:
    title = 'Drª' if gender == GENDER_FEMALE else 'Drº'
    return f'{title} {strip_title(name)}'


def avatar_url(name: str, role: str) -> str:
    background = 'f97316' if role == ROLE_RECEPTION else '10605B'
    return settings.PORTAL_AVATAR_URL.format(name=quote(name or ''), background=background)


def initials(name: str) -> str:
    parts = strip_title(name).split()
    if not parts:
        return ''
    if len(parts) == 1:
        return parts[0][:2].upper()
    return (parts[0][0] + parts[-1][0]).upper()


@dataclass(frozen=True)
class ProfileEntity:
    id: str
    name: str
    role: str
    specialty: str
    sector: str
    role_display: str
    phone: str
    avatar: str
    status: str
    is_admin: bool
    gender: str
    email: str

    @property
    def is_doctor(self) -> bool:
        return self.role == ROLE_DOCTOR


def map_profile_row(row: dict[str, Any], *, default_status: str = STATUS_OFFLINE) -> ProfileEntity:
    role = row.get('role') or ROLE_RECEPTION
    raw = row.get('specialty') or ''
    if role == ROLE_DOCTOR:
        specialty, sector = split_role_display(raw)
        specialty = specialty or DEFAULT_SPECIALTY
    else:
        specialty, sector = raw, ''
    role_display = raw or (RECEPTION_LABEL if role == ROLE_RECEPTION else DEFAULT_SPECIALTY)
    return ProfileEntity(
        id=str(row['id']),
        name=row.get('name') or UNNAMED,
        role=role,
        specialty=specialty,
        sector=sector,
        role_display=role_display,
        phone=row.get('phone') or '',
        avatar=row.get('avatar') or '',
        status=row.get('status') or default_status,
        is_admin=bool(row.get('is_admin')),
        gender=row.get('gender') or GENDER_MALE,
        email=row.get('email') or '',
    )


def map_professional_row(row: dict[str, Any]) -> ProfileEntity:
    return map_profile_row(row, default_status=STATUS_ACTIVE)


@dataclass(frozen=True)
class RoomEntity:
    id: str
    name: str
    extension: str
    sector: str
    order: int


def map_room_row(row: dict[str, Any]) -> RoomEntity:
    return RoomEntity(
        id=str(row['id']),
        name=row.get('name') or '',
        extension=row.get('extension') or '',
        sector=row.get('sector') or '',
        order=int(row.get('order') or 0),
    )


@dataclass(frozen=True)
class AllocationEntity:
    id: Any
    room_id: str
    doctor_id: str
    date: str
    shift: str
    created_by: Optional[str]

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.room_id, self.date, self.shift)


def map_allocation_row(row: dict[str, Any]) -> AllocationEntity:
    return AllocationEntity(
        id=row.get('id'),
        room_id=str(row['room_id']),
        doctor_id=str(row['doctor_id']),
        date=str(row['date']),
        shift=row['shift'],
        created_by=str(row['created_by']) if row.get('created_by') else None,
    )

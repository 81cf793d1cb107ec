"""
Per-sector daily overview: which doctor sits in which room and shift.
"""
from __future__ import annotations

import datetime
from collections import defaultdict

from ..constants import SHIFT_AFTERNOON, SHIFT_MORNING, SHIFTS
from ..models import Room, RoomAllocation


def sector_summary(sector: str, day: datetime.date) -> dict:
    rooms = list(Room.objects.filter(sector=sector).order_by('order', 'created_at', 'pk'))
    allocations = list(
        RoomAllocation.objects.filter(room__in=rooms, date=day).select_related('doctor')
    )
    slots: dict[str, dict[str, str]] = defaultdict(dict)
    doctors: dict[str, set] = {shift: set() for shift in SHIFTS}
    for alloc in allocations:
        slots[alloc.room_id][alloc.shift] = alloc.doctor.name
        doctors[alloc.shift].add(alloc.doctor_id)

    return {
        'sector': sector,
        'date': day.isoformat(),
        'rooms': len(rooms),
        'morningDoctors': len(doctors[SHIFT_MORNING]),
        'afternoonDoctors': len(doctors[SHIFT_AFTERNOON]),
        'occupiedSlots': len(allocations),
        'freeSlots': len(rooms) * len(SHIFTS) - len(allocations),
        'schedule': [
            {
                'roomId': room.id,
                'name': room.name,
                'extension': room.extension,
                'morning': slots[room.id].get(SHIFT_MORNING),
                'afternoon': slots[room.id].get(SHIFT_AFTERNOON),
            }
            for room in rooms
        ],
    }

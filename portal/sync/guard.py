"""
Allocation Conflict Guard.

A (room, date, shift) slot holds at most one doctor.  Assigning a doctor
to an occupied slot replaces the previous assignment (last writer wins);
the store's unique constraint is what enforces this across clients, the
guard only builds the upsert and keeps a per-slot index of the
currently listed allocations.
"""
from __future__ import annotations

import datetime
import enum
import logging
from typing import Optional

from ..constants import SHIFTS
from .errors import PermissionDenied, ValidationError
from .mapping import AllocationEntity, map_allocation_row
from .synchronizer import AllocationSynchronizer

logger = logging.getLogger(__name__)

CONFLICT_KEYS = ('room_id', 'date', 'shift')


class SlotState(str, enum.Enum):
    EMPTY = 'empty'
    ASSIGNED = 'assigned'


class AllocationGuard:

    def __init__(self, allocations: AllocationSynchronizer) -> None:
        self.allocations = allocations
        self._index: dict[tuple[str, str], AllocationEntity] = {}
        self._unlisten = allocations.listen(self._reindex)
        self._reindex(allocations)

    def close(self) -> None:
        self._unlisten()

    def _reindex(self, allocations: AllocationSynchronizer) -> None:
        self._index = {(a.room_id, a.shift): a for a in allocations.items}

    def _require_editor(self) -> str:
        identity = self.allocations.context.get_current_identity()
        if identity is None or not identity.can_edit_schedule:
            exc = PermissionDenied()
            self.allocations.notify(exc.message)
            raise exc
        return identity.id

    @staticmethod
    def _check_shift(shift: str) -> None:
        if shift not in SHIFTS:
            raise ValidationError('Turno inválido.', detail=repr(shift))

    def assign(self, room_id: str, doctor_id: str, shift: str, day: Optional[datetime.date] = None,
               created_by: Optional[str] = None) -> AllocationEntity:
        """Put ``doctor_id`` in the slot, replacing whoever held it."""
        self._check_shift(shift)
        if not room_id or not doctor_id:
            raise ValidationError('Sala e médico são obrigatórios.')
        editor = self._require_editor()
        day = day or self.allocations.day
        previous = self.lookup(room_id, shift) if day == self.allocations.day else None
        if previous is not None and previous.doctor_id != str(doctor_id):
            logger.info("Replacing %s in room %s %s %s", previous.doctor_id, room_id, day, shift)
        row = self.allocations.upsert({
            'room_id': str(room_id),
            'doctor_id': str(doctor_id),
            'date': day.isoformat(),
            'shift': shift,
            'created_by': created_by or editor,
        }, CONFLICT_KEYS)
        return map_allocation_row(row)

    def clear(self, room_id: str, shift: str, day: Optional[datetime.date] = None) -> int:
        """Empty the slot; clearing an empty slot is a no-op returning 0."""
        self._check_shift(shift)
        self._require_editor()
        day = day or self.allocations.day
        return self.allocations.delete_where({'room_id': str(room_id), 'date': day.isoformat(), 'shift': shift})

    def lookup(self, room_id: str, shift: str) -> Optional[AllocationEntity]:
        return self._index.get((str(room_id), shift))

    def slot_state(self, room_id: str, shift: str) -> SlotState:
        return SlotState.ASSIGNED if self.lookup(room_id, shift) else SlotState.EMPTY

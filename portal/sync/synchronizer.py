"""
Entity Synchronizers: cached, self-refreshing views of one table.

A synchronizer owns an immutable snapshot (a tuple of entities) of the
rows matching its scope, e.g. "rooms of the selected sector" or "doctor
profiles".  It re-fetches the whole scoped collection whenever

* the change channel reports any write to its table,
* its scope changes (sector switch, date switch, new room set), or
* it performed a write itself.

Snapshots are replaced wholesale, never patched.  Remote failures are
logged and reported through ``notify`` as a short message; the previous
snapshot stays available.  Failures of notification-driven refreshes
stop there, failures of calls made by a page are also re-raised so the
page can react.
"""
from __future__ import annotations

import datetime
import logging
import uuid
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from django.utils import timezone

from ..constants import (
    PRESENCE_STATUSES,
    PROFESSIONAL_STATUSES,
    ROLE_CHOICES,
    ROLE_DOCTOR,
    SECTOR_OPTIONS,
    STATUS_ACTIVE,
    TABLE_PROFILES,
    TABLE_ROOM_ALLOCATIONS,
    TABLE_ROOMS,
)
from .channel import ChangeChannel, ChangeEvent, Subscription
from .context import CHANGE_SECTOR, Identity, SectorContext
from .errors import PermissionDenied, SelfActionError, SyncError, ValidationError
from .gateway import DataStore, InFilter, Row
from .mapping import (
    AllocationEntity,
    ProfileEntity,
    RoomEntity,
    avatar_url,
    compose_role_display,
    doctor_display_name,
    map_allocation_row,
    map_professional_row,
    map_profile_row,
    map_room_row,
)

logger = logging.getLogger(__name__)

E = TypeVar('E')
Notifier = Callable[[str], None]
SnapshotListener = Callable[['EntitySynchronizer'], None]


def _log_notice(message: str) -> None:
    logger.info("notice: %s", message)


class EntitySynchronizer(Generic[E]):
    table: str = ''
    # Re-scope when the context's sector changes.
    follows_sector: bool = False

    def __init__(self, store: DataStore, channel: ChangeChannel, context: SectorContext, *,
                 notify: Optional[Notifier] = None) -> None:
        self.store = store
        self.channel = channel
        self.context = context
        self.notify = notify or _log_notice
        self.last_error: Optional[SyncError] = None
        self.fetch_count = 0
        self._items: tuple[E, ...] = ()
        self._subscription: Optional[Subscription] = None
        self._unsubscribe_context: Optional[Callable[[], None]] = None
        self._listeners: list[SnapshotListener] = []
        self._started = False

    # -- scope hooks ---------------------------------------------------------

    def scope(self) -> dict[str, Any]:
        return {}

    def scope_in(self) -> Optional[InFilter]:
        return None

    def channel_filter(self) -> Optional[dict[str, Any]]:
        return None

    def order_by(self) -> Optional[Iterable[str]]:
        return None

    def map_row(self, row: Row) -> E:
        raise NotImplementedError

    def keep(self, entity: E) -> bool:
        return True

    # -- snapshot ------------------------------------------------------------

    @property
    def items(self) -> tuple[E, ...]:
        return self._items

    @property
    def started(self) -> bool:
        return self._started

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def get(self, entity_id: Any) -> Optional[E]:
        for item in self._items:
            if getattr(item, 'id', None) == entity_id:
                return item
        return None

    def listen(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener(self)`` whenever a new snapshot lands."""
        self._listeners.append(listener)

        def unlisten() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unlisten

    def _replace(self, items: tuple[E, ...]) -> None:
        self._items = items
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Snapshot listener failed for %s", self.table)

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> 'EntitySynchronizer[E]':
        if self._started:
            return self
        self._started = True
        self._unsubscribe_context = self.context.subscribe(self._on_context_change)
        self._resubscribe()
        self.refresh()
        return self

    def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        self.channel.unsubscribe(self._subscription)
        self._subscription = None
        if self._unsubscribe_context is not None:
            self._unsubscribe_context()
            self._unsubscribe_context = None

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _resubscribe(self) -> None:
        self.channel.unsubscribe(self._subscription)
        self._subscription = self.channel.subscribe(self.table, self._on_change, self.channel_filter())

    def rescope(self) -> None:
        """Drop the current snapshot and rebuild it for the new scope."""
        if self._started:
            self._resubscribe()
        self._replace(())
        if self._started:
            self.refresh()

    def _on_context_change(self, context: SectorContext, change: str) -> None:
        if change == CHANGE_SECTOR and self.follows_sector:
            self.rescope()

    def _on_change(self, event: ChangeEvent) -> None:
        logger.debug("%s %s: refreshing %s", event.table, event.op, type(self).__name__)
        self.refresh()

    # -- reads ---------------------------------------------------------------

    def load(self) -> list[Row]:
        return self.store.select(self.table, self.scope(), in_=self.scope_in(), order_by=self.order_by())

    def fetch(self) -> tuple[E, ...]:
        """Fetch the scoped collection and install it as the new snapshot."""
        try:
            rows = self.load()
        except SyncError as exc:
            self._fail(exc, 'fetch')
            raise
        items = tuple(entity for entity in map(self.map_row, rows) if self.keep(entity))
        self.last_error = None
        self.fetch_count += 1
        self._replace(items)
        return items

    def refresh(self) -> bool:
        """Like :meth:`fetch` but failures are only logged and notified."""
        try:
            self.fetch()
        except SyncError:
            return False
        return True

    def _fail(self, exc: SyncError, action: str) -> None:
        self.last_error = exc
        logger.warning("%s %s failed: %s", type(self).__name__, action, exc)
        self.notify(exc.message)

    # -- writes --------------------------------------------------------------

    def _write(self, action: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            result = fn(*args)
        except SyncError as exc:
            self._fail(exc, action)
            raise
        self.refresh()
        return result

    def create(self, values: Row) -> Row:
        return self._write('create', self.store.insert, self.table, values)

    def update(self, entity_id: Any, patch: Row) -> Row:
        return self._write('update', self.store.update, self.table, entity_id, patch)

    def delete(self, entity_id: Any) -> int:
        return self._write('delete', self.store.delete, self.table, {'id': entity_id})

    def delete_where(self, filters: dict[str, Any]) -> int:
        return self._write('delete', self.store.delete, self.table, filters)

    def upsert(self, values: Row, conflict_keys: Iterable[str]) -> Row:
        return self._write('upsert', self.store.upsert, self.table, values, tuple(conflict_keys))

    # -- shared guards -------------------------------------------------------

    def _identity(self) -> Identity:
        identity = self.context.get_current_identity()
        if identity is None:
            raise PermissionDenied('Sessão expirada. Entre novamente.')
        return identity

    def _reject(self, exc: SyncError) -> None:
        logger.info("%s rejected: %s", type(self).__name__, exc)
        self.notify(exc.message)
        raise exc


class ProfileSynchronizer(EntitySynchronizer[ProfileEntity]):
    """Staff profiles, optionally restricted to one role.

    ``role="doctor"`` is the professionals listing (status defaults to
    ``active``); without a role every profile is listed and a missing
    status reads as ``offline``.  ``sector_scoped`` additionally keeps
    only doctors of the selected sector.
    """
    table = TABLE_PROFILES

    def __init__(self, store, channel, context, *, role: Optional[str] = None,
                 sector_scoped: bool = False, notify: Optional[Notifier] = None) -> None:
        super().__init__(store, channel, context, notify=notify)
        self.role = role
        self.sector_scoped = sector_scoped
        self.follows_sector = sector_scoped

    # Table-wide subscription: a profile leaving ``role`` only shows up as
    # an event carrying its new role.
    def scope(self):
        return {'role': self.role} if self.role else {}

    def map_row(self, row):
        if self.role == ROLE_DOCTOR:
            return map_professional_row(row)
        return map_profile_row(row)

    def keep(self, entity):
        if not self.sector_scoped:
            return True
        return entity.is_doctor and entity.sector == self.context.get_current_sector()

    # -- administrator paths -------------------------------------------------

    def _check_target(self, target_id: str) -> Identity:
        identity = self._identity()
        if str(target_id) == identity.id:
            self._reject(SelfActionError())
        if not identity.is_admin:
            self._reject(PermissionDenied())
        return identity

    def set_admin(self, target_id: str, is_admin: bool) -> Row:
        self._check_target(target_id)
        return self.update(target_id, {'is_admin': bool(is_admin)})

    def remove(self, target_id: str) -> int:
        """Delete a profile; this also ends that identity's sign-in."""
        self._check_target(target_id)
        return self.delete(target_id)

    def save_profile(self, values: Row, profile_id: Optional[str] = None) -> Row:
        """Create or edit any staff member (users administration)."""
        identity = self._identity()
        if not identity.is_admin:
            self._reject(PermissionDenied())
        name = (values.get('name') or '').strip()
        role_display = (values.get('specialty') or values.get('role_display') or '').strip()
        if not name or not role_display:
            self._reject(ValidationError('Nome e Setor/Especialidade são obrigatórios.'))
        role = values.get('role') or 'reception'
        if role not in dict(ROLE_CHOICES):
            self._reject(ValidationError('Função inválida.', detail=role))
        if profile_id is not None and str(profile_id) == identity.id \
                and 'is_admin' in values and bool(values['is_admin']) != identity.is_admin:
            self._reject(SelfActionError())

        data = {
            'name': name,
            'phone': values.get('phone') or '',
            'role': role,
            'specialty': role_display,
            'email': values.get('email') or '',
            'gender': values.get('gender') or 'male',
            'avatar': avatar_url(name, role),
        }
        if 'is_admin' in values:
            data['is_admin'] = bool(values['is_admin'])
        if profile_id is not None:
            return self.update(profile_id, data)
        return self.create({**data, 'id': str(uuid.uuid4())})

    def save_professional(self, *, name: str, specialty: str, sector: str, phone: str = '',
                          gender: str = 'male', status: str = STATUS_ACTIVE,
                          profile_id: Optional[str] = None) -> Row:
        """Create or edit a doctor; sector is stored inside ``specialty``."""
        identity = self._identity()
        if not identity.is_admin:
            self._reject(PermissionDenied())
        if not (name or '').strip():
            self._reject(ValidationError('Nome é obrigatório.'))
        if sector not in SECTOR_OPTIONS:
            self._reject(ValidationError('Setor inválido.', detail=sector))
        if status not in PROFESSIONAL_STATUSES:
            self._reject(ValidationError('Status inválido.', detail=status))
        data = {
            'name': doctor_display_name(name, gender),
            'specialty': compose_role_display(specialty, sector),
            'phone': phone or '',
            'gender': gender,
            'status': status,
            'role': ROLE_DOCTOR,
        }
        if profile_id is not None:
            return self.update(profile_id, data)
        return self.create({**data, 'id': str(uuid.uuid4())})

    def set_own_status(self, status: str) -> Row:
        identity = self._identity()
        if status not in PRESENCE_STATUSES + PROFESSIONAL_STATUSES:
            self._reject(ValidationError('Status inválido.', detail=status))
        return self.update(identity.id, {'status': status})


class RoomSynchronizer(EntitySynchronizer[RoomEntity]):
    """Rooms of the selected sector, by ``order`` then insertion."""
    table = TABLE_ROOMS
    follows_sector = True

    def scope(self):
        return {'sector': self.context.get_current_sector()}

    def order_by(self):
        return ('order',)

    def map_row(self, row):
        return map_room_row(row)

    def keep(self, entity):
        return entity.sector == self.context.get_current_sector()

    def _require_editor(self) -> Identity:
        identity = self._identity()
        if not identity.can_edit_schedule:
            self._reject(PermissionDenied())
        return identity

    def save_room(self, name: str, extension: str = '', room_id: Optional[str] = None) -> Row:
        self._require_editor()
        name = (name or '').strip()
        if not name:
            self._reject(ValidationError('Nome da sala é obrigatório.'))
        if room_id is not None:
            return self.update(room_id, {'name': name, 'extension': extension or ''})
        return self.create({
            'name': name,
            'extension': extension or '',
            'sector': self.context.get_current_sector(),
            'order': len(self._items),
        })

    def delete_room(self, room_id: str) -> int:
        """Delete a room together with its allocations."""
        self._require_editor()
        return self.delete(room_id)


class AllocationSynchronizer(EntitySynchronizer[AllocationEntity]):
    """Allocations of one day for the rooms currently listed by ``rooms``."""
    table = TABLE_ROOM_ALLOCATIONS

    def __init__(self, store, channel, context, rooms: RoomSynchronizer, *,
                 day: Optional[datetime.date] = None, notify: Optional[Notifier] = None) -> None:
        super().__init__(store, channel, context, notify=notify)
        self.rooms = rooms
        self.day = day or timezone.localdate()
        self._room_ids: tuple[str, ...] = tuple(r.id for r in rooms.items)
        self._unlisten_rooms: Optional[Callable[[], None]] = None

    @property
    def date_key(self) -> str:
        return self.day.isoformat()

    def scope(self):
        return {'date': self.date_key}

    def scope_in(self):
        return ('room_id', self._room_ids)

    def channel_filter(self):
        return {'date': self.date_key}

    def map_row(self, row):
        return map_allocation_row(row)

    def keep(self, entity):
        return entity.room_id in self._room_ids and entity.date == self.date_key

    def load(self):
        if not self._room_ids:
            return []
        return super().load()

    def start(self):
        if self._unlisten_rooms is None:
            self._unlisten_rooms = self.rooms.listen(self._on_rooms)
        self._room_ids = tuple(r.id for r in self.rooms.items)
        return super().start()

    def stop(self):
        if self._unlisten_rooms is not None:
            self._unlisten_rooms()
            self._unlisten_rooms = None
        super().stop()

    def _on_rooms(self, rooms: RoomSynchronizer) -> None:
        room_ids = tuple(r.id for r in rooms.items)
        if room_ids == self._room_ids:
            return
        self._room_ids = room_ids
        self.rescope()

    def set_date(self, day: datetime.date) -> None:
        if day == self.day:
            return
        self.day = day
        self.rescope()

    def shift_date(self, days: int) -> None:
        self.set_date(self.day + datetime.timedelta(days=days))

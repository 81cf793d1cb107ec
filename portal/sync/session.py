"""
Client session: one context, one store and one channel shared by the
synchronizers a page mounts.
"""
from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from ..constants import ROLE_DOCTOR, STATUS_OFFLINE, STATUS_ONLINE, TABLE_PROFILES
from .channel import ChangeChannel, SignalChangeChannel, WebsocketChangeChannel
from .context import Identity, SectorContext
from .errors import PermissionDenied, SyncError
from .gateway import DataStore, HttpDataStore, OrmDataStore
from .guard import AllocationGuard
from .synchronizer import AllocationSynchronizer, Notifier, ProfileSynchronizer, RoomSynchronizer

logger = logging.getLogger(__name__)


class DailyMap(NamedTuple):
    rooms: RoomSynchronizer
    allocations: AllocationSynchronizer
    guard: AllocationGuard
    doctors: ProfileSynchronizer

    def doctor_name(self, doctor_id: str) -> str:
        doctor = self.doctors.get(doctor_id)
        return doctor.name if doctor else ''


class PortalSession:

    def __init__(self, store: Optional[DataStore] = None, channel: Optional[ChangeChannel] = None,
                 context: Optional[SectorContext] = None, *, notify: Optional[Notifier] = None) -> None:
        self.store = store or OrmDataStore()
        self._owns_channel = channel is None
        self.channel = channel or SignalChangeChannel()
        self.context = context or SectorContext.from_settings()
        self.notify = notify
        self._mounted: list = []
        self._guards: list[AllocationGuard] = []

    @classmethod
    def remote(cls, base_url: str, token: Optional[str] = None, *, context: Optional[SectorContext] = None,
               notify: Optional[Notifier] = None, **channel_options) -> 'PortalSession':
        """Session against another MediPortal: REST for data, websockets for changes."""
        session = cls(HttpDataStore(base_url, token), WebsocketChangeChannel(base_url, token, **channel_options),
                      context, notify=notify)
        session._owns_channel = True
        return session

    @property
    def identity(self) -> Optional[Identity]:
        return self.context.get_current_identity()

    def sign_in(self, profile_id: str) -> Identity:
        """Load the profile, mark it online and make it the acting identity."""
        rows = self.store.select(TABLE_PROFILES, {'id': str(profile_id)})
        if not rows:
            raise PermissionDenied('Perfil não encontrado.', detail=str(profile_id))
        row = self.store.update(TABLE_PROFILES, rows[0]['id'], {'status': STATUS_ONLINE})
        identity = Identity.from_row(row)
        self.context.sign_in(identity)
        logger.info("Signed in %s (%s)", identity.name, identity.role)
        return identity

    def sign_out(self) -> None:
        identity = self.identity
        if identity is None:
            return
        try:
            self.store.update(TABLE_PROFILES, identity.id, {'status': STATUS_OFFLINE})
        except SyncError:
            # the profile may already be gone; signing out still proceeds
            logger.warning("Could not mark %s offline", identity.id, exc_info=True)
        self.context.sign_out()

    def _mount(self, sync):
        self._mounted.append(sync)
        return sync.start()

    def profiles(self, *, role: Optional[str] = None, sector_scoped: bool = False) -> ProfileSynchronizer:
        return self._mount(ProfileSynchronizer(self.store, self.channel, self.context, role=role,
                                               sector_scoped=sector_scoped, notify=self.notify))

    def professionals(self) -> ProfileSynchronizer:
        return self.profiles(role=ROLE_DOCTOR, sector_scoped=True)

    def rooms(self) -> RoomSynchronizer:
        return self._mount(RoomSynchronizer(self.store, self.channel, self.context, notify=self.notify))

    def daily_map(self, day=None) -> DailyMap:
        """Rooms, allocations, guard and every doctor of the Daily Map page."""
        rooms = self.rooms()
        allocations = self._mount(AllocationSynchronizer(self.store, self.channel, self.context, rooms,
                                                         day=day, notify=self.notify))
        doctors = self.profiles(role=ROLE_DOCTOR)
        guard = AllocationGuard(allocations)
        self._guards.append(guard)
        return DailyMap(rooms, allocations, guard, doctors)

    def close(self) -> None:
        while self._guards:
            self._guards.pop().close()
        while self._mounted:
            self._mounted.pop().stop()
        if self._owns_channel:
            self.channel.close()

"""
Sector-scoped synchronization of the portal tables.

Pages mount synchronizers on a shared :class:`SectorContext`; each keeps
a snapshot of its scoped rows and refreshes it on every change
notification, scope change or own write.
"""
from .channel import ChangeChannel, ChangeEvent, SignalChangeChannel, Subscription, WebsocketChangeChannel
from .context import ClientState, Identity, SectorContext
from .errors import (
    ConstraintViolation,
    PermissionDenied,
    SelfActionError,
    SyncError,
    TransportError,
    ValidationError,
)
from .gateway import DataStore, HttpDataStore, OrmDataStore
from .guard import AllocationGuard, SlotState
from .mapping import AllocationEntity, ProfileEntity, RoomEntity
from .session import DailyMap, PortalSession
from .synchronizer import (
    AllocationSynchronizer,
    EntitySynchronizer,
    ProfileSynchronizer,
    RoomSynchronizer,
)

__all__ = [
    'AllocationEntity', 'AllocationGuard', 'AllocationSynchronizer', 'ChangeChannel', 'ChangeEvent',
    'ClientState', 'ConstraintViolation', 'DailyMap', 'DataStore', 'EntitySynchronizer', 'HttpDataStore', 'Identity',
    'OrmDataStore', 'PermissionDenied', 'PortalSession', 'ProfileEntity', 'ProfileSynchronizer',
    'RoomEntity', 'RoomSynchronizer', 'SectorContext', 'SelfActionError', 'SignalChangeChannel',
    'SlotState', 'Subscription', 'SyncError', 'TransportError', 'ValidationError', 'WebsocketChangeChannel',
]

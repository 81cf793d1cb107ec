"""
Sector Context: the client-side selection every synchronizer is scoped by.

A context holds the currently selected sector (floor) and the signed-in
identity and tells its subscribers when either changes.  Contexts are
plain objects handed to each synchronizer; tests build an isolated one
per case.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from django.conf import settings

from ..constants import (
    DEFAULT_SECTOR,
    ROLE_DOCTOR,
    ROLE_RECEPTION,
    SECTOR_OPTIONS,
    SELECTED_SECTOR_KEY,
)
from .errors import ValidationError

logger = logging.getLogger(__name__)

CHANGE_SECTOR = 'sector'
CHANGE_IDENTITY = 'identity'


@dataclass(frozen=True)
class Identity:
    id: str
    name: str
    role: str = ROLE_RECEPTION
    is_admin: bool = False
    email: str = ''
    avatar: str = ''
    specialty: str = ''
    status: Optional[str] = None

    @property
    def is_doctor(self) -> bool:
        return self.role == ROLE_DOCTOR

    @property
    def can_edit_schedule(self) -> bool:
        return not self.is_doctor

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> 'Identity':
        return cls(
            id=str(row['id']),
            name=row.get('name') or '',
            role=row.get('role') or ROLE_RECEPTION,
            is_admin=bool(row.get('is_admin')),
            email=row.get('email') or '',
            avatar=row.get('avatar') or '',
            specialty=row.get('specialty') or '',
            status=row.get('status'),
        )


class ClientState:
    """Small JSON key/value file for state that must survive a reload.

    With ``path=None`` the values only live as long as the object.
    """

    def __init__(self, path: Optional[os.PathLike | str] = None) -> None:
        self.path = Path(path) if path else None
        self._values: dict[str, Any] = {}
        if self.path and self.path.exists():
            try:
                loaded = json.loads(self.path.read_text(encoding='utf-8'))
                self._values = loaded if isinstance(loaded, dict) else {}
            except (OSError, ValueError):
                logger.warning("Ignoring unreadable client state at %s", self.path, exc_info=True)
                self._values = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + '.tmp')
        tmp.write_text(json.dumps(self._values, ensure_ascii=False), encoding='utf-8')
        os.replace(tmp, self.path)


ContextListener = Callable[['SectorContext', str], None]


class SectorContext:
    """Current sector plus current identity, with change notification."""

    def __init__(self, state: Optional[ClientState] = None, *, default_sector: Optional[str] = None) -> None:
        self._state = state if state is not None else ClientState()
        default = default_sector if default_sector in SECTOR_OPTIONS else DEFAULT_SECTOR
        stored = self._state.get(SELECTED_SECTOR_KEY)
        self._sector: str = stored if stored in SECTOR_OPTIONS else default
        self._identity: Optional[Identity] = None
        self._listeners: list[ContextListener] = []

    @classmethod
    def from_settings(cls) -> 'SectorContext':
        path = getattr(settings, 'PORTAL_CLIENT_STATE_PATH', '') or None
        return cls(ClientState(path), default_sector=getattr(settings, 'PORTAL_DEFAULT_SECTOR', None))

    def get_current_sector(self) -> str:
        return self._sector

    def set_current_sector(self, label: str) -> None:
        if label not in SECTOR_OPTIONS:
            raise ValidationError('Setor inválido.', detail=repr(label))
        if label == self._sector:
            return
        self._sector = label
        self._state.set(SELECTED_SECTOR_KEY, label)
        logger.info("Sector switched to %s", label)
        self._notify(CHANGE_SECTOR)

    def get_current_identity(self) -> Optional[Identity]:
        return self._identity

    def sign_in(self, identity: Identity) -> None:
        self._identity = identity
        self._notify(CHANGE_IDENTITY)

    def sign_out(self) -> None:
        if self._identity is None:
            return
        self._identity = None
        self._notify(CHANGE_IDENTITY)

    def subscribe(self, listener: ContextListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self, change: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(self, change)
            except Exception:
                logger.exception("Context listener failed on %s change", change)

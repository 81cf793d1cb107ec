"""
Row-level access to the shared portal tables.

Clients see ``profiles``, ``rooms`` and ``room_allocations`` as plain
tables of rows (dicts keyed by column name) and filter them by equality
or by membership.  Both the REST surface and the in-process
:class:`portal.sync.gateway.OrmDataStore` go through these helpers so
that validation, cleaning and the allocation upsert policy live in one
place.

Bad input raises ``ValueError``, unknown rows raise ``LookupError`` and
store invariants surface as ``django.db.IntegrityError``.
"""
from __future__ import annotations

import datetime
import html
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import bleach
from django.db import IntegrityError, models, transaction

from ..constants import (
    GENDER_CHOICES,
    ROLE_CHOICES,
    ROLE_DOCTOR,
    SECTOR_OPTIONS,
    SHIFTS,
    STATUS_CHOICES,
    TABLE_PROFILES,
    TABLE_ROOM_ALLOCATIONS,
    TABLE_ROOMS,
)
from ..models import Profile, Room, RoomAllocation


@dataclass(frozen=True)
class TableInfo:
    name: str
    model: type[models.Model]
    columns: tuple[str, ...]
    writable: tuple[str, ...]
    order_by: tuple[str, ...] = ()
    # column name -> model attribute, where they differ
    attrs: dict[str, str] = field(default_factory=dict)

    def attr(self, column: str) -> str:
        return self.attrs.get(column, column)


TABLES: dict[str, TableInfo] = {
    TABLE_PROFILES: TableInfo(
        name=TABLE_PROFILES,
        model=Profile,
        columns=('id', 'name', 'email', 'role', 'specialty', 'phone', 'avatar', 'status', 'gender', 'is_admin'),
        writable=('name', 'email', 'role', 'specialty', 'phone', 'avatar', 'status', 'gender', 'is_admin'),
        order_by=('name',),
    ),
    TABLE_ROOMS: TableInfo(
        name=TABLE_ROOMS,
        model=Room,
        columns=('id', 'name', 'extension', 'sector', 'order'),
        writable=('name', 'extension', 'sector', 'order'),
        order_by=('order', 'created_at'),
    ),
    TABLE_ROOM_ALLOCATIONS: TableInfo(
        name=TABLE_ROOM_ALLOCATIONS,
        model=RoomAllocation,
        columns=('id', 'room_id', 'doctor_id', 'date', 'shift', 'created_by'),
        writable=('room_id', 'doctor_id', 'date', 'shift', 'created_by'),
        order_by=('room_id', 'shift'),
        attrs={'created_by': 'created_by_id'},
    ),
}

_CHOICES = {
    'role': {c for c, _ in ROLE_CHOICES},
    'status': {c for c, _ in STATUS_CHOICES},
    'gender': {c for c, _ in GENDER_CHOICES},
    'sector': set(SECTOR_OPTIONS),
    'shift': set(SHIFTS),
}
_FREE_TEXT = ('name', 'specialty', 'phone', 'extension', 'email')


def get_table(name: str) -> TableInfo:
    try:
        return TABLES[name]
    except KeyError:
        raise LookupError(f'unknown table: {name}') from None


def table_for_model(model: type[models.Model]) -> Optional[TableInfo]:
    for info in TABLES.values():
        if info.model is model:
            return info
    return None


def serialize(info: TableInfo, instance: models.Model) -> dict[str, Any]:
    row = {}
    for column in info.columns:
        value = getattr(instance, info.attr(column))
        if isinstance(value, datetime.date):
            value = value.isoformat()
        row[column] = value
    return row


def parse_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.date.fromisoformat(str(value))
    except ValueError:
        raise ValueError(f'invalid date: {value!r}') from None


def clean_text(value: Any) -> str:
    """Strip markup from a free-text column; the result is stored as plain text."""
    stripped = bleach.clean(str(value or ''), tags=set(), strip=True)
    return html.unescape(stripped).strip()


def clean_values(info: TableInfo, values: dict[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """Keep writable columns only and validate them.

    Returns a dict keyed by model attribute.  With ``partial=False`` the
    columns a new row cannot do without are required.
    """
    unknown = set(values) - set(info.writable) - {'id'}
    if unknown:
        raise ValueError(f'unknown columns for {info.name}: {", ".join(sorted(unknown))}')

    cleaned: dict[str, Any] = {}
    for column in info.writable:
        if column not in values:
            continue
        value = values[column]
        if column in _FREE_TEXT:
            value = clean_text(value)
        elif column in _CHOICES and value is not None:
            if value not in _CHOICES[column]:
                raise ValueError(f'invalid {column}: {value!r}')
        elif column == 'date':
            value = parse_date(value)
        elif column == 'order':
            value = int(value or 0)
        elif column == 'is_admin':
            value = bool(value)
        cleaned[info.attr(column)] = value

    if not partial:
        required = {
            TABLE_PROFILES: ('name',),
            TABLE_ROOMS: ('name', 'sector'),
            TABLE_ROOM_ALLOCATIONS: ('room_id', 'doctor_id', 'date', 'shift'),
        }[info.name]
        missing = [c for c in required if not cleaned.get(info.attr(c))]
        if missing:
            raise ValueError(f'missing required columns: {", ".join(missing)}')

    if info.name == TABLE_ROOM_ALLOCATIONS:
        if cleaned.get('room_id') and not Room.objects.filter(id=cleaned['room_id']).exists():
            raise ValueError(f'unknown room: {cleaned["room_id"]}')
        if cleaned.get('doctor_id') and not Profile.objects.filter(id=cleaned['doctor_id'], role=ROLE_DOCTOR).exists():
            raise ValueError('allocations must reference a doctor profile')
        if cleaned.get('created_by_id') and not Profile.objects.filter(id=cleaned['created_by_id']).exists():
            raise ValueError(f'unknown profile: {cleaned["created_by_id"]}')
    return cleaned


def _queryset(info: TableInfo, filters: Optional[dict[str, Any]] = None,
              in_: Optional[tuple[str, Iterable[Any]]] = None):
    qs = info.model.objects.all()
    lookups: dict[str, Any] = {}
    for column, value in (filters or {}).items():
        if column not in info.columns:
            raise ValueError(f'cannot filter {info.name} on {column}')
        if column == 'date':
            value = parse_date(value)
        lookups[info.attr(column)] = value
    if in_ is not None:
        column, members = in_
        if column not in info.columns:
            raise ValueError(f'cannot filter {info.name} on {column}')
        lookups[f'{info.attr(column)}__in'] = list(members)
    return qs.filter(**lookups)


def select(table: str, filters: Optional[dict[str, Any]] = None, *,
           in_: Optional[tuple[str, Iterable[Any]]] = None,
           order_by: Optional[Iterable[str]] = None) -> list[dict[str, Any]]:
    info = get_table(table)
    qs = _queryset(info, filters, in_)
    ordering = []
    for column in order_by or ():
        if column not in info.columns:
            raise ValueError(f'cannot order {info.name} by {column}')
        ordering.append(info.attr(column))
    # table default ordering, then pk, break ties (rooms: insertion order)
    ordering += [c for c in info.order_by if c not in ordering]
    qs = qs.order_by(*ordering, 'pk')
    return [serialize(info, obj) for obj in qs]


def insert(table: str, values: dict[str, Any]) -> dict[str, Any]:
    info = get_table(table)
    cleaned = clean_values(info, values)
    if values.get('id'):
        cleaned['id'] = str(values['id'])
    obj = info.model(**cleaned)
    with transaction.atomic():
        obj.save(force_insert=True)
    return serialize(info, obj)


def update(table: str, pk: Any, values: dict[str, Any]) -> dict[str, Any]:
    info = get_table(table)
    cleaned = clean_values(info, values, partial=True)
    with transaction.atomic():
        obj = info.model.objects.select_for_update().filter(pk=pk).first()
        if obj is None:
            raise LookupError(f'{info.name} row {pk} not found')
        for attr, value in cleaned.items():
            setattr(obj, attr, value)
        obj.save()
    return serialize(info, obj)


def delete(table: str, filters: dict[str, Any]) -> int:
    """Delete matching rows and return how many were removed (0 is fine)."""
    info = get_table(table)
    if not filters:
        raise ValueError('refusing to delete without filters')
    deleted = 0
    with transaction.atomic():
        # Instance deletes so post_delete fires once per row.
        for obj in _queryset(info, filters):
            obj.delete()
            deleted += 1
    return deleted


def upsert(table: str, values: dict[str, Any], conflict_keys: Iterable[str]) -> dict[str, Any]:
    """Insert a row, or overwrite the row sharing ``conflict_keys``.

    The later write always wins; there is no version check.
    """
    info = get_table(table)
    keys = tuple(conflict_keys)
    if not keys or any(k not in info.writable for k in keys):
        raise ValueError(f'invalid conflict keys for {info.name}: {keys!r}')
    cleaned = clean_values(info, values)
    lookup = {info.attr(k): cleaned[info.attr(k)] for k in keys}

    with transaction.atomic():
        obj = info.model.objects.select_for_update().filter(**lookup).first()
        if obj is None:
            try:
                with transaction.atomic():
                    obj = info.model(**cleaned)
                    obj.save(force_insert=True)
                return serialize(info, obj)
            except IntegrityError:
                # Lost the race against a concurrent insert: overwrite it.
                obj = info.model.objects.select_for_update().filter(**lookup).first()
                if obj is None:
                    raise
        for attr, value in cleaned.items():
            setattr(obj, attr, value)
        obj.save()
    return serialize(info, obj)

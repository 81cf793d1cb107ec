"""
Row endpoints for the shared tables (``profiles``, ``rooms``,
``room_allocations``).

Query strings filter by column equality (``?sector=...``), by membership
(``?in.room_id=a,b``) and choose ordering (``?order=order``).  Every
successful response is ``{"ok": true, ...}``; failures go through
:func:`portal.exceptions.api_exception_handler`.

Write rules:

* profiles: administrators only, except that anyone may change their own
  ``status``; nobody may change their own ``is_admin`` or delete
  themselves (403 ``self_action``).
* rooms and allocations: any non-doctor (:class:`~portal.permissions.CanEditSchedule`).
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..constants import TABLE_PROFILES
from ..permissions import CanEditSchedule, SelfActionDenied
from ..services import tables

logger = logging.getLogger(__name__)

_TRUE = ('1', 'true', 'True')


def _query(request):
    """Split query params into (filters, in_, order_by)."""
    filters, in_, order_by = {}, None, None
    for key, value in request.query_params.items():
        if key == 'order':
            order_by = [c for c in value.split(',') if c]
        elif key.startswith('in.'):
            in_ = (key[3:], [v for v in value.split(',') if v])
        elif key == 'is_admin':
            filters[key] = value in _TRUE
        else:
            filters[key] = value
    return filters, in_, order_by


def _payload(data) -> dict:
    if not isinstance(data, dict):
        raise ValueError('expected a JSON object')
    return dict(data)


def _check_write(request, table, *, values=None, targets=()):
    """Raise unless ``request.user`` may write ``values`` to ``targets``."""
    user = request.user
    if table != TABLE_PROFILES:
        # rooms and allocations: CanEditSchedule
        return

    own = str(user.pk) in {str(t) for t in targets}
    if own and values is None:
        raise SelfActionDenied()
    if own and 'is_admin' in values and bool(values['is_admin']) != bool(user.is_admin):
        raise SelfActionDenied()
    if own and set(values) <= {'status'}:
        return
    if not user.is_admin:
        raise PermissionDenied('Apenas administradores podem gerenciar usuários.')


@api_view(['GET', 'POST', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditSchedule])
def table_rows(request, table):
    """List, insert or delete-by-filter rows of ``table``."""
    tables.get_table(table)
    if request.method == 'GET':
        filters, in_, order_by = _query(request)
        return Response({'ok': True, 'data': tables.select(table, filters, in_=in_, order_by=order_by)})

    if request.method == 'POST':
        values = _payload(request.data)
        _check_write(request, table, values=values)
        row = tables.insert(table, values)
        return Response({'ok': True, 'data': row}, status=status.HTTP_201_CREATED)

    filters, _, _ = _query(request)
    targets = [row['id'] for row in tables.select(table, filters)] if table == TABLE_PROFILES else ()
    _check_write(request, table, targets=targets)
    deleted = tables.delete(table, filters)
    logger.info("%s deleted %s row(s) from %s where %s", request.user.pk, deleted, table, filters)
    return Response({'ok': True, 'deleted': deleted})


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditSchedule])
def table_row(request, table, pk):
    info = tables.get_table(table)
    if request.method == 'GET':
        rows = tables.select(table, {'id': pk})
        if not rows:
            raise LookupError(f'{info.name} row {pk} not found')
        return Response({'ok': True, 'data': rows[0]})

    if request.method == 'PATCH':
        values = _payload(request.data)
        _check_write(request, table, values=values, targets=[pk])
        return Response({'ok': True, 'data': tables.update(table, pk, values)})

    _check_write(request, table, targets=[pk])
    deleted = tables.delete(table, {'id': pk})
    if not deleted:
        raise LookupError(f'{info.name} row {pk} not found')
    return Response({'ok': True, 'deleted': deleted})


@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditSchedule])
def table_upsert(request, table):
    """Insert or overwrite on ``on_conflict`` columns; the later write wins."""
    tables.get_table(table)
    body = _payload(request.data)
    values = _payload(body.get('values'))
    conflict_keys = body.get('on_conflict') or []
    if isinstance(conflict_keys, str):
        conflict_keys = [c for c in conflict_keys.split(',') if c]
    targets = [values['id']] if table == TABLE_PROFILES and values.get('id') else ()
    _check_write(request, table, values=values, targets=targets)
    return Response({'ok': True, 'data': tables.upsert(table, values, conflict_keys)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me(request):
    """The signed-in profile as a ``profiles`` row."""
    return Response({'ok': True, 'data': tables.serialize(tables.get_table(TABLE_PROFILES), request.user)})

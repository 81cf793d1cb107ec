"""
Store gateways: how the synchronization layer reads and writes tables.

:class:`OrmDataStore` talks to the database of this process through
:mod:`portal.services.tables`; :class:`HttpDataStore` talks to a remote
MediPortal over its REST surface.  Both speak rows (plain dicts keyed by
column name) and translate failures into :mod:`portal.sync.errors`.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import requests
from django.conf import settings
from django.db import DatabaseError, IntegrityError

from ..services import tables
from .errors import (
    ConstraintViolation,
    PermissionDenied,
    SelfActionError,
    SyncError,
    TransportError,
    ValidationError,
)

logger = logging.getLogger(__name__)

Row = dict[str, Any]
InFilter = tuple[str, Iterable[Any]]


class DataStore:
    """Query/write/subscribe contract of the remote data store."""

    def select(self, table: str, filters: Optional[dict[str, Any]] = None, *,
               in_: Optional[InFilter] = None, order_by: Optional[Iterable[str]] = None) -> list[Row]:
        raise NotImplementedError

    def insert(self, table: str, values: Row) -> Row:
        raise NotImplementedError

    def update(self, table: str, pk: Any, values: Row) -> Row:
        raise NotImplementedError

    def delete(self, table: str, filters: dict[str, Any]) -> int:
        raise NotImplementedError

    def upsert(self, table: str, values: Row, conflict_keys: Iterable[str]) -> Row:
        raise NotImplementedError


class OrmDataStore(DataStore):
    """Gateway backed by the Django ORM of the current process."""

    def _call(self, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ValueError as exc:
            raise ValidationError(detail=str(exc)) from exc
        except LookupError as exc:
            raise ConstraintViolation('Registro não encontrado.', detail=str(exc)) from exc
        except IntegrityError as exc:
            raise ConstraintViolation(detail=str(exc)) from exc
        except DatabaseError as exc:
            raise TransportError(detail=str(exc)) from exc

    def select(self, table, filters=None, *, in_=None, order_by=None):
        return self._call(tables.select, table, filters, in_=in_, order_by=order_by)

    def insert(self, table, values):
        return self._call(tables.insert, table, values)

    def update(self, table, pk, values):
        return self._call(tables.update, table, pk, values)

    def delete(self, table, filters):
        return self._call(tables.delete, table, filters)

    def upsert(self, table, values, conflict_keys):
        return self._call(tables.upsert, table, values, conflict_keys)


class HttpDataStore(DataStore):
    """Gateway speaking to the ``/api/<table>`` REST endpoints."""

    def __init__(self, base_url: str, token: Optional[str] = None, *,
                 timeout: Optional[int] = None, session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout or getattr(settings, 'PORTAL_HTTP_TIMEOUT', 10)
        self.session = session or requests.Session()
        if token:
            self.session.headers['Authorization'] = f'Token {token}'

    def _url(self, *parts: str) -> str:
        return '/'.join([self.base_url, 'api', *parts])

    def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(detail=str(exc)) from exc
        if resp.status_code < 400:
            return resp.json() if resp.content else None
        raise self._error_for(resp)

    @staticmethod
    def _error_for(resp) -> SyncError:
        try:
            error = (resp.json() or {}).get('error') or {}
        except ValueError:
            error = {}
        code = error.get('code')
        detail = error.get('message')
        if not isinstance(detail, str):
            detail = str(detail) if detail else resp.reason
        if resp.status_code == 400:
            return ValidationError(detail=detail)
        if resp.status_code == 403:
            if code == 'self_action':
                return SelfActionError(detail=detail)
            return PermissionDenied(detail=detail)
        if resp.status_code == 404:
            return ConstraintViolation('Registro não encontrado.', detail=detail)
        if resp.status_code == 409:
            return ConstraintViolation(detail=detail)
        return TransportError(detail=f'HTTP {resp.status_code}: {detail}')

    @staticmethod
    def _query(filters: Optional[dict[str, Any]], in_: Optional[InFilter] = None,
               order_by: Optional[Iterable[str]] = None) -> dict[str, str]:
        params = {}
        for key, value in (filters or {}).items():
            if isinstance(value, bool):
                value = 'true' if value else 'false'
            params[key] = str(value)
        if in_ is not None:
            column, members = in_
            params[f'in.{column}'] = ','.join(str(m) for m in members)
        if order_by:
            params['order'] = ','.join(order_by)
        return params

    @staticmethod
    def _data(payload: Any) -> Any:
        return (payload or {}).get('data')

    def select(self, table, filters=None, *, in_=None, order_by=None):
        return self._data(self._request('GET', self._url(table), params=self._query(filters, in_, order_by))) or []

    def insert(self, table, values):
        return self._data(self._request('POST', self._url(table), json=values))

    def update(self, table, pk, values):
        return self._data(self._request('PATCH', self._url(table, str(pk)), json=values))

    def delete(self, table, filters):
        data = self._request('DELETE', self._url(table), params=self._query(filters))
        return int((data or {}).get('deleted', 0))

    def upsert(self, table, values, conflict_keys):
        payload = {'values': values, 'on_conflict': list(conflict_keys)}
        return self._data(self._request('POST', self._url(table, 'upsert'), json=payload))

    def me(self) -> Row:
        return self._data(self._request('GET', self._url('me')))

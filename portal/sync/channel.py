"""
Change Notification Channel as seen by the synchronization layer.

A channel delivers :class:`ChangeEvent` objects to listeners that
registered for a table, optionally narrowed by equality filters on the
changed row.  :class:`SignalChangeChannel` feeds it from the
``table_changed`` signal raised after every committed write in this
process; :class:`WebsocketChangeChannel` feeds it from the
``ws/changes/<table>/`` feeds of a remote MediPortal.
"""
from __future__ import annotations

import itertools
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import websocket
from django.conf import settings

from ..realtime.events import OP_UPDATE, OPS, table_changed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    op: str
    row: dict[str, Any] = field(default_factory=dict, compare=False)

    def matches(self, filters: Optional[dict[str, Any]]) -> bool:
        if not filters:
            return True
        return all(self.row.get(key) == value for key, value in filters.items())


ChangeListener = Callable[[ChangeEvent], None]


@dataclass(eq=False)
class Subscription:
    id: int
    table: str
    listener: ChangeListener
    filters: Optional[dict[str, Any]] = None
    active: bool = True


class ChangeChannel:
    """In-process fan-out of change events to table subscriptions."""

    def __init__(self) -> None:
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    def subscribe(self, table: str, listener: ChangeListener,
                  filters: Optional[dict[str, Any]] = None) -> Subscription:
        sub = Subscription(next(self._ids), table, listener, dict(filters) if filters else None)
        self._subscriptions[sub.id] = sub
        logger.debug("Subscribed #%s to %s %s", sub.id, table, sub.filters or '')
        return sub

    def unsubscribe(self, subscription: Optional[Subscription]) -> None:
        if subscription is None:
            return
        subscription.active = False
        self._subscriptions.pop(subscription.id, None)

    def active_subscriptions(self, table: Optional[str] = None) -> list[Subscription]:
        return [s for s in self._subscriptions.values() if table is None or s.table == table]

    def publish(self, event: ChangeEvent, *, unfiltered: bool = False) -> int:
        """Deliver ``event``; returns how many listeners received it.

        ``unfiltered`` reaches every subscription of the table whatever its
        filters (server-wide refresh requests carry no row).
        """
        if event.op not in OPS:
            raise ValueError(f'unknown change operation: {event.op}')
        delivered = 0
        for sub in list(self._subscriptions.values()):
            # a listener may have unsubscribed another one meanwhile
            if not sub.active or sub.table != event.table:
                continue
            if not unfiltered and not event.matches(sub.filters):
                continue
            delivered += 1
            try:
                sub.listener(event)
            except Exception:
                logger.exception("Change listener #%s failed for %s %s", sub.id, event.table, event.op)
        return delivered

    def close(self) -> None:
        for sub in list(self._subscriptions.values()):
            self.unsubscribe(sub)


class SignalChangeChannel(ChangeChannel):
    """Channel fed by the server-side ``table_changed`` signal."""

    def __init__(self) -> None:
        super().__init__()
        table_changed.connect(self._on_table_changed, weak=False, dispatch_uid=self._uid)

    @property
    def _uid(self) -> str:
        return f'sync-channel-{id(self)}'

    def _on_table_changed(self, sender, op, row, **kwargs) -> None:
        self.publish(ChangeEvent(table=sender, op=op, row=dict(row)))

    def close(self) -> None:
        table_changed.disconnect(dispatch_uid=self._uid)
        super().close()


# close codes of ChangesConsumer that retrying cannot fix
REJECTED_CLOSE_CODES = {4000: 'bad filter', 4003: 'not authenticated', 4004: 'unknown table'}


def websocket_base(base_url: str) -> str:
    base = base_url.rstrip('/')
    if base.startswith('https://'):
        return 'wss://' + base[len('https://'):]
    if base.startswith('http://'):
        return 'ws://' + base[len('http://'):]
    return base


class WebsocketChangeChannel(ChangeChannel):
    """Channel fed by the change feeds of a remote MediPortal.

    One socket per table, opened with the first subscription to it and
    closed with the last one.  Filters are applied here against the row
    each event carries.  Sockets run ``run_forever`` in daemon threads,
    so listeners are called from those threads.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, *, retry: Optional[int] = None,
                 app_factory: Callable[..., Any] = websocket.WebSocketApp) -> None:
        super().__init__()
        self.base_url = websocket_base(base_url)
        self.headers = [f'Authorization: Token {token}'] if token else []
        self.retry = retry if retry is not None else getattr(settings, 'PORTAL_WS_RETRY', 5)
        self._app_factory = app_factory
        self._feeds: dict[str, Any] = {}
        self._lock = threading.Lock()

    def feed_url(self, table: str) -> str:
        return f'{self.base_url}/ws/changes/{table}/'

    @property
    def open_tables(self) -> list[str]:
        return sorted(self._feeds)

    def subscribe(self, table, listener, filters=None):
        sub = super().subscribe(table, listener, filters)
        self._open(table)
        return sub

    def unsubscribe(self, subscription):
        super().unsubscribe(subscription)
        if subscription is not None and not self.active_subscriptions(subscription.table):
            self._close_feed(subscription.table)

    def close(self) -> None:
        super().close()
        for table in self.open_tables:
            self._close_feed(table)

    def _open(self, table: str) -> None:
        with self._lock:
            if table in self._feeds:
                return
            app = self._app_factory(
                self.feed_url(table),
                header=self.headers,
                on_message=self._on_message,
                on_error=self._on_error,
                on_close=lambda ws, code, reason: self._on_close(table, ws, code, reason),
            )
            self._feeds[table] = app
        logger.info("Opening change feed %s", self.feed_url(table))
        thread = threading.Thread(target=app.run_forever, kwargs={'reconnect': self.retry},
                                  name=f'changes-{table}', daemon=True)
        thread.start()

    def _close_feed(self, table: str) -> None:
        with self._lock:
            app = self._feeds.pop(table, None)
        if app is not None:
            logger.info("Closing change feed %s", self.feed_url(table))
            app.close()

    def _on_message(self, ws, message: str) -> None:
        try:
            payload = json.loads(message)
        except ValueError:
            logger.warning("Ignoring malformed change frame: %r", message)
            return
        table = payload.get('table')
        kind = payload.get('type')
        if kind == 'refresh':
            self.publish(ChangeEvent(table=table, op=OP_UPDATE), unfiltered=True)
        elif kind == 'change' and payload.get('op') in OPS:
            self.publish(ChangeEvent(table=table, op=payload['op'], row=dict(payload.get('row') or {})))
        else:
            logger.warning("Ignoring change frame %r", payload)

    def _on_error(self, ws, error) -> None:
        logger.warning("Change feed error: %s", error)

    def _on_close(self, table: str, ws, code, reason) -> None:
        if code in REJECTED_CLOSE_CODES:
            logger.error("Change feed for %s refused (%s): %s", table, code, REJECTED_CLOSE_CODES[code])
        else:
            logger.info("Change feed for %s closed (%s)", table, code)
        with self._lock:
            # a later subscription opens a fresh feed
            if self._feeds.get(table) is ws:
                del self._feeds[table]

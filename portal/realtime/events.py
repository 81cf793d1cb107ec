"""
Change broadcasting for the shared portal tables.

Every committed write to ``profiles``, ``rooms`` or ``room_allocations``
ends up here.  Listeners in this process get the :data:`table_changed`
signal; websocket clients get a ``table.change`` event on the Channels
group ``changes.<table>``.  Neither carries a guaranteed diff: the safe
reaction for a client is to re-fetch its scoped collection.
"""
from __future__ import annotations

import logging
from typing import Any

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.dispatch import Signal

logger = logging.getLogger(__name__)

OP_INSERT = 'insert'
OP_UPDATE = 'update'
OP_DELETE = 'delete'
OPS = (OP_INSERT, OP_UPDATE, OP_DELETE)

# sender: table name; kwargs: op, row
table_changed = Signal()


def group_name(table: str) -> str:
    return f"changes.{table}"


def broadcast_change(table: str, op: str, row: dict[str, Any]) -> None:
    table_changed.send(sender=table, op=op, row=row)

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    event = {"type": "table.change", "table": table, "op": op, "row": row}
    try:
        async_to_sync(channel_layer.group_send)(group_name(table), event)
    except Exception:
        # The write is already committed; websocket clients catch up on
        # their next refresh.
        logger.exception("group_send failed for %s %s", table, op)

"""
Model signal receivers that turn committed writes into change events.
"""
from __future__ import annotations

from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Profile, Room, RoomAllocation
from .realtime.events import OP_DELETE, OP_INSERT, OP_UPDATE, broadcast_change
from .services.tables import serialize, table_for_model

WATCHED = (Profile, Room, RoomAllocation)


def _schedule(sender, instance, op: str) -> None:
    info = table_for_model(sender)
    if info is None:
        return
    row = serialize(info, instance)
    transaction.on_commit(partial(broadcast_change, info.name, op, row))


@receiver(post_save)
def row_saved(sender, instance, created, raw=False, **kwargs):
    if raw or sender not in WATCHED:
        return
    _schedule(sender, instance, OP_INSERT if created else OP_UPDATE)


@receiver(post_delete)
def row_deleted(sender, instance, **kwargs):
    if sender not in WATCHED:
        return
    _schedule(sender, instance, OP_DELETE)

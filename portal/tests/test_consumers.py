import json
from types import SimpleNamespace

import pytest
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser

from portal.realtime.events import group_name
from portal.realtime.routing import websocket_urlpatterns

# Consumers close stale DB connections on every dispatch (channels >= 4.2).
pytestmark = pytest.mark.django_db(transaction=True)

STAFF = SimpleNamespace(is_authenticated=True)


def communicator(path, user=STAFF):
    comm = WebsocketCommunicator(URLRouter(websocket_urlpatterns), path)
    comm.scope["user"] = user
    return comm


async def send_change(table, op, row):
    await get_channel_layer().group_send(group_name(table), {"type": "table.change", "table": table, "op": op, "row": row})


@pytest.mark.asyncio
async def test_change_events_are_forwarded():
    comm = communicator("/ws/changes/rooms/")
    connected, _ = await comm.connect()
    assert connected

    await send_change("rooms", "insert", {"id": "r1", "sector": "CDU"})
    message = json.loads(await comm.receive_from())
    assert message == {"type": "change", "table": "rooms", "op": "insert", "row": {"id": "r1", "sector": "CDU"}}
    await comm.disconnect()


@pytest.mark.asyncio
async def test_query_string_filters_rows():
    comm = communicator("/ws/changes/profiles/?role=doctor&is_admin=false")
    connected, _ = await comm.connect()
    assert connected

    await send_change("profiles", "update", {"id": "p1", "role": "reception", "is_admin": False})
    assert await comm.receive_nothing()
    await send_change("profiles", "update", {"id": "p2", "role": "doctor", "is_admin": False})
    assert json.loads(await comm.receive_from())["op"] == "update"
    await comm.disconnect()


@pytest.mark.asyncio
async def test_refresh_broadcast_is_forwarded():
    comm = communicator("/ws/changes/room_allocations/")
    await comm.connect()
    await get_channel_layer().group_send(group_name("room_allocations"), {"type": "broadcast.refresh", "table": "room_allocations", "ts": "now"})
    assert json.loads(await comm.receive_from()) == {"type": "refresh", "table": "room_allocations", "ts": "now"}
    await comm.disconnect()


@pytest.mark.asyncio
@pytest.mark.parametrize("path, user, code", [
    ("/ws/changes/patients/", STAFF, 4004),
    ("/ws/changes/rooms/", AnonymousUser(), 4003),
    ("/ws/changes/rooms/?floor=9", STAFF, 4000),
])
async def test_rejected_connections(path, user, code):
    connected, close_code = await communicator(path, user).connect()
    assert not connected
    assert close_code == code

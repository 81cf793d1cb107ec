import json
from urllib.parse import parse_qsl

from channels.generic.websocket import AsyncWebsocketConsumer

from portal.constants import TABLES
from portal.services.tables import get_table
from portal.realtime.events import group_name


class ChangesConsumer(AsyncWebsocketConsumer):
    """Pushes "something changed" events for one table.

    Clients connect to ``ws/changes/<table>/`` and may narrow the feed
    with equality filters in the query string, e.g. ``?role=doctor``.
    """

    async def connect(self):
        self.table = self.scope["url_route"]["kwargs"].get("table")
        if self.table not in TABLES:
            await self.close(code=4004)
            return

        user = self.scope.get("user")
        if not (user and user.is_authenticated):
            await self.close(code=4003)
            return

        query = self.scope.get("query_string", b"").decode()
        self.filters = dict(parse_qsl(query))
        columns = get_table(self.table).columns
        if any(key not in columns for key in self.filters):
            await self.close(code=4000)
            return

        self.group_name = group_name(self.table)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    def _matches(self, row: dict) -> bool:
        for key, expected in self.filters.items():
            value = row.get(key)
            if isinstance(value, bool):
                value = "true" if value else "false"
            if str(value) != expected:
                return False
        return True

    # event: {"type": "table.change", "table": str, "op": str, "row": {...}}
    async def table_change(self, event):
        if not self._matches(event.get("row") or {}):
            return
        await self.send(json.dumps({"type": "change", "table": event["table"], "op": event["op"], "row": event.get("row") or {}}))

    # event: {"type": "broadcast.refresh", "table": str, "ts": "..."}
    async def broadcast_refresh(self, event):
        await self.send(json.dumps({"type": "refresh", "table": self.table, "ts": event.get("ts")}))

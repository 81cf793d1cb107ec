from django.core.management.base import BaseCommand
from django.utils import timezone
from channels.layers import get_channel_layer
from asgiref.sync import async_to_sync

from portal.constants import TABLES
from portal.realtime.events import group_name


class Command(BaseCommand):
    help = "Broadcast a WebSocket refresh event so every connected client re-fetches its tables."

    def add_arguments(self, parser):
        parser.add_argument('tables', nargs='*', help='tables to refresh (default: all)')

    def handle(self, *args, **options):
        now = timezone.now()
        targets = options['tables'] or list(TABLES)
        unknown = [t for t in targets if t not in TABLES]
        if unknown:
            self.stderr.write(self.style.ERROR(f"Unknown tables: {', '.join(unknown)}"))
            return

        channel_layer = get_channel_layer()
        if channel_layer is None:
            self.stderr.write(self.style.WARNING("No channel layer configured; nothing sent"))
            return
        for table in targets:
            event = {"type": "broadcast.refresh", "table": table, "ts": now.isoformat()}
            async_to_sync(channel_layer.group_send)(group_name(table), event)

        self.stdout.write(self.style.SUCCESS(f"Refresh broadcast to {len(targets)} table(s) at {now}"))

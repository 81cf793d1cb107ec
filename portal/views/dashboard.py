"""
Sector dashboard endpoint.

Summarises the room map of one sector for one day: how many rooms, how
many distinct doctors work each shift and who sits where.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..constants import SECTOR_OPTIONS
from ..services.dashboard import sector_summary
from ..services.tables import parse_date


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def sector_dashboard(request):
    """Query params: ``sector`` (required, one of the floor labels), ``date`` (ISO, default today)."""
    sector = request.query_params.get('sector') or ''
    if sector not in SECTOR_OPTIONS:
        raise ValueError('Setor inválido.')
    raw_date = request.query_params.get('date')
    day = parse_date(raw_date) if raw_date else timezone.localdate()
    return Response({'ok': True, 'data': sector_summary(sector, day)})

"""
URL mappings for the MediPortal API.

Table endpoints take the table name from the path (``/api/rooms``);
fixed paths are listed first so they are never read as table names.
Trailing slashes are deliberately omitted.
"""
from django.urls import include, path

from .views import health
from .views.dashboard import sector_dashboard
from .views.tables import me, table_row, table_rows, table_upsert

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    path('api/me', me),
    path('api/dashboard', sector_dashboard),
    # Tables
    path('api/<str:table>', table_rows),
    path('api/<str:table>/upsert', table_upsert),
    path('api/<str:table>/<str:pk>', table_row),
]

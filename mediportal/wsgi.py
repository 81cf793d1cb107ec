"""
WSGI config for the MediPortal project.

It exposes the WSGI callable as a module-level variable named ``application``.
Realtime change notifications need the ASGI entrypoint in
:mod:`mediportal.asgi`; this one only serves the REST surface.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'mediportal.settings')

application = get_wsgi_application()

from django.urls import path

from .consumers import ChangesConsumer

websocket_urlpatterns = [
    path("ws/changes/<str:table>/", ChangesConsumer.as_asgi()),
]

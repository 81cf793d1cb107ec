"""
Token authentication for websocket clients.

Browsers reach the websocket feeds with their session cookie; remote
sync clients send the same ``Authorization: Token <key>`` header they use
for the REST surface.
"""
from channels.auth import AuthMiddlewareStack
from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from rest_framework.authtoken.models import Token


@database_sync_to_async
def user_for_token(key):
    try:
        return Token.objects.select_related("user").get(key=key).user
    except Token.DoesNotExist:
        return AnonymousUser()


class TokenAuthMiddleware(BaseMiddleware):
    """Sets ``scope["user"]`` from an ``Authorization: Token`` header, when present."""

    async def __call__(self, scope, receive, send):
        headers = dict(scope.get("headers") or [])
        auth = headers.get(b"authorization", b"").decode("latin-1")
        if auth.startswith("Token "):
            scope = dict(scope, user=await user_for_token(auth[len("Token "):].strip()))
        return await super().__call__(scope, receive, send)


def TokenAuthMiddlewareStack(inner):
    # session auth first, a token header overrides it
    return AuthMiddlewareStack(TokenAuthMiddleware(inner))

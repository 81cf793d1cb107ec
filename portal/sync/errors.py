"""
Failure taxonomy of the synchronization layer.

Every error carries a short ``message`` meant for the person using the
portal; the technical cause stays on ``__cause__`` and in the logs.
"""
from __future__ import annotations


class SyncError(Exception):
    default_message = 'Erro ao sincronizar dados.'

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message if detail is None else f'{self.message} ({detail})')


class TransportError(SyncError):
    """The store was unreachable or rejected the request."""
    default_message = 'Falha de comunicação com o servidor.'


class ConstraintViolation(SyncError):
    """The store refused a write because of one of its invariants."""
    default_message = 'Operação rejeitada pelo servidor.'


class ValidationError(SyncError):
    """Required input is missing or invalid; nothing was sent."""
    default_message = 'Dados inválidos.'


class SelfActionError(SyncError):
    """An actor tried to change their own privileges or remove themselves."""
    default_message = 'Você não pode realizar esta ação sobre o seu próprio usuário.'


class PermissionDenied(SyncError):
    """The current identity may not perform this mutation."""
    default_message = 'Você não tem permissão para esta ação.'

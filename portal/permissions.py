"""
Custom permission classes for the portal roles.
"""
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .constants import ROLE_DOCTOR, TABLE_PROFILES


class SelfActionDenied(PermissionDenied):
    """Users may not revoke their own admin flag or delete themselves."""
    default_detail = 'Você não pode realizar esta ação sobre o seu próprio usuário.'
    default_code = 'self_action'


class CanEditSchedule(BasePermission):
    """Read for everyone signed in; rooms and allocations are written by non-doctors.

    ``profiles`` writes are checked per row by the table views.
    """
    message = 'Médicos não podem alterar o mapa de salas.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        if getattr(view, "kwargs", {}).get("table") == TABLE_PROFILES:
            return True
        return getattr(user, "role", None) != ROLE_DOCTOR

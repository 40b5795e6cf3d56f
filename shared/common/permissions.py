# shared/common/permissions.py
"""
Permission Classes for Role-Based Access Control
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import permissions
from rest_framework.request import Request

if TYPE_CHECKING:
    from rest_framework.views import APIView

from .authentication import ADMIN_ROLE

logger = logging.getLogger(__name__)


def get_user_role(request: Request) -> str:
    """Role from the authenticated user or the JWT payload"""
    role = getattr(request.user, 'role', None)
    if role:
        return role
    if isinstance(getattr(request, 'auth', None), dict):
        return (request.auth.get('app_metadata') or {}).get('role', '')
    return ''


class IsAuthenticated(permissions.BasePermission):
    """Verify that user is authenticated"""

    def has_permission(self, request: Request, view: APIView) -> bool:
        return bool(
            request.user and
            getattr(request.user, 'is_authenticated', False)
        )


class IsAdmin(IsAuthenticated):
    """Only back-office administrators"""

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not super().has_permission(request, view):
            return False
        allowed = get_user_role(request) == ADMIN_ROLE
        if not allowed:
            logger.warning(
                f"Admin permission denied for user {getattr(request.user, 'id', None)}"
            )
        return allowed


class IsOwnerOrAdmin(IsAuthenticated):
    """Object owner or administrator"""

    owner_field = 'owner_id'

    def has_object_permission(self, request: Request, view: APIView, obj) -> bool:
        if get_user_role(request) == ADMIN_ROLE:
            return True
        owner_id = getattr(obj, self.owner_field, None)
        return owner_id is not None and str(owner_id) == str(request.user.id)

"""Operator access to inventory.

Ownership is resolved once per request into an ``AccessContext``; the
services only consult the resolved decision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from rest_framework import permissions  # type: ignore

from shared.domain.exceptions import Unauthorized


@dataclass(frozen=True)
class AccessContext:
    user_id: int | None
    is_staff: bool = False
    resource_ids: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def for_user(cls, user) -> "AccessContext":
        from .models import Resource

        if user is None or not user.is_authenticated:
            return cls(user_id=None)
        owned = Resource.objects.filter(operator_id=user.pk).values_list("pk", flat=True)
        return cls(user_id=user.pk, is_staff=user.is_staff, resource_ids=frozenset(owned))

    @classmethod
    def system(cls) -> "AccessContext":
        """Context for internal jobs acting on behalf of the platform."""
        return cls(user_id=None, is_staff=True)

    def can_manage(self, resource_id: int) -> bool:
        return self.is_staff or resource_id in self.resource_ids

    def require(self, resource_id: int) -> None:
        if not self.can_manage(resource_id):
            raise Unauthorized(
                "You are not allowed to manage this resource",
                resource_id=resource_id,
                user_id=self.user_id,
            )


class IsResourceOperatorOrStaff(permissions.BasePermission):
    """Write access only for the resource owner or staff."""

    def has_object_permission(self, request, view, obj):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return request.user.is_staff or obj.operator_id == request.user.pk

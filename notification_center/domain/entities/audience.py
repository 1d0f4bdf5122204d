"""Audience specifications describing who should receive an event."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Union

SCOPE_ADMINS = "admins"
SCOPE_ADMINS_AND_ASSISTANTS = "admins_and_assistants"
SCOPE_SPECIFIC_USERS = "specific_users"


@dataclass(frozen=True)
class Admins:
    """Every administrator of the tenant."""

    scope = SCOPE_ADMINS


@dataclass(frozen=True)
class AdminsAndAssistants:
    """Administrators and administrator assistants of the tenant."""

    scope = SCOPE_ADMINS_AND_ASSISTANTS


@dataclass(frozen=True)
class SpecificUsers:
    """An explicit list of recipient identifiers."""

    user_ids: tuple[str, ...] = ()

    scope = SCOPE_SPECIFIC_USERS

    @classmethod
    def of(cls, user_ids: Iterable[str]) -> "SpecificUsers":
        return cls(user_ids=tuple(user_ids))


AudienceSpec = Union[Admins, AdminsAndAssistants, SpecificUsers]


def audience_to_dict(audience: AudienceSpec) -> dict[str, Any]:
    """Return the persisted representation of ``audience``."""

    if isinstance(audience, SpecificUsers):
        return {"scope": audience.scope, "user_ids": list(audience.user_ids)}
    return {"scope": audience.scope}


def audience_from_dict(data: dict[str, Any]) -> AudienceSpec:
    """Rebuild an :data:`AudienceSpec` from its persisted representation."""

    scope = data.get("scope")
    if scope == SCOPE_ADMINS:
        return Admins()
    if scope == SCOPE_ADMINS_AND_ASSISTANTS:
        return AdminsAndAssistants()
    if scope == SCOPE_SPECIFIC_USERS:
        return SpecificUsers.of(str(user_id) for user_id in data.get("user_ids") or [])
    raise ValueError(f"Unknown audience scope: {scope!r}")


__all__ = [
    "SCOPE_ADMINS",
    "SCOPE_ADMINS_AND_ASSISTANTS",
    "SCOPE_SPECIFIC_USERS",
    "Admins",
    "AdminsAndAssistants",
    "AudienceSpec",
    "SpecificUsers",
    "audience_from_dict",
    "audience_to_dict",
]

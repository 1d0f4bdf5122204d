"""Domain entity representing a user listed in a tenant directory."""

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_ADMIN_ASSISTANT = "admin-assistant"


@dataclass
class DirectoryUser:
    """Member of a condominium that can receive notifications."""

    uid: str
    client_id: str
    condominium_id: str
    role: str
    name: str | None = None
    email: str | None = None
    id: int | None = None


__all__ = ["DirectoryUser", "ROLE_ADMIN", "ROLE_ADMIN_ASSISTANT"]

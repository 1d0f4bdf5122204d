"""Acting identity and the tenant scoping every document lives under."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TenantContext:
    """Client (tenant) and condominium (sub-tenant) pair."""

    client_id: str
    condominium_id: str

    @property
    def scope_key(self) -> str:
        return f"{self.client_id}:{self.condominium_id}"

    @property
    def base_path(self) -> str:
        return f"clients/{self.client_id}/condominiums/{self.condominium_id}"


@dataclass(frozen=True)
class Identity:
    """Authenticated user acting in the current session."""

    user_id: str
    display_name: str | None = None
    email: str | None = None
    role: str | None = None
    client_id: str | None = None
    condominium_id: str | None = None

    @property
    def tenant_context(self) -> TenantContext | None:
        """Return the session tenant, or ``None`` when it is incomplete."""

        if not self.client_id or not self.condominium_id:
            return None
        return TenantContext(self.client_id, self.condominium_id)

    @property
    def author_name(self) -> str:
        return self.display_name or self.email or "Usuario"


@dataclass(frozen=True)
class FeedPath:
    """Location of a recipient's personal notification collection."""

    tenant_context: TenantContext
    recipient_id: str

    def __str__(self) -> str:
        return f"{self.tenant_context.base_path}/users/{self.recipient_id}/notifications"


__all__ = ["FeedPath", "Identity", "TenantContext"]

"""Verification of identity tokens issued by the authentication service."""

from __future__ import annotations

from typing import Any

from jose import JWTError, jwt

from notification_center.config import get_settings
from notification_center.domain.entities import Identity

ALGORITHM = "HS256"


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def identity_from_claims(
    claims: dict[str, Any], *, condominium_id: str | None = None
) -> Identity:
    """Build the acting :class:`Identity` from decoded token ``claims``.

    ``condominium_id`` is the sub-tenant picked by the client and wins over the
    claim of the same name.
    """

    user_id = claims.get("sub")
    if not user_id:
        raise ValueError("Token does not identify a user")

    return Identity(
        user_id=str(user_id),
        display_name=claims.get("name") or None,
        email=claims.get("email") or None,
        role=claims.get("role") or None,
        client_id=_optional_str(claims.get("client_id")),
        condominium_id=_optional_str(condominium_id or claims.get("condominium_id")),
    )


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = ["ALGORITHM", "decode_access_token", "identity_from_claims"]

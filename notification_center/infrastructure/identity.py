"""Session identity provider with bounded waiting for sign-in."""

from __future__ import annotations

import logging

import anyio

from notification_center.domain.entities import Identity
from notification_center.domain.errors import IdentityUnavailable

logger = logging.getLogger(__name__)


class SessionIdentityProvider:
    """Expose the identity of the current session.

    Callers that run before authentication finishes may wait for it with
    :meth:`wait_for_identity`, which gives up after ``timeout`` seconds.
    """

    def __init__(self, identity: Identity | None = None) -> None:
        self._identity = identity
        self._signed_in: anyio.Event | None = None

    @property
    def current(self) -> Identity | None:
        return self._identity

    def sign_in(self, identity: Identity) -> None:
        self._identity = identity
        if self._signed_in is not None:
            self._signed_in.set()

    def sign_out(self) -> None:
        self._identity = None
        self._signed_in = None

    async def wait_for_identity(self, timeout: float) -> Identity:
        """Return the session identity, waiting up to ``timeout`` seconds."""

        if self._identity is not None:
            return self._identity

        if self._signed_in is None:
            self._signed_in = anyio.Event()
        signed_in = self._signed_in
        try:
            with anyio.fail_after(timeout):
                await signed_in.wait()
        except TimeoutError as exc:
            logger.debug("No authenticated session after %.1fs", timeout)
            raise IdentityUnavailable() from exc

        if self._identity is None:
            raise IdentityUnavailable()
        return self._identity


__all__ = ["SessionIdentityProvider"]

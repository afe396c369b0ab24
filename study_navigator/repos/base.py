"""Interfaces of the managed backend: identity provider and document store."""

from __future__ import annotations

from typing import Any, Callable, Protocol

from study_navigator.domain.bus import Subscription
from study_navigator.domain.models import AuthUser

SnapshotCallback = Callable[[list[dict[str, Any]]], None]
ErrorCallback = Callable[[str], None]
AuthListener = Callable[[AuthUser | None], None]


class IdentityProvider(Protocol):
    """Sign-in, sign-up and session change notifications.

    Every failing call raises ``AuthError`` carrying the provider's reason.
    """

    @property
    def current_user(self) -> AuthUser | None: ...

    async def sign_in(self, email: str, password: str) -> AuthUser: ...

    async def sign_up(self, email: str, password: str) -> AuthUser: ...

    async def update_profile(self, user: AuthUser, display_name: str) -> AuthUser: ...

    async def sign_out(self) -> None: ...

    async def send_password_reset(self, email: str) -> None: ...

    def on_auth_state_changed(self, listener: AuthListener) -> Subscription:
        """Call *listener* now with the current user, then on every transition."""
        ...


class DocumentStore(Protocol):
    """Path-addressed document collections with live snapshots.

    Every failing write raises ``StoreError`` carrying the store's reason.
    """

    def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        where: tuple[str, Any] | None = None,
    ) -> Subscription:
        """Deliver the full matching record set now and after every change."""
        ...

    async def add(self, collection: str, data: dict[str, Any]) -> str: ...

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...

    async def set(self, path: str, data: dict[str, Any], merge: bool = True) -> None: ...

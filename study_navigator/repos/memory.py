"""In-memory stand-ins for the managed identity provider and document store."""

from __future__ import annotations

import copy
import logging
import re
import uuid
from typing import Any

from study_navigator.domain.bus import EventBus, Subscription
from study_navigator.domain.errors import AuthError, StoreError
from study_navigator.domain.events import (
    AuthStateChanged,
    CollectionChanged,
    SubscriptionFailed,
)
from study_navigator.domain.models import AuthUser
from study_navigator.repos.base import AuthListener, ErrorCallback, SnapshotCallback

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def _new_id() -> str:
    return uuid.uuid4().hex[:20]


def _split_path(path: str) -> tuple[str, str]:
    collection, _, doc_id = path.rpartition("/")
    if not collection or not doc_id:
        raise StoreError(f"Invalid document path: {path}")
    return collection, doc_id


class InMemoryDocumentStore:
    """Dict-backed collections keyed by path, then by document id."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.bus = EventBus()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _query(
        self, collection: str, where: tuple[str, Any] | None
    ) -> list[dict[str, Any]]:
        docs = self._collections.get(collection, {})
        results = []
        for doc_id, data in docs.items():
            if where is not None and data.get(where[0]) != where[1]:
                continue
            results.append({"id": doc_id, **copy.deepcopy(data)})
        return results

    def document(self, path: str) -> dict[str, Any] | None:
        collection, doc_id = _split_path(path)
        data = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        where: tuple[str, Any] | None = None,
    ) -> Subscription:
        def deliver(event: CollectionChanged) -> None:
            if event.collection == collection:
                on_snapshot(self._query(collection, where))

        def fail(event: SubscriptionFailed) -> None:
            if event.collection != collection:
                return
            handle.close()
            if on_error is not None:
                on_error(event.reason)

        changes = self.bus.subscribe(CollectionChanged, deliver)
        failures = self.bus.subscribe(SubscriptionFailed, fail)

        def detach() -> None:
            changes.close()
            failures.close()

        handle = Subscription(detach)
        on_snapshot(self._query(collection, where))
        return handle

    def fail_subscriptions(self, collection: str, reason: str) -> None:
        """Terminate every listener on *collection* with *reason*."""
        logger.warning("Terminating listeners on %s: %s", collection, reason)
        self.bus.publish(SubscriptionFailed(collection=collection, reason=reason))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _changed(self, collection: str) -> None:
        self.bus.publish(CollectionChanged(collection=collection))

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = _new_id()
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        self._changed(collection)
        return doc_id

    async def update(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise StoreError(f"No document to update: {collection}/{doc_id}")
        docs[doc_id] = copy.deepcopy(data)
        self._changed(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)
        self._changed(collection)

    async def set(self, path: str, data: dict[str, Any], merge: bool = True) -> None:
        collection, doc_id = _split_path(path)
        docs = self._collections.setdefault(collection, {})
        existing = docs.get(doc_id, {}) if merge else {}
        docs[doc_id] = {**existing, **copy.deepcopy(data)}
        self._changed(collection)

    def clear(self) -> None:
        self._collections.clear()


class _Account:
    def __init__(self, uid: str, email: str, password: str) -> None:
        self.uid = uid
        self.email = email
        self.password = password
        self.display_name: str | None = None

    def to_user(self) -> AuthUser:
        return AuthUser(uid=self.uid, email=self.email, display_name=self.display_name)


class InMemoryIdentityProvider:
    """Email/password accounts with a single current session."""

    def __init__(self) -> None:
        self._accounts: dict[str, _Account] = {}
        self._current: AuthUser | None = None
        self.bus = EventBus()
        self.password_resets_sent: list[str] = []

    @property
    def current_user(self) -> AuthUser | None:
        return self._current

    def _set_current(self, user: AuthUser | None) -> None:
        self._current = user
        self.bus.publish(AuthStateChanged(user=user))

    @staticmethod
    def _check_email(email: str) -> str:
        email = email.strip().lower()
        if not _EMAIL_RE.match(email):
            raise AuthError("Invalid email address.")
        return email

    async def sign_in(self, email: str, password: str) -> AuthUser:
        account = self._accounts.get(self._check_email(email))
        if account is None or account.password != password:
            raise AuthError("Invalid email or password.")
        user = account.to_user()
        self._set_current(user)
        return user

    async def sign_up(self, email: str, password: str) -> AuthUser:
        email = self._check_email(email)
        if email in self._accounts:
            raise AuthError("Email address is already in use.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters."
            )
        account = _Account(uid=uuid.uuid4().hex, email=email, password=password)
        self._accounts[email] = account
        user = account.to_user()
        self._set_current(user)
        return user

    async def update_profile(self, user: AuthUser, display_name: str) -> AuthUser:
        account = self._accounts.get(user.email)
        if account is None or account.uid != user.uid:
            raise AuthError("User not found.")
        account.display_name = display_name
        updated = account.to_user()
        if self._current is not None and self._current.uid == updated.uid:
            self._set_current(updated)
        return updated

    async def sign_out(self) -> None:
        self._set_current(None)

    async def send_password_reset(self, email: str) -> None:
        # Unknown addresses succeed silently.
        email = self._check_email(email)
        if email in self._accounts:
            self.password_resets_sent.append(email)

    def on_auth_state_changed(self, listener: AuthListener) -> Subscription:
        subscription = self.bus.subscribe(
            AuthStateChanged, lambda event: listener(event.user)
        )
        listener(self._current)
        return subscription

    def clear(self) -> None:
        self._accounts.clear()
        self.password_resets_sent.clear()
        self._current = None

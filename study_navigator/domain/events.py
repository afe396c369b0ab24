"""Domain events carried on the in-process bus."""

from __future__ import annotations

from pydantic import BaseModel

from study_navigator.domain.models import AuthUser


class CollectionChanged(BaseModel):
    """Fired by the document store after any write to a collection."""

    collection: str


class SubscriptionFailed(BaseModel):
    """Fired when the store terminates the listeners on a collection."""

    collection: str
    reason: str


class AuthStateChanged(BaseModel):
    """Fired by the identity provider on every session transition."""

    user: AuthUser | None = None


"""Sign-in, sign-up, password reset and sign-out flows."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator

from study_navigator.domain.errors import (
    AuthError,
    FormValidationError,
    StoreError,
    SubmissionInProgress,
)
from study_navigator.domain.models import AuthUser, Profile, Severity
from study_navigator.repos.base import DocumentStore, IdentityProvider
from study_navigator.repos.paths import profile_document
from study_navigator.services.notifications import NotificationBus

logger = logging.getLogger(__name__)

PASSWORD_RESET_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent!"
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthFlowController:
    """Turns identity-provider outcomes into notifications.

    Failures are published as error notifications and then re-raised so the
    caller can clear its loading state. Only one overlay submission may be
    outstanding at a time.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        store: DocumentStore,
        notifications: NotificationBus,
        app_id: str,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.identity = identity
        self.store = store
        self.notifications = notifications
        self.app_id = app_id
        self._clock = clock
        self.busy = False

    @contextmanager
    def _submission(self) -> Iterator[None]:
        if self.busy:
            raise SubmissionInProgress()
        self.busy = True
        try:
            yield
        finally:
            self.busy = False

    def _fail(self, prefix: str, reason: str) -> None:
        logger.error("%s: %s", prefix, reason)
        self.notifications.publish(f"{prefix}: {reason}", Severity.ERROR)

    async def sign_in(self, email: str, password: str) -> AuthUser:
        with self._submission():
            try:
                user = await self.identity.sign_in(email, password)
            except AuthError as exc:
                self._fail("Login failed", exc.message)
                raise
        logger.info("User %s signed in", user.uid)
        self.notifications.publish("Logged in successfully!", Severity.SUCCESS)
        return user

    async def sign_up(
        self, email: str, password: str, confirm_password: str, username: str
    ) -> AuthUser:
        # Validation happens before the provider is contacted.
        if password != confirm_password:
            self.notifications.publish("Passwords do not match!", Severity.ERROR)
            raise FormValidationError("Passwords do not match!")
        if not username.strip():
            self.notifications.publish("Username cannot be empty!", Severity.ERROR)
            raise FormValidationError("Username cannot be empty!")

        with self._submission():
            try:
                user = await self.identity.sign_up(email, password)
                user = await self.identity.update_profile(user, username.strip())
                profile = Profile(
                    username=username.strip(), email=user.email, created_at=self._clock()
                )
                await self.store.set(
                    profile_document(self.app_id, user.uid),
                    profile.model_dump(mode="json"),
                    merge=True,
                )
            except (AuthError, StoreError) as exc:
                self._fail("Signup failed", exc.message)
                raise
        logger.info("User %s signed up", user.uid)
        self.notifications.publish(
            "Account created and logged in successfully!", Severity.SUCCESS
        )
        return user

    async def send_password_reset(self, email: str) -> None:
        with self._submission():
            try:
                await self.identity.send_password_reset(email)
            except AuthError as exc:
                self._fail("Password reset failed", exc.message)
                raise
        # Same message whether or not the address has an account.
        self.notifications.publish(PASSWORD_RESET_MESSAGE, Severity.SUCCESS)

    async def sign_out(self) -> None:
        try:
            await self.identity.sign_out()
        except AuthError as exc:
            self._fail("Error logging out", exc.message)
            raise
        logger.info("User signed out")
        self.notifications.publish("You have been logged out.", Severity.INFO)

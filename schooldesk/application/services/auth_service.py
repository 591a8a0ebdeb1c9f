"""Credential index, login throttling and username/password lookup for the Auth collaborator."""

import logging
import secrets
import time
from collections import deque
from collections.abc import Callable, Iterable, MutableMapping

from schooldesk.domain.entities import Credential, Identity, Record, Role, TeacherRecord
from schooldesk.domain.exceptions import TooManyLoginAttemptsError

logger = logging.getLogger(__name__)

# Built-in accounts. Teacher records may shadow a username but never remove it.
SEED_ACCOUNTS: tuple[Credential, ...] = (
    Credential("admin", "admin123", Role.ADMIN, "Administrator"),
    Credential("principal", "principal123", Role.PRINCIPAL, "Principal"),
    Credential("teacher", "teacher123", Role.TEACHER, "Mathematics Teacher"),
    Credential("counselor", "counselor123", Role.COUNSELOR, "Guidance Counselor"),
    Credential("student", "student123", Role.STUDENT, "Student/Parent"),
)


def build_credential_index(records: Iterable[Record]) -> dict[str, Credential]:
    """Seed accounts overlaid with every teacher record that has a login."""
    index = {account.username: account for account in SEED_ACCOUNTS}
    for record in records:
        if not isinstance(record, TeacherRecord):
            continue
        if not record.username or not record.password:
            continue
        try:
            role = Role(record.role)
        except ValueError:
            role = Role.TEACHER
        index[record.username] = Credential(
            username=record.username,
            password=record.password,
            role=role,
            display_name=record.title,
            record_id=record.id,
            registration_number=record.registration_number or None,
            subject=record.subject or None,
        )
    return index


class LoginRateLimiter:
    """Sliding window of failed login attempts per username.

    A key is blocked once ``max_attempts`` failures fall inside the last
    ``window_seconds``; it unblocks as the oldest of them ages out. A
    ``max_attempts`` of zero or less turns throttling off.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._failures: dict[str, deque[float]] = {}

    def _recent(self, key: str, now: float) -> deque[float]:
        failures = self._failures.get(key)
        if failures is None:
            return deque()
        while failures and now - failures[0] >= self.window_seconds:
            failures.popleft()
        if not failures:
            del self._failures[key]
        return failures

    def retry_after(self, key: str) -> float:
        """Seconds until ``key`` may try again; ``0.0`` when it is not blocked."""
        now = self._clock()
        failures = self._recent(key, now)
        if self.max_attempts <= 0 or len(failures) < self.max_attempts:
            return 0.0
        return failures[-self.max_attempts] + self.window_seconds - now

    def record_failure(self, key: str) -> None:
        now = self._clock()
        self._recent(key, now)
        self._failures.setdefault(key, deque()).append(now)

    def reset(self, key: str) -> None:
        self._failures.pop(key, None)


class AuthService:
    """Resolves usernames and passwords to identities.

    ``credentials`` is the mutable index the record store rebuilds on every
    resync; this service only reads it. Failed attempts are throttled per
    username by ``limiter``.
    """

    def __init__(
        self,
        credentials: MutableMapping[str, Credential] | None = None,
        *,
        limiter: LoginRateLimiter | None = None,
    ):
        self.credentials: MutableMapping[str, Credential] = (
            credentials if credentials is not None else build_credential_index(())
        )
        self.limiter = limiter or LoginRateLimiter()

    def authenticate(self, username: str, password: str) -> Identity | None:
        """Return the identity for a valid login, ``None`` for a wrong one.

        Raises ``TooManyLoginAttemptsError`` without looking at the password
        while ``username`` is blocked.
        """
        retry_after = self.limiter.retry_after(username)
        if retry_after > 0:
            logger.warning("Login blocked for '%s', retry in %.0fs", username, retry_after)
            raise TooManyLoginAttemptsError(username, retry_after)

        credential = self.credentials.get(username)
        if credential is None:
            logger.info("Login rejected for unknown user '%s'", username)
            self.limiter.record_failure(username)
            return None
        if not secrets.compare_digest(credential.password.encode(), password.encode()):
            logger.info("Login rejected for '%s': wrong password", username)
            self.limiter.record_failure(username)
            return None

        self.limiter.reset(username)
        return credential.to_identity()

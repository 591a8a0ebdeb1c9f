"""Domain entities for the authenticated viewer and their stored credentials."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Closed set of roles a viewer can hold."""

    ADMIN = "admin"
    PRINCIPAL = "principal"
    TEACHER = "teacher"
    COUNSELOR = "counselor"
    STUDENT = "student"  # students and parents share one role

    @property
    def auto_approves(self) -> bool:
        """Records created by this role start out approved."""
        return self in (Role.ADMIN, Role.PRINCIPAL)


@dataclass(frozen=True)
class Identity:
    """The viewer on whose behalf a store operation runs."""

    role: Role
    display_name: str


@dataclass(frozen=True)
class Credential:
    """One entry of the username → credentials index.

    ``record_id`` points at the teacher record the account was derived from;
    it is ``None`` for the built-in seed accounts.
    """

    username: str
    password: str
    role: Role
    display_name: str
    record_id: str | None = None
    registration_number: str | None = None
    subject: str | None = None

    def to_identity(self) -> Identity:
        return Identity(role=self.role, display_name=self.display_name)

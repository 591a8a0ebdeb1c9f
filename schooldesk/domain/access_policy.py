"""Role-based read visibility, write eligibility and role grants for records."""

from collections.abc import Callable

from schooldesk.domain.entities.identity import Identity, Role
from schooldesk.domain.entities.record import Record

RecordPredicate = Callable[[Record], bool]


def _nothing(record: Record) -> bool:
    return False


def _everything(record: Record) -> bool:
    return True


def _approved_only(record: Record) -> bool:
    return record.approved is True


def can_read(identity: Identity | None) -> RecordPredicate:
    """Return the visibility predicate for ``identity``.

    Students and parents see approved records only, teachers and counselors
    see what they authored, administrators and principals see everything.
    """
    if identity is None:
        return _nothing
    if identity.role in (Role.ADMIN, Role.PRINCIPAL):
        return _everything
    if identity.role is Role.STUDENT:
        return _approved_only

    def _authored(record: Record) -> bool:
        return record.author == identity.display_name

    return _authored


def can_write(identity: Identity | None, record: Record) -> bool:
    """Update/delete gate: administrators, or the record's own author."""
    if identity is None:
        return False
    return identity.role is Role.ADMIN or record.author == identity.display_name


def can_approve(identity: Identity | None) -> bool:
    return identity is not None and identity.role.auto_approves


# Roles any staff member may assign to a teacher account they create.
_STAFF_ROLES = frozenset({Role.TEACHER.value, Role.COUNSELOR.value})


def can_create(identity: Identity | None) -> bool:
    """Students and parents only read; every other role may add records."""
    return identity is not None and identity.role is not Role.STUDENT


def can_grant_role(identity: Identity | None, role: str) -> bool:
    """Whether ``identity`` may store a teacher account carrying ``role``.

    Only administrators and principals hand out elevated roles.
    """
    if identity is None:
        return False
    return str(role).strip() in _STAFF_ROLES or can_approve(identity)

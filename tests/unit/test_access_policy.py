"""Unit tests for role-based visibility and write eligibility."""

import pytest

from schooldesk.domain.access_policy import (
    can_approve,
    can_create,
    can_grant_role,
    can_read,
    can_write,
)
from schooldesk.domain.entities import GradeRecord, Identity, Role

MINE = GradeRecord(id="1", author="Rina", approved=False)
THEIRS = GradeRecord(id="2", author="Joko", approved=True)


def test_nobody_sees_nothing():
    visible = can_read(None)
    assert not visible(MINE)
    assert not visible(THEIRS)


@pytest.mark.parametrize("role", [Role.ADMIN, Role.PRINCIPAL])
def test_admin_and_principal_see_everything(role: Role):
    visible = can_read(Identity(role, "Someone"))
    assert visible(MINE)
    assert visible(THEIRS)


def test_student_sees_approved_only():
    visible = can_read(Identity(Role.STUDENT, "Rina"))
    assert not visible(MINE)
    assert visible(THEIRS)


@pytest.mark.parametrize("role", [Role.TEACHER, Role.COUNSELOR])
def test_staff_see_what_they_authored(role: Role):
    visible = can_read(Identity(role, "Rina"))
    assert visible(MINE)
    assert not visible(THEIRS)


def test_write_gate():
    assert can_write(Identity(Role.ADMIN, "Administrator"), THEIRS)
    assert can_write(Identity(Role.TEACHER, "Rina"), MINE)
    assert not can_write(Identity(Role.TEACHER, "Rina"), THEIRS)
    assert not can_write(Identity(Role.PRINCIPAL, "Principal"), THEIRS)
    assert not can_write(None, MINE)


def test_approval_gate():
    assert can_approve(Identity(Role.ADMIN, "A"))
    assert can_approve(Identity(Role.PRINCIPAL, "P"))
    assert not can_approve(Identity(Role.TEACHER, "T"))
    assert not can_approve(None)


def test_create_gate():
    assert can_create(Identity(Role.TEACHER, "T"))
    assert can_create(Identity(Role.COUNSELOR, "C"))
    assert can_create(Identity(Role.ADMIN, "A"))
    assert not can_create(Identity(Role.STUDENT, "S"))
    assert not can_create(None)


@pytest.mark.parametrize("role", ["teacher", "counselor"])
def test_staff_roles_can_be_granted_by_anyone_who_creates(role: str):
    assert can_grant_role(Identity(Role.TEACHER, "T"), role)
    assert can_grant_role(Identity(Role.ADMIN, "A"), role)


@pytest.mark.parametrize("role", ["admin", "principal"])
def test_elevated_roles_need_an_approver(role: str):
    assert not can_grant_role(Identity(Role.TEACHER, "T"), role)
    assert not can_grant_role(Identity(Role.COUNSELOR, "C"), role)
    assert can_grant_role(Identity(Role.ADMIN, "A"), role)
    assert can_grant_role(Identity(Role.PRINCIPAL, "P"), role)
    assert not can_grant_role(None, role)

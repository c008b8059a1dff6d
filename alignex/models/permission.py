from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from alignex.models.license import LicenseTier


class PermissionKey(StrEnum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    MANAGE = "manage"
    ENTER_TIMESHEET = "timesheet.enter"
    APPROVE_TIMESHEET = "timesheet.approve"
    CREATE_PROJECT = "project.create"
    MANAGE_PROJECT = "project.manage"
    CREATE_REQUEST = "request.create"
    MANAGE_RESOURCES = "resource.manage"
    MANAGE_OWN_SKILLS = "skills.manage_own"
    MANAGE_ALL_SKILLS = "skills.manage_all"
    TRACK_BENEFITS = "benefits.track"
    EXPORT = "export"

    @classmethod
    def parse(cls, raw: str) -> PermissionKey | None:
        """Return the matching key, or None for an unknown string."""
        try:
            return cls(raw)
        except ValueError:
            return None


# The coarse actions a permission gate may demand.
GATE_ACTIONS: frozenset[PermissionKey] = frozenset(
    {
        PermissionKey.VIEW,
        PermissionKey.CREATE,
        PermissionKey.EDIT,
        PermissionKey.DELETE,
        PermissionKey.MANAGE,
    }
)


@dataclass(frozen=True, slots=True)
class PermissionRule:
    license_tier: LicenseTier
    # Free-form in storage; rows that match no PermissionKey are never consulted.
    permission_key: str
    can_execute: bool

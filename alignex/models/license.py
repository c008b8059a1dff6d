from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from uuid import UUID, uuid4


class LicenseTier(StrEnum):
    READ_ONLY = "read_only"
    TEAM_MEMBER = "team_member"
    FULL_LICENSE = "full_license"

    @property
    def label(self) -> str:
        return _TIER_LABELS[self]


_TIER_LABELS = {
    LicenseTier.READ_ONLY: "Read Only",
    LicenseTier.TEAM_MEMBER: "Team Member",
    LicenseTier.FULL_LICENSE: "Full License",
}


@dataclass(frozen=True, slots=True)
class UserLicense:
    id: UUID
    user_email: str
    organization_id: UUID
    license_tier: LicenseTier
    is_active: bool = True
    assigned_date: date | None = None
    last_access_date: date | None = None
    notes: str | None = None

    @staticmethod
    def new(
        *,
        user_email: str,
        organization_id: UUID,
        license_tier: LicenseTier,
        notes: str | None = None,
        assigned_date: date | None = None,
    ) -> UserLicense:
        return UserLicense(
            id=uuid4(),
            user_email=user_email,
            organization_id=organization_id,
            license_tier=license_tier,
            assigned_date=assigned_date or date.today(),
            notes=notes,
        )

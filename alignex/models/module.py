from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from uuid import UUID, uuid4


class ModuleKey(StrEnum):
    """Optionally-licensed feature areas.  Declaration order is display order."""

    BASE = "base"
    SKILLS = "skills"
    BENEFITS = "benefits"

    @property
    def display_name(self) -> str:
        return _MODULE_NAMES[self]


_MODULE_NAMES = {
    ModuleKey.BASE: "Base Platform",
    ModuleKey.SKILLS: "Skills Management",
    ModuleKey.BENEFITS: "Benefit Realization",
}

ALL_MODULES: tuple[ModuleKey, ...] = tuple(ModuleKey)


@dataclass(frozen=True, slots=True)
class OrganizationModule:
    id: UUID
    organization_id: UUID
    module_key: ModuleKey
    module_name: str
    is_active: bool = False
    license_key: str | None = None
    activation_date: date | None = None
    # Stored for display only; nothing deactivates a module when it passes.
    expiry_date: date | None = None

    @staticmethod
    def new(
        *, organization_id: UUID, module_key: ModuleKey, is_active: bool = False
    ) -> OrganizationModule:
        return OrganizationModule(
            id=uuid4(),
            organization_id=organization_id,
            module_key=module_key,
            module_name=module_key.display_name,
            is_active=is_active,
        )

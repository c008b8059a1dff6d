"""Resource allocation heat-map endpoint.

The caller posts the assignments and resources it wants aggregated; this
endpoint only runs the aggregation and labels the result.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, model_validator

from alignex.api.dependencies import require_user
from alignex.models.principal import Principal
from alignex.services.heatmap import (
    TaskAssignment,
    build_heatmap,
    intensity_band,
    week_label,
)

router = APIRouter(prefix="/v1/resources", tags=["resources"])

# About ten years of calendar days per assignment.
MAX_ASSIGNMENT_DAYS = 3660


class AssignmentIn(BaseModel):
    resource_id: str
    allocated_hours: float = Field(ge=0, allow_inf_nan=False)
    start_date: date | None = None
    end_date: date | None = None

    @model_validator(mode="after")
    def _check_range(self) -> AssignmentIn:
        if self.start_date is None or self.end_date is None:
            return self
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        if (self.end_date - self.start_date).days >= MAX_ASSIGNMENT_DAYS:
            raise ValueError(
                f"assignment range must be shorter than {MAX_ASSIGNMENT_DAYS} days"
            )
        return self


class ResourceIn(BaseModel):
    id: str
    display_name: str


class HeatMapIn(BaseModel):
    assignments: list[AssignmentIn]
    resources: list[ResourceIn]


class WeekOut(BaseModel):
    key: str
    label: str


class CellOut(BaseModel):
    week: str
    hours: float
    band: str


class ResourceRowOut(BaseModel):
    resource_id: str
    display_name: str
    total_hours: float
    cells: list[CellOut]


class HeatMapOut(BaseModel):
    weeks: list[WeekOut]
    rows: list[ResourceRowOut]


@router.post("/heatmap", response_model=HeatMapOut)
def resource_heatmap(
    body: HeatMapIn,
    _principal: Annotated[Principal, Depends(require_user)],
) -> HeatMapOut:
    heatmap = build_heatmap(
        [
            TaskAssignment(
                resource_id=a.resource_id,
                allocated_hours=a.allocated_hours,
                start_date=a.start_date,
                end_date=a.end_date,
            )
            for a in body.assignments
        ],
        {r.id: r.display_name for r in body.resources},
    )

    rows = []
    for allocation in heatmap.allocations:
        cells = []
        for week in heatmap.weeks:
            hours = allocation.weekly_hours.get(week, 0.0)
            cells.append(CellOut(week=week, hours=hours, band=intensity_band(hours)))
        rows.append(
            ResourceRowOut(
                resource_id=allocation.resource_id,
                display_name=allocation.display_name,
                total_hours=allocation.total_hours,
                cells=cells,
            )
        )

    return HeatMapOut(
        weeks=[WeekOut(key=w, label=week_label(w)) for w in heatmap.weeks],
        rows=rows,
    )

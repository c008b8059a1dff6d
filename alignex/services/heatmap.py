"""Resource allocation heat-map aggregation.

Each task assignment carries a date range and a number of allocated hours.
The hours are spread evenly over the Monday-Friday days in the range, each
day's share lands in the bucket of the ISO week it belongs to (keyed by the
week's Monday), and buckets are summed per resource.  Weekend-only ranges
and assignments for unknown resources contribute nothing.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta


@dataclass(frozen=True, slots=True)
class TaskAssignment:
    resource_id: str
    allocated_hours: float
    start_date: date | None
    end_date: date | None


@dataclass(slots=True)
class ResourceAllocation:
    resource_id: str
    display_name: str
    weekly_hours: dict[str, float] = field(default_factory=dict)

    @property
    def total_hours(self) -> float:
        return sum(self.weekly_hours.values())


@dataclass(frozen=True, slots=True)
class HeatMap:
    weeks: list[str]
    allocations: list[ResourceAllocation]


def working_days(start: date, end: date) -> list[date]:
    """Every Monday-Friday date in [start, end]."""
    days = []
    for offset in range((end - start).days + 1):
        day = start + timedelta(days=offset)
        if day.weekday() < 5:
            days.append(day)
    return days


def week_key(day: date) -> str:
    """ISO date of the Monday that starts `day`'s week."""
    return (day - timedelta(days=day.weekday())).isoformat()


def week_label(key: str) -> str:
    monday = date.fromisoformat(key)
    return f"Week {monday.isocalendar().week} ({monday.strftime('%b')} {monday.day})"


def intensity_band(hours: float) -> str:
    """Colour band for a weekly cell, 40h being a full week."""
    if hours == 0:
        return "none"
    if hours <= 10:
        return "low"
    if hours <= 20:
        return "moderate"
    if hours <= 30:
        return "high"
    if hours <= 40:
        return "full"
    return "over"


def build_heatmap(
    assignments: list[TaskAssignment], resources: dict[str, str]
) -> HeatMap:
    """Aggregate assignments into per-resource weekly hours.

    `resources` maps resource id to display name; allocations come back in
    that mapping's order, weeks in chronological order.
    """
    per_resource: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    all_weeks: set[str] = set()

    for assignment in assignments:
        if assignment.start_date is None or assignment.end_date is None:
            continue
        if assignment.resource_id not in resources:
            continue

        days = working_days(assignment.start_date, assignment.end_date)
        if not days:
            continue

        per_day = assignment.allocated_hours / len(days)
        buckets = per_resource[assignment.resource_id]
        for day in days:
            key = week_key(day)
            buckets[key] += per_day
            all_weeks.add(key)

    allocations = [
        ResourceAllocation(
            resource_id=resource_id,
            display_name=name,
            weekly_hours=dict(per_resource[resource_id]),
        )
        for resource_id, name in resources.items()
        if resource_id in per_resource
    ]
    return HeatMap(weeks=sorted(all_weeks), allocations=allocations)

"""Data models for Cycle Roadmap."""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class Cycle:
    """A fixed-duration planning period."""

    id: str
    name: str
    state: str = ""  # "active" | "closed" | "future" | "completed"
    start: date | None = None
    end: date | None = None
    delivery: date | None = None


@dataclass(frozen=True)
class CycleRef:
    """The `{id, name}` pair attached to a release item."""

    id: str
    name: str


@dataclass(frozen=True)
class Person:
    id: str
    name: str = ""


@dataclass(frozen=True)
class ValidationItem:
    code: str
    name: str = ""
    status: str = ""
    description: str = ""


@dataclass(frozen=True)
class Initiative:
    id: str
    name: str


@dataclass(frozen=True)
class ReleaseItem:
    """Smallest trackable unit of work, scheduled into a cycle."""

    id: str
    ticket_id: str = ""
    name: str = ""
    effort: float = 0.0  # weeks
    area_ids: list[str] = field(default_factory=list)
    teams: list[str] = field(default_factory=list)
    status: str = ""
    stage: str = ""
    assignee: Person | None = None
    cycle_id: str | None = None
    roadmap_item_id: str | None = None
    url: str = ""
    validations: list[ValidationItem] = field(default_factory=list)
    cycle: CycleRef | None = None


@dataclass(frozen=True)
class RoadmapItem:
    """A unit of planned work as delivered by the data source."""

    id: str
    name: str = ""
    area: str = ""
    theme: str = ""
    initiative_id: str | None = None
    url: str = ""
    validations: list[ValidationItem] = field(default_factory=list)


@dataclass(frozen=True)
class CycleData:
    """The flat record set returned by the data source."""

    cycles: list[Cycle] = field(default_factory=list)
    initiatives: list[Initiative] = field(default_factory=list)
    roadmap_items: list[RoadmapItem] = field(default_factory=list)
    release_items: list[ReleaseItem] = field(default_factory=list)


@dataclass(frozen=True)
class ProgressMetrics:
    """Effort and progress figures for a set of release items.

    The `weeks*` and `*_count` fields are raw, unrounded counters and can be
    summed across siblings; the percentage fields must be recomputed from those
    sums.
    """

    weeks: float = 0.0
    weeks_done: float = 0.0
    weeks_in_progress: float = 0.0
    weeks_todo: float = 0.0
    weeks_not_to_do: float = 0.0
    weeks_cancelled: float = 0.0
    weeks_postponed: float = 0.0
    item_count: int = 0
    item_done_count: int = 0
    progress: int = 0
    progress_with_in_progress: int = 0
    progress_by_items: int = 0
    percentage_not_to_do: int = 0


@dataclass(frozen=True)
class CycleMetadata:
    start_month: str = ""
    end_month: str = ""
    days_from_start_of_cycle: int = 0
    days_in_cycle: int = 0
    current_day_percentage: int = 0


@dataclass(frozen=True)
class RoadmapItemWithProgress:
    """A roadmap item with its release items and metrics attached."""

    id: str
    name: str
    area: str
    theme: str
    initiative_id: str
    url: str
    validations: list[ValidationItem]
    release_items: list[ReleaseItem]
    metrics: ProgressMetrics


@dataclass(frozen=True)
class InitiativeWithProgress:
    id: str
    name: str
    roadmap_items: list[RoadmapItemWithProgress]
    metrics: ProgressMetrics


@dataclass(frozen=True)
class NestedCycleData:
    """Initiative -> RoadmapItem -> ReleaseItem hierarchy, heaviest first."""

    initiatives: list[InitiativeWithProgress] = field(default_factory=list)


@dataclass(frozen=True)
class FilterCriteria:
    """Filter values selected in the UI.

    Each field is inert when it is None, empty, or contains the "all" sentinel.
    List entries may be plain ids or `{"id": ..., "name": ...}` mappings.
    """

    area: str | None = None
    initiatives: list | None = None
    stages: list | None = None
    assignees: list | None = None
    cycle: str | dict | None = None
    show_validation_errors: bool = False

    @classmethod
    def from_dict(cls, values: dict | None) -> "FilterCriteria":
        values = values or {}
        return cls(
            area=values.get("area"),
            initiatives=values.get("initiatives"),
            stages=values.get("stages"),
            assignees=values.get("assignees"),
            cycle=values.get("cycle"),
            show_validation_errors=bool(values.get("show_validation_errors", False)),
        )


@dataclass(frozen=True)
class FilterResult:
    """Filtered hierarchy plus counts taken on the filtered result."""

    data: NestedCycleData
    applied_filters: FilterCriteria
    total_initiatives: int
    total_roadmap_items: int
    total_release_items: int


@dataclass(frozen=True)
class CycleWithProgress:
    cycle: Cycle
    metrics: ProgressMetrics
    metadata: CycleMetadata


@dataclass(frozen=True)
class RoadmapData:
    """Projection consumed by the roadmap (timeline) view."""

    ordered_cycles: list[Cycle]
    roadmap_items: list[RoadmapItemWithProgress]
    active_cycle: Cycle | None
    initiatives: list[InitiativeWithProgress]


@dataclass(frozen=True)
class CycleOverviewData:
    """Projection consumed by the single-cycle overview view."""

    cycle: CycleWithProgress
    initiatives: list[InitiativeWithProgress]

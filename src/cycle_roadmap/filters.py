"""Cascading filters over the nested cycle hierarchy.

Release items are tested against every active criterion; a roadmap item
survives when at least one of its release items does, and an initiative
survives when at least one of its roadmap items does. Surviving parents get
their metrics recomputed from the surviving children.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace

from cycle_roadmap.models import (
    FilterCriteria,
    FilterResult,
    InitiativeWithProgress,
    NestedCycleData,
    ReleaseItem,
    RoadmapItemWithProgress,
)
from cycle_roadmap.progress import aggregate_progress_metrics, calculate_release_item_progress

logger = logging.getLogger(__name__)

ALL = "all"


def _is_all(value) -> bool:
    if isinstance(value, Mapping):
        return value.get("id") == ALL or value.get("name") == ALL
    return value == ALL


def selected_ids(values) -> list[str] | None:
    """Ids selected for a criterion, or None when the criterion is inert.

    Accepts a single value or a list; entries are plain ids or mappings with an
    "id" key. An empty selection or one containing "all" is inert.
    """
    if values is None:
        return None
    if not isinstance(values, (list, tuple, set, frozenset)):
        values = [values]

    ids: list[str] = []
    for value in values:
        if _is_all(value):
            return None
        item_id = value.get("id") if isinstance(value, Mapping) else value
        if item_id is None or item_id == "":
            continue
        ids.append(str(item_id))
    return ids or None


def cycle_id_of(cycle) -> str | None:
    """Cycle id from a plain id or a `{"id": ...}` mapping; None when unset or "all"."""
    cycle_id = cycle.get("id") if isinstance(cycle, Mapping) else cycle
    if cycle_id is None or cycle_id == "" or cycle_id == ALL:
        return None
    return str(cycle_id)


@dataclass(frozen=True)
class _ActiveCriteria:
    """Release-item level criteria with inert entries resolved away."""

    areas: frozenset[str] | None
    stages: frozenset[str] | None
    assignees: frozenset[str] | None
    cycle: str | None
    show_validation_errors: bool

    @classmethod
    def resolve(cls, criteria: FilterCriteria) -> "_ActiveCriteria":
        areas = selected_ids(criteria.area)
        stages = selected_ids(criteria.stages)
        assignees = selected_ids(criteria.assignees)
        return cls(
            areas=frozenset(a.lower() for a in areas) if areas else None,
            stages=frozenset(stages) if stages else None,
            assignees=frozenset(assignees) if assignees else None,
            cycle=cycle_id_of(criteria.cycle),
            show_validation_errors=bool(criteria.show_validation_errors),
        )

    @property
    def any_active(self) -> bool:
        return (
            self.areas is not None
            or self.stages is not None
            or self.assignees is not None
            or self.cycle is not None
            or self.show_validation_errors
        )


def matches_area(release_item: ReleaseItem, areas: frozenset[str]) -> bool:
    return any(area_id.lower() in areas for area_id in release_item.area_ids)


def matches_stages(release_item: ReleaseItem, stages: frozenset[str]) -> bool:
    return bool(release_item.stage) and release_item.stage in stages


def matches_assignees(release_item: ReleaseItem, assignees: frozenset[str]) -> bool:
    if release_item.assignee is None:
        return False
    return release_item.assignee.id in assignees


def matches_cycle(release_item: ReleaseItem, cycle_id: str) -> bool:
    """Release item is scheduled in the cycle with `cycle_id`. Names are not compared."""
    if release_item.cycle_id == cycle_id:
        return True
    return release_item.cycle is not None and release_item.cycle.id == cycle_id


def _matches_cycle_id_or_name(release_item: ReleaseItem, cycle: str) -> bool:
    if matches_cycle(release_item, cycle):
        return True
    return release_item.cycle is not None and release_item.cycle.name == cycle


def _matches_all(
    release_item: ReleaseItem,
    roadmap_item: RoadmapItemWithProgress,
    active: _ActiveCriteria,
) -> bool:
    if active.areas is not None and not matches_area(release_item, active.areas):
        return False
    if active.stages is not None and not matches_stages(release_item, active.stages):
        return False
    if active.assignees is not None and not matches_assignees(release_item, active.assignees):
        return False
    if active.cycle is not None and not matches_cycle(release_item, active.cycle):
        return False
    if active.show_validation_errors and not (release_item.validations or roadmap_item.validations):
        return False
    return True


def _filter_roadmap_item(
    roadmap_item: RoadmapItemWithProgress,
    active: _ActiveCriteria,
) -> RoadmapItemWithProgress | None:
    release_items = [ri for ri in roadmap_item.release_items if _matches_all(ri, roadmap_item, active)]
    if not release_items:
        return None
    return replace(
        roadmap_item,
        release_items=release_items,
        metrics=calculate_release_item_progress(release_items),
    )


def _filter_initiative(
    initiative: InitiativeWithProgress,
    active: _ActiveCriteria,
) -> InitiativeWithProgress | None:
    roadmap_items = [
        filtered
        for filtered in (_filter_roadmap_item(item, active) for item in initiative.roadmap_items)
        if filtered is not None
    ]
    if not roadmap_items:
        return None
    return replace(
        initiative,
        roadmap_items=roadmap_items,
        metrics=aggregate_progress_metrics(item.metrics for item in roadmap_items),
    )


def apply_initiative_filter(data: NestedCycleData, initiatives: Iterable | None) -> NestedCycleData:
    """Keep only the selected initiatives; inert selections return `data` as is."""
    ids = selected_ids(initiatives)
    if ids is None:
        return data
    wanted = set(ids)
    return NestedCycleData(initiatives=[i for i in data.initiatives if i.id in wanted])


def count_items(data: NestedCycleData) -> tuple[int, int, int]:
    """Number of initiatives, roadmap items and release items in `data`."""
    roadmap_items = [item for initiative in data.initiatives for item in initiative.roadmap_items]
    release_items = sum(len(item.release_items) for item in roadmap_items)
    return len(data.initiatives), len(roadmap_items), release_items


def _as_criteria(criteria: FilterCriteria | Mapping | None) -> FilterCriteria:
    if isinstance(criteria, FilterCriteria):
        return criteria
    return FilterCriteria.from_dict(criteria if isinstance(criteria, Mapping) else None)


def _empty_result(criteria: FilterCriteria) -> FilterResult:
    return FilterResult(
        data=NestedCycleData(),
        applied_filters=criteria,
        total_initiatives=0,
        total_roadmap_items=0,
        total_release_items=0,
    )


def apply_filters(
    data: NestedCycleData | None,
    criteria: FilterCriteria | Mapping | None = None,
) -> FilterResult:
    """Apply every criterion to `data` and return the surviving hierarchy.

    The initiative filter runs first; release-item criteria then cascade
    upward. With no release-item criterion active the hierarchy is returned
    unchanged apart from the initiative filter.

    An omitted cycle is inert, but a cycle given as "", "all" or
    `{"id": "all"}` is a caller error: it is logged and the whole result is
    empty.
    """
    criteria = _as_criteria(criteria)

    if not isinstance(data, NestedCycleData):
        return _empty_result(criteria)

    if criteria.cycle is not None and cycle_id_of(criteria.cycle) is None:
        logger.error(
            "apply_filters: invalid cycle %r; pass a cycle id or leave the cycle unset",
            criteria.cycle,
        )
        return _empty_result(criteria)

    filtered = apply_initiative_filter(data, criteria.initiatives)

    active = _ActiveCriteria.resolve(criteria)
    if active.any_active:
        filtered = NestedCycleData(
            initiatives=[
                initiative
                for initiative in (_filter_initiative(i, active) for i in filtered.initiatives)
                if initiative is not None
            ]
        )

    initiatives, roadmap_items, release_items = count_items(filtered)
    logger.debug(
        "Filter kept %d initiatives, %d roadmap items, %d release items",
        initiatives,
        roadmap_items,
        release_items,
    )
    return FilterResult(
        data=filtered,
        applied_filters=criteria,
        total_initiatives=initiatives,
        total_roadmap_items=roadmap_items,
        total_release_items=release_items,
    )


def filter_by_cycle(initiatives, cycle) -> list[InitiativeWithProgress]:
    """Initiatives with at least one release item scheduled in `cycle`.

    A cycle must always be supplied: None, "" and "all" are caller errors,
    which are logged and answered with an empty list.
    """
    if cycle is None:
        logger.error("filter_by_cycle: no cycle provided; callers must pass a valid cycle")
        return []

    cycle_id = cycle_id_of(cycle)
    if cycle_id is None:
        logger.error("filter_by_cycle: invalid cycle id %r; callers must pass a valid cycle id", cycle)
        return []

    if not isinstance(initiatives, (list, tuple)):
        logger.error("filter_by_cycle: expected a list of initiatives, got %s", type(initiatives).__name__)
        return []

    return [
        initiative
        for initiative in initiatives
        if any(
            _matches_cycle_id_or_name(release_item, cycle_id)
            for roadmap_item in initiative.roadmap_items
            for release_item in roadmap_item.release_items
        )
    ]

"""Building the Initiative -> RoadmapItem -> ReleaseItem hierarchy."""

import logging
from collections.abc import Mapping
from dataclasses import replace

from cycle_roadmap.datasource import parse_cycle_data
from cycle_roadmap.models import (
    Cycle,
    CycleData,
    CycleRef,
    InitiativeWithProgress,
    NestedCycleData,
    ReleaseItem,
    RoadmapItem,
    RoadmapItemWithProgress,
)
from cycle_roadmap.progress import aggregate_progress_metrics, calculate_release_item_progress

logger = logging.getLogger(__name__)

UNASSIGNED_INITIATIVE_ID = "unassigned"
UNASSIGNED_INITIATIVE_NAME = "Unassigned Initiative"


def cycle_name(cycles: list[Cycle], cycle_id: str) -> str:
    """Name of the cycle with `cycle_id`, or a "Cycle <id>" placeholder."""
    for cycle in cycles:
        if cycle.id == cycle_id:
            return cycle.name or f"Cycle {cycle_id}"
    return f"Cycle {cycle_id}"


def _attach_cycle(release_item: ReleaseItem, cycles: list[Cycle]) -> ReleaseItem:
    if release_item.cycle is not None:
        return release_item
    if not release_item.cycle_id:
        return replace(release_item, cycle=CycleRef(id="", name=""))
    return replace(
        release_item,
        cycle=CycleRef(id=release_item.cycle_id, name=cycle_name(cycles, release_item.cycle_id)),
    )


def _roadmap_item_url(item: RoadmapItem, browse_url: str | None) -> str:
    if item.url:
        return item.url
    if browse_url:
        return f"{browse_url.rstrip('/')}/browse/{item.id}"
    return ""


def build_roadmap_item(
    item: RoadmapItem,
    release_items: list[ReleaseItem],
    cycles: list[Cycle],
    browse_url: str | None = None,
) -> RoadmapItemWithProgress:
    """Attach release items and their metrics to a roadmap item."""
    attached = [_attach_cycle(release_item, cycles) for release_item in release_items]
    return RoadmapItemWithProgress(
        id=item.id,
        name=item.name or f"Roadmap Item {item.id}",
        area=item.area,
        theme=item.theme,
        initiative_id=item.initiative_id or UNASSIGNED_INITIATIVE_ID,
        url=_roadmap_item_url(item, browse_url),
        validations=list(item.validations),
        release_items=attached,
        metrics=calculate_release_item_progress(attached),
    )


def build_initiative(
    initiative_id: str,
    name: str,
    roadmap_items: list[RoadmapItemWithProgress],
) -> InitiativeWithProgress:
    """Initiative whose metrics are aggregated from its roadmap items."""
    return InitiativeWithProgress(
        id=initiative_id,
        name=name,
        roadmap_items=roadmap_items,
        metrics=aggregate_progress_metrics(item.metrics for item in roadmap_items),
    )


def sort_by_weeks(initiatives: list[InitiativeWithProgress]) -> list[InitiativeWithProgress]:
    """Heaviest initiatives first; ties keep their input order."""
    return sorted(initiatives, key=lambda initiative: initiative.metrics.weeks, reverse=True)


def build_nested_structure(
    raw: CycleData | Mapping | None,
    browse_url: str | None = None,
) -> NestedCycleData:
    """Group flat roadmap and release items into the nested hierarchy.

    Args:
        raw: Parsed `CycleData`, or the data source's JSON mapping
        browse_url: Base URL for roadmap items that carry no URL of their own

    Returns:
        NestedCycleData with initiatives sorted by effort, largest first
    """
    data = raw if isinstance(raw, CycleData) else parse_cycle_data(raw)

    initiative_names = {initiative.id: initiative.name for initiative in data.initiatives}

    release_items_by_roadmap_item: dict[str, list[ReleaseItem]] = {}
    for release_item in data.release_items:
        if release_item.roadmap_item_id:
            release_items_by_roadmap_item.setdefault(release_item.roadmap_item_id, []).append(
                release_item
            )

    grouped: dict[str, list[RoadmapItemWithProgress]] = {}
    for item in data.roadmap_items:
        roadmap_item = build_roadmap_item(
            item,
            release_items_by_roadmap_item.get(item.id, []),
            data.cycles,
            browse_url,
        )
        grouped.setdefault(roadmap_item.initiative_id, []).append(roadmap_item)

    initiatives = [
        build_initiative(
            initiative_id,
            initiative_names.get(initiative_id) or UNASSIGNED_INITIATIVE_NAME,
            roadmap_items,
        )
        for initiative_id, roadmap_items in grouped.items()
    ]

    logger.debug(
        "Built %d initiatives from %d roadmap items and %d release items",
        len(initiatives),
        len(data.roadmap_items),
        len(data.release_items),
    )
    return NestedCycleData(initiatives=sort_by_weeks(initiatives))

"""Cycle data processing and view projections."""

from collections.abc import Mapping
from dataclasses import asdict
from datetime import date

from cycle_roadmap.filters import apply_filters
from cycle_roadmap.models import (
    Cycle,
    CycleData,
    CycleOverviewData,
    CycleWithProgress,
    FilterCriteria,
    FilterResult,
    InitiativeWithProgress,
    NestedCycleData,
    ProgressMetrics,
    ReleaseItem,
    RoadmapData,
    RoadmapItemWithProgress,
)
from cycle_roadmap.progress import calculate_cycle_progress, round_metrics
from cycle_roadmap.structure import build_nested_structure

CLOSED_STATES = frozenset({"closed", "completed"})


def _cycle_sort_date(cycle: Cycle) -> date:
    return cycle.start or cycle.delivery or date.min


def select_default_cycle(cycles: list[Cycle] | None, today: date | None = None) -> Cycle | None:
    """Pick the cycle a view should open on.

    Priority: oldest active cycle, then oldest future cycle that is not closed,
    then oldest closed cycle, then simply the oldest cycle.
    """
    if not isinstance(cycles, (list, tuple)) or not cycles:
        return None

    today = today or date.today()
    ordered = sorted(cycles, key=_cycle_sort_date)

    active = [c for c in ordered if c.state == "active"]
    if active:
        return active[0]

    future = [c for c in ordered if _cycle_sort_date(c) > today and c.state not in CLOSED_STATES]
    if future:
        return future[0]

    closed = [c for c in ordered if c.state in CLOSED_STATES]
    if closed:
        return closed[0]

    return ordered[0]


def process_cycle_data(
    raw: CycleData | Mapping | None,
    filters: FilterCriteria | Mapping | None = None,
    browse_url: str | None = None,
) -> NestedCycleData:
    """Build the nested hierarchy and apply `filters` to it."""
    return filter_cycle_data(build_nested_structure(raw, browse_url=browse_url), filters).data


def filter_cycle_data(
    processed: NestedCycleData,
    filters: FilterCriteria | Mapping | None = None,
) -> FilterResult:
    return apply_filters(processed, filters)


def _flatten_roadmap_items(initiatives: list[InitiativeWithProgress]) -> list[RoadmapItemWithProgress]:
    return [item for initiative in initiatives for item in initiative.roadmap_items]


def generate_roadmap_data(
    raw: CycleData | None,
    processed: NestedCycleData | None,
    filters: FilterCriteria | Mapping | None = None,
    today: date | None = None,
) -> RoadmapData:
    """Projection for the roadmap view over every cycle."""
    if processed is None:
        return RoadmapData(ordered_cycles=[], roadmap_items=[], active_cycle=None, initiatives=[])

    cycles = list(raw.cycles) if raw is not None else []
    initiatives = apply_filters(processed, filters).data.initiatives

    return RoadmapData(
        ordered_cycles=sorted(cycles, key=_cycle_sort_date),
        roadmap_items=_flatten_roadmap_items(initiatives),
        active_cycle=select_default_cycle(cycles, today),
        initiatives=initiatives,
    )


def generate_cycle_overview_data(
    raw: CycleData | None,
    processed: NestedCycleData | None,
    filters: FilterCriteria | Mapping | None = None,
    today: date | None = None,
) -> CycleOverviewData | None:
    """Projection for the single-cycle overview view.

    The cycle is the one selected by the `cycle` filter when it names a known
    cycle, otherwise the default cycle. Returns None without data or cycles.
    """
    if processed is None or raw is None or not raw.cycles:
        return None

    criteria = filters if isinstance(filters, FilterCriteria) else FilterCriteria.from_dict(filters)
    selected = _find_cycle(raw.cycles, criteria.cycle) or select_default_cycle(raw.cycles, today)
    if selected is None:
        return None

    initiatives = apply_filters(processed, criteria).data.initiatives
    return CycleOverviewData(
        cycle=calculate_cycle_progress(selected, initiatives, today),
        initiatives=initiatives,
    )


def _find_cycle(cycles: list[Cycle], cycle) -> Cycle | None:
    cycle_id = cycle.get("id") if isinstance(cycle, Mapping) else cycle
    if not cycle_id:
        return None
    return next((c for c in cycles if c.id == str(cycle_id)), None)


def _date_str(d: date | None) -> str | None:
    return d.isoformat() if d else None


def cycle_to_dict(cycle: Cycle) -> dict:
    return {
        "id": cycle.id,
        "name": cycle.name,
        "state": cycle.state,
        "start": _date_str(cycle.start),
        "end": _date_str(cycle.end),
        "delivery": _date_str(cycle.delivery),
    }


def metrics_to_dict(metrics: ProgressMetrics) -> dict:
    return asdict(round_metrics(metrics))


def release_item_to_dict(item: ReleaseItem) -> dict:
    return {
        "id": item.id,
        "ticket_id": item.ticket_id,
        "name": item.name,
        "effort": item.effort,
        "area_ids": list(item.area_ids),
        "teams": list(item.teams),
        "status": item.status,
        "stage": item.stage,
        "assignee": asdict(item.assignee) if item.assignee else None,
        "cycle_id": item.cycle_id,
        "roadmap_item_id": item.roadmap_item_id,
        "url": item.url,
        "validations": [asdict(v) for v in item.validations],
        "cycle": asdict(item.cycle) if item.cycle else None,
    }


def roadmap_item_to_dict(item: RoadmapItemWithProgress) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "area": item.area,
        "theme": item.theme,
        "initiative_id": item.initiative_id,
        "url": item.url,
        "validations": [asdict(v) for v in item.validations],
        "release_items": [release_item_to_dict(ri) for ri in item.release_items],
        **metrics_to_dict(item.metrics),
    }


def initiative_to_dict(initiative: InitiativeWithProgress) -> dict:
    return {
        "id": initiative.id,
        "name": initiative.name,
        "roadmap_items": [roadmap_item_to_dict(item) for item in initiative.roadmap_items],
        **metrics_to_dict(initiative.metrics),
    }


def nested_cycle_data_to_dict(data: NestedCycleData) -> dict:
    return {"initiatives": [initiative_to_dict(i) for i in data.initiatives]}


def cycle_data_to_dict(data: CycleData) -> dict:
    """Flat record set, keyed the same way the data source delivers it."""
    return {
        "cycles": [cycle_to_dict(c) for c in data.cycles],
        "initiatives": [{"id": i.id, "name": i.name} for i in data.initiatives],
        "roadmapItems": [
            {
                "id": item.id,
                "name": item.name,
                "area": item.area,
                "theme": item.theme,
                "initiativeId": item.initiative_id,
                "url": item.url,
                "validations": [asdict(v) for v in item.validations],
            }
            for item in data.roadmap_items
        ],
        "releaseItems": [
            {
                "id": item.id,
                "ticketId": item.ticket_id,
                "name": item.name,
                "effort": item.effort,
                "areaIds": list(item.area_ids),
                "teams": list(item.teams),
                "status": item.status,
                "stage": item.stage,
                "assignee": asdict(item.assignee) if item.assignee else None,
                "cycleId": item.cycle_id,
                "roadmapItemId": item.roadmap_item_id,
                "url": item.url,
                "validations": [asdict(v) for v in item.validations],
            }
            for item in data.release_items
        ],
    }


def cycle_with_progress_to_dict(cycle: CycleWithProgress) -> dict:
    return {
        **cycle_to_dict(cycle.cycle),
        **metrics_to_dict(cycle.metrics),
        **asdict(cycle.metadata),
    }


def roadmap_data_to_dict(data: RoadmapData) -> dict:
    """Convert RoadmapData to a JSON-serializable dict."""
    return {
        "ordered_cycles": [cycle_to_dict(c) for c in data.ordered_cycles],
        "roadmap_items": [roadmap_item_to_dict(item) for item in data.roadmap_items],
        "active_cycle": cycle_to_dict(data.active_cycle) if data.active_cycle else None,
        "initiatives": [initiative_to_dict(i) for i in data.initiatives],
    }


def cycle_overview_data_to_dict(data: CycleOverviewData | None) -> dict | None:
    """Convert CycleOverviewData to a JSON-serializable dict."""
    if data is None:
        return None
    return {
        "cycle": cycle_with_progress_to_dict(data.cycle),
        "initiatives": [initiative_to_dict(i) for i in data.initiatives],
    }


def filter_result_to_dict(result: FilterResult) -> dict:
    return {
        **nested_cycle_data_to_dict(result.data),
        "applied_filters": asdict(result.applied_filters),
        "total_initiatives": result.total_initiatives,
        "total_roadmap_items": result.total_roadmap_items,
        "total_release_items": result.total_release_items,
    }

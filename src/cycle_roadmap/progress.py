"""Progress and effort calculations for release items, roadmap items and cycles."""

import math
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date

from cycle_roadmap.models import (
    Cycle,
    CycleMetadata,
    CycleWithProgress,
    InitiativeWithProgress,
    ProgressMetrics,
    ReleaseItem,
)
from cycle_roadmap.status import (
    CANCELLED,
    DONE,
    IN_PROGRESS,
    POSTPONED,
    REPLANNED,
    TODO,
    normalize_status,
)

WEEK_FIELDS = (
    "weeks",
    "weeks_done",
    "weeks_in_progress",
    "weeks_todo",
    "weeks_not_to_do",
    "weeks_cancelled",
    "weeks_postponed",
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def round_weeks(value: float) -> float:
    return round(value, 2)


def round_metrics(metrics: ProgressMetrics) -> ProgressMetrics:
    """Copy of `metrics` with the week counters rounded to 2 decimals for display."""
    return replace(metrics, **{name: round_weeks(getattr(metrics, name)) for name in WEEK_FIELDS})


def percentage(numerator: float, denominator: float) -> int:
    """Integer percentage clamped to [0, 100]; a zero denominator gives 0."""
    if not denominator or denominator <= 0:
        return 0
    return min(100, max(0, round_half_up(numerator / denominator * 100)))


def parse_effort(value) -> float:
    """Effort in weeks; numeric strings are accepted, anything else is 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    try:
        parsed = float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def _sum_effort(items: Iterable[ReleaseItem]) -> float:
    return math.fsum(parse_effort(item.effort) for item in items)


def _with_percentages(
    weeks: float,
    weeks_done: float,
    weeks_in_progress: float,
    weeks_todo: float,
    weeks_cancelled: float,
    weeks_postponed: float,
    item_count: int,
    item_done_count: int,
) -> ProgressMetrics:
    weeks_not_to_do = weeks_postponed + weeks_cancelled
    return ProgressMetrics(
        weeks=weeks,
        weeks_done=weeks_done,
        weeks_in_progress=weeks_in_progress,
        weeks_todo=weeks_todo,
        weeks_not_to_do=weeks_not_to_do,
        weeks_cancelled=weeks_cancelled,
        weeks_postponed=weeks_postponed,
        item_count=item_count,
        item_done_count=item_done_count,
        progress=percentage(weeks_done, weeks),
        progress_with_in_progress=percentage(weeks_done + weeks_in_progress, weeks),
        progress_by_items=percentage(item_done_count, item_count),
        percentage_not_to_do=percentage(weeks_not_to_do, weeks),
    )


def calculate_release_item_progress(release_items: Sequence[ReleaseItem] | None) -> ProgressMetrics:
    """Compute progress metrics over a set of release items.

    Replanned items are left out of `weeks` and `item_count`. The per-status
    sums are taken over every item, so they need not add up to `weeks`. Week
    counters are unrounded; `round_metrics` rounds them for display.
    """
    if not isinstance(release_items, (list, tuple)) or not release_items:
        return ProgressMetrics()

    by_status: dict[str, list[ReleaseItem]] = {}
    for item in release_items:
        by_status.setdefault(normalize_status(item.status), []).append(item)

    planned = [item for item in release_items if normalize_status(item.status) != REPLANNED]

    return _with_percentages(
        weeks=_sum_effort(planned),
        weeks_done=_sum_effort(by_status.get(DONE, [])),
        weeks_in_progress=_sum_effort(by_status.get(IN_PROGRESS, [])),
        weeks_todo=_sum_effort(by_status.get(TODO, [])),
        weeks_cancelled=_sum_effort(by_status.get(CANCELLED, [])),
        weeks_postponed=_sum_effort(by_status.get(POSTPONED, [])),
        item_count=len(planned),
        item_done_count=len(by_status.get(DONE, [])),
    )


def aggregate_progress_metrics(metrics: Iterable[ProgressMetrics]) -> ProgressMetrics:
    """Sum the raw counters of child metrics and recompute the percentages.

    Percentages are never averaged across children.
    """
    metrics = list(metrics)
    if not metrics:
        return ProgressMetrics()

    def total(name: str) -> float:
        return math.fsum(getattr(m, name) for m in metrics)

    return _with_percentages(
        weeks=total("weeks"),
        weeks_done=total("weeks_done"),
        weeks_in_progress=total("weeks_in_progress"),
        weeks_todo=total("weeks_todo"),
        weeks_cancelled=total("weeks_cancelled"),
        weeks_postponed=total("weeks_postponed"),
        item_count=sum(m.item_count for m in metrics),
        item_done_count=sum(m.item_done_count for m in metrics),
    )


def calculate_cycle_metadata(cycle: Cycle | None, today: date | None = None) -> CycleMetadata:
    """Month labels and day counters describing where `today` sits in a cycle."""
    if cycle is None or cycle.start is None or cycle.end is None:
        return CycleMetadata()

    today = today or date.today()
    days_from_start = (today - cycle.start).days
    days_in_cycle = (cycle.end - cycle.start).days

    return CycleMetadata(
        start_month=cycle.start.strftime("%b"),
        end_month=cycle.end.strftime("%b"),
        days_from_start_of_cycle=max(0, days_from_start),
        days_in_cycle=max(0, days_in_cycle),
        current_day_percentage=percentage(days_from_start, days_in_cycle),
    )


def calculate_cycle_progress(
    cycle: Cycle,
    initiatives: Sequence[InitiativeWithProgress],
    today: date | None = None,
) -> CycleWithProgress:
    """Progress of a cycle over every release item of the given initiatives."""
    release_items = [
        release_item
        for initiative in initiatives
        for roadmap_item in initiative.roadmap_items
        for release_item in roadmap_item.release_items
    ]
    return CycleWithProgress(
        cycle=cycle,
        metrics=calculate_release_item_progress(release_items),
        metadata=calculate_cycle_metadata(cycle, today),
    )

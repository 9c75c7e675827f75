"""Per-view filter state for the roadmap and cycle overview views."""

import copy
import logging
from dataclasses import dataclass

from cycle_roadmap.config import VIEW_CYCLE_OVERVIEW, VIEW_ROADMAP, VIEWS
from cycle_roadmap.exceptions import InvalidFilterError, UnknownViewError

logger = logging.getLogger(__name__)

COMMON = "common"


@dataclass(frozen=True)
class FilterCategory:
    """Where a filter key lives: the shared bucket or one view's bucket."""

    key: str
    common: bool
    views: tuple[str, ...]
    description: str = ""


FILTER_CATEGORIES: tuple[FilterCategory, ...] = (
    FilterCategory("area", True, (VIEW_CYCLE_OVERVIEW, VIEW_ROADMAP), "Filter by area/team"),
    FilterCategory("initiatives", True, (VIEW_CYCLE_OVERVIEW, VIEW_ROADMAP), "Filter by initiatives"),
    FilterCategory(
        "show_validation_errors",
        True,
        (VIEW_CYCLE_OVERVIEW, VIEW_ROADMAP),
        "Show only items with validation errors",
    ),
    FilterCategory("stages", False, (VIEW_CYCLE_OVERVIEW,), "Filter by release stages"),
    FilterCategory("assignees", False, (VIEW_CYCLE_OVERVIEW,), "Filter by assignees"),
    FilterCategory("cycle", False, (VIEW_CYCLE_OVERVIEW,), "Filter by cycle"),
)


def _check_view(view: str) -> str:
    if view not in VIEWS:
        raise UnknownViewError(f"Unknown view '{view}'. Known views: {', '.join(VIEWS)}")
    return view


class ViewFilterManager:
    """Holds common and view-specific filters and merges them for the active view.

    Common filters apply to every view. View-specific filters live in the
    bucket of the view that owns them and only show up while that view is
    active. Switching views never clears anything; use
    `reset_view_specific_filters` for that.
    """

    def __init__(
        self,
        initial_view: str = VIEW_CYCLE_OVERVIEW,
        categories: tuple[FilterCategory, ...] = FILTER_CATEGORIES,
    ) -> None:
        self._current_view = _check_view(initial_view)
        self._categories = {category.key: category for category in categories}
        self._common: dict = {}
        self._specific: dict[str, dict] = {view: {} for view in VIEWS}

    def get_current_view(self) -> str:
        return self._current_view

    def is_common_filter(self, key: str) -> bool:
        category = self._categories.get(key)
        return category is not None and category.common

    def get_view_filters(self, view: str) -> list[str]:
        """Filter keys available in `view`, common ones first."""
        _check_view(view)
        common = [c.key for c in self._categories.values() if c.common]
        specific = [c.key for c in self._categories.values() if not c.common and view in c.views]
        return common + specific

    def switch_view(self, view: str) -> dict:
        """Make `view` active and return its merged filters."""
        self._current_view = _check_view(view)
        return self.get_active_filters()

    def update_filter(self, key: str, value) -> dict:
        """Set (or with None, remove) a filter and return the active filters.

        The bucket is chosen from the classification table, not from the
        active view.

        Raises:
            InvalidFilterError: If `key` is not a known filter
        """
        category = self._categories.get(key)
        if category is None:
            raise InvalidFilterError(
                f"Unknown filter '{key}'. Known filters: {', '.join(self._categories)}"
            )

        buckets = [self._common] if category.common else [self._specific[v] for v in category.views]
        for bucket in buckets:
            if value is None:
                bucket.pop(key, None)
            else:
                bucket[key] = copy.deepcopy(value)

        return self.get_active_filters()

    def get_active_filters(self) -> dict:
        """Common filters overlaid with the active view's own filters."""
        return self.get_filters_for_view(self._current_view)

    def get_filters_for_view(self, view: str) -> dict:
        """Merged filters `view` would see, without making it active."""
        return copy.deepcopy({**self._common, **self._specific[_check_view(view)]})

    def reset_view_specific_filters(self, view: str) -> None:
        """Clear one view's own filters; common filters and other views are kept."""
        self._specific[_check_view(view)] = {}

    def clear_all_filters(self) -> None:
        self._common = {}
        self._specific = {view: {} for view in VIEWS}

    def get_all_view_filters(self) -> dict:
        return copy.deepcopy({COMMON: self._common, **self._specific})

    def set_all_view_filters(self, filters: dict) -> None:
        """Restore state produced by `get_all_view_filters`.

        Keys that do not belong to a bucket are dropped with a warning.
        """
        common: dict = {}
        specific: dict[str, dict] = {view: {} for view in VIEWS}

        for key, value in (filters.get(COMMON) or {}).items():
            if self.is_common_filter(key):
                common[key] = copy.deepcopy(value)
            else:
                logger.warning("Dropping filter '%s': not a common filter", key)

        for view in VIEWS:
            for key, value in (filters.get(view) or {}).items():
                category = self._categories.get(key)
                if category is not None and not category.common and view in category.views:
                    specific[view][key] = copy.deepcopy(value)
                else:
                    logger.warning("Dropping filter '%s': not a filter of view '%s'", key, view)

        self._common = common
        self._specific = specific

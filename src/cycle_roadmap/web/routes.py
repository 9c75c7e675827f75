"""HTTP route handlers for the Cycle Roadmap JSON API."""

import logging

from flask import Blueprint, current_app, jsonify, request

from cycle_roadmap.config import VIEW_CYCLE_OVERVIEW, VIEW_ROADMAP, config_exists
from cycle_roadmap.datasource import load_cycle_data
from cycle_roadmap.exceptions import (
    ConfigNotFoundError,
    DataSourceError,
    InvalidConfigError,
    InvalidFilterError,
    NoCycleDataError,
    RoadmapError,
    UnknownViewError,
)
from cycle_roadmap.pipeline import (
    cycle_data_to_dict,
    cycle_overview_data_to_dict,
    filter_cycle_data,
    filter_result_to_dict,
    generate_cycle_overview_data,
    generate_roadmap_data,
    roadmap_data_to_dict,
)
from cycle_roadmap.structure import build_nested_structure
from cycle_roadmap.view_filters import ViewFilterManager

logger = logging.getLogger(__name__)

bp = Blueprint("main", __name__)

_ERROR_STATUS: tuple[tuple[type[RoadmapError], int], ...] = (
    (ConfigNotFoundError, 503),
    (InvalidConfigError, 503),
    (DataSourceError, 503),
    (NoCycleDataError, 404),
    (InvalidFilterError, 400),
    (UnknownViewError, 404),
)


def _error_response(error: RoadmapError):
    for error_type, status in _ERROR_STATUS:
        if isinstance(error, error_type):
            return jsonify({"error": str(error)}), status
    logger.exception("Unhandled roadmap error")
    return jsonify({"error": str(error)}), 500


def _manager() -> ViewFilterManager:
    return current_app.extensions["view_filters"]


def _load():
    """Raw record set and its nested hierarchy for the current request."""
    config = current_app.config.get("CYCLE_ROADMAP_CONFIG")
    raw = load_cycle_data(config)
    browse_url = config.browse_url if config is not None else None
    return raw, build_nested_structure(raw, browse_url=browse_url)


def _has_config() -> bool:
    return current_app.config.get("CYCLE_ROADMAP_CONFIG") is not None or config_exists()


@bp.route("/health")
def health():
    """Health check endpoint."""
    if _has_config():
        return jsonify({"status": "ok", "config_loaded": True})
    return jsonify({
        "status": "error",
        "config_loaded": False,
        "message": "Configuration not found",
    }), 503


@bp.route("/api/cycle-data")
def api_cycle_data():
    """Return the flat record set as delivered by the data source."""
    try:
        raw, _ = _load()
    except RoadmapError as e:
        return _error_response(e)
    return jsonify(cycle_data_to_dict(raw))


@bp.route("/api/nested")
def api_nested():
    """Return the nested hierarchy filtered by the active view's filters."""
    try:
        _, processed = _load()
    except RoadmapError as e:
        return _error_response(e)
    result = filter_cycle_data(processed, _manager().get_active_filters())
    return jsonify(filter_result_to_dict(result))


@bp.route("/api/roadmap")
def api_roadmap():
    """Return the roadmap projection under the roadmap view's filters.

    Read-only: the active view is changed through POST /api/views/<view>.
    """
    try:
        raw, processed = _load()
    except RoadmapError as e:
        return _error_response(e)
    filters = _manager().get_filters_for_view(VIEW_ROADMAP)
    return jsonify(roadmap_data_to_dict(generate_roadmap_data(raw, processed, filters)))


@bp.route("/api/cycle-overview")
def api_cycle_overview():
    """Return the cycle overview projection under that view's filters.

    Read-only: the active view is changed through POST /api/views/<view>.
    """
    try:
        raw, processed = _load()
    except RoadmapError as e:
        return _error_response(e)
    filters = _manager().get_filters_for_view(VIEW_CYCLE_OVERVIEW)
    overview = generate_cycle_overview_data(raw, processed, filters)
    if overview is None:
        return jsonify({"error": "No cycles available"}), 404
    return jsonify(cycle_overview_data_to_dict(overview))


@bp.route("/api/filters")
def api_filters():
    """Return the active view, its filters and every bucket."""
    manager = _manager()
    view = manager.get_current_view()
    return jsonify({
        "view": view,
        "available": manager.get_view_filters(view),
        "active": manager.get_active_filters(),
        "all": manager.get_all_view_filters(),
    })


@bp.route("/api/filters/<key>", methods=["PUT"])
def api_update_filter(key):
    """Set a filter; a null value removes it."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict) or "value" not in payload:
        return jsonify({"error": "Request body must be a JSON object with a 'value' key"}), 400
    try:
        active = _manager().update_filter(key, payload["value"])
    except RoadmapError as e:
        return _error_response(e)
    return jsonify(active)


@bp.route("/api/views/<view>", methods=["POST"])
def api_switch_view(view):
    """Make `view` the active view."""
    try:
        active = _manager().switch_view(view)
    except RoadmapError as e:
        return _error_response(e)
    return jsonify({"view": view, "active": active})


@bp.route("/api/views/<view>/filters", methods=["DELETE"])
def api_reset_view_filters(view):
    """Clear the filters that belong to `view` only."""
    manager = _manager()
    try:
        manager.reset_view_specific_filters(view)
    except RoadmapError as e:
        return _error_response(e)
    return jsonify({"view": manager.get_current_view(), "active": manager.get_active_filters()})

"""Tests for the view projections and JSON serializers."""

import json
from datetime import date

from cycle_roadmap.models import Cycle, CycleData, ReleaseItem
from cycle_roadmap.pipeline import (
    cycle_data_to_dict,
    cycle_overview_data_to_dict,
    filter_cycle_data,
    filter_result_to_dict,
    generate_cycle_overview_data,
    generate_roadmap_data,
    metrics_to_dict,
    process_cycle_data,
    roadmap_data_to_dict,
    select_default_cycle,
)
from cycle_roadmap.progress import calculate_release_item_progress

TODAY = date(2026, 2, 15)


def _cycle(cycle_id, state, start):
    return Cycle(id=cycle_id, name=cycle_id, state=state, start=start)


class TestSelectDefaultCycle:
    """Tests for select_default_cycle."""

    def test_prefers_oldest_active(self):
        cycles = [
            _cycle("late", "active", date(2026, 3, 1)),
            _cycle("early", "active", date(2026, 1, 1)),
            _cycle("future", "future", date(2026, 6, 1)),
        ]
        assert select_default_cycle(cycles, TODAY).id == "early"

    def test_falls_back_to_oldest_future(self):
        cycles = [
            _cycle("far", "future", date(2026, 9, 1)),
            _cycle("near", "future", date(2026, 4, 1)),
            _cycle("old", "closed", date(2025, 1, 1)),
        ]
        assert select_default_cycle(cycles, TODAY).id == "near"

    def test_future_cycle_that_is_closed_is_skipped(self):
        cycles = [
            _cycle("done-early", "completed", date(2026, 5, 1)),
            _cycle("old", "closed", date(2025, 1, 1)),
        ]
        assert select_default_cycle(cycles, TODAY).id == "old"

    def test_falls_back_to_oldest_cycle(self):
        cycles = [_cycle("b", "", date(2025, 6, 1)), _cycle("a", "", date(2025, 1, 1))]
        assert select_default_cycle(cycles, TODAY).id == "a"

    def test_no_cycles(self):
        assert select_default_cycle([], TODAY) is None
        assert select_default_cycle(None, TODAY) is None


class TestProcessCycleData:
    def test_builds_and_filters(self, cycle_data):
        processed = process_cycle_data(cycle_data, {"initiatives": ["i2"], "stages": ["s3"]})

        assert [i.id for i in processed.initiatives] == ["i2"]
        assert [item.id for item in processed.initiatives[0].roadmap_items] == ["r3"]

    def test_accepts_raw_mapping(self, raw_payload):
        processed = process_cycle_data(raw_payload)
        assert [i.id for i in processed.initiatives] == ["i2", "i1", "unassigned"]

    def test_filter_cycle_data_reports_totals(self, nested):
        result = filter_cycle_data(nested, {"area": "backend"})

        assert result.total_initiatives == 2
        assert result.total_roadmap_items == 2
        assert result.total_release_items == 2


class TestGenerateRoadmapData:
    """Tests for generate_roadmap_data."""

    def test_projection(self, cycle_data, nested):
        data = generate_roadmap_data(cycle_data, nested, {"area": "frontend"}, today=TODAY)

        assert [c.id for c in data.ordered_cycles] == ["c0", "c1", "c2"]
        assert data.active_cycle.id == "c1"
        assert [i.id for i in data.initiatives] == ["i2", "i1"]
        assert [item.id for item in data.roadmap_items] == ["r3", "r1"]

    def test_without_processed_data(self, cycle_data):
        data = generate_roadmap_data(cycle_data, None)

        assert data.ordered_cycles == []
        assert data.active_cycle is None
        assert data.initiatives == []

    def test_serializes_to_json(self, cycle_data, nested):
        result = roadmap_data_to_dict(generate_roadmap_data(cycle_data, nested, today=TODAY))

        assert result["active_cycle"]["start"] == "2026-01-01"
        assert result["initiatives"][0]["id"] == "i2"
        assert result["initiatives"][0]["progress"] == 57
        json.dumps(result)


class TestGenerateCycleOverviewData:
    """Tests for generate_cycle_overview_data."""

    def test_defaults_to_active_cycle(self, cycle_data, nested):
        overview = generate_cycle_overview_data(cycle_data, nested, today=TODAY)
        assert overview.cycle.cycle.id == "c1"

    def test_cycle_filter_selects_cycle_and_items(self, cycle_data, nested):
        overview = generate_cycle_overview_data(cycle_data, nested, {"cycle": "c1"}, today=TODAY)

        assert overview.cycle.cycle.id == "c1"
        assert overview.cycle.metrics.weeks == 8
        assert overview.cycle.metrics.weeks_done == 6
        assert overview.cycle.metrics.progress == 75
        assert [i.id for i in overview.initiatives] == ["i2", "i1"]

    def test_selects_requested_cycle(self, cycle_data, nested):
        overview = generate_cycle_overview_data(cycle_data, nested, {"cycle": {"id": "c2"}}, today=TODAY)

        assert overview.cycle.cycle.name == "Cycle Two"
        assert overview.cycle.metrics.weeks == 3
        assert overview.cycle.metadata.start_month == "Apr"
        assert overview.cycle.metadata.days_from_start_of_cycle == 0

    def test_unknown_cycle_falls_back_to_default(self, cycle_data, nested):
        overview = generate_cycle_overview_data(cycle_data, nested, {"cycle": "c9"}, today=TODAY)

        assert overview.cycle.cycle.id == "c1"
        assert [i.id for i in overview.initiatives] == ["unassigned"]

    def test_none_without_cycles(self, nested):
        assert generate_cycle_overview_data(CycleData(), nested) is None
        assert generate_cycle_overview_data(None, nested) is None
        assert cycle_overview_data_to_dict(None) is None

    def test_serializes_to_json(self, cycle_data, nested):
        result = cycle_overview_data_to_dict(
            generate_cycle_overview_data(cycle_data, nested, {"cycle": "c1"}, today=TODAY)
        )

        assert result["cycle"]["id"] == "c1"
        assert result["cycle"]["progress"] == 75
        assert result["cycle"]["start_month"] == "Jan"
        json.dumps(result)


class TestSerializers:
    def test_metrics_are_rounded_for_output(self):
        metrics = calculate_release_item_progress(
            [ReleaseItem(id="a", effort=0.3333, status="done"), ReleaseItem(id="b", effort=1.0, status="todo")]
        )

        result = metrics_to_dict(metrics)

        assert result["weeks"] == 1.33
        assert result["weeks_done"] == 0.33
        assert result["progress"] == 25

    def test_cycle_data_keeps_source_keys(self, cycle_data):
        result = cycle_data_to_dict(cycle_data)

        assert set(result) == {"cycles", "initiatives", "roadmapItems", "releaseItems"}
        assert result["releaseItems"][0]["roadmapItemId"] == "r1"
        assert result["releaseItems"][0]["assignee"] == {"id": "u1", "name": "Ann"}
        json.dumps(result)

    def test_filter_result(self, nested):
        result = filter_result_to_dict(filter_cycle_data(nested, {"show_validation_errors": True}))

        assert result["total_release_items"] == 1
        assert result["applied_filters"]["show_validation_errors"] is True
        release_item = result["initiatives"][0]["roadmap_items"][0]["release_items"][0]
        assert release_item["validations"][0]["code"] == "missingEstimate"
        assert release_item["cycle"] == {"id": "c1", "name": "Cycle One"}
        json.dumps(result)

"""Shared cycle data fixtures."""

import copy

import pytest

from cycle_roadmap.datasource import parse_cycle_data
from cycle_roadmap.structure import build_nested_structure

# Weeks per initiative: i2 = 7 (r2 + r3), i1 = 4 (r1, r5 empty), unassigned = 1 (r4)
RAW_CYCLE_DATA = {
    "cycles": [
        {"id": "c1", "name": "Cycle One", "state": "active", "start": "2026-01-01", "end": "2026-03-31"},
        {"id": "c2", "name": "Cycle Two", "state": "future", "start": "2026-04-01", "end": "2026-06-30"},
        {"id": "c0", "name": "Cycle Zero", "state": "closed", "start": "2025-10-01", "end": "2025-12-31"},
    ],
    "initiatives": [
        {"id": "i1", "name": "Growth"},
        {"id": "i2", "name": "Platform"},
    ],
    "roadmapItems": [
        {"id": "r1", "name": "Checkout", "initiativeId": "i1", "area": "Frontend"},
        {"id": "r2", "name": "Search", "initiativeId": "i2", "area": "Backend"},
        {"id": "r3", "name": "Billing", "initiativeId": "i2", "area": "Platform"},
        {"id": "r4", "name": "Orphan"},
        {"id": "r5", "name": "Referrals", "initiativeId": "i1"},
    ],
    "releaseItems": [
        {
            "id": "a", "ticketId": "T-1", "effort": 2, "status": "done",
            "roadmapItemId": "r1", "cycleId": "c1", "areaIds": ["Frontend"],
            "stage": "s1", "assignee": {"id": "u1", "name": "Ann"},
        },
        {
            "id": "b", "ticketId": "T-2", "effort": 2, "status": "inprogress",
            "roadmapItemId": "r1", "cycleId": "c1", "areaIds": ["backend"],
            "stage": "s2", "assignee": {"id": "u2", "name": "Bob"},
        },
        {
            "id": "c", "ticketId": "T-3", "effort": 3, "status": "todo",
            "roadmapItemId": "r2", "cycleId": "c2", "areaIds": ["backend"],
            "stage": "s1", "assignee": {"id": "u2", "name": "Bob"},
        },
        {
            "id": "d", "ticketId": "T-4", "effort": 4, "status": "done",
            "roadmapItemId": "r3", "cycleId": "c1", "areaIds": ["frontend", "platform"],
            "stage": "s3", "assignee": {"id": "u1", "name": "Ann"},
            "validations": [{"code": "missingEstimate", "name": "Missing estimate"}],
        },
        {
            "id": "e", "ticketId": "T-5", "effort": 1, "status": "todo",
            "roadmapItemId": "r4", "cycleId": "c9", "areaIds": [],
        },
    ],
}


@pytest.fixture
def raw_payload():
    return copy.deepcopy(RAW_CYCLE_DATA)


@pytest.fixture
def cycle_data(raw_payload):
    return parse_cycle_data(raw_payload)


@pytest.fixture
def nested(cycle_data):
    return build_nested_structure(cycle_data)

"""Cycle Roadmap: nested initiative progress and per-view filtering for cycle data."""

"""Loading and parsing of the flat cycle record set."""

import json
import logging
from collections.abc import Callable, Mapping
from datetime import date
from pathlib import Path
from typing import Any, TypeVar

from cycle_roadmap.config import Config, config_exists, load_config
from cycle_roadmap.exceptions import (
    ConfigNotFoundError,
    DataSourceError,
    InvalidConfigError,
    NoCycleDataError,
)
from cycle_roadmap.models import (
    Cycle,
    CycleData,
    CycleRef,
    Initiative,
    Person,
    ReleaseItem,
    RoadmapItem,
    ValidationItem,
)
from cycle_roadmap.progress import parse_effort

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _parse_date_field(fields: Mapping, field_id: str) -> date | None:
    """Parse an ISO date value to a date object."""
    value = fields.get(field_id)
    if not value:
        return None
    try:
        # Accepts "YYYY-MM-DD" as well as full timestamps
        return date.fromisoformat(str(value)[:10])
    except (ValueError, TypeError):
        return None


def _as_list(payload: Mapping, key: str) -> list:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("Expected a list for %r, got %s; using an empty list", key, type(value).__name__)
        return []
    return value


def _parse_each(entries: list, parse: Callable[[Mapping], T | None], kind: str) -> list[T]:
    parsed: list[T] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            logger.warning("Skipping %s entry that is not an object: %r", kind, entry)
            continue
        item = parse(entry)
        if item is None:
            logger.warning("Skipping %s entry without an id", kind)
            continue
        parsed.append(item)
    return parsed


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _name_of(value: Any) -> str:
    """Area/theme values arrive either as strings or as `{name: ...}` objects."""
    if isinstance(value, Mapping):
        return _text(value.get("name"))
    return _text(value)


def _parse_validations(raw: Any) -> list[ValidationItem]:
    if not isinstance(raw, list):
        return []
    return [
        ValidationItem(
            code=_text(v.get("code")),
            name=_text(v.get("name")),
            status=_text(v.get("status")),
            description=_text(v.get("description")),
        )
        for v in raw
        if isinstance(v, Mapping)
    ]


def _parse_person(raw: Any) -> Person | None:
    if not raw:
        return None
    if isinstance(raw, str):
        return Person(id=raw, name=raw)
    if isinstance(raw, Mapping):
        person_id = raw.get("id") or raw.get("accountId")
        if not person_id:
            return None
        return Person(id=str(person_id), name=_text(raw.get("name") or raw.get("displayName")))
    return None


def _parse_string_list(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    return [str(v) for v in raw if v is not None]


def parse_cycle(raw: Mapping) -> Cycle | None:
    cycle_id = _optional_id(raw.get("id"))
    if cycle_id is None:
        return None
    return Cycle(
        id=cycle_id,
        name=_text(raw.get("name")) or f"Cycle {cycle_id}",
        state=_text(raw.get("state")).lower(),
        start=_parse_date_field(raw, "start"),
        end=_parse_date_field(raw, "end"),
        delivery=_parse_date_field(raw, "delivery"),
    )


def parse_initiative(raw: Mapping) -> Initiative | None:
    initiative_id = _optional_id(raw.get("id"))
    if initiative_id is None:
        return None
    return Initiative(id=initiative_id, name=_text(raw.get("name")))


def parse_roadmap_item(raw: Mapping) -> RoadmapItem | None:
    item_id = _optional_id(raw.get("id"))
    if item_id is None:
        return None
    return RoadmapItem(
        id=item_id,
        name=_text(raw.get("name") or raw.get("summary")),
        area=_name_of(raw.get("area")),
        theme=_name_of(raw.get("theme")),
        initiative_id=_optional_id(raw.get("initiativeId")),
        url=_text(raw.get("url")),
        validations=_parse_validations(raw.get("validations")),
    )


def parse_release_item(raw: Mapping) -> ReleaseItem | None:
    item_id = _optional_id(raw.get("id"))
    if item_id is None:
        return None

    cycle = raw.get("cycle")
    cycle_id = _optional_id(raw.get("cycleId"))
    cycle_ref = None
    if isinstance(cycle, Mapping) and cycle.get("id"):
        cycle_ref = CycleRef(id=str(cycle["id"]), name=_text(cycle.get("name")))
        cycle_id = cycle_id or cycle_ref.id

    return ReleaseItem(
        id=item_id,
        ticket_id=_text(raw.get("ticketId")) or item_id,
        name=_text(raw.get("name") or raw.get("summary")),
        effort=parse_effort(raw.get("effort")),
        area_ids=_parse_string_list(raw.get("areaIds")),
        teams=_parse_string_list(raw.get("teams")),
        status=_text(raw.get("status")),
        stage=_text(raw.get("stage")),
        assignee=_parse_person(raw.get("assignee")),
        cycle_id=cycle_id,
        roadmap_item_id=_optional_id(raw.get("roadmapItemId")),
        url=_text(raw.get("url")),
        validations=_parse_validations(raw.get("validations")),
        cycle=cycle_ref,
    )


def parse_cycle_data(payload: Any) -> CycleData:
    """Convert the data source's JSON payload into `CycleData`.

    Missing or malformed arrays degrade to empty lists and entries without an
    id are skipped; this never raises.
    """
    if not isinstance(payload, Mapping):
        logger.warning("Cycle data payload is not an object; using empty data")
        return CycleData()

    return CycleData(
        cycles=_parse_each(_as_list(payload, "cycles"), parse_cycle, "cycle"),
        initiatives=_parse_each(_as_list(payload, "initiatives"), parse_initiative, "initiative"),
        roadmap_items=_parse_each(_as_list(payload, "roadmapItems"), parse_roadmap_item, "roadmap item"),
        release_items=_parse_each(_as_list(payload, "releaseItems"), parse_release_item, "release item"),
    )


def read_cycle_data(path: Path) -> CycleData:
    """Read and parse a JSON record set from disk.

    Raises:
        DataSourceError: If the file is missing or is not valid JSON
        NoCycleDataError: If the file holds no records at all
    """
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError as e:
        raise DataSourceError(f"Cycle data file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise DataSourceError(f"Cannot read cycle data file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise DataSourceError(f"Cycle data file {path} is not valid JSON: {e}") from e

    data = parse_cycle_data(payload)
    if not (data.cycles or data.roadmap_items or data.release_items):
        raise NoCycleDataError(f"No cycle data found in {path}.")

    logger.debug(
        "Loaded %d cycles, %d roadmap items, %d release items from %s",
        len(data.cycles),
        len(data.roadmap_items),
        len(data.release_items),
        path,
    )
    return data


def load_cycle_data(config: Config | None = None) -> CycleData:
    """Load the record set referenced by the configuration.

    Raises:
        ConfigNotFoundError: If no config is given and none exists on disk
        InvalidConfigError: If the config on disk is invalid
        DataSourceError: If the data file cannot be read
        NoCycleDataError: If the data file holds no records
    """
    if config is None:
        if not config_exists():
            raise ConfigNotFoundError(
                "Configuration not found. Create ~/.cycle-roadmap/config.toml to set up."
            )
        try:
            config = load_config()
        except ValueError as e:
            raise InvalidConfigError(f"Invalid configuration: {e}")

    return read_cycle_data(config.data_path)

"""Release item status normalization."""

TODO = "todo"
IN_PROGRESS = "inprogress"
DONE = "done"
POSTPONED = "postponed"
CANCELLED = "cancelled"
REPLANNED = "replanned"

# Keys are lowercase; values are canonical statuses
STATUS_ALIASES: dict[str, str] = {
    "to do": TODO,
    "not started": TODO,
    "open": TODO,
    "in progress": IN_PROGRESS,
    "in-progress": IN_PROGRESS,
    "wip": IN_PROGRESS,
    "work in progress": IN_PROGRESS,
    "completed": DONE,
    "closed": DONE,
    "finished": DONE,
    "canceled": CANCELLED,
    "rescheduled": REPLANNED,
}

NOT_TO_DO_STATUSES: frozenset[str] = frozenset({POSTPONED, CANCELLED})


def normalize_status(value: str | None) -> str:
    """Map a raw status string to its canonical form.

    Matching is case-insensitive and ignores surrounding whitespace. Missing or
    non-string values count as "todo". Unrecognized statuses are returned
    lowercased and trimmed, so they are neither done nor in progress.

    >>> normalize_status(" WIP ")
    'inprogress'
    >>> normalize_status("blocked")
    'blocked'
    """
    if not value or not isinstance(value, str):
        return TODO
    text = value.strip().lower()
    if not text:
        return TODO
    return STATUS_ALIASES.get(text, text)


def is_done(value: str | None) -> bool:
    return normalize_status(value) == DONE


def is_in_progress(value: str | None) -> bool:
    return normalize_status(value) == IN_PROGRESS


def is_not_to_do(value: str | None) -> bool:
    return normalize_status(value) in NOT_TO_DO_STATUSES

"""Exception hierarchy for Cycle Roadmap."""


class RoadmapError(Exception):
    """Base exception for roadmap errors."""

    pass


class ConfigNotFoundError(RoadmapError):
    """Configuration file not found."""

    pass


class InvalidConfigError(RoadmapError):
    """Configuration is invalid."""

    pass


class DataSourceError(RoadmapError):
    """Cycle data file is missing or unreadable."""

    pass


class NoCycleDataError(RoadmapError):
    """The data source returned no records."""

    pass


class InvalidFilterError(RoadmapError):
    """Filter key is not part of the filter classification table."""

    pass


class UnknownViewError(RoadmapError):
    """View id is not one of the known views."""

    pass

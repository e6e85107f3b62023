"""Domain errors."""


class TaxNewsError(Exception):
    """Base class for all aggregator errors."""


class SourceFetchError(TaxNewsError):
    """Raised when one feed cannot be fetched or parsed."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id


class AggregationError(TaxNewsError):
    """Raised when a refresh cycle fails and no previous snapshot exists."""


class ConfigurationError(TaxNewsError):
    """Raised at startup for malformed settings or source entries."""

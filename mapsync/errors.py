"""Exception hierarchy for MapSync."""


class MapSyncError(Exception):
    """Base class for all MapSync errors."""


class ParseError(MapSyncError):
    """Raised when an uploaded file cannot be turned into a dataset."""


class ConfigurationError(MapSyncError):
    """Raised for invalid catalog, mapping or registry input."""


class PersistenceError(MapSyncError):
    """Raised when a registry store cannot complete a request."""

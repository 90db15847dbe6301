"""Custom exceptions for work catalog."""


class WorkCatalogError(Exception):
    """Base exception for work catalog errors."""
    pass


class ConfigurationError(WorkCatalogError):
    """Raised when there's an error in configuration."""
    pass


class SchemeDefinitionError(WorkCatalogError):
    """Raised when a catalog scheme definition is malformed or cannot be read."""
    pass


class IndexFileError(WorkCatalogError):
    """Raised when a catalog index file cannot be read."""
    pass

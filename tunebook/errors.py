"""Exceptions raised while building a booklet."""


class TunebookError(Exception):
    """Base class for booklet failures scoped to a single instrument."""


class EmptyCatalogError(TunebookError):
    """No usable images were found, so no scale or layout can be computed."""


class UnreadableImageError(TunebookError):
    """An image file is missing, corrupt, or not an image."""

    def __init__(self, identifier, reason=""):
        self.identifier = identifier
        self.reason = reason
        message = f"Cannot read image '{identifier}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ConfigurationError(TunebookError):
    """Layout parameters that would make packing meaningless."""

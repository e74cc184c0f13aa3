"""Exception types raised by dasite."""

from __future__ import annotations


class DasiteError(Exception):
    """Base class for dasite failures."""


class NavigationError(DasiteError):
    """A page could not be loaded in the browser."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to load {url}: {reason}")
        self.url = url
        self.reason = reason


class CaptureError(DasiteError):
    """A screenshot could not be written for a target."""


class ExportError(DasiteError):
    """A report could not be exported to the requested format."""


class BaselineVersionError(DasiteError):
    """A named baseline version does not exist."""

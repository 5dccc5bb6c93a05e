"""Exception hierarchy for Sprint Report Generator."""

from __future__ import annotations


class SprintReportError(Exception):
    """Base class for all project errors."""


class TrackerError(SprintReportError):
    """The issue tracker could not deliver sprint or version data."""


class SprintNotFoundError(TrackerError):
    """No sprint matched the requested name or id."""


class TextGenerationError(SprintReportError):
    """The text-generation service failed or returned unusable output."""


class PublishError(SprintReportError):
    """The report page could not be created."""


class ConfigError(SprintReportError):
    """Required configuration is missing or malformed."""

"""
Exception hierarchy.

Missing data and degenerate statistics are handled where they occur
(exclusion or a documented fallback value). Only configuration problems,
where no sound computation is possible, are raised to the caller.
"""


class ValidationError(Exception):
    """Base class for errors raised by golf_validation."""


class ConfigurationError(ValidationError):
    """Input or configuration that makes a run impossible."""


class TemplateNotFoundError(ConfigurationError):
    pass


class FeedError(ConfigurationError):
    """A feed file exists but cannot be interpreted."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")

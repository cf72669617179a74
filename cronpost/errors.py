"""Project-level exception hierarchy."""


class CronPostError(Exception):
    """Base for all cronpost exceptions."""


class ConfigError(CronPostError):
    """Configuration file could not be read or validated."""


class StoreError(CronPostError):
    """Key-value persistence failed."""


class DispatchError(CronPostError):
    """Posting a command payload failed."""

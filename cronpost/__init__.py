"""cronpost: per-account minute schedules that post a command when they match."""

__version__ = "0.1.0"

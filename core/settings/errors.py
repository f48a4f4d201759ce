"""
Exceptions raised by settings stores.
"""


class SettingsError(Exception):
    """Base class for settings store failures."""


class StoreUnavailableError(SettingsError):
    """The backing schema or storage for a store could not be opened."""

    def __init__(self, role: str, reason: str = ""):
        self.role = role
        self.reason = reason
        message = f"Settings store '{role}' unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SettingsWriteError(SettingsError):
    """A write or reset was rejected by the backing storage."""

    def __init__(self, schema: str, key: str, reason: str = ""):
        self.schema = schema
        self.key = key
        self.reason = reason
        message = f"Failed to write {schema}:{key}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)

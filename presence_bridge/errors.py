"""Exception types shared by the worker and web services."""


class PresenceBridgeError(Exception):
    """Base class for all service errors."""


class ConfigurationError(PresenceBridgeError):
    """Required configuration is missing or invalid."""


class CaptureDeviceError(PresenceBridgeError):
    """No usable camera device could be opened."""


class RecordWriteError(PresenceBridgeError):
    """A detection record could not be written to the sink."""

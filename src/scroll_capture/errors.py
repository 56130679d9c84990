class CaptureError(Exception):
    """Base class for failures of a capture run."""


class ConfigError(CaptureError):
    """Capture configuration failed validation."""


class ProbeError(CaptureError):
    """The injected probe raised while inspecting the feed."""


class ActuatorError(CaptureError):
    """The injected actuator raised while revealing content."""


class AlreadyRunningError(CaptureError):
    """run() was called on a driver whose previous run is still active."""


class EmptyResultError(CaptureError):
    """The run finished without capturing a single item."""

"""
Engine error types.

Errors raised by the Kubernetes API itself (conflicts, missing objects,
auth and transport failures) are not wrapped: they surface as
``kubernetes.client.rest.ApiException``.
"""

class EngineError(Exception):
    """Base class for engine errors."""
    pass

class EngineConfigError(EngineError):
    """Raised when the cluster connection cannot be configured."""
    pass

class InvalidPipelineError(EngineError):
    """Raised when a pipeline configuration cannot be executed."""
    pass

class VolumeSpecError(EngineError, ValueError):
    """Raised when a volume binding is not of the form name:path."""
    pass

class WorkloadObservationError(EngineError):
    """Raised when a step's pod cannot be observed after it was expected."""
    pass

class WaitTimeoutError(EngineError):
    """Raised when a wait exceeds its deadline."""
    pass

class WaitCancelledError(EngineError):
    """Raised when a wait is abandoned by the caller."""
    pass

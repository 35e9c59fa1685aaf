"""Failure taxonomy of the advisory and voice pipelines.

Soil and prompt paths absorb these into fallback values; the geo resolver and
the voice pipeline let them reach the caller so the client can show a
permission prompt or a retry affordance.
"""


class KisanSetuError(Exception):
    """Base class for every error raised by the pipelines."""


class PermissionDenied(KisanSetuError):
    """Location or microphone access was never granted."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"{resource} permission was denied")


class NoLocationAvailable(KisanSetuError):
    """Every location tier (profile, device) was exhausted."""


class LocationFixUnavailable(KisanSetuError):
    """The device could not produce a position fix (timeout, services off)."""


class InferenceUnavailable(KisanSetuError):
    """A generative endpoint failed at the network or HTTP level."""


class ProcessingTimeout(KisanSetuError):
    """A bounded wait on inference or speech expired."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout:g}s")


class MalformedModelOutput(KisanSetuError):
    """Model text failed both strict and lenient JSON parsing."""


class EmptyRecording(KisanSetuError):
    """The captured audio clip has no content."""


class OperationCancelled(KisanSetuError):
    """A long-running call observed its cancellation token."""

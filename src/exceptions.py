"""
Custom exception classes for RigSurvey.
"""


class RigSurveyError(Exception):
    """Base class for failures surfaced to the UI layer."""

    pass


class ConfigurationError(RigSurveyError):
    """Raised when required service credentials or destinations are not set."""

    pass


class GenerationError(RigSurveyError):
    """Raised when the generation service returns no usable structured output."""

    pass


class DispatchError(RigSurveyError):
    """Raised when the outbound email service rejects or fails a send."""

    pass


class PhotoDecodeError(RigSurveyError):
    """Raised when a photo data URI is malformed. Non-fatal: the photo is dropped."""

    pass

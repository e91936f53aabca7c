"""Exception types raised across the inspection pipeline."""


class InspectionError(Exception):
    """Base class for inspection pipeline failures."""


class InvalidInput(InspectionError):
    """Raised when a photo does not declare an image media type."""


class InputTooLarge(InspectionError):
    """Raised when a photo exceeds the accepted byte ceiling."""


class CompressionFailed(InspectionError):
    """Raised when every compression preset failed to encode a photo."""


class UploadTimeout(InspectionError):
    """Raised when a single upload attempt exceeds its deadline."""


class UploadFailed(InspectionError):
    """Raised when a photo could not be uploaded."""


class ReportCreationFailed(InspectionError):
    """Raised when a report could not be created or recovered."""


class NotificationFailed(InspectionError):
    """Raised when the completion webhook call fails."""


class UniqueViolation(InspectionError):
    """Raised by repositories when an insert hits a uniqueness constraint."""


class SubmissionInProgress(InspectionError):
    """Raised when a submission is reset while it is still running."""

"""
Custom exceptions for the ingestion module.

Errors local to one line or event (SchemaError, EstimatorFaultError) are
absorbed where they happen. Errors local to one object abort that object's
publish and reach the orchestrator, which leaves the object for a retry.
"""

from typing import Optional


class IngestError(Exception):
    """
    Base exception for all ingestion-related errors.

    All other ingestion exceptions inherit from this class,
    allowing for broad exception catching when needed.

    Attributes:
        object_id: Identifier of the object being ingested (optional)
    """

    def __init__(self, message: str, object_id: Optional[str] = None):
        self.message = message
        self.object_id = object_id
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with object context."""
        if self.object_id:
            return f"{self.message} (object={self.object_id!r})"
        return self.message


class ObjectReadError(IngestError):
    """
    Raised when a downloaded object cannot be read.

    Covers missing files, corrupt gzip streams and undecodable content.

    Attributes:
        path: Local path of the object
        reason: Underlying failure
    """

    def __init__(
        self,
        path: str,
        reason: str,
        object_id: Optional[str] = None,
    ):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read object file {path}: {reason}", object_id)


class TokenizerStallError(IngestError):
    """
    Raised when the tokenizer does not emit an event for a submitted line
    before the per-line deadline.

    Attributes:
        confirmed: Lines whose events arrived in time
        submitted: Lines handed to the tokenizer, including the stalled one
        timeout_seconds: The per-line deadline that elapsed
    """

    def __init__(
        self,
        confirmed: int,
        submitted: int,
        timeout_seconds: float,
        object_id: Optional[str] = None,
    ):
        self.confirmed = confirmed
        self.submitted = submitted
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Tokenizer did not keep pace: {confirmed} of {submitted} submitted "
            f"lines confirmed within {timeout_seconds:g}s per line",
            object_id,
        )


class CleanupError(IngestError):
    """
    Raised when the local copy of an object cannot be deleted.

    Attributes:
        path: Local path that could not be removed
        reason: Underlying failure
    """

    def __init__(self, path: str, reason: str, object_id: Optional[str] = None):
        self.path = path
        self.reason = reason
        super().__init__(
            f"Error cleaning up downloaded object {path}: {reason}", object_id
        )


class SchemaError(IngestError):
    """
    Raised when a discriminating field is present but has the wrong type.

    Key derivation catches it and substitutes a sentinel, so it never
    fails an event.

    Attributes:
        field: The field name that failed coercion
        value: The offending value
    """

    def __init__(self, field: str, value: object, expected: str):
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(
            f"Field {field!r} should be {expected}, got {type(value).__name__} "
            f"{value!r}"
        )


class EstimatorFaultError(IngestError):
    """
    Describes a non-positive rate returned by the sample-rate estimator.

    Logged by the sampler, which then keeps the event with rate 1.

    Attributes:
        key: Sample key that was queried
        rate: Rate the estimator returned
    """

    def __init__(self, key: str, rate: int):
        self.key = key
        self.rate = rate
        super().__init__(
            f"Sample rate should not be less than one: estimator returned "
            f"{rate} for key {key!r}"
        )


class EstimatorStartError(IngestError):
    """Raised when the sample-rate estimator cannot be started."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Couldn't start dynamic sampler: {reason}")


class UnknownFormatError(IngestError):
    """
    Raised when no event parser exists for a log format name.

    Attributes:
        format_name: The requested format
        available_formats: Names of the supported formats
    """

    def __init__(
        self,
        format_name: str,
        available_formats: Optional[list[str]] = None,
    ):
        self.format_name = format_name
        self.available_formats = available_formats or []
        if self.available_formats:
            available = ", ".join(sorted(self.available_formats))
            message = (
                f"Unknown log format: '{format_name}'. "
                f"Available formats: {available}"
            )
        else:
            message = f"Unknown log format: '{format_name}'. No formats registered."
        super().__init__(message)

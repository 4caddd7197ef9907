"""
Exception hierarchy shared by the DNA engine and its collaborators.

Validation problems are the caller's fault and are never retried. Registry
problems are infrastructure failures and must stay distinguishable from them.
"""


class DNAError(Exception):
    """Base exception for the creative DNA service."""
    pass


class ValidationError(DNAError):
    """Input could not be fingerprinted (empty, wrong type, corrupt)."""
    pass


class UnsupportedMediaTypeError(ValidationError):
    """Declared MIME type is not one of the supported image types."""
    pass


class PayloadTooLargeError(ValidationError):
    """Uploaded image exceeds the configured size limit."""
    pass


class ExtractionError(ValidationError):
    """Feature extraction failed or timed out."""
    pass


class RegistryUnavailableError(DNAError):
    """The fingerprint registry cannot serve requests."""
    pass

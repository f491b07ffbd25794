"""Exception hierarchy for docdigest."""


class DocDigestError(Exception):
    """Base class for all docdigest errors."""


class InputError(DocDigestError, ValueError):
    """Raised when a caller passes malformed chunks or an invalid budget."""


class ProviderError(DocDigestError):
    """Raised when a summarization provider call fails or times out."""

"""Errors raised by the platform and AI clients."""


class ReviewError(RuntimeError):
    """Base class for review pipeline failures."""
    pass


class FetchError(ReviewError):
    """Raised when pull request details cannot be retrieved. Fatal to the run."""
    pass


class PostError(ReviewError):
    """Raised when a comment cannot be published to a pull request."""
    pass


class AnalysisTransportError(ReviewError):
    """Raised when the AI backend call itself fails (network, auth, rate limit)."""
    pass


class AnalysisShapeError(ReviewError):
    """Raised when an AI reply is not the expected ``{"issues": [...]}`` object."""
    pass

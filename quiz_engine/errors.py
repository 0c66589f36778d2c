"""Error taxonomy for the quiz engine.

The validator and the scoring engine never raise; everything else reports
failures through these exceptions so the presentation layer can map them to
responses in one place.
"""


class QuizEngineError(Exception):
    """Base class for all quiz engine errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ValidationError(QuizEngineError):
    """Authoring-time problem; blocks only the offending action."""

    def __init__(self, reason: str, message: str = "") -> None:
        super().__init__(message or reason)
        self.reason = reason


class Unauthenticated(QuizEngineError):
    """No caller identity is available."""


class Forbidden(QuizEngineError):
    """Caller does not own the attempt or quiz."""


class StoreError(QuizEngineError):
    """Transport or backend failure in the attempt store."""


class NotFound(StoreError):
    """Requested record does not exist."""


class IntegrityViolation(QuizEngineError):
    """Stored data would break a rule of the data model."""


class SessionStateError(QuizEngineError):
    """Operation is not allowed in the session's current state."""

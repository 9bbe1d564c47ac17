"""
Exceptions raised by the answer evaluation pipeline.
"""


class AnswerReviewError(Exception):
    """Base exception for pipeline errors."""

    pass


class ConfigError(AnswerReviewError):
    """Pipeline configuration could not be loaded or is invalid."""

    pass


class CaptureError(AnswerReviewError):
    """Speech engine failed to start or stop."""

    pass


class EvaluationError(AnswerReviewError):
    """Base exception for failures while evaluating an answer."""

    pass


class ParseError(EvaluationError):
    """
    No parsing strategy could extract a record from the AI response.

    Attributes:
        raw_text: The untouched response text
        attempts: (strategy name, error message) for every strategy tried
    """

    def __init__(self, raw_text: str, attempts: list[tuple[str, str]]):
        self.raw_text = raw_text
        self.attempts = attempts
        last_error = attempts[-1][1] if attempts else "no strategies configured"
        super().__init__(
            f"Invalid JSON format after {len(attempts)} parsing strategies: {last_error}"
        )


class ValidationError(EvaluationError):
    """Parsed record does not have the expected fields or types."""

    def __init__(self, message: str, payload: object = None):
        self.payload = payload
        super().__init__(message)


class EvaluationTransportError(EvaluationError):
    """The generative-AI service call failed."""

    pass


class EvaluationTimeoutError(EvaluationError):
    """The generative-AI service did not answer in time."""

    pass


class PersistenceError(AnswerReviewError):
    """Document store query or insert failed."""

    pass


class InvalidTransitionError(AnswerReviewError):
    """Operation is not allowed in the current recording state."""

    pass


class MissingEvaluationError(InvalidTransitionError):
    """Save was requested before an evaluation result exists."""

    pass

class ReviewError(Exception):
    """Base class for failures of a review run."""


class ConfigurationError(ReviewError):
    pass


class GeminiAPIError(ReviewError):
    """The Gemini endpoint answered with an error status or no candidates."""


class ReviewFailedError(ReviewError):
    """Transport or service failure while calling the model."""


class ResponseParseError(ReviewError):
    """The model's payload is not valid JSON."""


class ResponseValidationError(ResponseParseError):
    """The model's payload is JSON but does not match the review schema."""

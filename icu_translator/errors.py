"""Error taxonomy for the ICU translation pipeline."""


class TranslatorError(Exception):
    """Base class for every error raised by the translation pipeline."""


class FormatError(TranslatorError):
    """Pasted input does not match the shape expected by the selected format."""

    def __init__(self, input_format: str, message: str):
        super().__init__(message)
        self.input_format = input_format


class ValidationError(TranslatorError):
    """A user-level precondition failed before any external call was made."""


class ConfigurationError(TranslatorError):
    """The translation service cannot be used with the current configuration."""


class TranslationServiceError(TranslatorError):
    """The translation service could not be reached or rejected the request."""


class ResponseEmptyError(TranslationServiceError):
    """The translation service returned an empty body."""


class ResponseParseError(TranslationServiceError):
    """The translation service returned a body that is not valid JSON."""


class ResponseShapeError(TranslationServiceError):
    """The translation service returned JSON whose top level is not an array."""

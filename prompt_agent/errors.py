"""
Exception types raised by the prompt agent services.
"""


class AgentConfigError(ValueError):
    """Raised when the Azure OpenAI configuration is incomplete."""
    pass


class ChatTransportError(RuntimeError):
    """Raised when the chat endpoint could not be reached or returned an error."""

    def __init__(self, message: str, partial=None):
        super().__init__(message)
        # Text streamed before the failure, if any
        self.partial = partial


class EmptyCompletionError(RuntimeError):
    """Raised when the chat endpoint answered with zero choices."""
    pass


class OutputSchemaError(ValueError):
    """Raised when the requested output schema is not valid JSON."""
    pass


class OutputParseError(ValueError):
    """Raised when the model reply could not be parsed as JSON."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class FieldValidationError(ValueError):
    """Raised when parsed JSON does not match the expected field schema."""
    pass


class NoCriteriaError(ValueError):
    """Raised when a raw template yields no criteria."""

    def __init__(self, message: str = "no criteria parsed"):
        super().__init__(message)

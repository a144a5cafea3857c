"""
Chat agent for Azure OpenAI chat completions.

The agent sends single-turn prompts (optionally with a system prompt), can ask
the model for JSON matching a schema, and can stream replies to a handler.
Network access goes through a ChatTransport so tests can substitute a fake.
No call is retried; failures are raised to the caller.
"""
import json
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

import openai
from openai import AzureOpenAI

from prompt_agent.config import AgentConfig
from prompt_agent.errors import (
    ChatTransportError,
    EmptyCompletionError,
    OutputParseError,
    OutputSchemaError,
)
from prompt_agent.services.field_schema import FieldSchema, validate_fields
from prompt_agent.services.schema_builder import generate_system_prompt_from_json_schema

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7

# Receives each streamed text delta; return False to stop the stream early.
StreamHandler = Callable[[str], bool]


class ChatTransport(Protocol):
    """The two chat completion calls the agent needs from a client."""

    def create_completion(self, request: Dict[str, Any], timeout: float) -> Any:
        ...

    def create_stream(self, request: Dict[str, Any], timeout: float) -> Any:
        ...


class AzureChatTransport:
    """ChatTransport backed by the openai SDK's AzureOpenAI client."""

    def __init__(self, config: AgentConfig):
        self._config = config
        self._client = AzureOpenAI(
            api_key=config.key,
            azure_endpoint=config.endpoint,
            api_version=config.api_version,
            # No SDK retries; failures go straight to the caller
            max_retries=0
        )
        logger.info(f"Azure OpenAI client initialized for model={config.model}, deployment={config.deployment}")

    def _deployment_for(self, model: str) -> str:
        # Configured model maps to its deployment; anything else is used as-is
        if model == self._config.model:
            return self._config.deployment
        return model

    def _prepare(self, request: Dict[str, Any]) -> Dict[str, Any]:
        prepared = dict(request)
        prepared['model'] = self._deployment_for(prepared['model'])
        return prepared

    def create_completion(self, request: Dict[str, Any], timeout: float):
        return self._client.chat.completions.create(**self._prepare(request), timeout=timeout)

    def create_stream(self, request: Dict[str, Any], timeout: float):
        return self._client.chat.completions.create(**self._prepare(request), stream=True, timeout=timeout)


@dataclass
class ChatOptions:
    """
    Per-call chat settings.

    Attributes:
        system: Optional system prompt.
        temperature: Sampling temperature (0-2, typically 0-1).
        max_tokens: Output token limit; 0 lets the API decide.
        output_schema: JSON Schema string the reply must follow. Only used by
            ``chat_structured_json``.
    """
    system: str = ''
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = 0
    output_schema: str = ''


@dataclass
class ChatResult:
    """Structured view of a chat response."""
    text: str = ''
    model: str = ''
    finish_reason: str = ''
    tokens: int = 0
    raw: Any = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict:
        """Serialize for JSON responses; empty metadata fields are omitted."""
        data = {'text': self.text}
        if self.model:
            data['model'] = self.model
        if self.finish_reason:
            data['finish_reason'] = self.finish_reason
        if self.tokens:
            data['tokens'] = self.tokens
        return data


class Agent:
    """Lightweight wrapper around a chat transport for common chat use cases."""

    def __init__(self, config: AgentConfig, transport: Optional[ChatTransport] = None):
        """
        Args:
            config: Connection settings. Missing timeout, deployment and API
                version are filled with defaults.
            transport: Client to send requests through. Defaults to an
                AzureChatTransport built from ``config``.

        Raises:
            AgentConfigError: If key, endpoint or model is missing.
        """
        config = config.with_defaults()
        config.validate()
        self.config = config
        self._transport = transport if transport is not None else AzureChatTransport(config)

    @classmethod
    def from_env(cls, transport: Optional[ChatTransport] = None, **overrides) -> 'Agent':
        """Create an agent from environment variables plus explicit overrides."""
        return cls(AgentConfig.from_env(**overrides), transport=transport)

    def _build_request(self, prompt: str, options: ChatOptions) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if options.system:
            messages.append({'role': 'system', 'content': options.system})
        messages.append({'role': 'user', 'content': prompt})

        request: Dict[str, Any] = {
            'model': self.config.model,
            'messages': messages,
            'temperature': options.temperature
        }
        if options.max_tokens > 0:
            request['max_tokens'] = options.max_tokens
        return request

    def chat_structured(self, prompt: str, options: Optional[ChatOptions] = None) -> ChatResult:
        """
        Send a single-turn user prompt and return a structured result.

        Args:
            prompt: The user message.
            options: Per-call settings; defaults to ChatOptions().

        Returns:
            ChatResult with the first choice's text, the response model, the
            finish reason and the total token count.

        Raises:
            ChatTransportError: On network, timeout or API errors.
            EmptyCompletionError: If the response has no choices.
        """
        options = options or ChatOptions()
        request = self._build_request(prompt, options)
        start_time = time.time()

        try:
            response = self._transport.create_completion(request, self.config.timeout)
        except openai.APITimeoutError as e:
            logger.error(f"Chat completion timed out after {self.config.timeout}s")
            raise ChatTransportError(f"chat completion timed out: {e}") from e
        except Exception as e:
            logger.error(f"Chat completion failed: {type(e).__name__} - {e}")
            raise ChatTransportError(f"chat completion error: {e}") from e

        if not response.choices:
            raise EmptyCompletionError("empty response choices")

        choice = response.choices[0]
        usage = getattr(response, 'usage', None)
        result = ChatResult(
            text=choice.message.content or '',
            model=response.model or '',
            finish_reason=choice.finish_reason or '',
            tokens=usage.total_tokens if usage else 0,
            raw=response
        )

        duration = time.time() - start_time
        logger.info(
            f"Chat complete: model={result.model}, finish_reason={result.finish_reason}, "
            f"tokens={result.tokens}, duration={duration:.2f}s"
        )
        return result

    def chat_structured_json(self, prompt: str, options: Optional[ChatOptions] = None) -> Tuple[ChatResult, Any]:
        """
        Like ``chat_structured`` but also parses the reply text as JSON.

        When ``options.output_schema`` is set it must be valid JSON; it is
        turned into a strict JSON-generator system prompt placed ahead of any
        caller system prompt.

        Returns:
            (result, parsed JSON value)

        Raises:
            OutputSchemaError: If the output schema is not valid JSON.
            OutputParseError: If the reply is not valid JSON. The exception's
                ``result`` holds the ChatResult.
            ChatTransportError, EmptyCompletionError: As ``chat_structured``.
        """
        options = options or ChatOptions()

        if options.output_schema:
            try:
                json.loads(options.output_schema)
            except ValueError as e:
                raise OutputSchemaError(f"invalid output_schema JSON: {e}") from e

            system = generate_system_prompt_from_json_schema(options.output_schema)
            if options.system:
                system += "\n\n" + options.system
            options = replace(options, system=system)

        result = self.chat_structured(prompt, options)

        try:
            parsed = json.loads(result.text)
        except ValueError as e:
            logger.error(f"Failed to parse JSON response: {e}")
            logger.error(f"Raw AI output: {result.text}")
            raise OutputParseError(f"invalid JSON in model output: {e}", result=result) from e

        return result, parsed

    def chat_stream_structured(
        self,
        prompt: str,
        handler: StreamHandler,
        options: Optional[ChatOptions] = None
    ) -> ChatResult:
        """
        Stream the reply to ``handler`` and return the aggregated result.

        The handler gets each non-empty text delta and returns False to stop
        early. Stopping early and failing both close the stream, which drops
        the underlying connection.

        Raises:
            ValueError: If ``handler`` is None.
            ChatTransportError: If the stream could not be opened, broke
                mid-way or outlived the configured timeout; ``partial``
                holds the text received so far.
        """
        if handler is None:
            raise ValueError("stream handler is required")

        options = options or ChatOptions()
        request = self._build_request(prompt, options)
        # The SDK timeout only bounds each read; the deadline bounds the whole stream
        deadline = time.monotonic() + self.config.timeout

        try:
            stream = self._transport.create_stream(request, self.config.timeout)
        except Exception as e:
            logger.error(f"Chat stream failed to start: {type(e).__name__} - {e}")
            raise ChatTransportError(f"chat stream error: {e}") from e

        text = ''
        chunks = iter(stream)
        try:
            while True:
                try:
                    chunk = next(chunks)
                except StopIteration:
                    break
                except Exception as e:
                    logger.error(f"Chat stream interrupted: {type(e).__name__} - {e}")
                    partial = ChatResult(text=text, model=self.config.model)
                    raise ChatTransportError(f"chat stream error: {e}", partial=partial) from e

                if time.monotonic() > deadline:
                    logger.error(f"Chat stream timed out after {self.config.timeout}s")
                    partial = ChatResult(text=text, model=self.config.model)
                    raise ChatTransportError(
                        f"chat stream timed out after {self.config.timeout}s",
                        partial=partial
                    )

                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if not delta:
                    continue

                text += delta
                if not handler(delta):
                    logger.info("Chat stream stopped early by handler")
                    break
        finally:
            stream.close()

        return ChatResult(text=text, model=self.config.model)

    def chat(self, prompt: str, options: Optional[ChatOptions] = None) -> str:
        """Return only the reply text."""
        return self.chat_structured(prompt, options).text

    def chat_stream(self, prompt: str, handler: StreamHandler, options: Optional[ChatOptions] = None) -> str:
        """Stream to ``handler`` and return only the aggregated text."""
        return self.chat_stream_structured(prompt, handler, options).text

    def fetch_json(self, prompt: str, fields: List[FieldSchema]) -> dict:
        """
        Send ``prompt`` and return the reply parsed and validated against
        ``fields``.

        Raises:
            OutputParseError: If the reply is not valid JSON.
            FieldValidationError: If the reply does not match ``fields``.
        """
        result = self.chat_structured(prompt)
        try:
            data = json.loads(result.text)
        except ValueError as e:
            logger.error(f"Raw AI output: {result.text}")
            raise OutputParseError(f"invalid JSON in model output: {e}", result=result) from e

        validate_fields(data, fields)
        return data

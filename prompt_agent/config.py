"""
Azure OpenAI agent configuration.

Environment variables are read only by ``AgentConfig.from_env``, which the
process entry point calls once at startup:

    AZURE_OPENAI_KEY, AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_MODEL,
    AZURE_OPENAI_DEPLOYMENT, AZURE_OPENAI_TIMEOUT, AZURE_OPENAI_API_VERSION
"""
import logging
import os
from dataclasses import dataclass, replace
from typing import Optional

from prompt_agent.errors import AgentConfigError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
DEFAULT_API_VERSION = '2024-06-01'


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={value!r}")
        return None


@dataclass(frozen=True)
class AgentConfig:
    """
    Connection settings for the chat agent.

    Attributes:
        key: Azure OpenAI API key.
        endpoint: Azure OpenAI resource endpoint.
        model: Logical model name sent with each request.
        deployment: Azure deployment serving ``model``. Defaults to ``model``.
        timeout: Per-request timeout in seconds. 0 means the default (60s).
        api_version: Azure OpenAI REST API version.
    """
    key: str = ''
    endpoint: str = ''
    model: str = ''
    deployment: str = ''
    timeout: float = 0
    api_version: str = ''

    @classmethod
    def from_env(cls, **overrides) -> 'AgentConfig':
        """
        Build a config from environment variables, then apply overrides.

        Overrides that are empty or None do not replace environment values.
        """
        config = cls(
            key=os.getenv('AZURE_OPENAI_KEY', ''),
            endpoint=os.getenv('AZURE_OPENAI_ENDPOINT', ''),
            model=os.getenv('AZURE_OPENAI_MODEL', ''),
            deployment=os.getenv('AZURE_OPENAI_DEPLOYMENT', ''),
            timeout=_env_float('AZURE_OPENAI_TIMEOUT') or 0,
            api_version=os.getenv('AZURE_OPENAI_API_VERSION', '')
        )
        return config.with_overrides(**overrides)

    def with_overrides(self, **fields) -> 'AgentConfig':
        """Return a copy with the given non-empty fields replaced."""
        changes = {name: value for name, value in fields.items() if value not in (None, '')}
        return replace(self, **changes)

    def with_defaults(self) -> 'AgentConfig':
        """Fill in timeout, deployment and API version when unset."""
        return replace(
            self,
            timeout=self.timeout or DEFAULT_TIMEOUT,
            deployment=self.deployment or self.model,
            api_version=self.api_version or DEFAULT_API_VERSION
        )

    def validate(self) -> None:
        """
        Raises:
            AgentConfigError: If key, endpoint or model is missing.
        """
        if not self.key or not self.endpoint or not self.model:
            raise AgentConfigError(
                "missing required azure openai configuration (need key, endpoint, model)"
            )

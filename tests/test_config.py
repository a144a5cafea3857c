"""
Unit tests for AgentConfig environment loading and validation.
"""
import pytest

from prompt_agent.config import AgentConfig, DEFAULT_API_VERSION, DEFAULT_TIMEOUT
from prompt_agent.errors import AgentConfigError


ENV_VARS = [
    'AZURE_OPENAI_KEY',
    'AZURE_OPENAI_ENDPOINT',
    'AZURE_OPENAI_MODEL',
    'AZURE_OPENAI_DEPLOYMENT',
    'AZURE_OPENAI_TIMEOUT',
    'AZURE_OPENAI_API_VERSION',
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove Azure OpenAI variables so tests start from a blank environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestFromEnv:

    def test_reads_environment(self, clean_env):
        clean_env.setenv('AZURE_OPENAI_KEY', 'env-key')
        clean_env.setenv('AZURE_OPENAI_ENDPOINT', 'https://example.openai.azure.com')
        clean_env.setenv('AZURE_OPENAI_MODEL', 'gpt-4o-mini')
        clean_env.setenv('AZURE_OPENAI_DEPLOYMENT', 'prod-deployment')
        clean_env.setenv('AZURE_OPENAI_TIMEOUT', '15')

        config = AgentConfig.from_env()

        assert config.key == 'env-key'
        assert config.endpoint == 'https://example.openai.azure.com'
        assert config.model == 'gpt-4o-mini'
        assert config.deployment == 'prod-deployment'
        assert config.timeout == 15.0

    def test_overrides_win_over_environment(self, clean_env):
        clean_env.setenv('AZURE_OPENAI_MODEL', 'env-model')
        clean_env.setenv('AZURE_OPENAI_KEY', 'env-key')

        config = AgentConfig.from_env(model='override-model', key='')

        assert config.model == 'override-model'
        assert config.key == 'env-key'

    def test_invalid_timeout_is_ignored(self, clean_env):
        clean_env.setenv('AZURE_OPENAI_TIMEOUT', 'soon')

        assert AgentConfig.from_env().timeout == 0


class TestDefaultsAndValidation:

    def test_with_defaults(self):
        config = AgentConfig(key='k', endpoint='e', model='gpt-test').with_defaults()

        assert config.timeout == DEFAULT_TIMEOUT
        assert config.deployment == 'gpt-test'
        assert config.api_version == DEFAULT_API_VERSION

    def test_with_defaults_keeps_explicit_values(self):
        config = AgentConfig(model='m', deployment='d', timeout=5, api_version='2025-01-01').with_defaults()

        assert config.deployment == 'd'
        assert config.timeout == 5
        assert config.api_version == '2025-01-01'

    @pytest.mark.parametrize("missing", ['key', 'endpoint', 'model'])
    def test_validate_requires_key_endpoint_model(self, missing):
        fields = {'key': 'k', 'endpoint': 'e', 'model': 'm'}
        fields[missing] = ''

        with pytest.raises(AgentConfigError, match='missing required azure openai configuration'):
            AgentConfig(**fields).validate()

    def test_with_overrides_returns_copy(self):
        original = AgentConfig(model='a')
        updated = original.with_overrides(model='b', timeout=None)

        assert original.model == 'a'
        assert updated.model == 'b'
        assert updated.timeout == 0

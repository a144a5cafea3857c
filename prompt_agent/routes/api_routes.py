from flask import Blueprint, request, current_app, jsonify
import logging
import threading

from prompt_agent.config import AgentConfig
from prompt_agent.errors import (
    AgentConfigError,
    ChatTransportError,
    EmptyCompletionError,
    NoCriteriaError,
    OutputParseError,
    OutputSchemaError,
)
from prompt_agent.services.llm_client import Agent, ChatOptions
from prompt_agent.services.template_builder import build_criterion_templates_from_raw

api_bp = Blueprint('api', __name__, url_prefix='/api')
logger = logging.getLogger(__name__)

EXTENSION_KEY = 'prompt_agent'

_agent_lock = threading.Lock()


def _get_agent() -> Agent:
    """Return the app's agent, building it from the app's config on first use."""
    state = current_app.extensions[EXTENSION_KEY]
    if state['agent'] is None:
        with _agent_lock:
            if state['agent'] is None:
                config = state['config'] or AgentConfig()
                state['agent'] = Agent(config)
                logger.info("Chat agent created")
    return state['agent']


def _message_field(name: str) -> str:
    """Read a form field, falling back to the raw request body."""
    # Cache the body before form parsing consumes the stream
    body = request.get_data(cache=True, as_text=True)
    value = request.form.get(name, '')
    if not value:
        value = body or ''
    return value


def _chat_options() -> ChatOptions:
    options = ChatOptions(system=request.form.get('system', ''))

    temperature = request.form.get('temperature', '')
    if temperature:
        try:
            options.temperature = float(temperature)
        except ValueError:
            logger.warning(f"Ignoring invalid temperature: {temperature!r}")

    max_tokens = request.form.get('max_tokens', '')
    if max_tokens:
        try:
            options.max_tokens = int(max_tokens)
        except ValueError:
            logger.warning(f"Ignoring invalid max_tokens: {max_tokens!r}")

    # Client-sent output_schema is ignored; the server decides the schema
    options.output_schema = current_app.config.get('CHAT_OUTPUT_SCHEMA') or ''
    return options


@api_bp.route('/prompt', methods=['POST'])
def build_prompts():
    """Split a combined template (field 'message' or raw body) into per-criterion templates"""
    raw = _message_field('message')
    if not raw:
        return jsonify({'error': 'missing raw template content'}), 400

    try:
        templates = build_criterion_templates_from_raw(raw)
    except NoCriteriaError as e:
        logger.info(f"Template rejected: {e}")
        return jsonify({'error': str(e)}), 400

    return jsonify({
        'data': [template.to_dict() for template in templates],
        'count': len(templates)
    })


@api_bp.route('/chat', methods=['POST'])
def chat():
    """
    Send a message to the chat agent.

    Form fields: message (required, falls back to raw body), system,
    temperature (float), max_tokens (int).
    """
    message = _message_field('message')
    if not message:
        return jsonify({'error': 'missing message'}), 400

    options = _chat_options()

    try:
        agent = _get_agent()
    except AgentConfigError as e:
        logger.error(f"Chat agent unavailable: {e}")
        return jsonify({'error': str(e)}), 500

    try:
        if options.output_schema:
            try:
                result, parsed = agent.chat_structured_json(message, options)
            except OutputParseError as e:
                data = e.result.to_dict() if e.result is not None else None
                return jsonify({'data': data, 'parsed': None, 'parse_error': str(e)}), 422
            except OutputSchemaError as e:
                logger.error(f"Server output schema rejected: {e}")
                return jsonify({'data': None, 'parsed': None, 'parse_error': str(e)}), 422
            return jsonify({'data': result.to_dict(), 'parsed': parsed})

        result = agent.chat_structured(message, options)
        return jsonify({'data': result.to_dict()})

    except (ChatTransportError, EmptyCompletionError) as e:
        return jsonify({'error': str(e)}), 500

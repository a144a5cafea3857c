"""
Flask application factory for the prompt agent API.
"""
import logging
import time
from typing import Optional

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from prompt_agent.config import AgentConfig
from prompt_agent.routes.api_routes import EXTENSION_KEY, api_bp
from prompt_agent.services.llm_client import Agent

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = 'prompt-agent'


def create_app(
    agent: Optional[Agent] = None,
    chat_schema: str = '',
    config: Optional[AgentConfig] = None,
    app_name: str = DEFAULT_APP_NAME
) -> Flask:
    """
    Create and configure the Flask app.

    Args:
        agent: Chat agent to serve /api/chat with. When None, an agent is
            built from ``config`` on the first chat request.
        chat_schema: Server-side JSON Schema for chat replies. When set,
            /api/chat parses the model reply as JSON.
        config: Agent configuration used for the lazily built agent.
        app_name: Name reported by /health.

    Returns:
        The configured Flask app.
    """
    app = Flask(__name__)
    app.config['APP_NAME'] = app_name
    app.config['CHAT_OUTPUT_SCHEMA'] = chat_schema

    # Trust X-Forwarded-* headers from a single reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    app.extensions[EXTENSION_KEY] = {'agent': agent, 'config': config}
    app.register_blueprint(api_bp)

    @app.before_request
    def start_timer():
        g.request_started = time.time()

    @app.after_request
    def log_request(response):
        duration = time.time() - g.get('request_started', time.time())
        logger.info(f"{request.method} {request.path} -> {response.status_code} ({duration * 1000:.1f}ms)")
        return response

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        # Keep HTTP errors (404, 405...) as they are, JSON-encoded
        if isinstance(e, HTTPException):
            return jsonify({'error': e.description}), e.code
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return jsonify({'error': 'internal server error'}), 500

    @app.route('/health')
    def health():
        return jsonify({'app': app.config['APP_NAME'], 'status': 'ok'})

    return app

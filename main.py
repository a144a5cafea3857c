import logging
import os
from dotenv import load_dotenv

from prompt_agent.config import AgentConfig
from prompt_agent.server import create_app
from prompt_agent.services.schema_builder import schema_from_map

# Load environment variables before reading any configuration
load_dotenv()

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)
logger = logging.getLogger(__name__)

# Schema the server asks chat replies to follow
DEFAULT_CHAT_FIELDS = {'author.name': 'text', 'author.age': 'int'}

agent_config = AgentConfig.from_env()
chat_schema = os.getenv('CHAT_OUTPUT_SCHEMA') or schema_from_map(DEFAULT_CHAT_FIELDS)

app = create_app(
    config=agent_config,
    chat_schema=chat_schema,
    app_name=os.getenv('APP_NAME', 'prompt-agent')
)

logger.info(f"App created: model={agent_config.model or 'None'}, endpoint set: {bool(agent_config.endpoint)}")

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=int(os.getenv('PORT', '8888')))

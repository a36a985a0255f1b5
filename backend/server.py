import os
import logging

from app import create_app
from config import SERVER_HOST, SERVER_PORT, STANDALONE_NODE_CATEGORIES
from utils.logging_utils import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

app = create_app(standalone_categories=STANDALONE_NODE_CATEGORIES)


if __name__ == '__main__':
    logger.info("Graph validation API listening on %s:%d", SERVER_HOST, SERVER_PORT)
    flask_debug = os.environ.get("FLASK_DEBUG", "0") == "1"
    app.run(debug=flask_debug, host=SERVER_HOST, port=SERVER_PORT)

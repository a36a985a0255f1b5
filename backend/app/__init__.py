"""
Flask application factory for the graph validation API.
"""
import logging
from flask import Flask, jsonify
from flask_cors import CORS

from app.middleware import register_error_handlers
from app.routes import register_blueprints
from graph_engine.adapters import LocalValidationAdapter
from graph_engine.compatibility import get_default_matrix
from graph_engine.validator import StructuralValidator

logger = logging.getLogger(__name__)


def create_app(local_adapter=None, standalone_categories=None):
    """
    Build the Flask app serving the remote validation endpoints.

    Args:
        local_adapter: Adapter the routes compute with; built from the
                       default matrix when omitted
        standalone_categories: Node categories exempt from the isolated-node check
    """
    if local_adapter is None:
        matrix = get_default_matrix()
        validator = StructuralValidator(matrix, standalone_categories=standalone_categories)
        local_adapter = LocalValidationAdapter(matrix=matrix, validator=validator)

    app = Flask(__name__)
    CORS(app)

    register_error_handlers(app)
    register_blueprints(app, local_adapter)

    @app.route('/health')
    def health():
        return jsonify({"status": "ok", "port_types": len(local_adapter.matrix.known_types())})

    return app

"""
Route blueprints registration.
"""
from . import graph


def register_blueprints(app, local_adapter):
    """Register all route blueprints with the Flask app."""

    # Register graph validation routes
    graph_bp = graph.init_routes(local_adapter)
    app.register_blueprint(graph_bp)

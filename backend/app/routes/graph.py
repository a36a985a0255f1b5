"""
Graph validation routes backing the remote validation endpoint.

The server always computes locally; clients reach these routes through the
remote adapter and fall back to their own local adapter when they fail.
"""
import logging
from flask import Blueprint

from app.utils.request_validators import (
    RequestField,
    extract_json_fields,
    is_object,
    non_empty_string,
    strip_whitespace,
)
from app.utils.route_decorators import handle_route_errors, success_response
from graph_engine.adapters import LocalValidationAdapter
from graph_engine.constants import Endpoints
from graph_engine.results import ValidationOptions
from graph_engine.schema import Graph

logger = logging.getLogger(__name__)


def _flask_path(template: str) -> str:
    return template.format(board_id='<board_id>')


def init_routes(local_adapter: LocalValidationAdapter):
    """Initialize routes with dependencies."""
    bp = Blueprint('graph', __name__)

    @bp.route(_flask_path(Endpoints.VALIDATE), methods=['POST'])
    @handle_route_errors("validating graph")
    def validate_graph(board_id):
        """Validate the submitted graph snapshot for a board."""
        data = extract_json_fields(
            RequestField('graph', required=True, validator=is_object),
            RequestField('options', validator=is_object),
        )
        graph = Graph.from_dict(data['graph'])
        options = ValidationOptions.from_dict(data['options'])

        result = local_adapter.validate(graph, options)
        logger.info(
            "Validated board %s: %d nodes, %d issues, valid=%s",
            board_id, result.stats.total_nodes, len(result.issues), result.valid
        )
        return success_response(data=result.to_dict())

    @bp.route(_flask_path(Endpoints.CHECK_COMPATIBILITY), methods=['POST'])
    @handle_route_errors("checking port compatibility")
    def check_compatibility(board_id):
        """Check whether a source port type may feed a target port type."""
        data = extract_json_fields(
            RequestField('sourceType', required=True, transform=strip_whitespace, validator=non_empty_string),
            RequestField('targetType', required=True, transform=strip_whitespace, validator=non_empty_string),
        )
        result = local_adapter.check_compatibility(data['sourceType'], data['targetType'])
        return success_response(data=result.to_dict())

    @bp.route(_flask_path(Endpoints.EXECUTION_ORDER), methods=['POST'])
    @handle_route_errors("computing execution order")
    def execution_order(board_id):
        """Topological order and parallel groups for the submitted graph."""
        data = extract_json_fields(
            RequestField('graph', required=True, validator=is_object),
        )
        result = local_adapter.execution_order(Graph.from_dict(data['graph']))
        if result.has_cycles:
            logger.info("Board %s has cycles; returning partial execution order", board_id)
        return success_response(data=result.to_dict())

    @bp.route(Endpoints.PORT_TYPES, methods=['GET'])
    @handle_route_errors("listing port types")
    def port_types():
        """Registered port types and the source types each one accepts."""
        matrix = local_adapter.matrix
        return success_response(data={
            'types': matrix.known_types(),
            'accepts': matrix.to_dict(),
            'domains': matrix.domains,
        })

    return bp

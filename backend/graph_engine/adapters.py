"""
Local and remote adapters behind the validation facade.

Both adapters expose the same three operations and return the same result
types. The validation and planning logic lives only in the local building
blocks; the remote adapter just serializes, calls, and deserializes.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

import requests

from utils.logging_utils import compact_json

from .compatibility import PortCompatibilityMatrix, get_default_matrix
from .constants import Endpoints
from .context import CancellationToken
from .planner import ExecutionPlanner
from .results import (
    ExecutionOrderResult,
    PortCompatibilityResult,
    ValidationIssue,
    ValidationOptions,
    ValidationResult,
)
from .schema import Graph, coerce_graph
from .validator import StructuralValidator

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Graph payloads can be large; debug logs keep only the head
PAYLOAD_LOG_LIMIT = 500


class LocalValidationAdapter:
    """Runs the validator, planner and matrix in-process."""

    def __init__(
        self,
        matrix: Optional[PortCompatibilityMatrix] = None,
        validator: Optional[StructuralValidator] = None,
        planner: Optional[ExecutionPlanner] = None,
    ):
        self.matrix = matrix or get_default_matrix()
        self.validator = validator or StructuralValidator(self.matrix)
        self.planner = planner or ExecutionPlanner()

    def validate(
        self,
        graph,
        options: Optional[ValidationOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ValidationResult:
        graph = coerce_graph(graph)
        result = self.validator.validate(graph, options, cancel_token)
        if not result.valid:
            return result

        # Valid graphs also report the order they would run in
        plan = self.planner.plan(graph, cancel_token)
        if plan.has_cycles:
            return result
        stats = dataclasses.replace(
            result.stats,
            execution_order=plan.order,
            parallel_groups=plan.parallel_groups,
        )
        return dataclasses.replace(result, stats=stats)

    def check_compatibility(self, source_type: str, target_type: str) -> PortCompatibilityResult:
        return self.matrix.explain(source_type, target_type)

    def execution_order(
        self,
        graph,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ExecutionOrderResult:
        return self.planner.plan(coerce_graph(graph), cancel_token)

    def check_connection(
        self,
        graph,
        source_node_id: Optional[str],
        target_node_id: Optional[str],
        source_port_id: Optional[str] = None,
        target_port_id: Optional[str] = None,
    ) -> Optional[ValidationIssue]:
        return self.validator.check_connection(
            coerce_graph(graph), source_node_id, target_node_id, source_port_id, target_port_id
        )


class RemoteValidationError(Exception):
    """Raised when the remote validation endpoint cannot produce a usable result."""


class RemoteValidationAdapter:
    """
    Calls the shared validation endpoint for a workflow.

    Any transport failure, non-success status, timeout, ``success: false``
    envelope or malformed payload is surfaced as ``RemoteValidationError`` so
    the facade can fall back.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        if not base_url:
            raise ValueError("Remote validation requires a base URL")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        if headers:
            self.session.headers.update(headers)

    def validate(
        self,
        workflow_id: str,
        graph,
        options: Optional[ValidationOptions] = None,
    ) -> ValidationResult:
        payload = {
            'graph': self._serialize_graph(graph),
            'options': (options or ValidationOptions()).to_dict(),
        }
        data = self._post(Endpoints.VALIDATE.format(board_id=workflow_id), payload)
        return self._decode(ValidationResult.from_dict, data)

    def check_compatibility(
        self,
        workflow_id: str,
        source_type: str,
        target_type: str,
    ) -> PortCompatibilityResult:
        payload = {'sourceType': source_type, 'targetType': target_type}
        data = self._post(Endpoints.CHECK_COMPATIBILITY.format(board_id=workflow_id), payload)
        return self._decode(PortCompatibilityResult.from_dict, data)

    def execution_order(self, workflow_id: str, graph) -> ExecutionOrderResult:
        payload = {'graph': self._serialize_graph(graph)}
        data = self._post(Endpoints.EXECUTION_ORDER.format(board_id=workflow_id), payload)
        return self._decode(ExecutionOrderResult.from_dict, data)

    @staticmethod
    def _serialize_graph(graph) -> Any:
        if isinstance(graph, Graph):
            return graph.to_dict()
        return graph

    def _post(self, path: str, payload: Mapping[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("POST %s %s", url, compact_json(payload, limit=PAYLOAD_LOG_LIMIT))
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except (requests.RequestException, TypeError, ValueError) as e:
            raise RemoteValidationError(f"Request to {url} failed: {e}") from e

        if not response.ok:
            raise RemoteValidationError(f"{url} returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteValidationError(f"{url} returned a non-JSON body") from e

        if not isinstance(body, Mapping) or not body.get('success') or body.get('data') is None:
            error = body.get('error') if isinstance(body, Mapping) else None
            raise RemoteValidationError(error or f"{url} reported failure")
        return body['data']

    @staticmethod
    def _decode(factory: Callable[[Any], T], data: Any) -> T:
        try:
            return factory(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RemoteValidationError(f"Malformed remote payload: {e}") from e

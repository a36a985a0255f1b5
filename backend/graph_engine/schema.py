"""
Graph schema definitions: the immutable snapshot the engine works on.

The editor owns and mutates the live graph; every validation or planning
call receives one of these snapshots and never changes it.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


class GraphModelError(ValueError):
    """Raised when a graph snapshot is structurally corrupt (not merely invalid)."""


def _flag(raw: Mapping[str, Any], keys: Tuple[str, ...], where: str) -> bool:
    """First present boolean flag among ``keys``; catalog flags must be real booleans."""
    for key in keys:
        if key in raw and raw[key] is not None:
            value = raw[key]
            if not isinstance(value, bool):
                raise GraphModelError(f"{where}: '{key}' must be a boolean, got {value!r}")
            return value
    return False


def _optional_text(value: Any, what: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value or None
    raise GraphModelError(f"{what} must be a string, got {value!r}")


def _port_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise GraphModelError(f"{what} must be a list, got {type(value).__name__}")
    return list(value)


@dataclass(frozen=True)
class Port:
    id: str
    name: str
    port_type: str
    required: bool = False
    accepts_multiple: bool = False
    description: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], owner: str) -> "Port":
        if not isinstance(raw, Mapping):
            raise GraphModelError(f"Node {owner} has a port that is not an object: {raw!r}")
        port_id = raw.get('id')
        port_type = raw.get('portType') or raw.get('type')
        if not port_id or not isinstance(port_id, str):
            raise GraphModelError(f"Node {owner} has a port without an id: {raw!r}")
        if not port_type or not isinstance(port_type, str):
            raise GraphModelError(f"Port {owner}:{port_id} has no port type")
        where = f"Port {owner}:{port_id}"
        return cls(
            id=port_id,
            name=str(raw.get('name') or port_id),
            port_type=port_type,
            required=_flag(raw, ('required',), where),
            accepts_multiple=_flag(raw, ('acceptsMultiple', 'multi', 'multiple'), where),
            description=str(raw.get('description') or ''),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'portType': self.port_type,
            'required': self.required,
            'acceptsMultiple': self.accepts_multiple,
        }
        if self.description:
            data['description'] = self.description
        return data


@dataclass(frozen=True)
class Node:
    id: str
    node_type: str
    inputs: Tuple[Port, ...] = ()
    outputs: Tuple[Port, ...] = ()
    category: Optional[str] = None
    label: Optional[str] = None

    def input_port(self, port_id: str) -> Optional[Port]:
        return next((port for port in self.inputs if port.id == port_id), None)

    def output_port(self, port_id: str) -> Optional[Port]:
        return next((port for port in self.outputs if port.id == port_id), None)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Node":
        if not isinstance(raw, Mapping):
            raise GraphModelError(f"Node entry is not an object: {raw!r}")
        node_id = raw.get('id')
        if not node_id or not isinstance(node_id, str):
            raise GraphModelError(f"Node entry without an id: {raw!r}")

        # Canvas payloads nest the catalog data under 'data'
        body = raw
        if 'inputs' not in raw and 'outputs' not in raw and isinstance(raw.get('data'), Mapping):
            body = raw['data']

        node_type = body.get('nodeType') or raw.get('nodeType') or raw.get('type')
        if not node_type or not isinstance(node_type, str):
            raise GraphModelError(f"Node {node_id} has no node type")

        raw_inputs = _port_list(body.get('inputs'), f"Inputs of node {node_id}")
        raw_outputs = _port_list(body.get('outputs'), f"Outputs of node {node_id}")
        inputs = tuple(Port.from_dict(p, node_id) for p in raw_inputs)
        outputs = tuple(Port.from_dict(p, node_id) for p in raw_outputs)
        for direction, ports in (('input', inputs), ('output', outputs)):
            ids = [port.id for port in ports]
            if len(ids) != len(set(ids)):
                raise GraphModelError(f"Node {node_id} declares duplicate {direction} port ids")

        return cls(
            id=node_id,
            node_type=node_type,
            inputs=inputs,
            outputs=outputs,
            category=_optional_text(body.get('category') or raw.get('category'), f"Category of node {node_id}"),
            label=_optional_text(body.get('label') or raw.get('label'), f"Label of node {node_id}"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'nodeType': self.node_type,
            'inputs': [port.to_dict() for port in self.inputs],
            'outputs': [port.to_dict() for port in self.outputs],
        }
        if self.category:
            data['category'] = self.category
        if self.label:
            data['label'] = self.label
        return data


@dataclass(frozen=True)
class Edge:
    id: str
    source_node_id: str
    source_port_id: str
    target_node_id: str
    target_port_id: str

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], nodes: Mapping[str, Node]) -> "Edge":
        if not isinstance(raw, Mapping):
            raise GraphModelError(f"Edge entry is not an object: {raw!r}")
        source_id = raw.get('sourceNodeId') or raw.get('source')
        target_id = raw.get('targetNodeId') or raw.get('target')
        if not (source_id and isinstance(source_id, str) and target_id and isinstance(target_id, str)):
            raise GraphModelError(f"Edge is missing its source or target node: {raw!r}")
        for node_id in (source_id, target_id):
            if node_id not in nodes:
                raise GraphModelError(f"Edge references unknown node {node_id}: {raw!r}")

        # A missing handle means the node's first port, as the editor draws it
        source_port = raw.get('sourcePortId') or raw.get('sourceHandle')
        if source_port is not None and not isinstance(source_port, str):
            raise GraphModelError(f"Edge source handle must be a string: {raw!r}")
        if not source_port:
            outputs = nodes[source_id].outputs
            if not outputs:
                raise GraphModelError(f"Edge leaves node {source_id}, which has no outputs")
            source_port = outputs[0].id
        target_port = raw.get('targetPortId') or raw.get('targetHandle')
        if target_port is not None and not isinstance(target_port, str):
            raise GraphModelError(f"Edge target handle must be a string: {raw!r}")
        if not target_port:
            inputs = nodes[target_id].inputs
            if not inputs:
                raise GraphModelError(f"Edge enters node {target_id}, which has no inputs")
            target_port = inputs[0].id

        edge_id = raw.get('id') or f"{source_id}:{source_port}->{target_id}:{target_port}"
        return cls(
            id=str(edge_id),
            source_node_id=source_id,
            source_port_id=source_port,
            target_node_id=target_id,
            target_port_id=target_port,
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            'id': self.id,
            'sourceNodeId': self.source_node_id,
            'sourcePortId': self.source_port_id,
            'targetNodeId': self.target_node_id,
            'targetPortId': self.target_port_id,
        }


class Graph:
    """
    Read-only graph snapshot with nodes and edges keyed by id.

    Declaration order is preserved; it is the tie-break used wherever the
    engine needs deterministic output. Construction enforces that every edge
    resolves to an output port on its source node and an input port on its
    target node.
    """

    def __init__(self, nodes: Iterable[Node] = (), edges: Iterable[Edge] = ()):
        node_map: Dict[str, Node] = {}
        for node in nodes:
            if node.id in node_map:
                raise GraphModelError(f"Duplicate node id: {node.id}")
            node_map[node.id] = node

        edge_map: Dict[str, Edge] = {}
        for edge in edges:
            if edge.id in edge_map:
                raise GraphModelError(f"Duplicate edge id: {edge.id}")
            self._check_edge(edge, node_map)
            edge_map[edge.id] = edge

        self._nodes = MappingProxyType(node_map)
        self._edges = MappingProxyType(edge_map)

    @staticmethod
    def _check_edge(edge: Edge, nodes: Mapping[str, Node]) -> None:
        source = nodes.get(edge.source_node_id)
        target = nodes.get(edge.target_node_id)
        if source is None or target is None:
            raise GraphModelError(f"Edge {edge.id} has a dangling node reference")
        if source.output_port(edge.source_port_id) is None:
            raise GraphModelError(
                f"Edge {edge.id}: {edge.source_port_id} is not an output of node {source.id}"
            )
        if target.input_port(edge.target_port_id) is None:
            raise GraphModelError(
                f"Edge {edge.id}: {edge.target_port_id} is not an input of node {target.id}"
            )

    @property
    def nodes(self) -> Mapping[str, Node]:
        return self._nodes

    @property
    def edges(self) -> Mapping[str, Edge]:
        return self._edges

    def __len__(self) -> int:
        return len(self._nodes)

    def source_port(self, edge: Edge) -> Port:
        return self._nodes[edge.source_node_id].output_port(edge.source_port_id)

    def target_port(self, edge: Edge) -> Port:
        return self._nodes[edge.target_node_id].input_port(edge.target_port_id)

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "Graph":
        if payload is None:
            raise GraphModelError("Graph reference is null")
        if not isinstance(payload, Mapping):
            raise GraphModelError(f"Graph payload must be an object, got {type(payload).__name__}")

        raw_nodes = payload.get('nodes') or []
        raw_edges = payload.get('edges')
        if raw_edges is None:
            raw_edges = payload.get('connections') or []
        if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
            raise GraphModelError("Graph nodes and edges must be lists")

        nodes: List[Node] = [Node.from_dict(raw) for raw in raw_nodes]
        by_id: Dict[str, Node] = {}
        for node in nodes:
            by_id.setdefault(node.id, node)
        edges = [Edge.from_dict(raw, by_id) for raw in raw_edges]
        return cls(nodes, edges)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nodes': [node.to_dict() for node in self._nodes.values()],
            'edges': [edge.to_dict() for edge in self._edges.values()],
        }

    def fingerprint(self) -> str:
        """Content hash of the snapshot, stable across identical graphs."""
        encoded = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(encoded.encode('utf-8')).hexdigest()


def coerce_graph(graph) -> Graph:
    """Accept either a ``Graph`` or a raw editor payload."""
    if isinstance(graph, Graph):
        return graph
    return Graph.from_dict(graph)

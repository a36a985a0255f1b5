"""
Shared fixtures and graph builders for the graph validation tests.
"""
import pytest

from graph_engine.schema import Edge, Graph, Node, Port


def port(port_id, port_type, required=False, multiple=False):
    return Port(
        id=port_id,
        name=port_id,
        port_type=port_type,
        required=required,
        accepts_multiple=multiple,
    )


class GraphBuilder:
    """Small fluent helper for declaring test graphs in order."""

    def __init__(self):
        self.nodes = []
        self.edges = []

    def node(self, node_id, inputs=(), outputs=(), category=None, node_type='generic', label=None):
        self.nodes.append(Node(
            id=node_id,
            node_type=node_type,
            inputs=tuple(inputs),
            outputs=tuple(outputs),
            category=category,
            label=label,
        ))
        return self

    def connect(self, source, source_port, target, target_port, edge_id=None):
        self.edges.append(Edge(
            id=edge_id or f"e{len(self.edges) + 1}",
            source_node_id=source,
            source_port_id=source_port,
            target_node_id=target,
            target_port_id=target_port,
        ))
        return self

    def build(self):
        return Graph(self.nodes, self.edges)


def relay(node_id, builder, port_type='image', required=False):
    """A node with one input and one output of the same type."""
    return builder.node(
        node_id,
        inputs=[port('in', port_type, required=required, multiple=True)],
        outputs=[port('out', port_type)],
    )


@pytest.fixture
def builder():
    return GraphBuilder()


@pytest.fixture
def image_pipeline():
    """Example graph: A(output: image) -> B(input: image, required)."""
    return (
        GraphBuilder()
        .node('A', outputs=[port('image', 'image')], category='input')
        .node('B', inputs=[port('image', 'image', required=True)], category='output')
        .connect('A', 'image', 'B', 'image')
        .build()
    )


@pytest.fixture
def two_cycle():
    """A -> B and B -> A."""
    b = GraphBuilder()
    relay('A', b)
    relay('B', b)
    return b.connect('A', 'out', 'B', 'in').connect('B', 'out', 'A', 'in').build()


@pytest.fixture
def canvas_payload():
    """Graph as the editor sends it, using React Flow style keys."""
    return {
        'nodes': [
            {
                'id': 'prompt-1',
                'type': 'canvasNode',
                'data': {
                    'nodeType': 'textInput',
                    'category': 'input',
                    'label': 'Text Input',
                    'inputs': [],
                    'outputs': [{'id': 'text', 'name': 'Text', 'type': 'text'}],
                },
            },
            {
                'id': 'room-1',
                'type': 'canvasNode',
                'data': {
                    'nodeType': 'roomRedesign',
                    'category': 'interiorDesign',
                    'inputs': [
                        {'id': 'roomImage', 'name': 'Room Photo', 'type': 'image', 'required': True},
                        {'id': 'style', 'name': 'Design Style', 'type': 'designStyle'},
                    ],
                    'outputs': [{'id': 'room', 'name': 'Room', 'type': 'room'}],
                },
            },
        ],
        'edges': [
            {
                'id': 'edge-1',
                'source': 'prompt-1',
                'sourceHandle': 'text',
                'target': 'room-1',
                'targetHandle': 'style',
            },
        ],
    }

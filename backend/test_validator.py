"""
Tests for the structural validator.
"""
import pytest

from conftest import GraphBuilder, port, relay
from graph_engine.constants import IssueKind, Severity
from graph_engine.context import CancellationToken, OperationCancelled
from graph_engine.results import (
    ValidationOptions,
    filter_issues_by_severity,
    get_issues_for_node,
    has_blocking_issues,
)
from graph_engine.validator import StructuralValidator


@pytest.fixture
def validator():
    return StructuralValidator()


def kinds(result):
    return [issue.kind for issue in result.issues]


def test_simple_pipeline_is_valid(validator, image_pipeline):
    result = validator.validate(image_pipeline)

    assert result.valid is True
    assert not filter_issues_by_severity(result, 'error')
    assert result.stats.total_nodes == 2
    assert result.stats.connected_nodes == 2
    assert result.stats.isolated_nodes == 0


def test_two_cycle_reports_one_aggregated_issue(validator, two_cycle):
    result = validator.validate(two_cycle)

    cycle_issues = [i for i in result.issues if i.kind == IssueKind.CYCLE_DETECTED]
    assert len(cycle_issues) == 1
    assert cycle_issues[0].severity == Severity.ERROR
    assert set(cycle_issues[0].node_ids) == {'A', 'B'}
    assert result.valid is False


def test_self_loop_is_a_cycle(validator, builder):
    relay('A', builder).connect('A', 'out', 'A', 'in')
    result = validator.validate(builder.build())

    assert kinds(result) == [IssueKind.CYCLE_DETECTED]
    assert result.issues[0].node_ids == ('A',)
    # A self-loop still counts as a connection
    assert result.stats.isolated_nodes == 0


def test_disjoint_cycles_still_produce_one_issue(validator, builder):
    for node_id in ('A', 'B', 'C', 'D'):
        relay(node_id, builder)
    builder.connect('A', 'out', 'B', 'in').connect('B', 'out', 'A', 'in')
    builder.connect('C', 'out', 'D', 'in').connect('D', 'out', 'C', 'in')

    result = validator.validate(builder.build())

    assert kinds(result) == [IssueKind.CYCLE_DETECTED]
    assert result.issues[0].node_ids == ('A', 'B', 'C', 'D')
    assert "2 cycle(s)" in result.issues[0].message


def test_missing_required_input(validator, builder):
    builder.node('C', inputs=[port('roomImage', 'image', required=True)], outputs=[port('room', 'room')])
    result = validator.validate(builder.build())

    missing = [i for i in result.issues if i.kind == IssueKind.MISSING_REQUIRED_INPUT]
    assert len(missing) == 1
    assert missing[0].node_id == 'C'
    assert missing[0].port_id == 'roomImage'
    assert missing[0].severity == Severity.ERROR
    assert result.valid is False


def test_missing_input_reported_once_per_port_regardless_of_other_content(validator, builder):
    builder.node('src', outputs=[port('text', 'text')])
    builder.node('C', inputs=[
        port('roomImage', 'image', required=True),
        port('notes', 'text', required=True),
    ])
    builder.connect('src', 'text', 'C', 'notes')
    relay('X', builder)
    relay('Y', builder)
    builder.connect('X', 'out', 'Y', 'in').connect('Y', 'out', 'X', 'in')

    result = validator.validate(builder.build())

    missing = [i for i in result.issues if i.kind == IssueKind.MISSING_REQUIRED_INPUT]
    assert [(i.node_id, i.port_id) for i in missing] == [('C', 'roomImage')]


def test_incompatible_ports_name_both_types(validator, builder):
    builder.node('A', outputs=[port('text', 'text')])
    builder.node('B', inputs=[port('image', 'image', required=True)], category='output')
    builder.connect('A', 'text', 'B', 'image', edge_id='bad')

    result = validator.validate(builder.build())

    assert kinds(result) == [IssueKind.PORT_INCOMPATIBLE]
    issue = result.issues[0]
    assert issue.edge_id == 'bad'
    assert 'text' in issue.message and 'image' in issue.message
    assert result.valid is False


def test_any_ports_connect_to_everything(validator, builder):
    builder.node('A', outputs=[port('anything', 'any')])
    builder.node('B', inputs=[port('post', 'post', required=True)], outputs=[port('out', 'lore')])
    builder.node('C', inputs=[port('content', 'any', required=True)], category='output')
    builder.connect('A', 'anything', 'B', 'post').connect('B', 'out', 'C', 'content')

    assert validator.validate(builder.build()).valid


def test_second_edge_into_single_input_is_flagged(validator, builder):
    builder.node('A', outputs=[port('image', 'image')])
    builder.node('B', outputs=[port('image', 'image')])
    builder.node('C', inputs=[port('image', 'image', required=True)])
    builder.connect('A', 'image', 'C', 'image', edge_id='first')
    builder.connect('B', 'image', 'C', 'image', edge_id='second')

    result = validator.validate(builder.build())

    assert kinds(result) == [IssueKind.MULTIPLE_CONNECTIONS]
    assert result.issues[0].edge_id == 'second'


def test_multi_input_accepts_many_edges(validator, builder):
    builder.node('A', outputs=[port('image', 'image')])
    builder.node('B', outputs=[port('image', 'image')])
    builder.node('C', inputs=[port('refs', 'image', required=True, multiple=True)])
    builder.connect('A', 'image', 'C', 'refs').connect('B', 'image', 'C', 'refs')

    assert validator.validate(builder.build()).issues == ()


def test_isolated_nodes_are_warnings(validator, builder):
    builder.node('lonely', outputs=[port('text', 'text')], label='Text Input')
    builder.node('sink', inputs=[port('content', 'any')], category='output')
    builder.node('note', category='annotation')

    result = validator.validate(builder.build())

    assert kinds(result) == [IssueKind.ISOLATED_NODE]
    assert result.issues[0].node_id == 'lonely'
    assert "'Text Input'" in result.issues[0].message
    assert result.valid is True
    assert result.stats.total_nodes == 3
    assert result.stats.isolated_nodes == 1
    assert result.stats.connected_nodes == 2


def test_standalone_categories_are_configurable(builder):
    builder.node('sink', inputs=[port('content', 'any')], category='output')
    validator = StructuralValidator(standalone_categories=())

    result = validator.validate(builder.build())

    assert kinds(result) == [IssueKind.ISOLATED_NODE]


def test_all_checks_run_and_merge(validator, builder):
    builder.node('T', outputs=[port('text', 'text')])
    builder.node('I', inputs=[port('image', 'image', required=True)])
    builder.node('N', inputs=[port('image', 'image', required=True)])
    relay('X', builder)
    relay('Y', builder)
    builder.node('Z', outputs=[port('text', 'text')])
    builder.connect('T', 'text', 'I', 'image')
    builder.connect('X', 'out', 'Y', 'in').connect('Y', 'out', 'X', 'in')

    result = validator.validate(builder.build())

    assert kinds(result) == [
        IssueKind.MISSING_REQUIRED_INPUT,
        IssueKind.PORT_INCOMPATIBLE,
        IssueKind.CYCLE_DETECTED,
        IssueKind.ISOLATED_NODE,
        IssueKind.ISOLATED_NODE,
    ]
    assert [i.node_id for i in result.issues if i.kind == IssueKind.ISOLATED_NODE] == ['N', 'Z']


def test_options_disable_checks(validator, builder):
    builder.node('T', outputs=[port('text', 'text')])
    builder.node('I', inputs=[port('image', 'image')])
    relay('X', builder)
    builder.node('Z')
    builder.connect('T', 'text', 'I', 'image').connect('X', 'out', 'X', 'in')
    graph = builder.build()

    options = ValidationOptions(include_warnings=False, validate_connections=False, check_cycles=False)
    result = validator.validate(graph, options)

    assert result.issues == ()
    assert result.valid is True
    # Stats still count the isolated node even though its warning is hidden
    assert result.stats.isolated_nodes == 1


def test_empty_graph_is_valid(validator):
    result = validator.validate(GraphBuilder().build())
    assert result.valid
    assert result.stats.total_nodes == 0


def test_repeated_validation_is_identical(validator, two_cycle):
    assert validator.validate(two_cycle) == validator.validate(two_cycle)


def test_projection_helpers(validator, builder):
    builder.node('C', inputs=[port('roomImage', 'image', required=True)])
    relay('X', builder)
    relay('Y', builder)
    builder.connect('X', 'out', 'Y', 'in').connect('Y', 'out', 'X', 'in')

    result = validator.validate(builder.build())

    assert has_blocking_issues(result)
    assert [i.kind for i in get_issues_for_node(result, 'C')] == [
        IssueKind.MISSING_REQUIRED_INPUT,
        IssueKind.ISOLATED_NODE,
    ]
    assert [i.kind for i in get_issues_for_node(result, 'X')] == [IssueKind.CYCLE_DETECTED]
    assert len(filter_issues_by_severity(result, Severity.WARNING)) == 1
    assert filter_issues_by_severity(result, 'info') == []


def test_cancelled_validation_raises(validator, image_pipeline):
    token = CancellationToken()
    token.cancel()

    with pytest.raises(OperationCancelled):
        validator.validate(image_pipeline, cancel_token=token)


# ----------------------------------------------------------------------------
# Proposed connections
# ----------------------------------------------------------------------------

@pytest.fixture
def drawing_graph():
    """A feeds B's single input; C collects many images; T emits text."""
    return (
        GraphBuilder()
        .node('A', outputs=[port('image', 'image')])
        .node('A2', outputs=[port('image', 'image')])
        .node('B', inputs=[port('image', 'image', required=True)], label='Preview')
        .node('C', inputs=[port('refs', 'image', multiple=True)])
        .node('T', outputs=[port('text', 'text')])
        .connect('A', 'image', 'B', 'image', edge_id='existing')
        .build()
    )


def test_connection_to_self_is_rejected(validator, drawing_graph):
    issue = validator.check_connection(drawing_graph, 'A', 'A')

    assert issue.kind == IssueKind.CYCLE_DETECTED
    assert issue.message == "Cannot connect a node to itself"
    assert issue.node_ids == ('A',)


@pytest.mark.parametrize("source, target, message", [
    (None, 'B', "Missing source or target"),
    ('A', '', "Missing source or target"),
    ('A', 'ghost', "Source or target node not found"),
    ('ghost', 'B', "Source or target node not found"),
])
def test_connection_with_unknown_endpoint_is_rejected(validator, drawing_graph, source, target, message):
    issue = validator.check_connection(drawing_graph, source, target)

    assert issue.kind == IssueKind.PORT_INCOMPATIBLE
    assert issue.message == message


def test_connection_with_unknown_port_is_rejected(validator, drawing_graph):
    missing_output = validator.check_connection(drawing_graph, 'A', 'C', source_port_id='mask')
    missing_input = validator.check_connection(drawing_graph, 'A', 'C', 'image', 'nope')
    no_outputs = validator.check_connection(drawing_graph, 'B', 'C')

    assert missing_output.message == "Node A has no output 'mask'"
    assert missing_output.port_id == 'mask'
    assert missing_input.message == "Node C has no input 'nope'"
    assert no_outputs.message == "Node 'Preview' (B) has no outputs"


def test_incompatible_connection_is_rejected(validator, drawing_graph):
    issue = validator.check_connection(drawing_graph, 'T', 'C', 'text', 'refs')

    assert issue.kind == IssueKind.PORT_INCOMPATIBLE
    assert issue.message == "Incompatible types: text cannot connect to image"
    assert issue.node_id == 'C'


def test_occupied_single_input_is_rejected(validator, drawing_graph):
    issue = validator.check_connection(drawing_graph, 'A2', 'B', 'image', 'image')

    assert issue.kind == IssueKind.MULTIPLE_CONNECTIONS
    assert issue.message == "Target port already has a connection"
    assert issue.edge_id == 'existing'


def test_multi_input_accepts_another_connection(validator, drawing_graph):
    assert validator.check_connection(drawing_graph, 'A', 'C') is None
    assert validator.check_connection(drawing_graph, 'A2', 'C', 'image', 'refs') is None


def test_self_connection_can_be_allowed(validator, builder):
    relay('X', builder)
    assert validator.check_connection(builder.build(), 'X', 'X', allow_self_connection=True) is None


def test_unregistered_type_gets_a_hint(validator, builder):
    builder.node('S', outputs=[port('out', 'hologram')])
    builder.node('D', inputs=[port('in', 'image')], category='output')
    builder.connect('S', 'out', 'D', 'in')

    result = validator.validate(builder.build())

    assert result.issues[0].kind == IssueKind.PORT_INCOMPATIBLE
    assert result.issues[0].suggestion == "Port type 'hologram' is not registered"

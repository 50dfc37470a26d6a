from typing import Dict, Mapping, Optional

from awsmpirun.modules.fleet.models import AggregateResult, Fleet, NodeOutcome

NO_RESULT = "no result recorded"


def aggregate_results(
    fleet: Fleet,
    dispatch_errors: Mapping[str, str],
    outcomes: Mapping[str, NodeOutcome],
) -> AggregateResult:
    """
    Combine dispatch failures and poll outcomes into one result.

    Args:
        fleet: The ranked fleet of the run
        dispatch_errors: Node id -> submission error, for nodes never started
        outcomes: Node id -> terminal poll outcome, for dispatched nodes

    Returns:
        AggregateResult covering every fleet node. The leader's stdout is
        attached only when the leader itself succeeded.
    """
    per_node_error: Dict[str, Optional[str]] = {}
    for node in fleet:
        if node.node_id in dispatch_errors:
            per_node_error[node.node_id] = dispatch_errors[node.node_id]
            continue

        outcome = outcomes.get(node.node_id)
        if outcome is None:
            per_node_error[node.node_id] = NO_RESULT
        elif outcome.succeeded:
            per_node_error[node.node_id] = None
        else:
            per_node_error[node.node_id] = outcome.error or outcome.status.value

    leader_id = fleet.leader.node_id
    leader_output = None
    if per_node_error[leader_id] is None:
        leader_output = outcomes[leader_id].stdout or ""

    return AggregateResult(
        overall_success=all(error is None for error in per_node_error.values()),
        per_node_error=per_node_error,
        leader_output=leader_output,
    )

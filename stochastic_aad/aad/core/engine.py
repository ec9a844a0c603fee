# aad/core/engine.py
"""
Reverse (adjoint) sweep over the operator tree.

For a root y, the adjoint of every node u it depends on is

    ū = Σ_{v : u is an argument of v}  v̄ · ∂v/∂u

accumulated pathwise. Because every argument id is smaller than the id of the
node using it, visiting nodes in descending id order guarantees that a node's
adjoint is complete before it is propagated to its arguments.
"""

from __future__ import annotations

import heapq
import logging
from typing import Dict, Iterable, Optional

from ...stochastic import RandomVariable
from ..ops.catalog import ONE, get_operator

logger = logging.getLogger(__name__)


def _accumulate(adjoints: Dict[int, RandomVariable], node_id: int,
                partial: RandomVariable, adjoint: RandomVariable) -> None:
    """adjoints[node_id] += partial · adjoint"""
    current = adjoints.get(node_id)
    if current is None:
        adjoints[node_id] = partial.mult(adjoint)
    else:
        adjoints[node_id] = current.add_product(partial, adjoint)


def reverse(root, independent_ids: Optional[Iterable[int]] = None) -> Dict[int, RandomVariable]:
    """
    Run one reverse pass seeded with d(root)/d(root) = 1.

    Args:
        root: ADVar whose derivatives are requested.
        independent_ids: if given, only these leaf ids are reported.

    Returns:
        dict {leaf id: ∂root/∂leaf}. Leaves the root does not depend on are
        absent (their derivative is zero). If the root's tape is configured with
        `gradient_retains_leaf_nodes_only=False`, adjoints of interior nodes
        (including the root itself) are returned as well, subject to the
        same `independent_ids` filter.

    Notes:
        - The tree is not modified, so the pass can be repeated from any node.
        - Constant nodes never receive adjoints.
        - Configured partials use the configuration captured by each node
          when it was recorded, not the root's.
    """
    config = root.tape.config
    wanted = None if independent_ids is None else set(independent_ids)
    retain_leaves_only = config.gradient_retains_leaf_nodes_only

    root_node = root.node
    adjoints: Dict[int, RandomVariable] = {root_node.id: ONE}
    gradient: Dict[int, RandomVariable] = {}

    # Pending nodes keyed by -id: heappop yields the highest id first
    pending = {root_node.id: root_node}
    heap = [-root_node.id]
    visited = 0

    while heap:
        node_id = -heapq.heappop(heap)
        node = pending.pop(node_id)
        visited += 1

        adjoint = adjoints[node_id]
        if node.operator is None:
            if node.is_leaf and (wanted is None or node_id in wanted):
                gradient[node_id] = adjoint
            continue

        operator = get_operator(node.operator)
        if operator.adjoint_transform is not None:
            adjoint = operator.adjoint_transform(adjoint, node)

        for index, argument in enumerate(node.arguments):
            if argument.is_constant:
                continue
            partial = operator.partial(index, node.argument_values, node.config or config)
            _accumulate(adjoints, argument.id, partial, adjoint)
            if argument.id not in pending:
                pending[argument.id] = argument
                heapq.heappush(heap, -argument.id)

        if retain_leaves_only:
            del adjoints[node_id]
        elif wanted is None or node_id in wanted:
            gradient[node_id] = adjoints[node_id]

    logger.debug("reverse pass from node %s: %d node(s) visited, %d entries",
                 root_node.id, visited, len(gradient))
    return gradient

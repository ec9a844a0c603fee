"""
Operator-tree utilities
Printing and structural checks of the nodes reachable from a value
"""

import numpy as np
from typing import Dict, Iterator, List
from collections import Counter


def _node_of(root):
    return getattr(root, "node", root)


def iter_nodes(root) -> Iterator:
    """
    Yield every node reachable from `root` (an ADVar or a Node) once,
    in ascending id order (arguments before their users).
    """
    start = _node_of(root)
    seen = {start.id: start}
    stack = [start]
    while stack:
        node = stack.pop()
        for argument in node.arguments:
            if argument.id not in seen:
                seen[argument.id] = argument
                stack.append(argument)
    for node_id in sorted(seen):
        yield seen[node_id]


def check_ordering(root) -> bool:
    """True if every argument id is smaller than the id of the node using it."""
    return all(a.id < node.id for node in iter_nodes(root) for a in node.arguments)


def _tag(node) -> str:
    if node.operator is not None:
        return node.operator.name
    return "const" if node.is_constant else "leaf"


def _value_str(node) -> str:
    v = node.value
    if v.is_deterministic():
        return f"{v.double_value():10.6f}"
    return f"E={v.get_average():8.4f}"


def print_graph_summary(root, detailed: bool = False) -> Dict:
    """
    Print summary statistics of the operator tree below `root`

    Args:
        root: ADVar (or Node) whose dependencies are summarised
        detailed: also print each node (up to 100 nodes)

    Returns:
        Dictionary of the statistics
    """
    nodes: List = list(iter_nodes(root))

    n_nodes = len(nodes)
    n_edges = sum(len(node.arguments) for node in nodes)
    n_leaves = sum(1 for node in nodes if node.is_leaf)
    n_constants = sum(1 for node in nodes if node.is_constant)

    fan_ins = [len(node.arguments) for node in nodes]
    max_fan_in = max(fan_ins)
    avg_fan_in = np.mean(fan_ins)

    # Fan-out counts only users within this tree
    fan_out = Counter(a.id for node in nodes for a in node.arguments)
    fan_outs = [fan_out.get(node.id, 0) for node in nodes]
    max_fan_out = max(fan_outs)
    avg_fan_out = np.mean(fan_outs)

    op_counter = Counter(_tag(node) for node in nodes)

    print("\n" + "="*70)
    print("OPERATOR TREE SUMMARY")
    print("="*70)
    print(f"Total nodes:        {n_nodes:,}")
    print(f"Total edges:        {n_edges:,}")
    print(f"Leaves:             {n_leaves:,}")
    print(f"Constants:          {n_constants:,}")
    print(f"Max fan-in:         {max_fan_in}")
    print(f"Avg fan-in:         {avg_fan_in:.2f}")
    print(f"Max fan-out:        {max_fan_out}")
    print(f"Avg fan-out:        {avg_fan_out:.2f}")
    print()
    print("Operation breakdown:")
    for op_type, count in op_counter.most_common(10):
        pct = 100.0 * count / n_nodes
        print(f"  {op_type:24s}: {count:6,} ({pct:5.1f}%)")

    if detailed and n_nodes <= 100:
        print()
        print("="*70)
        print("DETAILED NODE LIST")
        print("="*70)
        for node in nodes:
            argument_info = ", ".join(f"Node{a.id}" for a in node.arguments)
            print(f"Node {node.id:6d}: {_tag(node):24s} <- [{argument_info}]")

    print("="*70 + "\n")

    return {
        'nodes': n_nodes,
        'edges': n_edges,
        'leaves': n_leaves,
        'constants': n_constants,
        'max_fan_in': max_fan_in,
        'avg_fan_in': avg_fan_in,
        'max_fan_out': max_fan_out,
        'avg_fan_out': avg_fan_out,
        'operations': dict(op_counter)
    }


def print_computation_graph(root, max_nodes: int = 20) -> None:
    """
    Print the operator tree below `root`, one line per node

    Args:
        root: ADVar (or Node)
        max_nodes: print at most this many nodes
    """
    nodes = list(iter_nodes(root))

    print("\n" + "="*70)
    print("OPERATOR TREE STRUCTURE")
    print("="*70)

    for node in nodes[:max_nodes]:
        if node.arguments:
            argument_info = ", ".join(f"Node{a.id}" for a in node.arguments)
            print(f"Node {node.id:6d}: {_tag(node):24s} ({_value_str(node)}) <- [{argument_info}]")
        else:
            print(f"Node {node.id:6d}: {_tag(node):24s} ({_value_str(node)}) [{_tag(node)}]")

    if len(nodes) > max_nodes:
        print(f"... ({len(nodes) - max_nodes} more nodes)")

    print("="*70 + "\n")

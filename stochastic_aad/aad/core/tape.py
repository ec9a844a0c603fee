# aad/core/tape.py
"""
Tape context.

A Tape owns the configuration of a computation and is the factory for its
leaves, constants and recorded operations. It does not keep the nodes: every
tracked value holds its own node, and each node holds its argument nodes, so a
sub-graph is released as soon as no live value refers to it. Node ids come from
one process-wide monotonic counter, which makes descending id a valid reverse
topological order across tapes and threads.

Start an independent computation by constructing a new Tape.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .config import TapeConfig
from .node import Node
from ..ops.catalog import OperationNotSupportedError, OperatorType, get_operator

logger = logging.getLogger(__name__)


class Tape:
    def __init__(self, config: Optional[TapeConfig] = None, name: Optional[str] = None):
        self.config = config or TapeConfig()
        self.name = name

    def __repr__(self):
        return f"Tape(name={self.name!r}, config={self.config!r})"

    def create_leaf(self, time: float, values: Any, name: Optional[str] = None):
        """Independent variable: a node without arguments whose id is a gradient key."""
        from .var import ADVar
        leaf = ADVar(values, tape=self, requires_grad=True, name=name, time=time)
        logger.debug("leaf %s (%s) created on %r", leaf.get_id(), name, self.name)
        return leaf

    def constant(self, value: Any):
        """Constant leaf wrapping a literal operand; never a gradient key."""
        from .var import ADVar
        return ADVar(value, tape=self, requires_grad=False)

    def as_ad(self, x):
        from .var import ADVar
        return x if isinstance(x, ADVar) else self.constant(x)

    def record(self, op_type: OperatorType, *operands, parameter: Any = None):
        """
        Evaluate `op_type` on the operands and append the result to the operator tree.

        Literal operands are wrapped as constants first, so every argument node
        exists (and has its id) before the new node is created.
        """
        from .var import ADVar
        operator = get_operator(op_type)
        if len(operands) != operator.arity:
            raise OperationNotSupportedError(
                f"Operation {op_type.name} not supported with {len(operands)} operand(s); "
                f"expected {operator.arity}."
            )

        arguments = tuple(self.as_ad(x) for x in operands)
        values = tuple(a.val for a in arguments)
        value = operator.forward(values, parameter)

        node = Node(
            operator=op_type,
            arguments=tuple(a.node for a in arguments),
            argument_values=values,
            value=value,
            parameter=parameter,
            config=self.config,
        )
        logger.debug("node %s = %s(%s)", node.id, op_type.name,
                     ", ".join(str(a.node.id) for a in arguments))
        return ADVar.from_node(node, self)


def tape_of(*operands) -> Tape:
    """Tape of the first tracked operand, or a fresh one if all operands are literals."""
    from .var import ADVar
    for x in operands:
        if isinstance(x, ADVar):
            return x.tape
    return Tape()


def record(op_type: OperatorType, *operands, parameter: Any = None):
    return tape_of(*operands).record(op_type, *operands, parameter=parameter)

# aad/core/node.py
import itertools
import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from ...stochastic import RandomVariable

_id_counter = itertools.count()
_id_lock = threading.Lock()


def next_node_id() -> int:
    """Process-wide, strictly increasing node id."""
    with _id_lock:
        return next(_id_counter)


@dataclass(frozen=True, eq=False)
class Node:
    """
    One node of the operator tree, created when its operation executes.

    Attributes
    ----------
    operator : OperatorType | None
        Catalog entry that produced this node (None for leaves and constants).
    arguments : Tuple[Node, ...]
        Argument nodes (0-3), in operand order.
    argument_values : Tuple[RandomVariable, ...]
        Forward values of the arguments at construction time; the local
        partials are evaluated from these during the reverse pass.
    value : RandomVariable
        Forward value of this node.
    is_constant : bool
        True for nodes wrapping a literal operand; never a gradient key.
    parameter : Any
        Non-differentiable operator parameter (e.g. a regression estimator).
    config : TapeConfig | None
        Configuration of the tape the operation was recorded on; read by
        configured partials (the trigger derivative of CHOOSE).
    id : int
        Assigned at construction; every argument id is smaller.
    """
    operator: Optional[Any]
    arguments: Tuple["Node", ...]
    argument_values: Tuple[RandomVariable, ...]
    value: RandomVariable
    is_constant: bool = False
    parameter: Any = None
    config: Optional[Any] = None
    id: int = field(init=False, default_factory=next_node_id)

    @property
    def is_leaf(self) -> bool:
        return not self.arguments and not self.is_constant

    def __repr__(self):
        tag = self.operator.name if self.operator is not None else ("const" if self.is_constant else "leaf")
        args = ", ".join(str(a.id) for a in self.arguments)
        return f"Node({self.id}, {tag}, args=[{args}])"

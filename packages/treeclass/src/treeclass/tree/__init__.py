"""State-tree runtime: typed model nodes, actions, views and snapshots.

This is the builder the decorator layer composes against::

    Todo = (
        tree.model("Todo", {"title": tree.string, "done": False})
        .actions(lambda self: {"toggle": lambda: setattr(self, "done", not self.done)})
    )
    todo = Todo.create({"title": "write docs"})
"""

from .carrier import PropertyCarrier, ViewDescriptor
from .flow import Flow, flow
from .model import (
    NODE_ATTR,
    ModelInstance,
    ModelType,
    Node,
    apply_snapshot,
    compose,
    get_env,
    get_node,
    get_parent,
    get_root,
    get_snapshot,
    get_type,
    is_tree_node,
    model,
    protect,
    unprotect,
)
from .types import (
    MISSING,
    TreeList,
    TreeMap,
    TreeType,
    array,
    as_tree_type,
    boolean,
    custom,
    date,
    enumeration,
    frozen,
    identifier,
    integer,
    late,
    literal,
    map,
    maybe,
    null,
    number,
    optional,
    reference,
    refinement,
    string,
    undefined,
    union,
)

__all__ = [
    "MISSING",
    "NODE_ATTR",
    "Flow",
    "ModelInstance",
    "ModelType",
    "Node",
    "PropertyCarrier",
    "TreeList",
    "TreeMap",
    "TreeType",
    "ViewDescriptor",
    "apply_snapshot",
    "array",
    "as_tree_type",
    "boolean",
    "compose",
    "custom",
    "date",
    "enumeration",
    "flow",
    "frozen",
    "get_env",
    "get_node",
    "get_parent",
    "get_root",
    "get_snapshot",
    "get_type",
    "identifier",
    "integer",
    "is_tree_node",
    "late",
    "literal",
    "map",
    "maybe",
    "model",
    "null",
    "number",
    "optional",
    "protect",
    "reference",
    "refinement",
    "string",
    "undefined",
    "union",
    "unprotect",
]

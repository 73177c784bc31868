"""
treeclass: declarative state-tree models from plain Python classes.

An annotated class is composed, once, into a state-tree model type:

    from treeclass import model, action, view, string, array

    @model
    class Todo:
        title = string
        tags = array(string)

        @action
        def rename(self, title):
            self.title = title

        @view
        @property
        def label(self):
            return self.title.upper()

    todo = Todo.create({"title": "write docs"})

Import Guidelines:
------------------
- Use `treeclass` (this module) for the author surface: `model`, `prop`,
  `action`, `volatile`, `flow`, `view` and the field type decorators.
- Use `treeclass.tree` for the runtime: model types, snapshots, protection.
- Use `treeclass.registry.models` to look up composed classes.
- Use `treeclass.exceptions` for standardized error handling.
"""

from importlib.metadata import PackageNotFoundError, version

from .decorators import (
    _model,
    _null,
    _undefined,
    action,
    array,
    boolean,
    compose,
    custom,
    date,
    enumeration,
    flow,
    frozen,
    identifier,
    integer,
    late,
    literal,
    map,
    maybe,
    model,
    number,
    optional,
    prop,
    reference,
    refinement,
    string,
    types,
    union,
    view,
    volatile,
)
from .keys import TYPE_KEY, get_tag_key

try:
    __version__ = version("treeclass")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "model",
    "prop",
    "action",
    "volatile",
    "flow",
    "view",
    "types",
    "enumeration",
    "compose",
    "custom",
    "reference",
    "union",
    "optional",
    "literal",
    "maybe",
    "refinement",
    "string",
    "boolean",
    "number",
    "integer",
    "date",
    "map",
    "array",
    "frozen",
    "identifier",
    "late",
    "_model",
    "_undefined",
    "_null",
    "TYPE_KEY",
    "get_tag_key",
]

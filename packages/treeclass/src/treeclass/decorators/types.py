"""Field type decorators, one per state-tree type constructor.

    @model
    class Basket:
        owner = string                       # the type itself
        items = array(string)                # specialised type
        notes = optional(array(maybe(string)), [])   # nested, any depth
        tags = map(number)

        def __init__(self):
            self.owner = "nobody"

Arguments that are themselves type decorators, field descriptors or composed
classes are unwrapped to their tree type before the constructor is called.
"""

from __future__ import annotations

import logging
from types import SimpleNamespace
from typing import Any

from treeclass import tree
from treeclass.keys import TYPE_KEY
from treeclass.slots import record_prop

from .members import FieldDescriptor, resolve_type_arg

logger = logging.getLogger(__name__)

__all__ = [
    "TypeDecorator",
    "create_type_decorator",
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
    "types",
]


class TypeDecorator:
    """Field annotation wrapping a raw tree type or type constructor.

    ``TYPE_KEY`` holds the wrapped constructor so the decorator can be passed
    as an argument to another one.
    """

    def __init__(self, raw: Any, name: str | None = None) -> None:
        setattr(self, TYPE_KEY, raw)
        self.name = name or getattr(raw, "name", None) or getattr(raw, "__name__", repr(raw))

    @property
    def raw(self) -> Any:
        return getattr(self, TYPE_KEY)

    def __call__(self, *args: Any, **kwargs: Any) -> FieldDescriptor:
        if not args and not kwargs:
            return FieldDescriptor(self.raw)
        resolved = [resolve_type_arg(arg) for arg in args]
        return FieldDescriptor(self.raw(*resolved, **kwargs))

    def __set_name__(self, owner: type, name: str) -> None:
        record_prop(owner, name, self.raw)
        delattr(owner, name)

    def __repr__(self) -> str:
        return f"<TypeDecorator {self.name}>"


def create_type_decorator(raw: Any, name: str | None = None) -> TypeDecorator:
    return TypeDecorator(raw, name)


enumeration = create_type_decorator(tree.enumeration)
compose = create_type_decorator(tree.compose)
custom = create_type_decorator(tree.custom)
reference = create_type_decorator(tree.reference)
union = create_type_decorator(tree.union)
optional = create_type_decorator(tree.optional)
literal = create_type_decorator(tree.literal)
maybe = create_type_decorator(tree.maybe)
refinement = create_type_decorator(tree.refinement)
string = create_type_decorator(tree.string)
boolean = create_type_decorator(tree.boolean)
number = create_type_decorator(tree.number)
integer = create_type_decorator(tree.integer)
date = create_type_decorator(tree.date)
map = create_type_decorator(tree.map)  # noqa: A001 - mirrors the type constructor name
array = create_type_decorator(tree.array)
frozen = create_type_decorator(tree.frozen)
identifier = create_type_decorator(tree.identifier)
late = create_type_decorator(tree.late)
_model = create_type_decorator(tree.model, "model")
_undefined = create_type_decorator(tree.undefined)
_null = create_type_decorator(tree.null)

types = SimpleNamespace(
    enumeration=enumeration,
    compose=compose,
    custom=custom,
    reference=reference,
    union=union,
    optional=optional,
    literal=literal,
    maybe=maybe,
    refinement=refinement,
    string=string,
    boolean=boolean,
    number=number,
    integer=integer,
    date=date,
    map=map,
    array=array,
    frozen=frozen,
    identifier=identifier,
    late=late,
    model=_model,
    undefined=_undefined,
    null=_null,
)

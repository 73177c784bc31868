# treeclass/decorators/__init__.py
from .binders import bind_descriptor, bind_live, binder, keep_unbound, view_binder
from .facade import NodeAttribute, restore_identity
from .members import FieldDescriptor, MemberTagger, action, flow, member_tagger, prop, view, volatile
from .model import ModelDecorator, model
from .types import (
    TypeDecorator,
    _model,
    _null,
    _undefined,
    array,
    boolean,
    compose,
    create_type_decorator,
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
    number,
    optional,
    reference,
    refinement,
    string,
    types,
    union,
)

__all__ = [
    "ModelDecorator",
    "model",
    "prop",
    "action",
    "volatile",
    "flow",
    "view",
    "FieldDescriptor",
    "MemberTagger",
    "member_tagger",
    "TypeDecorator",
    "create_type_decorator",
    "NodeAttribute",
    "restore_identity",
    "binder",
    "bind_live",
    "bind_descriptor",
    "keep_unbound",
    "view_binder",
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
]

"""Façade objects exposing a model node through the author's class.

``create()`` first builds the runtime node, then identity restoration wraps it
in an instance of the composed class (created without calling ``__init__``).
Managed members on that class are :class:`NodeAttribute` descriptors
delegating to the node; everything else (plain methods, class attributes)
resolves normally.
"""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any

from treeclass.registry import models
from treeclass.tree import NODE_ATTR, MISSING, ViewDescriptor, get_node

from .binders import keep_unbound

logger = logging.getLogger(__name__)

__all__ = ["NodeAttribute", "restore_identity", "describe_member"]


class NodeAttribute:
    """Data descriptor delegating a managed member to the instance's node.

    Objects without a node (plain construction, e.g. reading defaults) keep
    ordinary semantics: the instance ``__dict__`` first, then the original
    class member.
    """

    def __init__(self, name: str, original: Any = MISSING) -> None:
        self.name = name
        self.original = original

    def _node(self, obj: Any) -> Any:
        return obj.__dict__.get(NODE_ATTR)

    def __get__(self, obj: Any, objtype: type | None = None) -> Any:
        if obj is None:
            return self
        node = self._node(obj)
        if node is not None:
            return node.get(self.name)
        if self.name in obj.__dict__:
            return obj.__dict__[self.name]
        if self.original is MISSING:
            raise AttributeError(f"{type(obj).__name__!r} object has no attribute {self.name!r}")
        getter = getattr(type(self.original), "__get__", None)
        return getter(self.original, obj, objtype) if getter is not None else self.original

    def __set__(self, obj: Any, value: Any) -> None:
        node = self._node(obj)
        if node is not None:
            node.set(self.name, value)
            return
        setter = getattr(type(self.original), "__set__", None)
        if setter is not None:
            setter(self.original, obj, value)
            return
        obj.__dict__[self.name] = value

    def __delete__(self, obj: Any) -> None:
        if self._node(obj) is not None:
            raise AttributeError(f"managed member {self.name!r} cannot be deleted")
        obj.__dict__.pop(self.name, None)

    def __repr__(self) -> str:
        return f"<NodeAttribute {self.name}>"


def restore_identity(obj: Any, cls: type) -> Any:
    """Expose ``obj``'s node through an instance of its most-derived composed class.

    The class is looked up from the node's model type; ``cls`` is used when
    that type was not produced by composition. Idempotent.
    """
    node = get_node(obj)
    target = models.class_for(node.type, cls)
    if type(node.value) is target:
        return node.value
    facade = object.__new__(target)
    object.__setattr__(facade, NODE_ATTR, node)
    node.value = facade
    logger.debug("restored identity of %s as %s", node.type.name, target.__qualname__)
    return facade


def describe_member(cls: type, name: str) -> ViewDescriptor:
    """Build the accessor descriptor of a view member from the class (not an instance)."""
    member = inspect.getattr_static(cls, name, MISSING)
    if isinstance(member, property):
        return ViewDescriptor(get=member.fget, set=member.fset)
    if isinstance(member, functools.cached_property):
        return ViewDescriptor(get=member.func)
    if isinstance(member, (staticmethod, classmethod)):
        return ViewDescriptor(value=keep_unbound(getattr(cls, name)))
    return ViewDescriptor(value=member)

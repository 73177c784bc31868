"""Bind collected members to live model instances.

The builders returned here are handed to ``ModelType.actions`` /
``ModelType.views`` and run once per created instance. Functions are bound
to the node rather than to a fixed object: ``self`` is whatever the node
exposes when the call happens, so the façade installed by identity
restoration is what actions and views see.
"""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, Mapping

from treeclass.exceptions import NonCallableMemberError
from treeclass.keys import ACTIONS
from treeclass.tree import PropertyCarrier, ViewDescriptor, get_node

logger = logging.getLogger(__name__)

__all__ = ["identity", "keep_unbound", "bind_live", "binder", "bind_descriptor", "view_binder"]

_COMPONENTS = ("get", "set", "value")


def identity(value: Any) -> Any:
    return value


def keep_unbound(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a callable that must not receive the instance as first argument.

    Binders only rebind plain functions; a ``partial`` passes through as is.
    """
    return functools.partial(fn)


def bind_live(fn: Callable[..., Any], obj: Any) -> Callable[..., Any]:
    """Bind ``fn`` so that its first argument is the current value of ``obj``'s node."""
    node = get_node(obj)

    @functools.wraps(fn)
    def bound(*args: Any, **kwargs: Any) -> Any:
        return fn(node.value, *args, **kwargs)

    return bound


def _bind(fn: Any, obj: Any) -> Any:
    return bind_live(fn, obj) if inspect.isfunction(fn) else fn


def binder(
    fns: Mapping[str, Any],
    transform: Callable[[Any], Any] = identity,
    *,
    category: str = ACTIONS,
) -> Callable[[Any], dict[str, Any]]:
    """Return a builder producing the action table for one instance.

    Every value must be callable; the check runs here, before the builder is
    attached to any model type.
    """
    for name, fn in fns.items():
        if not callable(fn):
            raise NonCallableMemberError(name, category=category, value=fn)
    fns = dict(fns)

    def build(obj: Any) -> dict[str, Any]:
        return {name: transform(_bind(fn, obj)) for name, fn in fns.items()}

    return build


def bind_descriptor(obj: Any, desc: ViewDescriptor, component: str) -> ViewDescriptor:
    """Rebind one component (``get``, ``set`` or ``value``) of ``desc`` to ``obj``."""
    fn = getattr(desc, component)
    if not callable(fn) or not inspect.isfunction(fn):
        return desc
    return desc.replace(**{component: bind_live(fn, obj)})


def view_binder(descriptors: Mapping[str, ViewDescriptor]) -> Callable[[Any], PropertyCarrier]:
    """Return a builder producing a fresh carrier of enumerable, bound views."""
    descriptors = dict(descriptors)

    def build(obj: Any) -> PropertyCarrier:
        carrier = PropertyCarrier()
        for name, desc in descriptors.items():
            for component in _COMPONENTS:
                desc = bind_descriptor(obj, desc, component)
            carrier.define_property(name, desc.replace(enumerable=True))
        return carrier

    return build

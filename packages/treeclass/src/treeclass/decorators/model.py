# treeclass/decorators/model.py
"""
Class decorator composing an annotated class into a state-tree model type.

    @model
    class Todo:
        title = string
        done = prop()

        def __init__(self):
            self.done = False

        @action
        def toggle(self):
            self.done = not self.done

    todo = Todo.create({"title": "write docs"})
    todo.toggle()
    assert isinstance(todo, Todo) and todo.done

Composition runs once, when the class statement is executed:

- the class is default-constructed to read field defaults and members;
- the metadata slots written by the member annotations are consumed;
- the model type is built (extending the parent's type when the class
  inherits from a composed class) and stored on the class under ``TYPE_KEY``;
- managed members are replaced by descriptors delegating to the node and the
  class is registered in :data:`treeclass.registry.models`.
"""

from __future__ import annotations

import copy
import inspect
import logging
from collections.abc import Mapping
from typing import Any, Callable

from treeclass import tree
from treeclass.conf import settings
from treeclass.exceptions import ModelAlreadyComposedError, NonCallableMemberError, TreeTypeError
from treeclass.keys import (
    ACTIONS,
    ACTIONS_KEY,
    FLOWS,
    FLOWS_KEY,
    PROPS_KEY,
    TYPE_KEY,
    VIEWS_KEY,
    VOLATILES_KEY,
)
from treeclass.registry import models
from treeclass.slots import extract_tagged
from treeclass.tracing import SpanPath
from treeclass.tree import MISSING, ModelType, ViewDescriptor, get_snapshot, is_tree_node
from treeclass.tree.model import LIFECYCLE_HOOKS

from .base import BaseDecorator
from .binders import binder, keep_unbound, view_binder
from .facade import NodeAttribute, describe_member, restore_identity

logger = logging.getLogger(__name__)

__all__ = ["ModelDecorator", "model"]

SNAPSHOT_HOOK = "pre_process_snapshot"


def _read_default(values: Any, name: str) -> Any:
    try:
        return getattr(values, name)
    except AttributeError:
        return MISSING


def _pick_fields(cls: type, props: Mapping[str, Any], values: Any) -> dict[str, Any]:
    """Resolve the declared field types; untyped fields are declared by their default."""
    fields: dict[str, Any] = {}
    for name, declared in props.items():
        if declared is not None:
            fields[name] = declared
            continue
        default = _read_default(values, name)
        if default is MISSING:
            raise TreeTypeError(
                f"field '{name}' of {cls.__qualname__} has no type and no default value to infer one from"
            )
        fields[name] = default
    return fields


def _pick_defaults(names: Any, values: Any) -> dict[str, Any]:
    """Field values set on the default instance, as snapshots."""
    defaults: dict[str, Any] = {}
    for name in names:
        value = _read_default(values, name)
        if value is MISSING:
            continue
        defaults[name] = get_snapshot(value) if is_tree_node(value) else value
    return defaults


def _pick_callables(values: Any, names: Any, category: str) -> dict[str, Callable[..., Any]]:
    """Read behaviors from the default instance.

    Methods bound to ``values`` are unwrapped so they can be rebound per
    instance; any other callable is kept as is.
    """
    picked: dict[str, Callable[..., Any]] = {}
    for name in names:
        member = _read_default(values, name)
        if inspect.ismethod(member) and member.__self__ is values:
            picked[name] = member.__func__
        elif callable(member):
            picked[name] = keep_unbound(member)
        else:
            raise NonCallableMemberError(name, category=category, value=None if member is MISSING else member)
    return picked


def _pick_volatiles(values: Any, names: Any) -> dict[str, Any]:
    volatiles: dict[str, Any] = {}
    for name in names:
        value = _read_default(values, name)
        volatiles[name] = None if value is MISSING else value
    return volatiles


def _pick_views(cls: type, values: Any, names: Any) -> dict[str, ViewDescriptor]:
    views: dict[str, ViewDescriptor] = {}
    for name in names:
        desc = describe_member(cls, name)
        if not desc.is_accessor and desc.value is MISSING:
            # bare `name = view`: the value comes from the default instance
            desc = desc.replace(value=_read_default(values, name))
        views[name] = desc
    return views


def _snapshot_hook(cls: type) -> Callable[[Any], Any] | None:
    """The class's own ``pre_process_snapshot`` (inherited hooks already run in the parent type)."""
    member = vars(cls).get(SNAPSHOT_HOOK)
    if member is None:
        return None
    if isinstance(member, staticmethod):
        return member.__func__
    if isinstance(member, classmethod):
        return member.__get__(None, cls)
    if callable(member):
        return member
    raise TreeTypeError(f"{cls.__qualname__}.{SNAPSHOT_HOOK} must be callable")


def _copy(value: Any) -> Any:
    return copy.deepcopy(value) if settings["COPY_DEFAULTS"] else copy.copy(value)


class ModelDecorator(BaseDecorator):
    """
    Composes a class into a model type and registers it.

    Usage
    -----
        @model
        class Todo: ...

        @model(name="TodoItem")
        class Todo: ...
    """

    span_root = SpanPath(("treeclass", "model"))
    log_category = "model"

    def get_registry(self) -> Any | None:
        return models

    def apply(self, cls: type, *, name: str) -> dict[str, Any]:
        if TYPE_KEY in vars(cls):
            raise ModelAlreadyComposedError(
                f"{cls.__module__}.{cls.__qualname__} is already composed as '{vars(cls)[TYPE_KEY].name}'"
            )

        values = cls()

        props = extract_tagged(cls, PROPS_KEY) or {}
        action_names = extract_tagged(cls, ACTIONS_KEY) or []
        flow_names = extract_tagged(cls, FLOWS_KEY) or []
        volatile_names = extract_tagged(cls, VOLATILES_KEY) or []
        view_names = extract_tagged(cls, VIEWS_KEY) or []

        fields = _pick_fields(cls, props, values)
        actions = _pick_callables(values, action_names, ACTIONS)
        flows = _pick_callables(values, flow_names, FLOWS)
        volatiles = _pick_volatiles(values, volatile_names)
        views = _pick_views(cls, values, view_names)
        user_hook = _snapshot_hook(cls)

        base = getattr(cls, TYPE_KEY, None)
        if isinstance(base, ModelType):
            Model = base.named(name).props(fields)
        else:
            base = None
            Model = tree.model(name, fields)

        # field defaults cover inherited fields too; the child's constructor may override them
        defaults = _pick_defaults(Model.properties, values)

        def normalize(snapshot: Any) -> Any:
            if isinstance(snapshot, Mapping):
                snapshot = {**_copy(defaults), **snapshot}
            return user_hook(snapshot) if user_hook is not None else snapshot

        Model = (
            Model.actions(lambda obj: {"after_create": lambda: restore_identity(obj, cls)})
            .volatile(lambda obj: _copy(volatiles))
            .actions(binder(actions))
            .actions(binder(flows, tree.flow, category=FLOWS))
            .views(view_binder(views))
            .pre_process_snapshot(normalize)
        )

        managed = [*Model.properties, *volatiles, *actions, *flows, *views]
        for member in managed:
            if member in LIFECYCLE_HOOKS:
                continue
            setattr(cls, member, NodeAttribute(member, vars(cls).get(member, MISSING)))

        cls.create = staticmethod(Model.create)
        setattr(cls, TYPE_KEY, Model)

        logger.debug(
            "composed %s (extends=%s, props=%s, actions=%s, flows=%s, views=%s, volatiles=%s)",
            name, base.name if base is not None else None,
            list(Model.properties), list(actions), list(flows), list(views), list(volatiles),
        )
        return {
            "treeclass.extends": base.name if base is not None else "",
            "treeclass.props": list(fields),
            "treeclass.actions": list(actions),
            "treeclass.flows": list(flows),
            "treeclass.views": list(views),
            "treeclass.volatiles": list(volatiles),
        }


model = ModelDecorator()

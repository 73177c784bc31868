"""Model types and the nodes they instantiate.

A :class:`ModelType` is immutable: every builder call (``named``, ``props``,
``volatile``, ``actions``, ``views``, ``pre_process_snapshot``) returns a new
type. ``create()`` builds a :class:`Node` that owns the state and exposes it
through ``node.value``, a :class:`ModelInstance` unless a lifecycle hook
installs another object carrying the node under ``__tree_node__``.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Callable, Iterator

from treeclass.conf import settings
from treeclass.exceptions import (
    ReferenceResolutionError,
    TreeProtectionError,
    TreeTypeError,
    TreeValidationError,
)

from .carrier import PropertyCarrier, ViewDescriptor
from .flow import Flow
from .types import (
    MISSING,
    IdentifierType,
    MaybeType,
    OptionalType,
    RefinementType,
    TreeList,
    TreeMap,
    TreeType,
    as_tree_type,
)

logger = logging.getLogger(__name__)

__all__ = [
    "NODE_ATTR",
    "ModelType",
    "ModelInstance",
    "Node",
    "model",
    "compose",
    "get_node",
    "is_tree_node",
    "get_snapshot",
    "apply_snapshot",
    "get_type",
    "get_root",
    "get_parent",
    "get_env",
    "protect",
    "unprotect",
]

NODE_ATTR = "__tree_node__"

LIFECYCLE_HOOKS = ("after_create",)

VOLATILE, ACTIONS, VIEWS = "volatile", "actions", "views"


# ---------------------------------------------------------------------------
# nodes
# ---------------------------------------------------------------------------

class Node:
    """Runtime owner of one model instance's state."""

    def __init__(self, model_type: "ModelType", parent: "Node | None" = None, env: Any = None) -> None:
        self.type = model_type
        self.parent = parent
        self._env = env
        self.state: dict[str, Any] = {}
        self.volatile: dict[str, Any] = {}
        self.actions: dict[str, Callable[..., Any]] = {}
        self.views: dict[str, ViewDescriptor] = {}
        self.hooks: dict[str, list[Callable[[], Any]]] = {}
        self.value: Any = ModelInstance(self)
        self._action_depth = 0
        self._protected = True

    # --- tree ---

    @property
    def root(self) -> "Node":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def env(self) -> Any:
        return self.root._env

    @property
    def identifier(self) -> Any:
        attr = self.type.identifier_attribute
        return self.state.get(attr) if attr else None

    def children(self) -> Iterator["Node"]:
        """Yield the model nodes stored directly in this node's fields."""
        for value in self.state.values():
            if isinstance(value, (TreeList, TreeMap)):
                items = value.values() if isinstance(value, TreeMap) else value
                for item in items:
                    if is_tree_node(item):
                        yield get_node(item)
            elif is_tree_node(value):
                yield get_node(value)

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children():
            yield from child.walk()

    def resolve_identifier(self, target: TreeType, ident: Any) -> "Node":
        for node in self.walk():
            if node.identifier == ident and _is_instance_of(node.type, target):
                return node
        raise ReferenceResolutionError(
            f"Failed to resolve reference {ident!r} to type {target.name!r}"
        )

    # --- protection ---

    def assert_writable(self) -> None:
        root = self.root
        if settings["PROTECT_TREE"] and root._protected and root._action_depth == 0:
            raise TreeProtectionError(
                f"Cannot modify '{self.type.name}' outside of an action; "
                "wrap the change in an action or call unprotect() on the root"
            )

    @contextmanager
    def action_context(self) -> Iterator["Node"]:
        root = self.root
        root._action_depth += 1
        try:
            yield self
        finally:
            root._action_depth -= 1

    # --- members ---

    def get(self, name: str) -> Any:
        if name in self.type.properties:
            return self.type.properties[name].on_read(self.state[name], self)
        if name in self.volatile:
            return self.volatile[name]
        if name in self.views:
            return self.views[name].read()
        if name in self.actions:
            return self.actions[name]
        raise AttributeError(f"'{self.type.name}' has no member {name!r}")

    def set(self, name: str, value: Any) -> None:
        if name in self.type.properties:
            self.assert_writable()
            if name == self.type.identifier_attribute and value != self.state.get(name):
                raise TreeProtectionError(f"identifier '{name}' of '{self.type.name}' cannot be modified")
            try:
                self.state[name] = self.type.properties[name].instantiate(value, self)
            except TreeValidationError as err:
                raise err.at(name) from err.__cause__
            return
        if name in self.volatile:
            self.assert_writable()
            self.volatile[name] = value
            return
        view = self.views.get(name)
        if view is not None and view.set is not None:
            with self.action_context():
                view.set(value)
            return
        raise AttributeError(f"'{self.type.name}' has no writable member {name!r}")

    def install_action(self, name: str, fn: Callable[..., Any]) -> None:
        if not callable(fn):
            raise TreeTypeError(f"action '{name}' of '{self.type.name}' is not callable")
        if name in LIFECYCLE_HOOKS:
            self.hooks.setdefault(name, []).append(fn)
            return
        if isinstance(fn, Flow):
            runner = functools.partial(fn.run, self)
        else:
            runner = self._as_action(fn)
        self.actions[name] = runner

    def _as_action(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(fn)
        def action(*args: Any, **kwargs: Any) -> Any:
            with self.action_context():
                return fn(*args, **kwargs)

        return action

    def install_views(self, views: Any) -> None:
        if isinstance(views, PropertyCarrier):
            entries = views.items()
        elif isinstance(views, Mapping):
            entries = (
                (name, desc if isinstance(desc, ViewDescriptor) else ViewDescriptor(value=desc, enumerable=True))
                for name, desc in views.items()
            )
        else:
            raise TreeTypeError(f"views of '{self.type.name}' must return a mapping or a PropertyCarrier")
        for name, desc in entries:
            self.views[name] = desc

    def run_hook(self, name: str) -> None:
        for hook in self.hooks.get(name, ()):
            with self.action_context():
                hook()

    # --- snapshots ---

    def snapshot(self) -> dict[str, Any]:
        return {name: t.snapshot(self.state[name]) for name, t in self.type.properties.items()}

    def apply_snapshot(self, snapshot: Any) -> None:
        snapshot = self.type.preprocess(snapshot)
        with self.action_context():
            for name in self.type.properties:
                self.set(name, snapshot.get(name, MISSING))


class ModelInstance:
    """Default exposed value of a node; member access goes through the node."""

    def __init__(self, node: Node) -> None:
        object.__setattr__(self, NODE_ATTR, node)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return self.__dict__[NODE_ATTR].get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        self.__dict__[NODE_ATTR].set(name, value)

    def __dir__(self):
        node = self.__dict__[NODE_ATTR]
        return sorted({*node.type.properties, *node.volatile, *node.views, *node.actions})

    def __repr__(self) -> str:
        node = self.__dict__[NODE_ATTR]
        return f"<{node.type.name} {node.snapshot()!r}>"


# ---------------------------------------------------------------------------
# model types
# ---------------------------------------------------------------------------

class ModelType(TreeType):
    """Named set of typed properties plus the initializers run for every instance."""

    def __init__(
        self,
        name: str,
        properties: Mapping[str, TreeType] | None = None,
        *,
        initializers: tuple[tuple[str, Callable[[Any], Any]], ...] = (),
        preprocessors: tuple[Callable[[Any], Any], ...] = (),
    ) -> None:
        self.name = name
        self.properties: Mapping[str, TreeType] = MappingProxyType(dict(properties or {}))
        self.initializers = tuple(initializers)
        self.preprocessors = tuple(preprocessors)
        self.identifier_attribute = next(
            (key for key, t in self.properties.items() if isinstance(_unwrap(t), IdentifierType)),
            None,
        )

    def _clone(self, **changes: Any) -> "ModelType":
        derived = ModelType(
            changes.get("name", self.name),
            changes.get("properties", self.properties),
            initializers=changes.get("initializers", self.initializers),
            preprocessors=changes.get("preprocessors", self.preprocessors),
        )
        derived._base = self
        return derived

    # --- builder surface ---

    def named(self, name: str) -> "ModelType":
        return self._clone(name=name)

    def props(self, fields: Mapping[str, Any]) -> "ModelType":
        merged = dict(self.properties)
        for key, declared in fields.items():
            try:
                merged[key] = as_tree_type(declared)
            except TreeTypeError as err:
                raise TreeTypeError(f"property '{key}' of '{self.name}': {err}") from err
        return self._clone(properties=merged)

    def volatile(self, fn: Callable[[Any], Mapping[str, Any]]) -> "ModelType":
        return self._clone(initializers=(*self.initializers, (VOLATILE, fn)))

    def actions(self, fn: Callable[[Any], Mapping[str, Callable[..., Any]]]) -> "ModelType":
        return self._clone(initializers=(*self.initializers, (ACTIONS, fn)))

    def views(self, fn: Callable[[Any], Any]) -> "ModelType":
        return self._clone(initializers=(*self.initializers, (VIEWS, fn)))

    def pre_process_snapshot(self, fn: Callable[[Any], Any]) -> "ModelType":
        # newest processor sees the raw snapshot first
        return self._clone(preprocessors=(fn, *self.preprocessors))

    def create(self, snapshot: Any = None, env: Any = None) -> Any:
        return self.instantiate({} if snapshot is None else snapshot, env=env)

    # --- TreeType protocol ---

    def preprocess(self, snapshot: Any) -> Any:
        for fn in self.preprocessors:
            snapshot = fn(snapshot)
        return snapshot

    def _snapshot_of(self, value: Any) -> Any:
        if value is MISSING:
            return {}
        if is_tree_node(value):
            return get_node(value).snapshot()
        return value

    def check(self, value: Any) -> None:
        if is_tree_node(value) and _is_instance_of(get_node(value).type, self):
            return
        snapshot = self.preprocess(self._snapshot_of(value))
        if not isinstance(snapshot, Mapping):
            raise TreeValidationError(f"{snapshot!r} is not a valid snapshot for '{self.name}'")
        for key, t in self.properties.items():
            try:
                t.check(snapshot.get(key, MISSING))
            except TreeValidationError as err:
                raise err.at(key) from err.__cause__

    def instantiate(self, value: Any = MISSING, parent: Any = None, env: Any = None) -> Any:
        snapshot = self.preprocess(self._snapshot_of(value))
        if not isinstance(snapshot, Mapping):
            raise TreeValidationError(f"{snapshot!r} is not a valid snapshot for '{self.name}'")

        node = Node(self, parent=parent, env=env)
        for key, t in self.properties.items():
            try:
                node.state[key] = t.instantiate(snapshot.get(key, MISSING), node)
            except TreeValidationError as err:
                raise err.at(key) from err.__cause__

        for kind, fn in self.initializers:
            result = fn(node.value)
            if kind == VOLATILE:
                node.volatile.update(result or {})
            elif kind == ACTIONS:
                for name, action in (result or {}).items():
                    node.install_action(name, action)
            else:
                node.install_views(result if result is not None else {})

        node.run_hook("after_create")
        logger.debug("created %s", self.name)
        return node.value

    def snapshot(self, value: Any) -> Any:
        return get_node(value).snapshot()

    def __repr__(self) -> str:
        return f"<ModelType {self.name} ({', '.join(self.properties)})>"


def _unwrap(t: TreeType) -> TreeType:
    while isinstance(t, (OptionalType, MaybeType, RefinementType)):
        t = t.subtype
    return t


def _is_instance_of(candidate: ModelType, target: TreeType) -> bool:
    """True when ``candidate`` is ``target`` or was derived from it through the builder."""
    target = _unwrap(target)
    while candidate is not None:
        if candidate is target:
            return True
        candidate = getattr(candidate, "_base", None)
    return False


def model(name: Any = None, properties: Mapping[str, Any] | None = None) -> ModelType:
    """``model(name, props)`` or ``model(props)``."""
    if isinstance(name, Mapping):
        name, properties = None, name
    return ModelType(name or "AnonymousModel").props(properties or {})


def compose(*types: Any) -> ModelType:
    """Merge model types into one; a leading string names the result."""
    name = None
    if types and isinstance(types[0], str):
        name, types = types[0], types[1:]
    resolved = [as_tree_type(t) for t in types]
    if not resolved or not all(isinstance(t, ModelType) for t in resolved):
        raise TreeTypeError("compose expects one or more model types")
    properties: dict[str, TreeType] = {}
    initializers: list = []
    preprocessors: list = []
    for t in resolved:
        properties.update(t.properties)
        initializers.extend(t.initializers)
        preprocessors.extend(t.preprocessors)
    return ModelType(
        name or "&".join(t.name for t in resolved),
        properties,
        initializers=tuple(initializers),
        preprocessors=tuple(preprocessors),
    )


# ---------------------------------------------------------------------------
# accessors
# ---------------------------------------------------------------------------

def is_tree_node(value: Any) -> bool:
    try:
        return isinstance(object.__getattribute__(value, "__dict__").get(NODE_ATTR), Node)
    except AttributeError:
        return False


def get_node(value: Any) -> Node:
    if isinstance(value, Node):
        return value
    try:
        node = object.__getattribute__(value, "__dict__").get(NODE_ATTR)
    except AttributeError:
        node = None
    if not isinstance(node, Node):
        raise TreeTypeError(f"{value!r} is not a state tree node")
    return node


def get_snapshot(value: Any) -> dict[str, Any]:
    return get_node(value).snapshot()


def apply_snapshot(value: Any, snapshot: Any) -> None:
    get_node(value).apply_snapshot(snapshot)


def get_type(value: Any) -> ModelType:
    return get_node(value).type


def get_root(value: Any) -> Any:
    return get_node(value).root.value


def get_parent(value: Any) -> Any:
    parent = get_node(value).parent
    return parent.value if parent is not None else None


def get_env(value: Any) -> Any:
    return get_node(value).env


def unprotect(value: Any) -> None:
    get_node(value).root._protected = False


def protect(value: Any) -> None:
    get_node(value).root._protected = True

"""Type constructors of the state tree.

Leaf values are validated with pydantic ``TypeAdapter``s; composite types
(arrays, maps, unions, models, ...) recurse over their children and report
failures as :class:`~treeclass.exceptions.TreeValidationError` with the path
of the offending value.
"""

from __future__ import annotations

import copy
import logging
import operator
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Callable, Literal, Union

from pydantic import TypeAdapter, ValidationError

from treeclass.conf import settings
from treeclass.exceptions import TreeTypeError, TreeValidationError
from treeclass.keys import TYPE_KEY

logger = logging.getLogger(__name__)

__all__ = [
    "MISSING",
    "TreeType",
    "as_tree_type",
    "tagged_type",
    "string",
    "number",
    "integer",
    "boolean",
    "date",
    "identifier",
    "null",
    "undefined",
    "frozen",
    "array",
    "map",
    "optional",
    "maybe",
    "union",
    "literal",
    "enumeration",
    "refinement",
    "custom",
    "late",
    "reference",
    "TreeList",
    "TreeMap",
]


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING: Any = _Missing()


class TreeType:
    """Base of every state tree type."""

    name: str = "type"

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        """Turn a snapshot (or an acceptable value) into a runtime value."""
        raise NotImplementedError

    def check(self, value: Any) -> None:
        """Raise ``TreeValidationError`` if ``value`` is not acceptable, without side effects."""
        raise NotImplementedError

    def snapshot(self, value: Any) -> Any:
        return value

    def on_read(self, value: Any, node: Any) -> Any:
        """Translate a stored value when it is read from its owning node."""
        return value

    def is_type(self, value: Any) -> bool:
        try:
            self.check(value)
        except TreeValidationError:
            return False
        return True

    def validate(self, value: Any) -> None:
        self.check(value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# ---------------------------------------------------------------------------
# declarations
# ---------------------------------------------------------------------------

def tagged_type(obj: Any) -> Any:
    """Return the type stored under ``TYPE_KEY`` on ``obj`` itself, or None.

    Instances of composed classes inherit the tag from their class and are
    values, not declarations, so they are not unwrapped.
    """
    if not isinstance(obj, type) and hasattr(type(obj), TYPE_KEY):
        return None
    return getattr(obj, TYPE_KEY, None)


def as_tree_type(declared: Any) -> TreeType:
    """Coerce a property declaration into a ``TreeType``.

    Accepts tree types, anything carrying a tree type under ``TYPE_KEY``
    (composed classes, type decorators) and primitive default values.
    """
    if isinstance(declared, TreeType):
        return declared
    tagged = tagged_type(declared)
    if isinstance(tagged, TreeType):
        return tagged
    if isinstance(declared, bool):
        return optional(boolean, declared)
    if isinstance(declared, str):
        return optional(string, declared)
    if isinstance(declared, (int, float)):
        return optional(number, declared)
    if isinstance(declared, datetime):
        return optional(date, declared)
    raise TreeTypeError(f"{declared!r} is not a valid type declaration")


def _fail(message: str, cause: BaseException | None = None) -> TreeValidationError:
    err = TreeValidationError(message)
    if cause is not None:
        err.__cause__ = cause
    return err


# ---------------------------------------------------------------------------
# primitives
# ---------------------------------------------------------------------------

class PrimitiveType(TreeType):
    def __init__(self, name: str, annotation: Any, *, strict: bool = True) -> None:
        self.name = name
        self._adapter = TypeAdapter(annotation)
        self._strict = strict

    @property
    def strict(self) -> bool:
        return self._strict

    def _coerce(self, value: Any) -> Any:
        if value is MISSING:
            raise _fail(f"a value of type {self.name} is required")
        try:
            return self._adapter.validate_python(value, strict=self.strict)
        except ValidationError as err:
            raise _fail(f"{value!r} is not a valid {self.name}", err) from err

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        return self._coerce(value)

    def check(self, value: Any) -> None:
        self._coerce(value)


class NumberType(PrimitiveType):
    @property
    def strict(self) -> bool:
        return bool(settings["STRICT_NUMBERS"])


class DateType(PrimitiveType):
    def snapshot(self, value: Any) -> Any:
        return value.isoformat() if isinstance(value, datetime) else value


class IdentifierType(PrimitiveType):
    """String identifier; a model property of this type keys references."""


class NullType(TreeType):
    name = "null"

    def check(self, value: Any) -> None:
        if value is not None:
            raise _fail(f"{value!r} is not null")

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        self.check(value)
        return None


class UndefinedType(NullType):
    name = "undefined"

    def check(self, value: Any) -> None:
        if value is not MISSING and value is not None:
            raise _fail(f"{value!r} is not undefined")


class FrozenType(TreeType):
    """Immutable blob; ``frozen(subtype)`` validates it, ``frozen(default)`` defaults it."""

    def __init__(self, subtype: TreeType | None = None, default: Any = MISSING) -> None:
        self.subtype = subtype
        self.default = default
        self.name = f"frozen({subtype.name})" if subtype is not None else "frozen"

    def __call__(self, arg: Any = MISSING) -> "FrozenType":
        if arg is MISSING:
            return FrozenType()
        if isinstance(arg, TreeType) or isinstance(tagged_type(arg), TreeType):
            return FrozenType(subtype=as_tree_type(arg))
        return FrozenType(default=arg)

    def check(self, value: Any) -> None:
        if value is MISSING:
            return
        if self.subtype is not None:
            self.subtype.check(value)

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        if value is MISSING:
            value = self.default if self.default is not MISSING else None
        self.check(value)
        return copy.deepcopy(value)

    def snapshot(self, value: Any) -> Any:
        return copy.deepcopy(value)


string = PrimitiveType("string", str)
number = NumberType("number", Union[int, float])
integer = NumberType("integer", int)
boolean = PrimitiveType("boolean", bool)
date = DateType("date", datetime, strict=False)
identifier = IdentifierType("identifier", str)
null = NullType()
undefined = UndefinedType()
frozen = FrozenType()


def literal(value: Any) -> PrimitiveType:
    return PrimitiveType(f"literal({value!r})", Literal[value])


def enumeration(name: Any, options: Sequence[str] | None = None) -> PrimitiveType:
    """``enumeration(["a", "b"])`` or ``enumeration("Status", ["a", "b"])``."""
    if options is None:
        name, options = "enumeration", name
    if isinstance(options, str) or not isinstance(options, Sequence) or not options:
        raise TreeTypeError("enumeration expects a non-empty sequence of strings")
    if not all(isinstance(option, str) for option in options):
        raise TreeTypeError("enumeration options must be strings")
    return PrimitiveType(str(name), Literal[tuple(options)])


# ---------------------------------------------------------------------------
# wrappers
# ---------------------------------------------------------------------------

class OptionalType(TreeType):
    def __init__(self, subtype: TreeType, default: Any) -> None:
        self.subtype = subtype
        self.default = default
        self.name = f"optional({subtype.name})"

    def _default_value(self) -> Any:
        value = self.default() if callable(self.default) else self.default
        return copy.deepcopy(value) if settings["COPY_DEFAULTS"] else value

    def check(self, value: Any) -> None:
        if value is not MISSING:
            self.subtype.check(value)

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        if value is MISSING:
            value = self._default_value()
        return self.subtype.instantiate(value, parent)

    def snapshot(self, value: Any) -> Any:
        return self.subtype.snapshot(value)

    def on_read(self, value: Any, node: Any) -> Any:
        return self.subtype.on_read(value, node)


def optional(subtype: Any, default: Any) -> OptionalType:
    return OptionalType(as_tree_type(subtype), default)


class MaybeType(TreeType):
    def __init__(self, subtype: TreeType) -> None:
        self.subtype = subtype
        self.name = f"maybe({subtype.name})"

    def check(self, value: Any) -> None:
        if value is not MISSING and value is not None:
            self.subtype.check(value)

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        if value is MISSING or value is None:
            return None
        return self.subtype.instantiate(value, parent)

    def snapshot(self, value: Any) -> Any:
        return None if value is None else self.subtype.snapshot(value)

    def on_read(self, value: Any, node: Any) -> Any:
        return None if value is None else self.subtype.on_read(value, node)


def maybe(subtype: Any) -> MaybeType:
    return MaybeType(as_tree_type(subtype))


class UnionType(TreeType):
    def __init__(self, types: Sequence[TreeType], dispatcher: Callable[[Any], Any] | None = None) -> None:
        if not types:
            raise TreeTypeError("union expects at least one type")
        self.types = tuple(types)
        self.dispatcher = dispatcher
        self.name = " | ".join(t.name for t in self.types)

    def _select(self, value: Any) -> TreeType:
        if self.dispatcher is not None:
            return as_tree_type(self.dispatcher(value))
        for candidate in self.types:
            if candidate.is_type(value):
                return candidate
        raise _fail(f"{value!r} does not match any of {self.name}")

    def check(self, value: Any) -> None:
        self._select(value).check(value)

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        return self._select(value).instantiate(value, parent)

    def snapshot(self, value: Any) -> Any:
        for candidate in self.types:
            if candidate.is_type(value) or _owns(candidate, value):
                return candidate.snapshot(value)
        return value


def union(*types: Any, dispatcher: Callable[[Any], Any] | None = None) -> UnionType:
    return UnionType([as_tree_type(t) for t in types], dispatcher=dispatcher)


def _owns(candidate: TreeType, value: Any) -> bool:
    from .model import ModelType, get_node, is_tree_node

    return isinstance(candidate, ModelType) and is_tree_node(value) and get_node(value).type is candidate


class RefinementType(TreeType):
    def __init__(self, name: str, subtype: TreeType, predicate: Callable[[Any], bool], message: Any = None) -> None:
        self.name = name
        self.subtype = subtype
        self.predicate = predicate
        self.message = message

    def _refine(self, value: Any) -> None:
        if self.predicate(value):
            return
        if callable(self.message):
            message = self.message(value)
        else:
            message = self.message or f"{value!r} does not satisfy {self.name}"
        raise _fail(str(message))

    def check(self, value: Any) -> None:
        self.subtype.check(value)
        self._refine(value)

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        result = self.subtype.instantiate(value, parent)
        self._refine(value)
        return result

    def snapshot(self, value: Any) -> Any:
        return self.subtype.snapshot(value)


def refinement(*args: Any, name: str | None = None, message: Any = None) -> RefinementType:
    """``refinement([name,] type, predicate[, message])``."""
    if args and isinstance(args[0], str):
        name, args = args[0], args[1:]
    if len(args) not in (2, 3):
        raise TreeTypeError("refinement expects ([name,] type, predicate[, message])")
    subtype = as_tree_type(args[0])
    predicate = args[1]
    if len(args) == 3:
        message = args[2]
    if not callable(predicate):
        raise TreeTypeError("refinement predicate must be callable")
    return RefinementType(name or f"refinement({subtype.name})", subtype, predicate, message)


class CustomType(TreeType):
    def __init__(
        self,
        name: str,
        from_snapshot: Callable[[Any], Any],
        to_snapshot: Callable[[Any], Any],
        is_target_instance: Callable[[Any], bool],
        get_validation_message: Callable[[Any], str] | None = None,
    ) -> None:
        self.name = name
        self.from_snapshot = from_snapshot
        self.to_snapshot = to_snapshot
        self.is_target_instance = is_target_instance
        self.get_validation_message = get_validation_message

    def check(self, value: Any) -> None:
        if self.is_target_instance(value):
            return
        message = self.get_validation_message(value) if self.get_validation_message else ""
        if message:
            raise _fail(message)

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        self.check(value)
        return value if self.is_target_instance(value) else self.from_snapshot(value)

    def snapshot(self, value: Any) -> Any:
        return self.to_snapshot(value)


def custom(options: Mapping[str, Any] | None = None, **kwargs: Any) -> CustomType:
    """``custom(name=..., from_snapshot=..., to_snapshot=..., is_target_instance=..., get_validation_message=...)``."""
    opts = {**(options or {}), **kwargs}
    required = ("name", "from_snapshot", "to_snapshot", "is_target_instance")
    missing = [key for key in required if key not in opts]
    if missing:
        raise TreeTypeError(f"custom type is missing options: {', '.join(missing)}")
    return CustomType(
        opts["name"],
        opts["from_snapshot"],
        opts["to_snapshot"],
        opts["is_target_instance"],
        opts.get("get_validation_message"),
    )


class LateType(TreeType):
    """Defers type resolution; accepts a thunk or a registered model name."""

    def __init__(self, target: Any, name: str | None = None) -> None:
        self._target = target
        self._resolved: TreeType | None = None
        self.name = name or (target if isinstance(target, str) else "late")

    @property
    def subtype(self) -> TreeType:
        if self._resolved is None:
            target = self._target
            if isinstance(target, str):
                from treeclass.registry import models

                target = models.get_by_name(target)
            elif callable(target) and not isinstance(target, type):
                target = target()
            self._resolved = as_tree_type(target)
        return self._resolved

    def check(self, value: Any) -> None:
        self.subtype.check(value)

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        return self.subtype.instantiate(value, parent)

    def snapshot(self, value: Any) -> Any:
        return self.subtype.snapshot(value)

    def on_read(self, value: Any, node: Any) -> Any:
        return self.subtype.on_read(value, node)


def late(target: Any, name: str | None = None) -> LateType:
    return LateType(target, name)


class ReferenceType(TreeType):
    """Stores the identifier of a model instance; reads resolve it within the same tree."""

    def __init__(self, target: Any) -> None:
        self._target = target
        self.name = f"reference({getattr(target, 'name', target)!r})"

    @property
    def target(self) -> Any:
        return as_tree_type(self._target)

    def _identifier_of(self, value: Any) -> Any:
        from .model import get_node, is_tree_node

        if is_tree_node(value):
            node = get_node(value)
            if node.identifier is None:
                raise _fail(f"{node.type.name} has no identifier and cannot be referenced")
            return node.identifier
        return value

    def check(self, value: Any) -> None:
        ident = self._identifier_of(value)
        if not isinstance(ident, (str, int)) or isinstance(ident, bool):
            raise _fail(f"{value!r} is not a valid reference identifier")

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> Any:
        self.check(value)
        return self._identifier_of(value)

    def on_read(self, value: Any, node: Any) -> Any:
        return node.root.resolve_identifier(self.target, value).value


def reference(target: Any) -> ReferenceType:
    return ReferenceType(target)


# ---------------------------------------------------------------------------
# containers
# ---------------------------------------------------------------------------

class TreeList(list):
    """List whose mutations are guarded by the owning node and typed by ``item_type``."""

    def __init__(self, item_type: TreeType, items: Sequence[Any] = (), parent: Any = None) -> None:
        super().__init__(items)
        self.item_type = item_type
        self.parent = parent

    def _writable(self) -> None:
        if self.parent is not None:
            self.parent.assert_writable()

    def _make(self, value: Any, index: Any = None) -> Any:
        try:
            return self.item_type.instantiate(value, self.parent)
        except TreeValidationError as err:
            raise err.at(str(len(self) if index is None else index)) from err.__cause__

    def append(self, value: Any) -> None:
        self._writable()
        super().append(self._make(value))

    def extend(self, values: Any) -> None:
        self._writable()
        super().extend([self._make(v, len(self) + i) for i, v in enumerate(values)])

    def insert(self, index: Any, value: Any) -> None:
        self._writable()
        super().insert(index, self._make(value, index))

    def __setitem__(self, index: Any, value: Any) -> None:
        self._writable()
        if isinstance(index, slice):
            value = [self._make(v) for v in value]
        else:
            value = self._make(value, index)
        super().__setitem__(index, value)

    def __delitem__(self, index: Any) -> None:
        self._writable()
        super().__delitem__(index)

    def __iadd__(self, values: Any) -> "TreeList":
        self.extend(values)
        return self

    def __imul__(self, count: Any) -> "TreeList":
        self._writable()
        count = operator.index(count)
        if count <= 0:
            super().clear()
        else:
            # repeated children are copied so each one gets its own node
            self.extend(list(self) * (count - 1))
        return self

    def pop(self, index: Any = -1) -> Any:
        self._writable()
        return super().pop(index)

    def remove(self, value: Any) -> None:
        self._writable()
        super().remove(value)

    def clear(self) -> None:
        self._writable()
        super().clear()

    def sort(self, *args: Any, **kwargs: Any) -> None:
        self._writable()
        super().sort(*args, **kwargs)

    def reverse(self) -> None:
        self._writable()
        super().reverse()

    def __reduce_ex__(self, protocol: Any):
        return (list, (list(self),))

    def __deepcopy__(self, memo: Any) -> list:
        return copy.deepcopy(list(self), memo)


class TreeMap(dict):
    """Dict with string keys whose mutations are guarded by the owning node."""

    def __init__(self, value_type: TreeType, items: Mapping[str, Any] | None = None, parent: Any = None) -> None:
        super().__init__(items or {})
        self.value_type = value_type
        self.parent = parent

    def _writable(self) -> None:
        if self.parent is not None:
            self.parent.assert_writable()

    def _make(self, key: Any, value: Any) -> Any:
        if not isinstance(key, str):
            raise _fail(f"map keys must be strings (got {key!r})")
        try:
            return self.value_type.instantiate(value, self.parent)
        except TreeValidationError as err:
            raise err.at(key) from err.__cause__

    def __setitem__(self, key: str, value: Any) -> None:
        self._writable()
        super().__setitem__(key, self._make(key, value))

    def __delitem__(self, key: str) -> None:
        self._writable()
        super().__delitem__(key)

    def put(self, value: Any) -> Any:
        """Store a model value under its identifier and return the stored value."""
        from .model import get_node

        stored = self.value_type.instantiate(value, self.parent)
        ident = get_node(stored).identifier
        if ident is None:
            raise _fail("put() requires a value with an identifier")
        self._writable()
        super().__setitem__(str(ident), stored)
        return stored

    def update(self, *args: Any, **kwargs: Any) -> None:
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def __ior__(self, other: Any) -> "TreeMap":
        self._writable()
        self.update(other)
        return self

    def setdefault(self, key: str, default: Any = None) -> Any:
        if key not in self:
            self[key] = default
        return self[key]

    def pop(self, key: str, *default: Any) -> Any:
        self._writable()
        return super().pop(key, *default)

    def popitem(self) -> Any:
        self._writable()
        return super().popitem()

    def clear(self) -> None:
        self._writable()
        super().clear()

    def __reduce_ex__(self, protocol: Any):
        return (dict, (dict(self),))

    def __deepcopy__(self, memo: Any) -> dict:
        return copy.deepcopy(dict(self), memo)


class ArrayType(TreeType):
    def __init__(self, item_type: TreeType) -> None:
        self.item_type = item_type
        self.name = f"array({item_type.name})"

    def check(self, value: Any) -> None:
        if value is MISSING:
            return
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
            raise _fail(f"{value!r} is not an array")
        for index, item in enumerate(value):
            try:
                self.item_type.check(item)
            except TreeValidationError as err:
                raise err.at(str(index)) from err.__cause__

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> TreeList:
        if value is MISSING:
            value = ()
        if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
            raise _fail(f"{value!r} is not an array")
        items = []
        for index, item in enumerate(value):
            try:
                items.append(self.item_type.instantiate(item, parent))
            except TreeValidationError as err:
                raise err.at(str(index)) from err.__cause__
        return TreeList(self.item_type, items, parent)

    def snapshot(self, value: Any) -> list:
        return [self.item_type.snapshot(item) for item in value]


def array(item_type: Any) -> ArrayType:
    return ArrayType(as_tree_type(item_type))


class MapType(TreeType):
    def __init__(self, value_type: TreeType) -> None:
        self.value_type = value_type
        self.name = f"map({value_type.name})"

    def check(self, value: Any) -> None:
        if value is MISSING:
            return
        if not isinstance(value, Mapping):
            raise _fail(f"{value!r} is not a map")
        for key, item in value.items():
            if not isinstance(key, str):
                raise _fail(f"map keys must be strings (got {key!r})")
            try:
                self.value_type.check(item)
            except TreeValidationError as err:
                raise err.at(key) from err.__cause__

    def instantiate(self, value: Any = MISSING, parent: Any = None) -> TreeMap:
        if value is MISSING:
            value = {}
        if not isinstance(value, Mapping):
            raise _fail(f"{value!r} is not a map")
        items = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise _fail(f"map keys must be strings (got {key!r})")
            try:
                items[key] = self.value_type.instantiate(item, parent)
            except TreeValidationError as err:
                raise err.at(key) from err.__cause__
        return TreeMap(self.value_type, items, parent)

    def snapshot(self, value: Any) -> dict:
        return {key: self.value_type.snapshot(item) for key, item in value.items()}


def map(value_type: Any) -> MapType:  # noqa: A001 - mirrors the type constructor name
    return MapType(as_tree_type(value_type))

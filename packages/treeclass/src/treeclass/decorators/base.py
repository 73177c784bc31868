# treeclass/decorators/base.py


"""
Core base class decorator (class-based, no factories).

This module defines `BaseDecorator`, a callable class that implements the
dual-form decorator pattern used by the class-level decorators of treeclass.

Usage
-----
    @decorator
    class Foo: ...

    @decorator(name="Bar")
    class Foo: ...

Key behaviors
-------------
- The work on the class is delegated to `apply()`, implemented by subclasses.
- Registration is delegated to the registry returned by `get_registry()`; the
  base class calls **`registry.register(cls, strict=True)`**.
- `apply()` and registration run inside a single trace span; failures are
  recorded on the span and re-raised unchanged.
"""

import logging
from typing import Any, Callable, Optional, Type, TypeVar, cast

from treeclass.tracing import SpanPath, service_span_sync, set_span_attributes

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Type[Any])


class BaseDecorator:
    """Class-based decorator implementing the dual-form decorator pattern.

    Subclasses may override:
      • ``apply(self, cls, *, name) -> dict[str, Any]`` (returns span attributes)
      • ``get_registry(self) -> Any | None``
      • ``register(self, candidate) -> None``
    """

    span_root: SpanPath = SpanPath(("treeclass", "decorator"))
    log_category: str | None = None

    # ---------------- public API: dual-form decorator ----------------
    def __call__(
        self,
        _cls: Optional[T] = None,
        *,
        name: Optional[str] = None,
    ) -> T | Callable[[T], T]:
        """Support both forms:

            @decorator
            class Foo: ...

            @decorator(name="Custom")
            class Foo: ...
        """

        def _apply(cls: T) -> T:
            fqcn = f"{cls.__module__}.{cls.__qualname__}"
            final_name = (name or cls.__name__).strip()
            span_attrs = {
                "treeclass.decorator": self.__class__.__name__,
                "treeclass.class": fqcn,
                "treeclass.model": final_name,
            }
            with service_span_sync(self.span_root.child(f"compose ({cls.__name__})"), attributes=span_attrs) as span:
                # 1) Do the decorator's work
                attrs = self.apply(cls, name=final_name) or {}

                # 2) Register (if a registry is present)
                self.register(cls)

                set_span_attributes(span, attrs)

                label = str(self.log_category or self.__class__.__name__).upper()
                logger.info("[%s] ✅ composed `%s`", label, final_name)
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(" -- fqcn: %s", fqcn)
                    logger.debug(" -- attributes: %r", attrs)

            return cls

        # IMPORTANT: return the applied class when used as @decorator, or return
        # the decorator function when used as @decorator(...)
        if _cls is not None:
            return _apply(cast(T, _cls))
        return _apply

    # ---------------- hooks / extension points ----------------
    def apply(self, cls: Type[Any], *, name: str) -> dict[str, Any] | None:
        raise NotImplementedError

    def get_registry(self) -> Any | None:
        """Return the registry for this decorator, or **None** to skip registration."""
        return None

    def register(self, candidate: Type[Any]) -> None:
        """Register ``candidate`` into ``get_registry()`` when one is configured."""
        registry = self.get_registry()
        if registry is None:
            logger.debug(
                "No registry for %s; skipping registration of %s",
                self.__class__.__name__,
                f"{candidate.__module__}.{candidate.__qualname__}",
            )
            return
        registry.register(candidate, strict=True)
        logger.debug("registered %s", candidate.__qualname__)

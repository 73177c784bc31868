import logging
from collections.abc import Mapping, Sequence
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterator

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

from treeclass.conf import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tracer utilities
# ---------------------------------------------------------------------------

_DEFAULT_TRACER_NAME = "treeclass"

_INFO_KEYS = frozenset({
    "treeclass.decorator", "treeclass.class", "treeclass.model",
    "treeclass.extends", "treeclass.props", "treeclass.actions",
    "treeclass.flows", "treeclass.views", "treeclass.volatiles",
    "treeclass.flow",
})
_MINIMAL_KEYS = frozenset({"treeclass.decorator", "treeclass.class", "treeclass.model"})

# OpenTelemetry accepts only these scalars, or homogeneous sequences of them.
_SCALARS = (bool, str, bytes, int, float)


@dataclass(frozen=True)
class SpanPath:
    """Structured span name helper.

    Example:
        root = SpanPath.from_str("treeclass.model")
        child = root.child("compose (Todo)")
        str(child) -> "treeclass.model.compose (Todo)"
    """

    parts: tuple[str, ...]

    def __str__(self) -> str:
        return ".".join(self.parts)

    @classmethod
    def from_str(cls, name: str) -> "SpanPath":
        name = (name or "").strip()
        if not name:
            return cls(())
        return cls(tuple(p for p in name.split(".") if p))

    def child(self, *segments: str) -> "SpanPath":
        """Return a new SpanPath with the non-empty ``segments`` appended."""
        return SpanPath(self.parts + tuple(s for s in segments if s))


def get_tracer(name: str | None = None) -> Tracer:
    """Return an OpenTelemetry tracer for this package."""
    return trace.get_tracer(name or _DEFAULT_TRACER_NAME)


def filter_trace_attrs(attrs: Mapping[str, Any], level: str | None = None) -> dict[str, Any]:
    """Trim ``treeclass.*`` span attributes according to ``TRACE_LEVEL``.

    Attributes outside the ``treeclass.`` namespace are always kept.
    """
    level = (level or str(settings["TRACE_LEVEL"])).strip().lower()
    if level not in {"debug", "info", "minimal"}:
        level = "info"
    if level == "debug":
        return dict(attrs)
    keep = _INFO_KEYS if level == "info" else _MINIMAL_KEYS
    return {k: v for k, v in attrs.items() if k in keep or not k.startswith("treeclass.")}


def _coerce_attr(value: Any) -> Any:
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, Sequence) and value:
        return [v if isinstance(v, str) else str(v) for v in value]
    return None


def set_span_attributes(span: Span, attrs: Mapping[str, Any] | None, level: str | None = None) -> None:
    """Filter ``attrs`` by trace level and set the ones OpenTelemetry can carry."""
    if not attrs:
        return
    for key, value in filter_trace_attrs(attrs, level).items():
        coerced = _coerce_attr(value)
        if coerced is None:
            continue
        try:
            span.set_attribute(key, coerced)
        except Exception:
            # Tracing must never break composition.
            logger.debug("trace.attr.set_failed", extra={"key": key}, exc_info=True)


def _record_exception(span: Span, err: BaseException) -> None:
    try:
        span.record_exception(err)
        span.set_status(Status(StatusCode.ERROR, description=str(err)))
        span.set_attribute("treeclass.error", type(err).__name__)
    except Exception:
        logger.exception("trace.record_exception_failed")


@contextmanager
def _span_scope(name: str | SpanPath, attributes: Mapping[str, Any] | None) -> Iterator[Span]:
    tracer = get_tracer()
    with tracer.start_as_current_span(
        str(name),
        kind=SpanKind.INTERNAL,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        set_span_attributes(span, attributes)
        try:
            yield span
        except Exception as err:
            span.set_attribute("treeclass.ok", False)
            _record_exception(span, err)
            raise
        span.set_attribute("treeclass.ok", True)


# ---------------------------------------------------------------------------
# Context managers for spans
# ---------------------------------------------------------------------------

@contextmanager
def service_span_sync(name: str | SpanPath, *, attributes: Mapping[str, Any] | None = None) -> Iterator[Span]:
    """Synchronous span context, used around class composition.

    Usage:
        with service_span_sync("treeclass.model.compose", attributes={"treeclass.class": fqcn}):
            ...
    """
    with _span_scope(name, attributes) as span:
        yield span


@asynccontextmanager
async def service_span(name: str | SpanPath, *, attributes: Mapping[str, Any] | None = None) -> AsyncIterator[Span]:
    """Async span context, used around flow runs.

    Usage:
        async with service_span("treeclass.flow.load", attributes={"treeclass.model": "Todo"}):
            ...
    """
    with _span_scope(name, attributes) as span:
        yield span


__all__ = [
    "SpanPath",
    "filter_trace_attrs",
    "get_tracer",
    "service_span",
    "service_span_sync",
    "set_span_attributes",
]

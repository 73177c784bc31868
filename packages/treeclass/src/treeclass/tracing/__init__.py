# treeclass/tracing/__init__.py
from .tracing import SpanPath, filter_trace_attrs, get_tracer, service_span, service_span_sync, set_span_attributes

__all__ = [
    "SpanPath",
    "filter_trace_attrs",
    "get_tracer",
    "service_span",
    "service_span_sync",
    "set_span_attributes",
]

"""Default configuration values for treeclass."""

DEFAULTS: dict[str, object] = {
    # Attribute filter for composition spans: "debug" | "info" | "minimal"
    "TRACE_LEVEL": "info",
    # Reject state writes made outside of actions
    "PROTECT_TREE": True,
    # Deep-copy class-level defaults per snapshot / per instance
    "COPY_DEFAULTS": True,
    # `number` rejects numeric strings and booleans
    "STRICT_NUMBERS": True,
}

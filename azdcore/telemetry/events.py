"""Names of telemetry events."""

# Command event names follow the convention cmd.<command path with spaces replaced by dots>.
COMMAND_EVENT_PREFIX = "cmd."

VS_RPC_EVENT_PREFIX = "vsrpc."

# Tracks the overall pack build operation.
PACK_BUILD_EVENT = "tools.pack.build"


def get_command_event_name(cmd_path: str) -> str:
    """Return the telemetry event name for a CLI command path."""
    return COMMAND_EVENT_PREFIX + _format_command_path(cmd_path)


def _format_command_path(cmd_path: str) -> str:
    return cmd_path.removeprefix("azd ").replace(" ", ".")
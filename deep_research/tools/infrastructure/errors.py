"""Error types raised by tool infrastructure."""

from deep_research.core.errors import DeepResearchError


class CodeExecutionError(DeepResearchError):
    """Raised when sandboxed code cannot be executed or exits with a failure."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to execute code: {reason}")


class ToolArgumentsError(DeepResearchError):
    """Raised when a tool call's argument payload does not match its schema."""

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Failed to parse arguments for tool '{tool_name}': {reason}")


class UnknownToolError(DeepResearchError):
    """Raised when the model calls a tool that was never offered to it."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Failed to dispatch tool call: unknown tool '{tool_name}'")

"""Exception types raised by the adapter."""

from __future__ import annotations


class AdapterError(Exception):
    pass


class ConfigurationError(AdapterError):
    pass


class SpecNotFoundError(AdapterError):
    pass


class InvalidSpecError(AdapterError):
    pass


class SpecFetchError(AdapterError):
    pass


class SpecParseError(AdapterError):
    pass


class ToolNotFoundError(AdapterError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name


class ExecutionError(AdapterError):
    pass


class StreamProcessingError(AdapterError):
    pass

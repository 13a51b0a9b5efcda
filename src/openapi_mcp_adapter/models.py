"""Internal models for derived tool definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    location: str
    required: bool = False
    schema_type: str = "string"
    description: Optional[str] = None


@dataclass(frozen=True)
class OperationMetadata:
    http_method: str
    original_path: str
    parameters: Tuple[ParameterDescriptor, ...] = ()
    request_body_schema: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: Dict[str, Any] = field(default_factory=lambda: {"type": "object"})
    metadata: Optional[OperationMetadata] = None

    def to_mcp(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

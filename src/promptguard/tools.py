"""
promptguard Agent Tool Model

Defines the tool shape the monitor wraps: a named capability with a
description, a JSON parameter schema and an async execute function.

Tool results are treated as opaque. The only structural assumption is
that a result may carry a list of content blocks, where a block tagged
"text" holds a string payload. Results can be ToolResult models or
plain dicts of the same shape.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal, Union

from pydantic import BaseModel, Field


class TextContent(BaseModel):
    """A text block in a tool result."""
    type: Literal["text"] = "text"
    text: str = ""


class ImageContent(BaseModel):
    """An image block in a tool result (base64 payload)."""
    type: Literal["image"] = "image"
    data: str = ""
    mime_type: str = "image/png"


ContentItem = Union[TextContent, ImageContent]


class ToolResult(BaseModel):
    """Result of executing an agent tool."""
    content: list[ContentItem] = Field(default_factory=list)
    details: Any = None


ToolUpdateCallback = Callable[[Any], None]
ToolExecuteFn = Callable[
    [str, dict[str, Any], Union[asyncio.Event, None], Union[ToolUpdateCallback, None]],
    Awaitable[Any],
]


@dataclass(frozen=True)
class AgentTool:
    """A tool that can be invoked by an agent.

    ``execute`` receives the tool call id, the call parameters, an optional
    cancellation event and an optional progress callback. Tools without an
    execute function are declaration-only.
    """
    name: str
    description: str = ""
    label: str = ""
    parameters: dict = field(default_factory=dict)
    execute: ToolExecuteFn | None = None

    def schema(self) -> dict:
        """Tool schema in the tool_use format sent to the model."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }


def _blocks(result: Any) -> list[Any]:
    if isinstance(result, dict):
        content = result.get("content")
    else:
        content = getattr(result, "content", None)
    if isinstance(content, (list, tuple)):
        return list(content)
    return []


def _block_field(block: Any, name: str) -> Any:
    if isinstance(block, dict):
        return block.get(name)
    return getattr(block, name, None)


def extract_tool_result_text(result: Any) -> str | None:
    """Extract the text payload of a tool result.

    Joins the text of every block tagged "text" with newlines. Returns
    None when the result has no text block with non-empty text.
    """
    texts: list[str] = []
    for block in _blocks(result):
        if _block_field(block, "type") != "text":
            continue
        text = _block_field(block, "text")
        if isinstance(text, str):
            texts.append(text)

    joined = "\n".join(texts).strip()
    return joined or None


def text_result(text: str, details: Any = None) -> ToolResult:
    """Build a ToolResult holding a single text block."""
    return ToolResult(content=[TextContent(text=text)], details=details)


def json_result(payload: Any) -> ToolResult:
    """Build a ToolResult whose text block is the pretty-printed JSON payload."""
    return text_result(json.dumps(payload, indent=2, ensure_ascii=False), details=payload)

"""Collapse ``text/event-stream`` responses into a single tool result."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Sequence, Union

from .errors import StreamProcessingError


logger = logging.getLogger(__name__)

_TEXT_FIELD = re.compile(r'"text":\s*"([^"]*)"')
_CONTENT_FIELD = re.compile(r'"content":\s*"([^"]*)"')
_DATA_PREFIX = "data:"


class StreamAggregator:
    """Extracts ordered text fragments from a buffered event stream.

    Fragment selection prefers ``"text"`` fields, then ``"content"`` fields,
    and finally falls back to blank-line separated events.
    """

    def aggregate(self, raw_body: Union[str, bytes]) -> List[str]:
        try:
            text = raw_body.decode("utf-8") if isinstance(raw_body, bytes) else raw_body
        except UnicodeDecodeError as exc:
            raise StreamProcessingError(f"Failed to decode event stream: {exc}") from exc

        chunks = _TEXT_FIELD.findall(text)
        if not chunks:
            chunks = _CONTENT_FIELD.findall(text)
        if not chunks:
            chunks = text.strip().split("\n\n")

        fragments: List[str] = []
        for chunk in chunks:
            try:
                if chunk.strip() == "":
                    continue
                logger.debug("Received SSE chunk: %s", chunk)
                event = parse_event(chunk)
                if event:
                    fragments.append(event)
            except Exception as exc:
                raise StreamProcessingError(f"Failed to process SSE chunk: {exc}") from exc
        return fragments

    def to_message(self, fragments: Sequence[str]) -> Dict[str, Any]:
        return {
            "role": "assistant",
            "content": [{"type": "text", "text": fragment} for fragment in fragments],
        }


def parse_event(chunk: str) -> str:
    if not chunk.startswith(_DATA_PREFIX):
        return chunk
    return chunk[len(_DATA_PREFIX):].strip()

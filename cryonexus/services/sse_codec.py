"""Server-sent event encoding and chunk-tolerant decoding.

One event on the wire is an event-name line, a data line holding compact
JSON, and a blank line:

    event: agent_chunk
    data: {"agent":"economy","chunk":"Oil prices"}

"""

import json
from typing import Any, Iterable, Optional

from cryonexus.logger import get_logger
from cryonexus.models.events import PipelineEvent

logger = get_logger(__name__)

EVENT_PREFIX = "event:"
DATA_PREFIX = "data:"


def serialize_payload(data: dict[str, Any]) -> str:
    """Compact single-line JSON for a data line."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def encode_event(event: PipelineEvent) -> str:
    """Wire text of one event, terminated by a blank line."""
    return f"event: {event.event.value}\ndata: {serialize_payload(event.data)}\n\n"


def encode_events(events: Iterable[PipelineEvent]) -> str:
    return "".join(encode_event(event) for event in events)


def to_sse_message(event: PipelineEvent) -> dict[str, str]:
    """Mapping consumed by sse_starlette's EventSourceResponse."""
    return {"event": event.event.value, "data": serialize_payload(event.data)}


def _field_value(line: str, prefix: str) -> str:
    value = line[len(prefix):]
    return value[1:] if value.startswith(" ") else value


class SSEDecoder:
    """Reassemble PipelineEvents from arbitrarily fragmented stream text.

    Both the trailing partial line and the pending event name carry over
    between `feed` calls, so an event whose name and data lines arrive in
    separate deliveries is still decoded.
    """

    def __init__(self):
        self._buffer = ""
        self._pending_event: Optional[str] = None

    @property
    def pending_event(self) -> Optional[str]:
        return self._pending_event

    def feed(self, text: str) -> list[PipelineEvent]:
        """Consume one delivery and return the events it completed."""
        self._buffer += text
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        events = []
        for line in lines:
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        return events

    def close(self) -> list[PipelineEvent]:
        """Process whatever is left once the stream has ended."""
        remainder, self._buffer = self._buffer, ""
        if not remainder:
            return []
        event = self._process_line(remainder)
        return [event] if event is not None else []

    def _process_line(self, line: str) -> Optional[PipelineEvent]:
        line = line.rstrip("\r")

        if line.startswith(EVENT_PREFIX):
            self._pending_event = _field_value(line, EVENT_PREFIX).strip()
            return None

        if line.startswith(DATA_PREFIX) and self._pending_event:
            name = self._pending_event
            self._pending_event = None
            raw = _field_value(line, DATA_PREFIX)
            try:
                return PipelineEvent(event=name, data=json.loads(raw))
            except ValueError as e:
                logger.warning(f"Dropping malformed '{name}' event: {e}; data={raw[:200]!r}")
                return None

        return None

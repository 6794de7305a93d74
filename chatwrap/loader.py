"""Loading message streams from JSON.

WHY: Message parsing is done upstream; chatwrap receives messages with
sender, kind and timestamp already attached. The CLI and the HTTP API both
accept those messages as JSON objects, so one loader validates and
converts them.

HOW: MESSAGE_SCHEMA describes one message object; STREAM_SCHEMA a list
of them. load_messages() validates with jsonschema and builds Message
instances via message_from_dict().

RULES:
- Each message needs either "text" or "runs"
- kind defaults to "normal"; unknown kinds are rejected by the schema
- "hidden": true marks filtered messages
- timestamp is optional (the view stamps it from its clock)
- Validation errors are re-raised as ValueError with the JSON path
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

import jsonschema

from chatwrap.core.ir import Message, MessageKind, Run

RUN_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["text"],
    "properties": {
        "text": {"type": "string"},
        "style": {"type": ["string", "null"]},
        "invisible": {"type": "boolean"},
    },
    "additionalProperties": False,
}

MESSAGE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "sender": {"type": ["string", "null"]},
        "text": {"type": "string"},
        "runs": {"type": "array", "items": RUN_SCHEMA},
        "timestamp": {"type": ["number", "null"]},
        "kind": {"enum": [k.value for k in MessageKind]},
        "hidden": {"type": "boolean"},
        "ephemeral": {"type": "boolean"},
        "label_end": {"type": ["integer", "null"], "minimum": 0},
        "stamp_field": {"type": "boolean"},
    },
    "oneOf": [
        {"required": ["text"], "not": {"required": ["runs"]}},
        {"required": ["runs"], "not": {"required": ["text"]}},
    ],
}

STREAM_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": MESSAGE_SCHEMA,
}


def _validate(data: Any, schema: Dict[str, Any]) -> None:
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as exc:
        path = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ValueError("Invalid message data at {}: {}".format(path, exc.message)) from exc


def message_from_dict(data: Dict[str, Any]) -> Message:
    """Validate one message object and build a Message."""
    _validate(data, MESSAGE_SCHEMA)
    if "runs" in data:
        runs = [
            Run(r["text"], r.get("style"), r.get("invisible", False))
            for r in data["runs"]
        ]
    else:
        runs = [Run(data["text"])]
    return Message(
        runs=runs,
        sender=data.get("sender"),
        timestamp=data.get("timestamp"),
        kind=MessageKind(data.get("kind", MessageKind.NORMAL.value)),
        hidden=data.get("hidden", False),
        ephemeral=data.get("ephemeral", False),
        label_end=data.get("label_end"),
        stamp_field=data.get("stamp_field", False),
    )


def load_messages(source: Union[str, Path, List[Dict[str, Any]]]) -> List[Message]:
    """Load a message stream from a JSON file path or parsed list.

    Raises:
        ValueError: If the JSON is malformed or fails schema validation.
    """
    if isinstance(source, (str, Path)):
        try:
            data = json.loads(Path(source).read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError("Could not parse JSON input: {}".format(exc)) from exc
    else:
        data = source
    _validate(data, STREAM_SCHEMA)
    return [message_from_dict(item) for item in data]


def parse_messages(raw: str) -> List[Message]:
    """Load a message stream from a JSON string (e.g. stdin)."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("Could not parse JSON input: {}".format(exc)) from exc
    return load_messages(data)

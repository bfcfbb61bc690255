"""Argument (de)serialization shared by providers and the stream assembler."""

from __future__ import annotations

import json
from typing import Any


def parse_arguments(raw: str | None) -> Any:
    """Parse a JSON argument string, falling back to the raw text."""
    if raw is None or raw == "":
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return raw


def dump_arguments(args: Any) -> str:
    if isinstance(args, str):
        return args
    return json.dumps(args if args is not None else {})

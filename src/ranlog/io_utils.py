"""I/O utilities for JSON and JSONL files.

orjson throughout; dataclass records are serialized natively and NaN
floats come out as ``null``.
"""
from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import orjson


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def load_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load a JSON Lines file (one JSON object per line). Blank lines skipped."""
    records: list[dict[str, Any]] = []
    for line in path.read_bytes().split(b"\n"):
        line = line.strip()
        if line:
            records.append(orjson.loads(line))
    return records


def save_jsonl(records: Iterable[Any], path: Path) -> int:
    """Save records as a JSON Lines file. Returns the number of lines written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [orjson.dumps(r) for r in records]
    path.write_bytes(b"\n".join(lines) + b"\n" if lines else b"")
    return len(lines)


def dumps_pretty(obj: Any) -> bytes:
    """Indented JSON bytes with a trailing newline, for stdout."""
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2) + b"\n"

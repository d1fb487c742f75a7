"""
Console output for CLI commands.

Human mode prints progress lines and a summary. JSON mode prints nothing
but one JSON object at the end.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Iterable, Optional, TextIO

# Largest integer a JSON consumer using IEEE doubles can hold exactly.
MAX_SAFE_INTEGER = 2**53 - 1


def json_safe(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > MAX_SAFE_INTEGER else value
    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    return value


class Output:
    def __init__(self, json_mode: bool = False, stream: Optional[TextIO] = None) -> None:
        self.json_mode = bool(json_mode)
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved per write so pytest's capsys sees the output.
        return self._stream or sys.stdout

    def progress(self, message: str) -> None:
        if not self.json_mode:
            print(message, file=self.stream)

    def result(self, data: Any, lines: Iterable[str] = ()) -> None:
        if self.json_mode:
            print(json.dumps(json_safe(data), indent=2, default=str), file=self.stream)
            return
        for line in lines:
            print(line, file=self.stream)

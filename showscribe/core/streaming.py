import json
from typing import Any, Dict, Iterable, Iterator, Union

from .errors import ParseError


def iter_ndjson(lines: Iterable[Union[bytes, str]]) -> Iterator[Dict[str, Any]]:
    """
    Lazily decode newline-delimited JSON.

    Blank keep-alive lines are skipped. Iteration ends when the source is
    exhausted or right after an object with a truthy ``done`` flag.
    """
    for line in lines:
        if not line.strip():
            continue
        try:
            text = line.decode("utf-8") if isinstance(line, bytes) else line
            data = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseError(f"Invalid NDJSON line: {line[:200]!r}") from e
        yield data
        if isinstance(data, dict) and data.get("done"):
            return

"""Extract a JSON value from model output that may be fenced or wrapped in prose."""

import json
import re
from typing import Any

FENCED = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json(text: str) -> Any | None:
    """
    Parse the first JSON object or array in text.

    Tries, in order: the whole string, a ```json fenced block, then the span
    from the first "{" / "[" to the matching last "}" / "]". Returns None if
    nothing parses.
    """
    if not text or not text.strip():
        return None

    candidates = [text.strip()]
    fenced = FENCED.search(text)
    if fenced:
        candidates.append(fenced.group(1).strip())
    for open_char, close_char in (("{", "}"), ("[", "]")):
        start, end = text.find(open_char), text.rfind(close_char)
        if start != -1 and end > start:
            candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None

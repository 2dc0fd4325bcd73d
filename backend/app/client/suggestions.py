"""
Split a finished chat answer into the visible text and its follow-up questions.

The model is asked to end its answer with a marker line followed by a
numbered list. Nothing escapes the marker: if it shows up inside a real
answer, everything after it is hidden. Run extract_suggestions once the
stream has ended; a partial answer goes through visible_while_streaming.
"""
import re
from typing import List, NamedTuple

from app.services.prompts import SUGGESTIONS_MARKER

MAX_SUGGESTIONS = 3

_NUMBERED_LINE = re.compile(r"^\d+\.")
_NUMBER_PREFIX = re.compile(r"^\d+\.\s*")


class ExtractedAnswer(NamedTuple):
    display_text: str
    suggestions: List[str]


def extract_suggestions(text: str, marker: str = SUGGESTIONS_MARKER) -> ExtractedAnswer:
    idx = text.find(marker)
    if idx == -1:
        return ExtractedAnswer(text, [])

    suggestions = []
    for line in text[idx + len(marker):].split("\n"):
        line = line.strip()
        if _NUMBERED_LINE.match(line):
            suggestions.append(_NUMBER_PREFIX.sub("", line).strip())

    return ExtractedAnswer(text[:idx].strip(), suggestions[:MAX_SUGGESTIONS])


def visible_while_streaming(text: str, marker: str = SUGGESTIONS_MARKER) -> str:
    """
    The part of a still-growing answer that is safe to show.

    Cuts at the marker once it has arrived, and holds back a tail that
    could be the start of it until the next chunk settles the question.
    """
    idx = text.find(marker)
    if idx != -1:
        return text[:idx]
    for n in range(min(len(marker) - 1, len(text)), 0, -1):
        if text.endswith(marker[:n]):
            return text[:-n]
    return text

"""Split one line of a track file into whitespace-delimited tokens.

Whitespace inside double quotes does not split. A backslash escapes the
next character, so `\\"` neither opens nor closes a quote. Tokens are
yielded as (start, end) spans into the line so the tag parser can slice
without copying.
"""

from __future__ import annotations

from collections.abc import Iterator


def iter_token_spans(line: str) -> Iterator[tuple[int, int]]:
    """Yield (start, end) spans of the tokens in `line`.

    Args:
        line: One line with its terminator already stripped.

    Yields:
        Half-open index pairs; `line[start:end]` is never empty.
        A token starting with `#` begins a comment running to the end of
        the line, so a line whose first non-blank character is `#` yields
        nothing.
    """
    length = len(line)
    pos = 0

    while pos < length:
        while pos < length and line[pos].isspace():
            pos += 1
        if pos >= length:
            return
        if line[pos] == "#":
            return

        start = pos
        inside_quote = False
        escaped = False
        while pos < length:
            char = line[pos]
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                inside_quote = not inside_quote
            elif char.isspace() and not inside_quote:
                break
            pos += 1

        yield start, pos


def tokenize(line: str) -> list[str]:
    """Return the tokens of `line` as strings."""
    return [line[start:end] for start, end in iter_token_spans(line)]

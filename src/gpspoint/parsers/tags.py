"""Split a `key=value` token and decode its value.

A token takes one of these forms:
    key=value       unquoted value, runs to the end of the token
    key="value"     quoted value, closing quote must be the last character
    key=""          present but empty
    key=            value absent

Anything without an unescaped `=`, or with an unterminated quote, is not a
tag and is dropped by the caller.
"""

from __future__ import annotations


def unescape(raw: str) -> str:
    """Drop each backslash and keep the character after it literally.

    A trailing backslash with nothing after it is dropped.
    """
    if "\\" not in raw:
        return raw
    out: list[str] = []
    escaped = False
    for char in raw:
        if char == "\\" and not escaped:
            escaped = True
            continue
        out.append(char)
        escaped = False
    return "".join(out)


def _find_equals(token: str) -> int:
    escaped = False
    for idx, char in enumerate(token):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "=":
            return idx
    return -1


def parse_tag(token: str) -> tuple[str, str | None] | None:
    """Parse one token into (key, value).

    Args:
        token: A single token from the tokenizer.

    Returns:
        (key, decoded value) when the token is a tag. The value is None when
        nothing follows the `=`, and "" for an explicit `=""`.
        None when the token is malformed.
    """
    eq = _find_equals(token)
    if eq < 0:
        return None

    key = token[:eq]
    start = eq + 1
    end = len(token)

    if start == end:
        return key, None

    if token[start] == '"':
        start += 1
        if start < end and token[start] == '"':
            return key, ""
        # Unterminated, e.g. comment=" or comment="abc
        if start >= end or token[end - 1] != '"':
            return None
        end -= 1

    return key, unescape(token[start:end])

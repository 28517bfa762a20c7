"""Span finder and call parser for the Inline Logic Engine.

Scans raw strings for ``${...}`` regions and interprets their content as a
function call, a ``rand:MIN:MAX`` shorthand or a variable reference.
Nothing in here raises on malformed input.
"""

import re

from replybot.strategies.ile.models import Call, Expression, RandShorthand, Span, VarRef

OPEN_TOKEN = "${"
CLOSE_TOKEN = "}"

_CALL_RE = re.compile(r"(\w+)\((.*)\)", re.ASCII | re.DOTALL)
_RAND_RE = re.compile(r"rand:(\d+):(\d+)", re.ASCII)
_QUOTES = ("'", '"')


def find_spans(text: str) -> list[Span]:
    """Find the top-level ``${...}`` spans of a string, left to right.

    Depth only rises on the two-character token ``${``; a bare ``{`` is
    ordinary text. An opening token that is never closed is skipped and
    scanning resumes right after it.

    Args:
        text: The string to scan.

    Returns:
        Non-overlapping spans in source order.
    """
    spans: list[Span] = []
    start = 0

    while True:
        open_index = text.find(OPEN_TOKEN, start)
        if open_index == -1:
            break

        depth = 1
        close_index = -1
        i = open_index + len(OPEN_TOKEN)
        while i < len(text):
            if text.startswith(OPEN_TOKEN, i):
                depth += 1
                i += len(OPEN_TOKEN)
                continue
            if text[i] == CLOSE_TOKEN:
                depth -= 1
                if depth == 0:
                    close_index = i
                    break
            i += 1

        if close_index == -1:
            start = open_index + len(OPEN_TOKEN)
            continue

        spans.append(
            Span(
                raw=text[open_index : close_index + 1],
                content=text[open_index + len(OPEN_TOKEN) : close_index],
                start_index=open_index,
            )
        )
        start = close_index + 1

    return spans


def split_args(text: str) -> list[str]:
    """Split an argument list on top-level commas.

    Commas inside parentheses or inside a single- or double-quoted string
    are not split points. A quote preceded by a backslash does not close
    the string. Arguments are stripped; a trailing empty argument is
    dropped, so ``""`` yields no arguments at all.

    Args:
        text: The text between a call's outer parentheses.

    Returns:
        The raw argument strings, quotes still attached.
    """
    args: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None

    for i, char in enumerate(text):
        if quote is not None:
            current.append(char)
            if char == quote and (i == 0 or text[i - 1] != "\\"):
                quote = None
            continue

        if char in _QUOTES:
            quote = char
            current.append(char)
        elif char == "(":
            depth += 1
            current.append(char)
        elif char == ")":
            depth -= 1
            current.append(char)
        elif char == "," and depth == 0:
            args.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    tail = "".join(current).strip()
    if tail:
        args.append(tail)

    return args


def unquote(arg: str) -> str:
    """Strip one pair of matching outer quotes; no escape decoding."""
    stripped = arg.strip()
    if len(stripped) >= 2 and stripped[0] in _QUOTES and stripped[-1] == stripped[0]:
        return stripped[1:-1]
    return stripped


def parse_call(content: str) -> Call | None:
    """Parse ``name(args)``; returns None if the content is not a call."""
    match = _CALL_RE.fullmatch(content)
    if match is None:
        return None
    return Call(name=match.group(1), args=tuple(split_args(match.group(2))))


def parse_expression(content: str) -> Expression:
    """Interpret the content of a span.

    Tried in order: ``name(args)``, ``rand:MIN:MAX``, then anything else
    as a variable name (taken verbatim).
    """
    call = parse_call(content)
    if call is not None:
        return call

    match = _RAND_RE.fullmatch(content)
    if match is not None:
        return RandShorthand(minimum=int(match.group(1)), maximum=int(match.group(2)))

    return VarRef(name=content)

"""Dotted/bracketed key paths into a document.

A path such as ``devices[0].name`` is a list of segments separated by ``.``.
Each segment is an optional mapping key followed by zero or more ``[n]``
array subscripts:

    parse_path("devices[0].name")  # ["devices", 0, "name"]

``apply_path`` returns a copy of a document with a value placed at a path,
creating missing mappings and arrays on the way down. Arrays grow by append:
an index past the end appends at the end instead of padding, so writing
``items[5]`` into a one-element array puts the value at position 1.
"""

import re

from ipwatch.document import Document
from ipwatch.errors import InvalidPathError

__all__ = [
    "Token",
    "apply_path",
    "parse_path",
    "read_path",
]

Token = str | int

_SEGMENT_PATTERN = re.compile(r"(?P<key>[^\[\]]*)(?P<subscripts>(?:\[[^\[\]]*\])*)")
_SUBSCRIPT_PATTERN = re.compile(r"\[([^\[\]]*)\]")

_MISSING = object()


def parse_path(path: str) -> list[Token]:
    """Split a path into key and index tokens.

    Args:
        path: Path string, e.g. ``a.b[0].c``.

    Returns:
        Tokens in traversal order; keys are str, indices are int.

    Raises:
        InvalidPathError: On an empty path or segment, an unterminated or
            stray bracket, or a non-numeric index.
    """
    if not path:
        raise InvalidPathError(path, "path is empty")

    tokens: list[Token] = []
    for segment in path.split("."):
        match = _SEGMENT_PATTERN.fullmatch(segment)
        if match is None:
            raise InvalidPathError(path, f"malformed brackets in segment {segment!r}")

        key = match.group("key")
        subscripts = match.group("subscripts")
        if not key and not subscripts:
            raise InvalidPathError(path, "empty segment")

        if key:
            tokens.append(key)
        for index in _SUBSCRIPT_PATTERN.findall(subscripts):
            if not (index.isascii() and index.isdigit()):
                raise InvalidPathError(path, f"array index {index!r} is not a number")
            tokens.append(int(index))

    return tokens


def apply_path(doc: Document, path: str, value: Document) -> Document:
    """Return a copy of ``doc`` with ``value`` placed at ``path``.

    The input document is not modified. Containers along the path are
    copied; everything else is shared with the input.

    Raises:
        InvalidPathError: If the path is malformed or crosses a value of the
            wrong shape (a key into an array, an index into a mapping, or
            any step through a scalar).
    """
    tokens = parse_path(path)
    return _apply(doc, tokens, value, path)


def _apply(node: Document, tokens: list[Token], value: Document, path: str) -> Document:
    token, rest = tokens[0], tokens[1:]

    if isinstance(token, int):
        if node is None:
            node = []
        if not isinstance(node, list):
            raise InvalidPathError(path, f"index [{token}] applied to {_kind(node)}")

        items = list(node)
        if token >= len(items):
            items.append(value)
        elif rest:
            items[token] = _apply(items[token], rest, value, path)
        else:
            items[token] = value
        return items

    if node is None:
        node = {}
    if not isinstance(node, dict):
        raise InvalidPathError(path, f"key {token!r} applied to {_kind(node)}")

    mapping = dict(node)
    if rest:
        mapping[token] = _apply(mapping.get(token), rest, value, path)
    else:
        mapping[token] = value
    return mapping


def read_path(doc: Document, path: str, default: Document = None) -> Document:
    """Return the value at ``path``, or ``default`` if a key or index is missing.

    Raises:
        InvalidPathError: If the path is malformed or steps through a value
            of the wrong shape.
    """
    node = doc
    for token in parse_path(path):
        if node is None:
            return default
        if isinstance(token, int):
            if not isinstance(node, list):
                raise InvalidPathError(path, f"index [{token}] applied to {_kind(node)}")
            node = node[token] if token < len(node) else _MISSING
        else:
            if not isinstance(node, dict):
                raise InvalidPathError(path, f"key {token!r} applied to {_kind(node)}")
            node = node.get(token, _MISSING)

        if node is _MISSING:
            return default

    return node


def _kind(node: Document) -> str:
    if isinstance(node, dict):
        return "a mapping"
    if isinstance(node, list):
        return "an array"
    if node is None:
        return "null"
    return type(node).__name__
